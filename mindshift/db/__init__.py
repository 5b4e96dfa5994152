"""Storage for progression data"""
from mindshift import config
from mindshift.db.connection import db
from mindshift.db.store import ProgressionStore


def create_store(backend: str = None) -> ProgressionStore:
    """
    Build the configured store

    Args:
        backend: 'postgres' or 'memory' (defaults to config.STORAGE_BACKEND)
    """
    backend = backend or config.STORAGE_BACKEND
    if backend == "memory":
        from mindshift.db.memory_store import InMemoryStore
        return InMemoryStore()
    if backend == "postgres":
        from mindshift.db.postgres_store import PostgresStore
        return PostgresStore(db)
    raise ValueError(f"Unknown storage backend: {backend}")
