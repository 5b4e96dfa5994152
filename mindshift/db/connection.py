"""
PostgreSQL connection pool

Every pooled connection is pinned to UTC and hands out dict rows, so the
query modules read TIMESTAMPTZ columns as aware UTC datetimes and address
columns by name.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from mindshift import config

logger = logging.getLogger(__name__)

POOL_NAME = "mindshift"


async def configure_connection(conn: psycopg.AsyncConnection) -> None:
    """Session settings applied once per new pooled connection"""
    await conn.execute("SET TIME ZONE 'UTC'")
    # configure must leave the connection idle
    await conn.commit()


class Database:
    """Owns the progression store's connection pool"""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.connection_string = connection_string or config.DATABASE_URL
        self.min_size = min_size if min_size is not None else config.DB_POOL_MIN_SIZE
        self.max_size = max_size if max_size is not None else config.DB_POOL_MAX_SIZE
        self.timeout = timeout if timeout is not None else config.DB_POOL_TIMEOUT
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def build_pool(self) -> AsyncConnectionPool:
        return AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            name=POOL_NAME,
            kwargs={"row_factory": dict_row},
            configure=configure_connection,
            open=False,
        )

    async def init_pool(self) -> None:
        """Open the pool; a second call is a no-op"""
        if self._pool is not None:
            return
        logger.info(f"Opening pool '{POOL_NAME}' ({self.min_size}-{self.max_size} connections)")
        pool = self.build_pool()
        await pool.open(wait=True, timeout=self.timeout)
        self._pool = pool

    async def close_pool(self) -> None:
        if self._pool is None:
            return
        logger.info(f"Closing pool '{POOL_NAME}'")
        pool, self._pool = self._pool, None
        await pool.close()

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Borrow a connection

        Raises:
            RuntimeError: If the pool was never opened
            psycopg_pool.PoolTimeout: If no connection frees up within the timeout
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection(timeout=self.timeout) as conn:
            yield conn

    async def check(self) -> None:
        """Round-trip a trivial query; raises psycopg.Error when the server is unreachable"""
        async with self.connection() as conn:
            await conn.execute("SELECT 1")

    def stats(self) -> dict:
        """Pool counters (pool_size, pool_available, requests_waiting, ...)"""
        if self._pool is None:
            return {}
        return self._pool.get_stats()


# Shared by the postgres backend
db = Database()
