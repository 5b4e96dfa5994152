"""Shared test helpers: a settable clock and direct store seeding"""
from datetime import datetime, timedelta, timezone

from mindshift.db.memory_store import InMemoryStore
from mindshift.models.affirmation import Affirmation
from mindshift.models.user import UserProgression


class FakeClock:
    """Settable stand-in for now_utc()"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args) -> None:
        self.now = datetime(*args, tzinfo=timezone.utc)

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def seed_user(store: InMemoryStore, user_id: str, **fields) -> UserProgression:
    """Insert a user record directly into the store"""
    user = UserProgression(user_id=user_id, **fields)
    store.users[user_id] = user
    return user


def seed_affirmation(store: InMemoryStore, user_id: str, **fields) -> Affirmation:
    """Insert an affirmation directly, without touching the user's counters"""
    fields.setdefault("original_thought", "I always mess things up")
    fields.setdefault("affirmation_text", "I learn from every attempt")
    fields.setdefault("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc))
    affirmation = Affirmation(user_id=user_id, **fields)
    store.affirmations[affirmation.id] = affirmation
    return affirmation
