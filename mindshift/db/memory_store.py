"""
In-memory progression store

Process-local implementation of ProgressionStore with the same transaction
semantics as the PostgreSQL store:
- Writes are buffered in the unit of work and applied in one synchronous
  step when the transaction block exits normally
- A block that raises leaves the store untouched
- A per-user asyncio.Lock serializes transactions for the same user; the
  lock is dropped once no transaction holds or waits on it

Nothing is persisted. Used by the test suite and by STORAGE_BACKEND=memory.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from mindshift.db.store import ProgressionStore, UnitOfWork
from mindshift.models.affirmation import Affirmation, PracticeEvent
from mindshift.models.badge import BadgeRecord
from mindshift.models.user import UserProgression

logger = logging.getLogger(__name__)


class InMemoryStore(ProgressionStore):
    """Dict-backed store"""

    def __init__(self):
        self.users: dict[str, UserProgression] = {}
        self.affirmations: dict[str, Affirmation] = {}
        self.practices: dict[str, PracticeEvent] = {}
        self.badges: dict[tuple[str, str], BadgeRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        logger.info("InMemoryStore initialized - progression data is NOT persisted")

    @asynccontextmanager
    async def transaction(self, user_id: Optional[str] = None) -> AsyncIterator[UnitOfWork]:
        if user_id is None:
            uow = MemoryUnitOfWork(self)
            yield uow
            uow.commit()
            return

        async with self._user_lock(user_id):
            uow = MemoryUnitOfWork(self)
            yield uow
            uow.commit()

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def top_users(self, limit: Optional[int] = None) -> list[UserProgression]:
        ranked = sorted(self.users.values(), key=lambda u: u.total_xp, reverse=True)
        return [user.model_copy(deep=True) for user in ranked[:limit]]


class MemoryUnitOfWork(UnitOfWork):
    """Buffers writes over an InMemoryStore until commit()"""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._users: dict[str, UserProgression] = {}
        self._affirmations: dict[str, Affirmation] = {}
        self._deleted_affirmations: set[str] = set()
        self._practices: dict[str, PracticeEvent] = {}
        self._deleted_practices: set[str] = set()
        self._badges: dict[tuple[str, str], BadgeRecord] = {}

    def commit(self) -> None:
        """Apply buffered writes to the store"""
        store = self._store
        store.users.update(self._users)
        store.affirmations.update(self._affirmations)
        for affirmation_id in self._deleted_affirmations:
            store.affirmations.pop(affirmation_id, None)
        store.practices.update(self._practices)
        for practice_id in self._deleted_practices:
            store.practices.pop(practice_id, None)
        store.badges.update(self._badges)

    # Merged views of committed and buffered state

    def _all_users(self) -> dict[str, UserProgression]:
        return {**self._store.users, **self._users}

    def _all_affirmations(self) -> dict[str, Affirmation]:
        merged = {**self._store.affirmations, **self._affirmations}
        for affirmation_id in self._deleted_affirmations:
            merged.pop(affirmation_id, None)
        return merged

    def _all_practices(self) -> dict[str, PracticeEvent]:
        merged = {**self._store.practices, **self._practices}
        for practice_id in self._deleted_practices:
            merged.pop(practice_id, None)
        return merged

    def _all_badges(self) -> dict[tuple[str, str], BadgeRecord]:
        return {**self._store.badges, **self._badges}

    # Users

    async def get_user(self, user_id: str) -> Optional[UserProgression]:
        user = self._all_users().get(user_id)
        return user.model_copy(deep=True) if user else None

    async def save_user(self, user: UserProgression) -> None:
        self._users[user.user_id] = user.model_copy(deep=True)

    async def find_user_by_username(self, username: str) -> Optional[UserProgression]:
        for user in self._all_users().values():
            if user.username == username:
                return user.model_copy(deep=True)
        return None

    # Affirmations

    async def get_affirmation(self, affirmation_id: str) -> Optional[Affirmation]:
        affirmation = self._all_affirmations().get(affirmation_id)
        return affirmation.model_copy(deep=True) if affirmation else None

    async def list_affirmations(
        self,
        user_id: str,
        archived: Optional[bool] = None
    ) -> list[Affirmation]:
        matches = [
            a.model_copy(deep=True)
            for a in self._all_affirmations().values()
            if a.user_id == user_id and (archived is None or a.archived == archived)
        ]
        matches.sort(key=lambda a: (a.created_at is not None, a.created_at or 0), reverse=True)
        return matches

    async def count_affirmations(self, user_id: str) -> int:
        return sum(1 for a in self._all_affirmations().values() if a.user_id == user_id)

    async def save_affirmation(self, affirmation: Affirmation) -> None:
        self._deleted_affirmations.discard(affirmation.id)
        self._affirmations[affirmation.id] = affirmation.model_copy(deep=True)

    async def delete_affirmation(self, affirmation_id: str) -> list[PracticeEvent]:
        removed = [
            p.model_copy(deep=True)
            for p in self._all_practices().values()
            if p.affirmation_id == affirmation_id
        ]
        for practice in removed:
            self._practices.pop(practice.id, None)
            self._deleted_practices.add(practice.id)
        self._affirmations.pop(affirmation_id, None)
        self._deleted_affirmations.add(affirmation_id)
        return removed

    # Practice events

    async def add_practice(self, event: PracticeEvent) -> None:
        self._practices[event.id] = event.model_copy(deep=True)

    async def list_practices(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None
    ) -> list[PracticeEvent]:
        matches = [
            p.model_copy(deep=True)
            for p in self._all_practices().values()
            if p.user_id == user_id
            and (since is None or p.practiced_at >= since)
            and (until is None or p.practiced_at < until)
        ]
        matches.sort(key=lambda p: p.practiced_at)
        return matches

    async def count_practices(self, user_id: str, since: datetime) -> int:
        return len(await self.list_practices(user_id, since=since))

    # Badges

    async def list_badges(self, user_id: str) -> list[BadgeRecord]:
        badges = [b.model_copy() for (owner, _), b in self._all_badges().items() if owner == user_id]
        badges.sort(key=lambda b: b.earned_at)
        return badges

    async def add_badge(self, badge: BadgeRecord) -> bool:
        key = (badge.user_id, badge.badge_type)
        if key in self._all_badges():
            return False
        self._badges[key] = badge.model_copy()
        return True
