"""
Progression storage interface

A ProgressionStore hands out units of work. Everything done through one
unit of work commits together when the `transaction()` block exits
normally, and nothing is visible if the block raises.

`transaction(user_id)` serializes units of work for the same user, so two
practice submissions for one account never interleave. Units of work for
different users do not wait on each other.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncContextManager, Optional

from mindshift.models.affirmation import Affirmation, PracticeEvent
from mindshift.models.badge import BadgeRecord
from mindshift.models.user import UserProgression


class UnitOfWork(ABC):
    """Reads and writes inside one transaction"""

    # Users

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserProgression]:
        ...

    @abstractmethod
    async def save_user(self, user: UserProgression) -> None:
        """Insert or fully replace a user record"""

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[UserProgression]:
        ...

    # Affirmations

    @abstractmethod
    async def get_affirmation(self, affirmation_id: str) -> Optional[Affirmation]:
        ...

    @abstractmethod
    async def list_affirmations(
        self,
        user_id: str,
        archived: Optional[bool] = None
    ) -> list[Affirmation]:
        """Affirmations for a user, newest first"""

    @abstractmethod
    async def count_affirmations(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def save_affirmation(self, affirmation: Affirmation) -> None:
        """Insert or fully replace an affirmation"""

    @abstractmethod
    async def delete_affirmation(self, affirmation_id: str) -> list[PracticeEvent]:
        """Delete an affirmation and its practice events, returning the events"""

    # Practice events

    @abstractmethod
    async def add_practice(self, event: PracticeEvent) -> None:
        ...

    @abstractmethod
    async def list_practices(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None
    ) -> list[PracticeEvent]:
        """Practice events in [since, until), oldest first"""

    @abstractmethod
    async def count_practices(self, user_id: str, since: datetime) -> int:
        ...

    # Badges

    @abstractmethod
    async def list_badges(self, user_id: str) -> list[BadgeRecord]:
        ...

    @abstractmethod
    async def add_badge(self, badge: BadgeRecord) -> bool:
        """Record a badge; False if the user already had it (first write wins)"""


class ProgressionStore(ABC):
    """Transactional storage for users, affirmations, practices and badges"""

    @abstractmethod
    def transaction(self, user_id: Optional[str] = None) -> AsyncContextManager[UnitOfWork]:
        """
        Open a unit of work

        Args:
            user_id: Account whose data is touched; serializes units of work
                for that account. None for reads that span accounts.
        """

    @abstractmethod
    async def top_users(self, limit: Optional[int] = None) -> list[UserProgression]:
        """Users ordered by total XP, highest first (all users when limit is None)"""

    async def ping(self) -> None:
        """Raise if the backing storage cannot serve a read"""
        async with self.transaction() as uow:
            await uow.get_user("__health_check__")
