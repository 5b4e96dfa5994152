"""PostgreSQL-backed progression store"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

import psycopg
from psycopg import AsyncConnection

from mindshift.db.connection import Database
from mindshift.db.queries import affirmations as affirmation_queries
from mindshift.db.queries import badges as badge_queries
from mindshift.db.queries import users as user_queries
from mindshift.db.store import ProgressionStore, UnitOfWork
from mindshift.exceptions import wrap_external_exception
from mindshift.models.affirmation import Affirmation, PracticeEvent
from mindshift.models.badge import BadgeRecord
from mindshift.models.user import UserProgression

logger = logging.getLogger(__name__)


class PostgresStore(ProgressionStore):
    """
    Store backed by the psycopg connection pool

    Each transaction runs on one pooled connection. With a user_id, a
    transaction-scoped advisory lock serializes work on that account.
    psycopg errors surface as DatabaseError subclasses (see
    wrap_external_exception for which of them are retryable).
    """

    def __init__(self, database: Database):
        self.database = database

    @asynccontextmanager
    async def transaction(self, user_id: Optional[str] = None) -> AsyncIterator[UnitOfWork]:
        try:
            async with self.database.connection() as conn:
                async with conn.transaction():
                    if user_id is not None:
                        await user_queries.lock_user(conn, user_id)
                    yield PostgresUnitOfWork(conn)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="progression_transaction", user_id=user_id) from e

    async def top_users(self, limit: Optional[int] = None) -> list[UserProgression]:
        try:
            async with self.database.connection() as conn:
                return await user_queries.get_top_users(conn, limit)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="top_users") from e

    async def ping(self) -> None:
        try:
            await self.database.check()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="health_check") from e


class PostgresUnitOfWork(UnitOfWork):
    """Delegates to the query modules on one connection"""

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def get_user(self, user_id: str) -> Optional[UserProgression]:
        return await user_queries.get_user(self.conn, user_id)

    async def save_user(self, user: UserProgression) -> None:
        await user_queries.upsert_user(self.conn, user)

    async def find_user_by_username(self, username: str) -> Optional[UserProgression]:
        return await user_queries.get_user_by_username(self.conn, username)

    async def get_affirmation(self, affirmation_id: str) -> Optional[Affirmation]:
        return await affirmation_queries.get_affirmation(self.conn, affirmation_id)

    async def list_affirmations(
        self,
        user_id: str,
        archived: Optional[bool] = None
    ) -> list[Affirmation]:
        return await affirmation_queries.list_affirmations(self.conn, user_id, archived)

    async def count_affirmations(self, user_id: str) -> int:
        return await affirmation_queries.count_affirmations(self.conn, user_id)

    async def save_affirmation(self, affirmation: Affirmation) -> None:
        await affirmation_queries.upsert_affirmation(self.conn, affirmation)

    async def delete_affirmation(self, affirmation_id: str) -> list[PracticeEvent]:
        return await affirmation_queries.delete_affirmation(self.conn, affirmation_id)

    async def add_practice(self, event: PracticeEvent) -> None:
        await affirmation_queries.insert_practice(self.conn, event)

    async def list_practices(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None
    ) -> list[PracticeEvent]:
        return await affirmation_queries.list_practices(self.conn, user_id, since, until)

    async def count_practices(self, user_id: str, since: datetime) -> int:
        return await affirmation_queries.count_practices(self.conn, user_id, since)

    async def list_badges(self, user_id: str) -> list[BadgeRecord]:
        return await badge_queries.list_badges(self.conn, user_id)

    async def add_badge(self, badge: BadgeRecord) -> bool:
        return await badge_queries.insert_badge(self.conn, badge)
