"""User progression database queries"""
import logging
from typing import Optional
from psycopg import AsyncConnection, sql

from mindshift.models.user import UserProgression

logger = logging.getLogger(__name__)

USER_COLUMNS: tuple[str, ...] = tuple(UserProgression.model_fields)


def _user_params(user: UserProgression) -> dict:
    params = user.model_dump()
    params["subscription_tier"] = user.subscription_tier.value
    return params


async def get_user(conn: AsyncConnection, user_id: str) -> Optional[UserProgression]:
    """Fetch a user's progression record"""
    async with conn.cursor() as cur:
        await cur.execute(
            sql.SQL("SELECT {cols} FROM users WHERE user_id = %s").format(
                cols=sql.SQL(", ").join(map(sql.Identifier, USER_COLUMNS))
            ),
            (user_id,)
        )
        row = await cur.fetchone()
        return UserProgression(**row) if row else None


async def upsert_user(conn: AsyncConnection, user: UserProgression) -> None:
    """
    Insert a user or replace every column of an existing one

    Args:
        conn: Connection inside the caller's transaction
        user: Full progression record
    """
    updatable = [c for c in USER_COLUMNS if c not in ("user_id", "created_at")]
    query = sql.SQL(
        """
        INSERT INTO users ({cols})
        VALUES ({vals})
        ON CONFLICT (user_id) DO UPDATE SET {updates}
        """
    ).format(
        cols=sql.SQL(", ").join(map(sql.Identifier, USER_COLUMNS)),
        vals=sql.SQL(", ").join(map(sql.Placeholder, USER_COLUMNS)),
        updates=sql.SQL(", ").join(
            sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(c)) for c in updatable
        ),
    )
    async with conn.cursor() as cur:
        await cur.execute(query, _user_params(user))


async def get_user_by_username(conn: AsyncConnection, username: str) -> Optional[UserProgression]:
    """Find the account holding a username"""
    async with conn.cursor() as cur:
        await cur.execute(
            sql.SQL("SELECT {cols} FROM users WHERE username = %s").format(
                cols=sql.SQL(", ").join(map(sql.Identifier, USER_COLUMNS))
            ),
            (username,)
        )
        row = await cur.fetchone()
        return UserProgression(**row) if row else None


async def get_top_users(conn: AsyncConnection, limit: Optional[int] = None) -> list[UserProgression]:
    """Users ordered by total XP (leaderboard); limit None returns everyone"""
    async with conn.cursor() as cur:
        await cur.execute(
            sql.SQL("SELECT {cols} FROM users ORDER BY total_xp DESC, created_at ASC LIMIT %s").format(
                cols=sql.SQL(", ").join(map(sql.Identifier, USER_COLUMNS))
            ),
            (limit,)
        )
        rows = await cur.fetchall()
        return [UserProgression(**row) for row in rows]


async def lock_user(conn: AsyncConnection, user_id: str) -> None:
    """
    Serialize transactions for one user

    Transaction-scoped advisory lock, released at commit or rollback. Works
    before the user row exists (first sign-in).
    """
    await conn.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (user_id,))
