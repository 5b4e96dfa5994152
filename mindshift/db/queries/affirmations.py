"""Affirmation and practice event database queries"""
import logging
from datetime import datetime
from typing import Optional
from psycopg import AsyncConnection, sql

from mindshift.models.affirmation import Affirmation, PracticeEvent

logger = logging.getLogger(__name__)

AFFIRMATION_COLUMNS: tuple[str, ...] = tuple(Affirmation.model_fields)
PRACTICE_COLUMNS: tuple[str, ...] = tuple(PracticeEvent.model_fields)


def _select(columns: tuple[str, ...], table: str) -> sql.Composed:
    return sql.SQL("SELECT {cols} FROM {table}").format(
        cols=sql.SQL(", ").join(map(sql.Identifier, columns)),
        table=sql.Identifier(table),
    )


# ==========================================
# Affirmations
# ==========================================

async def get_affirmation(conn: AsyncConnection, affirmation_id: str) -> Optional[Affirmation]:
    async with conn.cursor() as cur:
        await cur.execute(
            _select(AFFIRMATION_COLUMNS, "affirmations") + sql.SQL(" WHERE id = %s"),
            (affirmation_id,)
        )
        row = await cur.fetchone()
        return Affirmation(**row) if row else None


async def list_affirmations(
    conn: AsyncConnection,
    user_id: str,
    archived: Optional[bool] = None
) -> list[Affirmation]:
    """
    Affirmations for a user, newest first

    Args:
        archived: Filter on archived flag (None returns both)
    """
    query = _select(AFFIRMATION_COLUMNS, "affirmations") + sql.SQL(" WHERE user_id = %s")
    params: list = [user_id]
    if archived is not None:
        query += sql.SQL(" AND archived = %s")
        params.append(archived)
    query += sql.SQL(" ORDER BY created_at DESC")

    async with conn.cursor() as cur:
        await cur.execute(query, params)
        rows = await cur.fetchall()
        return [Affirmation(**row) for row in rows]


async def count_affirmations(conn: AsyncConnection, user_id: str) -> int:
    async with conn.cursor() as cur:
        await cur.execute(
            "SELECT COUNT(*) AS count FROM affirmations WHERE user_id = %s",
            (user_id,)
        )
        row = await cur.fetchone()
        return row["count"]


async def upsert_affirmation(conn: AsyncConnection, affirmation: Affirmation) -> None:
    """Insert an affirmation or replace its mutable columns"""
    updatable = [c for c in AFFIRMATION_COLUMNS if c not in ("id", "user_id", "created_at")]
    query = sql.SQL(
        """
        INSERT INTO affirmations ({cols})
        VALUES ({vals})
        ON CONFLICT (id) DO UPDATE SET {updates}
        """
    ).format(
        cols=sql.SQL(", ").join(map(sql.Identifier, AFFIRMATION_COLUMNS)),
        vals=sql.SQL(", ").join(map(sql.Placeholder, AFFIRMATION_COLUMNS)),
        updates=sql.SQL(", ").join(
            sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(c)) for c in updatable
        ),
    )
    async with conn.cursor() as cur:
        await cur.execute(query, affirmation.model_dump())


async def delete_affirmation(conn: AsyncConnection, affirmation_id: str) -> list[PracticeEvent]:
    """
    Delete an affirmation and its practice events

    Returns:
        The deleted practice events
    """
    async with conn.cursor() as cur:
        await cur.execute(
            sql.SQL("DELETE FROM practices WHERE affirmation_id = %s RETURNING {cols}").format(
                cols=sql.SQL(", ").join(map(sql.Identifier, PRACTICE_COLUMNS))
            ),
            (affirmation_id,)
        )
        removed = [PracticeEvent(**row) for row in await cur.fetchall()]
        await cur.execute("DELETE FROM affirmations WHERE id = %s", (affirmation_id,))

    logger.info(f"Deleted affirmation {affirmation_id} with {len(removed)} practice events")
    return removed


# ==========================================
# Practice events
# ==========================================

async def insert_practice(conn: AsyncConnection, event: PracticeEvent) -> None:
    async with conn.cursor() as cur:
        await cur.execute(
            sql.SQL("INSERT INTO practices ({cols}) VALUES ({vals})").format(
                cols=sql.SQL(", ").join(map(sql.Identifier, PRACTICE_COLUMNS)),
                vals=sql.SQL(", ").join(map(sql.Placeholder, PRACTICE_COLUMNS)),
            ),
            event.model_dump()
        )


async def list_practices(
    conn: AsyncConnection,
    user_id: str,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None
) -> list[PracticeEvent]:
    """Practice events in [since, until), oldest first"""
    query = _select(PRACTICE_COLUMNS, "practices") + sql.SQL(" WHERE user_id = %s")
    params: list = [user_id]
    if since is not None:
        query += sql.SQL(" AND practiced_at >= %s")
        params.append(since)
    if until is not None:
        query += sql.SQL(" AND practiced_at < %s")
        params.append(until)
    query += sql.SQL(" ORDER BY practiced_at ASC")

    async with conn.cursor() as cur:
        await cur.execute(query, params)
        rows = await cur.fetchall()
        return [PracticeEvent(**row) for row in rows]


async def count_practices(conn: AsyncConnection, user_id: str, since: datetime) -> int:
    async with conn.cursor() as cur:
        await cur.execute(
            "SELECT COUNT(*) AS count FROM practices WHERE user_id = %s AND practiced_at >= %s",
            (user_id, since)
        )
        row = await cur.fetchone()
        return row["count"]
