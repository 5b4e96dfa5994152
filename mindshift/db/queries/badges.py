"""Badge database queries"""
import logging
from psycopg import AsyncConnection

from mindshift.models.badge import BadgeRecord

logger = logging.getLogger(__name__)


async def list_badges(conn: AsyncConnection, user_id: str) -> list[BadgeRecord]:
    """Badges earned by a user, oldest first"""
    async with conn.cursor() as cur:
        await cur.execute(
            """
            SELECT user_id, badge_type, earned_at
            FROM badges
            WHERE user_id = %s
            ORDER BY earned_at ASC
            """,
            (user_id,)
        )
        rows = await cur.fetchall()
        return [BadgeRecord(**row) for row in rows]


async def insert_badge(conn: AsyncConnection, badge: BadgeRecord) -> bool:
    """
    Record a badge unless the user already has it

    Returns:
        True if inserted, False if the (user_id, badge_type) pair existed
    """
    async with conn.cursor() as cur:
        await cur.execute(
            """
            INSERT INTO badges (user_id, badge_type, earned_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (user_id, badge_type) DO NOTHING
            """,
            (badge.user_id, badge.badge_type, badge.earned_at)
        )
        return cur.rowcount == 1
