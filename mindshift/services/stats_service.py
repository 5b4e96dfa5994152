"""
StatsService - Read Paths

Dashboard statistics, today's progress, the practice heatmap, the badge
listing and the leaderboard. Also the manual badge award used for special
events; automatic badges are written only by PracticeService.

Calendar days are evaluated in the practice time zone.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from mindshift.db.store import ProgressionStore
from mindshift.exceptions import ValidationError
from mindshift.models.badge import BadgeRecord
from mindshift.progression import badges as badge_rules
from mindshift.progression.levels import level_info
from mindshift.services.lookups import require_user
from mindshift.utils.datetime_helpers import (
    date_range,
    local_date,
    now_utc,
    start_of_local_day,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DAYS = 365
MAX_HISTORY_DAYS = 730
DEFAULT_LEADERBOARD_LIMIT = 50
MAX_LEADERBOARD_LIMIT = 100


class StatsService:
    """
    Service for progression read paths.

    Responsibilities:
    - User statistics and today's progress
    - Practice history for the heatmap
    - Badge listing with progress toward locked badges
    - Leaderboard and rank
    """

    def __init__(self, store: ProgressionStore, clock: Callable[[], datetime] = now_utc):
        """
        Initialize StatsService.

        Args:
            store: Progression store
            clock: Returns the current UTC instant
        """
        self.store = store
        self.clock = clock
        logger.debug("StatsService initialized")

    async def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        """
        Lifetime statistics for the dashboard.

        Returns:
            {
                'total_practices': int,
                'total_repetitions': int,
                'active_affirmations': int,
                'archived_affirmations': int,
                'practices_today': int,
                'current_streak': int,
                'longest_streak': int,
                'total_xp': int,
                'level': int,
                'tier': Tier
            }
        """
        today_start = start_of_local_day(local_date(self.clock()))
        async with self.store.transaction() as uow:
            user = await require_user(uow, user_id, "get_user_stats")
            affirmations = await uow.list_affirmations(user_id)
            practices_today = await uow.count_practices(user_id, since=today_start)

        archived = sum(1 for a in affirmations if a.archived)
        info = level_info(user.total_xp)

        return {
            "total_practices": user.total_practices,
            "total_repetitions": user.total_repetitions,
            "active_affirmations": len(affirmations) - archived,
            "archived_affirmations": archived,
            "practices_today": practices_today,
            "current_streak": user.current_streak,
            "longest_streak": user.longest_streak,
            "total_xp": user.total_xp,
            "level": info["level"],
            "tier": info["tier"],
        }

    async def get_today_progress(self, user_id: str) -> Dict[str, Any]:
        """
        Progress toward today's practice goal.

        Returns:
            {
                'date': date,
                'practice_count': int,
                'daily_goal': int,
                'goal_met': bool,
                'streak_maintained': bool,
                'current_streak': int,
                'xp_earned_today': int
            }
        """
        today = local_date(self.clock())
        async with self.store.transaction() as uow:
            user = await require_user(uow, user_id, "get_today_progress")
            practices = await uow.list_practices(
                user_id,
                since=start_of_local_day(today),
                until=start_of_local_day(today + timedelta(days=1)),
            )

        return {
            "date": today,
            "practice_count": len(practices),
            "daily_goal": user.daily_practice_goal,
            "goal_met": len(practices) >= user.daily_practice_goal,
            "streak_maintained": user.last_practice_date == today,
            "current_streak": user.current_streak,
            "xp_earned_today": sum(p.xp_earned for p in practices),
        }

    async def get_practice_history(self, user_id: str, days: int = DEFAULT_HISTORY_DAYS) -> List[Dict[str, Any]]:
        """
        Per-day practice counts for the heatmap.

        Args:
            user_id: User's id
            days: Number of calendar days ending today (1-730)

        Returns:
            One {'date': date, 'count': int, 'repetitions': int} entry per
            day, oldest first, including days without practice
        """
        if isinstance(days, bool) or not isinstance(days, int) or not (1 <= days <= MAX_HISTORY_DAYS):
            raise ValidationError(
                message=f"days must be between 1 and {MAX_HISTORY_DAYS}",
                field="days",
                value=days,
                user_id=user_id,
                operation="get_practice_history",
            )

        today = local_date(self.clock())
        window = date_range(today, days)

        async with self.store.transaction() as uow:
            await require_user(uow, user_id, "get_practice_history")
            practices = await uow.list_practices(user_id, since=start_of_local_day(window[0]))

        counts = Counter()
        repetitions = Counter()
        for practice in practices:
            day = local_date(practice.practiced_at)
            counts[day] += 1
            repetitions[day] += practice.repetitions

        return [
            {"date": day, "count": counts[day], "repetitions": repetitions[day]}
            for day in window
        ]

    async def get_badges(self, user_id: str) -> List[Dict[str, Any]]:
        """
        The full badge catalog with the user's status.

        Returns:
            One entry per catalog badge, in catalog order:
            {'id', 'name', 'description', 'icon', 'earned': bool,
             'earned_at': datetime or None, 'progress': float}
        """
        async with self.store.transaction() as uow:
            user = await require_user(uow, user_id, "get_badges")
            records = await uow.list_badges(user_id)

        earned = {record.badge_type: record.earned_at for record in records}
        stats = badge_rules.snapshot_from_user(user)

        return [
            {
                "id": badge.id,
                "name": badge.name,
                "description": badge.description,
                "icon": badge.icon,
                "earned": badge.id in earned,
                "earned_at": earned.get(badge.id),
                "progress": 1.0 if badge.id in earned else badge_rules.progress_toward(badge, stats),
            }
            for badge in badge_rules.BADGE_CATALOG.values()
        ]

    async def award_badge(self, user_id: str, badge_type: str) -> bool:
        """
        Manually award a badge (admin or special events).

        Returns:
            True if awarded, False if the user already had it

        Raises:
            ValidationError: Badge id not in the catalog
            RecordNotFoundError: Unknown user
        """
        if badge_rules.get_badge(badge_type) is None:
            raise ValidationError(
                message=f"Unknown badge type: {badge_type}",
                field="badge_type",
                value=badge_type,
                user_id=user_id,
                operation="award_badge",
            )

        async with self.store.transaction(user_id) as uow:
            await require_user(uow, user_id, "award_badge")
            awarded = await uow.add_badge(
                BadgeRecord(user_id=user_id, badge_type=badge_type, earned_at=self.clock())
            )

        if awarded:
            logger.info(f"Badge {badge_type} manually awarded to user {user_id}")
        else:
            logger.info(f"User {user_id} already has badge {badge_type}")
        return awarded

    async def get_leaderboard(
        self,
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
        current_user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Top users by total XP.

        Anonymous users are shown as "Player" plus the last four characters
        of their id, without an avatar.

        Returns:
            [{'rank', 'user_id', 'display_name', 'total_xp', 'level',
              'current_streak', 'image_url', 'is_current_user'}, ...]
        """
        limit = max(1, min(limit, MAX_LEADERBOARD_LIMIT))
        users = await self.store.top_users(limit)

        return [
            {
                "rank": index,
                "user_id": user.user_id,
                "display_name": user.display_name,
                "total_xp": user.total_xp,
                "level": user.level,
                "current_streak": user.current_streak,
                "image_url": None if user.anonymous_mode else user.image_url,
                "is_current_user": user.user_id == current_user_id,
            }
            for index, user in enumerate(users, start=1)
        ]

    async def get_rank_info(self, user_id: str) -> Dict[str, Any]:
        """
        The user's position on the all-time leaderboard.

        Returns:
            {'rank': int, 'total_users': int, 'xp_to_next_rank': int,
             'next_rank_display_name': str or None, 'percentile': int}
        """
        async with self.store.transaction() as uow:
            await require_user(uow, user_id, "get_rank_info")

        ranked = await self.store.top_users(limit=None)
        position = next(i for i, user in enumerate(ranked) if user.user_id == user_id)
        current = ranked[position]
        ahead = ranked[position - 1] if position > 0 else None
        rank = position + 1

        return {
            "rank": rank,
            "total_users": len(ranked),
            "xp_to_next_rank": ahead.total_xp - current.total_xp if ahead else 0,
            "next_rank_display_name": ahead.display_name if ahead else None,
            "percentile": round((1 - rank / len(ranked)) * 100),
        }
