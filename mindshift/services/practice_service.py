"""
PracticeService - Practice Transaction Orchestrator

Turns one completed practice session into progression. This is the only
writer of XP, level, streak, practice history and automatically awarded
badges.

One submission is one unit of work (all-or-nothing):
1. Load the user and the affirmation (ownership enforced)
2. Decide "first practice today" and "new affirmation"
3. Advance the streak (Streak Shield for paid plans)
4. Award XP using the streak *after* this practice
5. Recompute level and tier
6. Persist user, practice event and affirmation counters
7. Evaluate badges against post-event aggregates, persist new ones
8. Return a PracticeResult with the celebration classification

Resubmitting the same session is recorded as a new practice; callers that
retry must deduplicate on their side.
"""

import logging
from datetime import datetime
from typing import Callable

from mindshift.db.store import ProgressionStore
from mindshift.exceptions import ValidationError
from mindshift.models.affirmation import PracticeEvent
from mindshift.models.badge import BadgeRecord
from mindshift.models.practice import LevelProgress, Milestone, PracticeResult
from mindshift.progression import badges as badge_rules
from mindshift.progression.celebration import classify
from mindshift.progression.levels import (
    level_for_xp,
    level_info,
    milestone_for_level,
    tier_for_level,
)
from mindshift.progression.streaks import format_streak_message, next_streak
from mindshift.progression.xp import (
    award_xp,
    is_early_practice,
    is_late_practice,
    is_morning_practice,
)
from mindshift.services.lookups import require_owned_affirmation, require_user
from mindshift.utils.datetime_helpers import (
    local_date,
    local_hour,
    now_utc,
    start_of_local_day,
)

logger = logging.getLogger(__name__)

# Upper bounds for one session; both fit the INTEGER columns of practices
MAX_REPETITIONS = 10_000
MAX_DURATION_SECONDS = 24 * 60 * 60


def validate_submission(repetitions, duration_seconds, user_id: str) -> None:
    """
    Reject malformed submissions before any storage access

    Raises:
        ValidationError: repetitions is not an integer in 1..MAX_REPETITIONS,
            or duration_seconds is not an integer in 0..MAX_DURATION_SECONDS
    """
    if isinstance(repetitions, bool) or not isinstance(repetitions, int) or not (0 < repetitions <= MAX_REPETITIONS):
        raise ValidationError(
            message=f"Repetitions must be an integer between 1 and {MAX_REPETITIONS}",
            field="repetitions",
            value=repetitions,
            user_id=user_id,
            operation="submit_practice",
        )
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) or not (0 <= duration_seconds <= MAX_DURATION_SECONDS):
        raise ValidationError(
            message=f"Duration must be between 0 and {MAX_DURATION_SECONDS} seconds",
            field="duration_seconds",
            value=duration_seconds,
            user_id=user_id,
            operation="submit_practice",
        )


class PracticeService:
    """
    Service for practice submissions.

    Responsibilities:
    - Sequencing the progression rules for one practice
    - Keeping the user's aggregate badge counters current
    - Atomic persistence through the store's unit of work
    """

    def __init__(self, store: ProgressionStore, clock: Callable[[], datetime] = now_utc):
        """
        Initialize PracticeService.

        Args:
            store: Progression store
            clock: Returns the current UTC instant
        """
        self.store = store
        self.clock = clock
        logger.debug("PracticeService initialized")

    async def submit_practice(
        self,
        user_id: str,
        affirmation_id: str,
        repetitions: int,
        duration_seconds: int
    ) -> PracticeResult:
        """
        Record a completed practice session.

        Args:
            user_id: Authenticated user's id
            affirmation_id: Affirmation that was practiced
            repetitions: Repetitions completed (> 0)
            duration_seconds: Session length (>= 0)

        Returns:
            PracticeResult summary

        Raises:
            ValidationError: Bad input, or the clock is behind the last practice date
            RecordNotFoundError: Unknown user or affirmation
            AuthorizationError: Affirmation belongs to someone else
            DatabaseError: Storage failure (retryable, nothing was written)
        """
        validate_submission(repetitions, duration_seconds, user_id)

        now = self.clock()
        today = local_date(now)
        hour = local_hour(now)

        async with self.store.transaction(user_id) as uow:
            user = await require_user(uow, user_id, "submit_practice")
            affirmation = await require_owned_affirmation(uow, user_id, affirmation_id, "submit_practice")

            if user.last_practice_date is not None and today < user.last_practice_date:
                raise ValidationError(
                    message="Practice date is earlier than the last recorded practice",
                    field="practiced_at",
                    value=today.isoformat(),
                    user_id=user_id,
                    operation="submit_practice",
                )

            is_first_today = await uow.count_practices(user_id, since=start_of_local_day(today)) == 0
            is_new_affirmation = affirmation.times_practiced == 0

            previous_streak = user.current_streak
            streak = next_streak(
                last_practice_date=user.last_practice_date,
                today=today,
                current_streak=user.current_streak,
                is_pro=user.subscription_tier.is_paid,
                last_shield_used=user.last_streak_shield_used,
                now=now,
                longest_streak=user.longest_streak,
            )

            xp_earned = award_xp(
                repetitions=repetitions,
                streak=streak.current_streak,
                is_first_practice_today=is_first_today,
                is_new_affirmation=is_new_affirmation,
                is_morning_practice=is_morning_practice(hour),
            )

            old_level = level_for_xp(user.total_xp)
            new_total_xp = user.total_xp + xp_earned
            new_level = level_for_xp(new_total_xp)
            old_tier = tier_for_level(old_level)
            new_tier = tier_for_level(new_level)

            # User progression and badge aggregates
            user.total_xp = new_total_xp
            user.level = new_level
            user.current_streak = streak.current_streak
            user.longest_streak = streak.longest_streak
            user.last_practice_date = today
            user.last_streak_shield_used = streak.shield_used_at
            user.total_practices += 1
            user.total_repetitions += repetitions
            if is_new_affirmation:
                user.distinct_affirmations_practiced += 1
            if is_early_practice(hour):
                user.early_practices += 1
            if is_late_practice(hour):
                user.late_practices += 1
            user.updated_at = now
            await uow.save_user(user)

            event = PracticeEvent(
                user_id=user_id,
                affirmation_id=affirmation_id,
                repetitions=repetitions,
                xp_earned=xp_earned,
                duration_seconds=duration_seconds,
                practiced_at=now,
            )
            await uow.add_practice(event)

            affirmation.times_practiced += 1
            affirmation.total_repetitions += repetitions
            affirmation.last_practiced_at = now
            affirmation.updated_at = now
            await uow.save_affirmation(affirmation)

            # Badges, against post-event aggregates
            held = {badge.badge_type for badge in await uow.list_badges(user_id)}
            new_badges = []
            for badge_id in badge_rules.evaluate(badge_rules.snapshot_from_user(user), held):
                if await uow.add_badge(BadgeRecord(user_id=user_id, badge_type=badge_id, earned_at=now)):
                    new_badges.append(badge_id)

        logger.info(
            f"Practice recorded for user {user_id}: {repetitions} reps, +{xp_earned} XP. "
            f"Total: {new_total_xp} XP, Level: {new_level}, Streak: {streak.current_streak}"
        )
        if new_level > old_level:
            logger.info(f"User {user_id} leveled up from {old_level} to {new_level}!")
        if streak.shield_consumed:
            logger.info(f"User {user_id} streak protected by Streak Shield at {streak.current_streak} days")
        if new_badges:
            logger.info(f"User {user_id} earned badges: {', '.join(new_badges)}")

        info = level_info(new_total_xp)
        leveled_up = new_level > old_level
        milestone = milestone_for_level(new_level) if leveled_up else None

        return PracticeResult(
            practice_id=event.id,
            xp_earned=xp_earned,
            total_xp=new_total_xp,
            old_level=old_level,
            new_level=new_level,
            leveled_up=leveled_up,
            level_progress=LevelProgress(
                xp_in_level=info["xp_in_level"],
                xp_for_level=info["xp_for_level"],
                xp_to_next_level=info["xp_to_next_level"],
                next_level_xp=info["next_level_xp"],
            ),
            old_tier=old_tier,
            new_tier=new_tier,
            tier_changed=old_tier != new_tier,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            streak_status=streak.status,
            streak_message=format_streak_message(streak, previous_streak),
            used_streak_shield=streak.shield_consumed,
            new_badges=new_badges,
            celebration=classify(old_level, new_level, old_tier, new_tier),
            milestone=Milestone(**milestone) if milestone else None,
        )
