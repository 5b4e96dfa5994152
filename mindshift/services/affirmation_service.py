"""
AffirmationService - Affirmation Lifecycle

Create, edit, archive, restore and delete affirmations. Every operation
enforces ownership: an affirmation can only be touched by its user.

Counters (times_practiced, total_repetitions, last_practiced_at) start at
zero and are afterwards written only by PracticeService.

Deleting an affirmation removes its practice events and subtracts their
contribution from the user's badge aggregates. XP, level, streaks and
earned badges are kept.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from mindshift import config
from mindshift.db.store import ProgressionStore
from mindshift.exceptions import LimitExceededError, ValidationError
from mindshift.models.affirmation import Affirmation
from mindshift.progression.xp import is_early_practice, is_late_practice
from mindshift.services.lookups import require_owned_affirmation, require_user
from mindshift.utils.datetime_helpers import local_hour, now_utc

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], field: str, user_id: str, operation: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(
            message=f"{field} must not be empty",
            field=field,
            value=value,
            user_id=user_id,
            operation=operation,
        )
    return text


class AffirmationService:
    """
    Service for affirmations.

    Responsibilities:
    - Creation with the free-plan limit
    - Text edits, archive and restore
    - Permanent deletion with aggregate rollback
    """

    def __init__(self, store: ProgressionStore, clock: Callable[[], datetime] = now_utc):
        """
        Initialize AffirmationService.

        Args:
            store: Progression store
            clock: Returns the current UTC instant
        """
        self.store = store
        self.clock = clock
        logger.debug("AffirmationService initialized")

    async def create_affirmation(
        self,
        user_id: str,
        original_thought: str,
        affirmation_text: str,
        detected_level: Optional[int] = None,
        cognitive_distortions: Optional[List[str]] = None,
        theme_category: Optional[str] = None,
        chosen_level: Optional[int] = None,
        user_edited: bool = False
    ) -> Affirmation:
        """
        Create an affirmation with zeroed practice counters.

        Free plans may hold at most FREE_TIER_AFFIRMATION_LIMIT affirmations
        (archived ones included).

        Args:
            user_id: Owner's id
            original_thought: The negative thought as the user wrote it
            affirmation_text: Affirmation to practice
            detected_level: Intensity level from analysis (1-5)
            cognitive_distortions: Distortion labels from analysis
            theme_category: Theme label from analysis
            chosen_level: Level of the variant the user picked
            user_edited: The user edited the generated text

        Raises:
            ValidationError: Empty thought or text
            LimitExceededError: Free plan limit reached
            RecordNotFoundError: Unknown user
        """
        original_thought = _require_text(original_thought, "original_thought", user_id, "create_affirmation")
        affirmation_text = _require_text(affirmation_text, "affirmation_text", user_id, "create_affirmation")

        now = self.clock()
        async with self.store.transaction(user_id) as uow:
            user = await require_user(uow, user_id, "create_affirmation")

            limit = config.FREE_TIER_AFFIRMATION_LIMIT
            if not user.subscription_tier.is_paid and await uow.count_affirmations(user_id) >= limit:
                raise LimitExceededError(
                    message=f"Free tier limit reached ({limit} affirmations). Upgrade to Pro for unlimited transformations.",
                    limit=limit,
                    user_id=user_id,
                    operation="create_affirmation",
                )

            affirmation = Affirmation(
                user_id=user_id,
                original_thought=original_thought,
                affirmation_text=affirmation_text,
                detected_level=detected_level,
                cognitive_distortions=cognitive_distortions,
                theme_category=theme_category,
                chosen_level=chosen_level,
                user_edited=user_edited,
                created_at=now,
                updated_at=now,
            )
            await uow.save_affirmation(affirmation)

            user.affirmations_created += 1
            user.updated_at = now
            await uow.save_user(user)

        logger.info(f"User {user_id} created affirmation {affirmation.id}")
        return affirmation

    async def get_affirmation(self, user_id: str, affirmation_id: str) -> Affirmation:
        """
        Get one of the user's affirmations.

        Raises:
            RecordNotFoundError: No such affirmation
            AuthorizationError: Owned by another user
        """
        async with self.store.transaction() as uow:
            return await require_owned_affirmation(uow, user_id, affirmation_id, "get_affirmation")

    async def list_affirmations(
        self,
        user_id: str,
        archived: Optional[bool] = False,
        limit: Optional[int] = None
    ) -> List[Affirmation]:
        """
        List a user's affirmations, newest first.

        Args:
            user_id: Owner's id
            archived: False for active, True for archived, None for both
            limit: Maximum number returned
        """
        async with self.store.transaction() as uow:
            affirmations = await uow.list_affirmations(user_id, archived=archived)
        return affirmations[:limit] if limit else affirmations

    async def get_creation_allowance(self, user_id: str) -> Dict[str, Any]:
        """
        How many more affirmations the user may create.

        Returns:
            {'count': int, 'limit': int or None, 'remaining': int or None,
             'unlimited': bool}
        """
        async with self.store.transaction() as uow:
            user = await require_user(uow, user_id, "get_creation_allowance")
            count = await uow.count_affirmations(user_id)

        if user.subscription_tier.is_paid:
            return {"count": count, "limit": None, "remaining": None, "unlimited": True}

        limit = config.FREE_TIER_AFFIRMATION_LIMIT
        return {"count": count, "limit": limit, "remaining": max(0, limit - count), "unlimited": False}

    async def update_affirmation_text(
        self,
        user_id: str,
        affirmation_id: str,
        affirmation_text: str
    ) -> Affirmation:
        """
        Replace the affirmation text and mark it as user-edited.

        Raises:
            ValidationError: Empty text
            RecordNotFoundError: No such affirmation
            AuthorizationError: Owned by another user
        """
        affirmation_text = _require_text(affirmation_text, "affirmation_text", user_id, "update_affirmation_text")

        async with self.store.transaction(user_id) as uow:
            affirmation = await require_owned_affirmation(uow, user_id, affirmation_id, "update_affirmation_text")
            affirmation.affirmation_text = affirmation_text
            affirmation.user_edited = True
            affirmation.updated_at = self.clock()
            await uow.save_affirmation(affirmation)

        logger.info(f"User {user_id} edited affirmation {affirmation_id}")
        return affirmation

    async def archive_affirmation(self, user_id: str, affirmation_id: str) -> Affirmation:
        """Hide an affirmation from the active library"""
        return await self._set_archived(user_id, affirmation_id, True, "archive_affirmation")

    async def restore_affirmation(self, user_id: str, affirmation_id: str) -> Affirmation:
        """Bring an archived affirmation back"""
        return await self._set_archived(user_id, affirmation_id, False, "restore_affirmation")

    async def _set_archived(
        self,
        user_id: str,
        affirmation_id: str,
        archived: bool,
        operation: str
    ) -> Affirmation:
        async with self.store.transaction(user_id) as uow:
            affirmation = await require_owned_affirmation(uow, user_id, affirmation_id, operation)
            affirmation.archived = archived
            affirmation.updated_at = self.clock()
            await uow.save_affirmation(affirmation)

        logger.info(f"User {user_id} {'archived' if archived else 'restored'} affirmation {affirmation_id}")
        return affirmation

    async def delete_affirmation(self, user_id: str, affirmation_id: str) -> Dict[str, int]:
        """
        Permanently delete an affirmation and its practice events.

        The deleted events are subtracted from the user's practice,
        repetition, early and late counters, and the affirmation no longer
        counts as a distinct practiced affirmation. affirmations_created is
        a lifetime count and is kept.

        Returns:
            {'deleted_practices': int, 'deleted_repetitions': int}

        Raises:
            RecordNotFoundError: No such affirmation
            AuthorizationError: Owned by another user
        """
        async with self.store.transaction(user_id) as uow:
            user = await require_user(uow, user_id, "delete_affirmation")
            affirmation = await require_owned_affirmation(uow, user_id, affirmation_id, "delete_affirmation")

            events = await uow.delete_affirmation(affirmation_id)

            repetitions = sum(event.repetitions for event in events)
            early = sum(1 for event in events if is_early_practice(local_hour(event.practiced_at)))
            late = sum(1 for event in events if is_late_practice(local_hour(event.practiced_at)))

            user.total_practices = max(0, user.total_practices - len(events))
            user.total_repetitions = max(0, user.total_repetitions - repetitions)
            user.early_practices = max(0, user.early_practices - early)
            user.late_practices = max(0, user.late_practices - late)
            if affirmation.times_practiced > 0:
                user.distinct_affirmations_practiced = max(0, user.distinct_affirmations_practiced - 1)
            user.updated_at = self.clock()
            await uow.save_user(user)

        logger.info(
            f"User {user_id} deleted affirmation {affirmation_id} "
            f"with {len(events)} practices ({repetitions} reps)"
        )
        return {"deleted_practices": len(events), "deleted_repetitions": repetitions}
