"""
UserService - Account Management Business Logic

Handles account sync from the identity provider, settings, usernames and
subscription changes coming from the billing path. Never touches XP,
level or streak; those are written only by PracticeService.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from mindshift.db.store import ProgressionStore
from mindshift.exceptions import AuthorizationError, ConflictError, ValidationError
from mindshift.models.user import SubscriptionTier, UserProgression
from mindshift.progression.levels import level_info
from mindshift.services.lookups import require_user
from mindshift.utils.datetime_helpers import now_utc, parse_user_time

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20


class UserService:
    """
    Service for account management.

    Responsibilities:
    - Creating the progression record at first sign-in
    - Profile and settings updates
    - Username claims (paid plans)
    - Subscription state from the billing path
    """

    def __init__(self, store: ProgressionStore, clock: Callable[[], datetime] = now_utc):
        """
        Initialize UserService.

        Args:
            store: Progression store
            clock: Returns the current UTC instant
        """
        self.store = store
        self.clock = clock
        logger.debug("UserService initialized")

    async def sync_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> UserProgression:
        """
        Create or refresh a user from identity provider data.

        New users start at level 1 with zero XP, streaks and counters.
        Existing users only get their profile fields refreshed.

        Args:
            user_id: Identity provider's stable id
            email: Primary email address
            name: Display name
            image_url: Avatar URL

        Returns:
            The stored user record
        """
        now = self.clock()
        async with self.store.transaction(user_id) as uow:
            user = await uow.get_user(user_id)
            if user is None:
                user = UserProgression(
                    user_id=user_id,
                    email=email,
                    name=name,
                    image_url=image_url,
                    created_at=now,
                    updated_at=now,
                )
                logger.info(f"Created user {user_id}")
            else:
                user.email = email
                user.name = name
                user.image_url = image_url
                user.updated_at = now
                logger.debug(f"Synced profile for user {user_id}")
            await uow.save_user(user)
        return user

    async def get_user(self, user_id: str) -> UserProgression:
        """
        Get a user's progression record.

        Raises:
            RecordNotFoundError: Unknown user
        """
        async with self.store.transaction() as uow:
            return await require_user(uow, user_id, "get_user")

    async def update_settings(
        self,
        user_id: str,
        daily_practice_goal: Optional[int] = None,
        reminder_enabled: Optional[bool] = None,
        reminder_time: Optional[str] = None,
        anonymous_mode: Optional[bool] = None
    ) -> UserProgression:
        """
        Update user preferences. Arguments left as None are unchanged.

        Args:
            user_id: User's id
            daily_practice_goal: Practices per day (positive)
            reminder_enabled: Whether reminders are sent
            reminder_time: Reminder time, HH:MM
            anonymous_mode: Hide the name on public surfaces

        Raises:
            ValidationError: Non-positive goal or malformed reminder time
            RecordNotFoundError: Unknown user
        """
        if daily_practice_goal is not None and (
            isinstance(daily_practice_goal, bool)
            or not isinstance(daily_practice_goal, int)
            or daily_practice_goal < 1
        ):
            raise ValidationError(
                message="Daily practice goal must be a positive integer",
                field="daily_practice_goal",
                value=daily_practice_goal,
                user_id=user_id,
                operation="update_settings",
            )
        if reminder_time is not None:
            try:
                parse_user_time(reminder_time)
            except ValueError as e:
                raise ValidationError(
                    message=str(e),
                    field="reminder_time",
                    value=reminder_time,
                    user_id=user_id,
                    operation="update_settings",
                ) from e

        async with self.store.transaction(user_id) as uow:
            user = await require_user(uow, user_id, "update_settings")
            if daily_practice_goal is not None:
                user.daily_practice_goal = daily_practice_goal
            if reminder_enabled is not None:
                user.reminder_enabled = reminder_enabled
            if reminder_time is not None:
                user.reminder_time = reminder_time
            if anonymous_mode is not None:
                user.anonymous_mode = anonymous_mode
            user.updated_at = self.clock()
            await uow.save_user(user)

        logger.info(f"Updated settings for user {user_id}")
        return user

    async def update_username(self, user_id: str, username: Optional[str]) -> UserProgression:
        """
        Claim a public username (pro and elite plans), or clear it with None.

        Raises:
            ValidationError: Username has the wrong length or characters
            AuthorizationError: Free plan
            ConflictError: Username taken by another user
            RecordNotFoundError: Unknown user
        """
        username = (username or "").strip() or None
        if username is not None and (
            not (USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH)
            or not username.replace("_", "").isalnum()
        ):
            raise ValidationError(
                message=(
                    f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} "
                    "letters, digits or underscores"
                ),
                field="username",
                value=username,
                user_id=user_id,
                operation="update_username",
            )

        async with self.store.transaction(user_id) as uow:
            user = await require_user(uow, user_id, "update_username")
            if username is not None and not user.subscription_tier.is_paid:
                raise AuthorizationError(
                    message=f"User {user_id} on free plan cannot set a username",
                    resource="custom usernames",
                    user_id=user_id,
                    operation="update_username",
                )

            if username is not None:
                owner = await uow.find_user_by_username(username)
                if owner is not None and owner.user_id != user_id:
                    raise ConflictError(
                        message=f"Username {username} is already taken",
                        user_id=user_id,
                        operation="update_username",
                    )

            user.username = username
            user.updated_at = self.clock()
            await uow.save_user(user)

        logger.info(f"User {user_id} set username {username}")
        return user

    async def update_subscription(
        self,
        user_id: str,
        tier: SubscriptionTier,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
        subscription_id: Optional[str] = None,
        ends_at: Optional[datetime] = None
    ) -> UserProgression:
        """
        Apply a subscription change from the billing path.

        The streak tracker only reads the resulting tier.

        Raises:
            RecordNotFoundError: Unknown user
        """
        async with self.store.transaction(user_id) as uow:
            user = await require_user(uow, user_id, "update_subscription")
            previous = user.subscription_tier
            user.subscription_tier = SubscriptionTier(tier)
            user.subscription_status = status
            if customer_id is not None:
                user.billing_customer_id = customer_id
            if subscription_id is not None:
                user.billing_subscription_id = subscription_id
            user.subscription_ends_at = ends_at
            user.updated_at = self.clock()
            await uow.save_user(user)

        logger.info(
            f"Subscription for user {user_id} changed from {previous.value} "
            f"to {user.subscription_tier.value} (status: {status})"
        )
        return user

    async def get_progress(self, user_id: str) -> Dict[str, Any]:
        """
        Progression summary for a user.

        Returns:
            {
                'user_id': str,
                'total_xp': int,
                'level': int,
                'tier': Tier,
                'tier_info': dict,
                'xp_in_level': int,
                'xp_for_level': int,
                'xp_to_next_level': int,
                'next_level_xp': int,
                'current_streak': int,
                'longest_streak': int,
                'last_practice_date': date or None,
                'subscription_tier': SubscriptionTier
            }
        """
        user = await self.get_user(user_id)
        return {
            "user_id": user.user_id,
            "total_xp": user.total_xp,
            **level_info(user.total_xp),
            "current_streak": user.current_streak,
            "longest_streak": user.longest_streak,
            "last_practice_date": user.last_practice_date,
            "subscription_tier": user.subscription_tier,
        }
