"""User progression models"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime


class SubscriptionTier(str, Enum):
    """Billing plans"""
    FREE = "free"
    PRO = "pro"
    ELITE = "elite"

    @property
    def is_paid(self) -> bool:
        return self is not SubscriptionTier.FREE


class UserProgression(BaseModel):
    """
    One account's progression record

    `level` is always recomputed from `total_xp` when written. Tier is not
    stored; use mindshift.progression.levels.tier_for_level.
    """
    user_id: str = Field(..., description="Stable id from the identity provider")

    # Profile
    email: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    username: Optional[str] = None
    anonymous_mode: bool = True

    # Progression
    total_xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_practice_date: Optional[date] = None
    last_streak_shield_used: Optional[datetime] = None

    # Lifetime aggregates read by the badge evaluator
    total_practices: int = Field(default=0, ge=0)
    total_repetitions: int = Field(default=0, ge=0)
    affirmations_created: int = Field(default=0, ge=0)
    distinct_affirmations_practiced: int = Field(default=0, ge=0)
    early_practices: int = Field(default=0, ge=0)
    late_practices: int = Field(default=0, ge=0)

    # Settings
    daily_practice_goal: int = Field(default=1, ge=1)
    reminder_enabled: bool = False
    reminder_time: Optional[str] = "09:00"

    # Subscription (written only by the billing path)
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    billing_customer_id: Optional[str] = None
    billing_subscription_id: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_ends_at: Optional[datetime] = None

    # Metadata
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        """Name shown on public surfaces such as the leaderboard"""
        if self.anonymous_mode:
            return f"Player{self.user_id[-4:]}"
        return self.username or self.name or "Anonymous"
