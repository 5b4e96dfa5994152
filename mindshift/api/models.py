"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict
from pydantic import BaseModel, Field
from datetime import date, datetime

from mindshift.models.user import SubscriptionTier
from mindshift.progression.levels import Tier
from mindshift.services.practice_service import MAX_DURATION_SECONDS, MAX_REPETITIONS


# ==========================================
# Users
# ==========================================

class UserSyncRequest(BaseModel):
    """Identity provider data sent at sign-in"""
    user_id: str = Field(..., min_length=1, description="Identity provider's stable user id")
    email: Optional[str] = Field(default=None, description="Primary email address")
    name: Optional[str] = Field(default=None, description="Display name")
    image_url: Optional[str] = Field(default=None, description="Avatar URL")


class UserResponse(BaseModel):
    """Public view of a user's progression record"""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    username: Optional[str] = None
    anonymous_mode: bool
    total_xp: int
    level: int
    current_streak: int
    longest_streak: int
    last_practice_date: Optional[date] = None
    total_practices: int
    total_repetitions: int
    affirmations_created: int
    daily_practice_goal: int
    reminder_enabled: bool
    reminder_time: Optional[str] = None
    subscription_tier: SubscriptionTier
    subscription_status: Optional[str] = None
    created_at: Optional[datetime] = None


class SettingsUpdateRequest(BaseModel):
    """Preference changes; omitted fields are unchanged"""
    daily_practice_goal: Optional[int] = Field(default=None, ge=1, description="Practices per day")
    reminder_enabled: Optional[bool] = None
    reminder_time: Optional[str] = Field(default=None, description="Reminder time (HH:MM)")
    anonymous_mode: Optional[bool] = None


class UsernameUpdateRequest(BaseModel):
    """Claim or clear (null) a public username"""
    username: Optional[str] = Field(default=None, description="Username, pro and elite plans only")


class SubscriptionUpdateRequest(BaseModel):
    """Subscription change from the billing path"""
    tier: SubscriptionTier
    status: Optional[str] = Field(default=None, description="Billing provider status (active, past_due, ...)")
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    ends_at: Optional[datetime] = None


class ProgressResponse(BaseModel):
    """Level, tier and streak summary"""
    user_id: str
    total_xp: int
    level: int
    tier: Tier
    tier_info: Dict[str, str]
    xp_in_level: int
    xp_for_level: int
    xp_to_next_level: int
    next_level_xp: int
    current_streak: int
    longest_streak: int
    last_practice_date: Optional[date] = None
    subscription_tier: SubscriptionTier


# ==========================================
# Affirmations
# ==========================================

class AffirmationCreateRequest(BaseModel):
    """Request to save a new affirmation"""
    original_thought: str = Field(..., min_length=1, description="Negative thought as written")
    affirmation_text: str = Field(..., min_length=1, description="Affirmation to practice")
    detected_level: Optional[int] = Field(default=None, ge=1, le=5)
    cognitive_distortions: Optional[List[str]] = None
    theme_category: Optional[str] = None
    chosen_level: Optional[int] = None
    user_edited: bool = False


class AffirmationUpdateRequest(BaseModel):
    """Request to edit affirmation text"""
    affirmation_text: str = Field(..., min_length=1)


class AllowanceResponse(BaseModel):
    """Remaining affirmation creations for the plan"""
    count: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    unlimited: bool


class AffirmationDeleteResponse(BaseModel):
    """What a permanent delete removed"""
    deleted_practices: int
    deleted_repetitions: int


# ==========================================
# Practice
# ==========================================

class PracticeRequest(BaseModel):
    """A completed practice session"""
    affirmation_id: str = Field(..., min_length=1, description="Affirmation practiced")
    repetitions: int = Field(..., gt=0, le=MAX_REPETITIONS, strict=True, description="Repetitions completed")
    duration_seconds: int = Field(..., ge=0, le=MAX_DURATION_SECONDS, strict=True, description="Session length in seconds")


# ==========================================
# Stats, badges, leaderboard
# ==========================================

class StatsResponse(BaseModel):
    """Lifetime statistics"""
    total_practices: int
    total_repetitions: int
    active_affirmations: int
    archived_affirmations: int
    practices_today: int
    current_streak: int
    longest_streak: int
    total_xp: int
    level: int
    tier: Tier


class TodayProgressResponse(BaseModel):
    """Progress toward today's goal"""
    date: date
    practice_count: int
    daily_goal: int
    goal_met: bool
    streak_maintained: bool
    current_streak: int
    xp_earned_today: int


class HistoryDay(BaseModel):
    """One heatmap cell"""
    date: date
    count: int
    repetitions: int


class HistoryResponse(BaseModel):
    """Practice counts per day, oldest first"""
    user_id: str
    days: List[HistoryDay]


class BadgeStatus(BaseModel):
    """A catalog badge and the user's status"""
    id: str
    name: str
    description: str
    icon: str
    earned: bool
    earned_at: Optional[datetime] = None
    progress: float


class BadgeListResponse(BaseModel):
    """Full badge catalog for a user"""
    user_id: str
    earned_count: int
    badges: List[BadgeStatus]


class BadgeAwardRequest(BaseModel):
    """Manual badge award"""
    badge_type: str = Field(..., min_length=1)


class BadgeAwardResponse(BaseModel):
    badge_type: str
    awarded: bool


class LeaderboardEntry(BaseModel):
    """One leaderboard row"""
    rank: int
    user_id: str
    display_name: str
    total_xp: int
    level: int
    current_streak: int
    image_url: Optional[str] = None
    is_current_user: bool


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]


class RankResponse(BaseModel):
    """A user's leaderboard position"""
    rank: int
    total_users: int
    xp_to_next_rank: int
    next_rank_display_name: Optional[str] = None
    percentile: int


# ==========================================
# System
# ==========================================

class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Overall status: healthy or unhealthy")
    storage: str = Field(..., description="Storage backend in use")
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    message: str
    user_message: Optional[str] = None
    request_id: Optional[str] = None
    retryable: bool = False
    timestamp: Optional[str] = None
