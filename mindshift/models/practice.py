"""Practice submission result models"""
from pydantic import BaseModel
from typing import Optional

from mindshift.progression.celebration import Celebration
from mindshift.progression.levels import Tier


class LevelProgress(BaseModel):
    """Progress inside the current level"""
    xp_in_level: int
    xp_for_level: int
    xp_to_next_level: int
    next_level_xp: int


class Milestone(BaseModel):
    """Tier-completion milestone reached by this practice"""
    level: int
    title: str
    reward: str


class PracticeResult(BaseModel):
    """Summary returned after a practice transaction commits"""
    practice_id: str
    xp_earned: int
    total_xp: int

    old_level: int
    new_level: int
    leveled_up: bool
    level_progress: LevelProgress

    old_tier: Tier
    new_tier: Tier
    tier_changed: bool

    current_streak: int
    longest_streak: int
    streak_status: str
    streak_message: str
    used_streak_shield: bool

    new_badges: list[str]
    celebration: Celebration
    milestone: Optional[Milestone] = None
