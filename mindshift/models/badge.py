"""Badge models"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class BadgeCriteria(BaseModel):
    """
    Minimums a badge requires

    Fields left as None are not part of the badge's criteria.
    """
    practices: Optional[int] = None
    streak: Optional[int] = None
    total_reps: Optional[int] = None
    affirmations: Optional[int] = None
    level: Optional[int] = None
    early_practices: Optional[int] = None
    late_practices: Optional[int] = None
    unique_affirmations: Optional[int] = None


class BadgeType(BaseModel):
    """Static badge catalog entry"""
    id: str
    name: str
    description: str
    icon: str
    criteria: BadgeCriteria


class BadgeRecord(BaseModel):
    """A badge earned by a user, unique per (user_id, badge_type)"""
    user_id: str
    badge_type: str
    earned_at: datetime


class StatsSnapshot(BaseModel):
    """Lifetime aggregates the badge criteria are checked against"""
    practices: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    total_reps: int = Field(default=0, ge=0)
    affirmations: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    early_practices: int = Field(default=0, ge=0)
    late_practices: int = Field(default=0, ge=0)
    unique_affirmations: int = Field(default=0, ge=0)
