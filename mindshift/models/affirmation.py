"""Affirmation and practice event models"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4


class Affirmation(BaseModel):
    """A user's affirmation and its practice counters"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str

    # User input
    original_thought: str

    # AI analysis (opaque to the engine)
    detected_level: Optional[int] = Field(default=None, ge=1, le=5)
    cognitive_distortions: Optional[list[str]] = None
    theme_category: Optional[str] = None

    # Selected affirmation
    affirmation_text: str
    chosen_level: Optional[int] = None
    user_edited: bool = False

    # Practice counters, always zero at creation
    times_practiced: int = Field(default=0, ge=0)
    total_repetitions: int = Field(default=0, ge=0)
    last_practiced_at: Optional[datetime] = None

    archived: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PracticeEvent(BaseModel):
    """Append-only record of one completed practice session"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    affirmation_id: str
    repetitions: int = Field(..., gt=0)
    xp_earned: int = Field(..., ge=0)
    duration_seconds: int = Field(..., ge=0)
    practiced_at: datetime
