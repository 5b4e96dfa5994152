"""
Celebration Classifier

Tells the presentation layer which modal to show after a practice. The
result is advisory, recomputed on demand and never persisted.

Precedence:
1. tier_change - the tier differs before and after
2. milestone - the level rose onto a multiple of 5
3. level_up - the level rose
4. standard - a completed practice with no level change
"""

from enum import Enum

MILESTONE_INTERVAL = 5


class Celebration(str, Enum):
    NONE = "none"
    STANDARD = "standard"
    LEVEL_UP = "level_up"
    MILESTONE = "milestone"
    TIER_CHANGE = "tier_change"


def classify(old_level: int, new_level: int, old_tier, new_tier) -> Celebration:
    """Classify a level transition"""
    if old_tier != new_tier:
        return Celebration.TIER_CHANGE
    if new_level < old_level:
        # XP never decreases, so the engine never produces this
        return Celebration.NONE
    if new_level > old_level and new_level % MILESTONE_INTERVAL == 0:
        return Celebration.MILESTONE
    if new_level > old_level:
        return Celebration.LEVEL_UP
    return Celebration.STANDARD
