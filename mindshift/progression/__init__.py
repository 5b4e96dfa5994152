"""
Progression engine for MindShift

Pure rules that turn one practice session into progression:
- Level/XP model and tiers (levels.py)
- Daily streaks with the Streak Shield (streaks.py)
- XP awards (xp.py)
- Badge catalog and evaluator (badges.py)
- Celebration classification (celebration.py)

The stateful transaction that applies them lives in
mindshift.services.practice_service.
"""

from mindshift.progression.levels import (
    Tier,
    level_for_xp,
    xp_required_for_level,
    progress_within_level,
    tier_for_level,
    level_info,
)
from mindshift.progression.streaks import next_streak, is_shield_available
from mindshift.progression.xp import award_xp, streak_multiplier
from mindshift.progression.badges import BADGE_CATALOG, evaluate
from mindshift.progression.celebration import Celebration, classify

__all__ = [
    "Tier",
    "level_for_xp",
    "xp_required_for_level",
    "progress_within_level",
    "tier_for_level",
    "level_info",
    "next_streak",
    "is_shield_available",
    "award_xp",
    "streak_multiplier",
    "BADGE_CATALOG",
    "evaluate",
    "Celebration",
    "classify",
]
