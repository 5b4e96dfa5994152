"""
Level and Tier Model

Maps total XP to level, tier and in-level progress.

Leveling Curve:
- Levels 1-50 come from a fixed cumulative threshold table. The increment
  per level grows (25, 30, 35, ... 265), so later levels take longer.
- Levels above 50 are uncapped: the increment for level L is 220 + 5*L,
  accumulated from the level 50 threshold (7105). Level 51 needs 7580,
  level 52 needs 8060, and so on.

Tiers (derived from level, never stored):
- Levels 1-10: Novice
- Levels 11-20: Apprentice
- Levels 21-30: Practitioner
- Levels 31-40: Expert
- Levels 41+: Master
"""

from bisect import bisect_right
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# Cumulative XP required to reach each level, index 0 is level 1
LEVEL_THRESHOLDS: Tuple[int, ...] = (
    # Novice (1-10)
    0, 25, 55, 90, 130, 175, 225, 280, 340, 405,
    # Apprentice (11-20)
    475, 550, 630, 715, 805, 900, 1000, 1105, 1215, 1330,
    # Practitioner (21-30)
    1450, 1575, 1705, 1840, 1980, 2125, 2275, 2430, 2590, 2755,
    # Expert (31-40)
    2925, 3100, 3280, 3465, 3655, 3850, 4050, 4255, 4465, 4680,
    # Master (41-50)
    4900, 5125, 5355, 5590, 5830, 6075, 6325, 6580, 6840, 7105,
)

MAX_TABULATED_LEVEL = len(LEVEL_THRESHOLDS)
EXTRAPOLATION_BASE = 220
EXTRAPOLATION_STEP = 5


class Tier(str, Enum):
    """Coarse five-band grouping of levels"""
    NOVICE = "novice"
    APPRENTICE = "apprentice"
    PRACTITIONER = "practitioner"
    EXPERT = "expert"
    MASTER = "master"


TIER_INFO: Dict[Tier, Dict[str, str]] = {
    Tier.NOVICE: {
        "name": "Novice",
        "color": "gray",
        "icon": "🌱",
        "description": "Beginning your mindshift journey",
    },
    Tier.APPRENTICE: {
        "name": "Apprentice",
        "color": "blue",
        "icon": "📘",
        "description": "Learning the foundations",
    },
    Tier.PRACTITIONER: {
        "name": "Practitioner",
        "color": "purple",
        "icon": "🔮",
        "description": "Building strong habits",
    },
    Tier.EXPERT: {
        "name": "Expert",
        "color": "gold",
        "icon": "⚡",
        "description": "Mastering your mindset",
    },
    Tier.MASTER: {
        "name": "Master",
        "color": "red",
        "icon": "👑",
        "description": "Transcendent self-talk",
    },
}

# Tier-completion milestones shown by the presentation layer
TIER_MILESTONES: Dict[int, Dict[str, str]] = {
    10: {"title": "Novice Complete!", "reward": "Unlocked Apprentice tier"},
    20: {"title": "Apprentice Complete!", "reward": "Unlocked Practitioner tier"},
    30: {"title": "Practitioner Complete!", "reward": "Unlocked Expert tier"},
    40: {"title": "Expert Complete!", "reward": "Unlocked Master tier"},
    50: {"title": "Master Achieved!", "reward": "Maximum tier reached"},
}


def xp_required_for_level(level: int) -> int:
    """
    Cumulative XP needed to reach a level (supports levels beyond 50)

    Raises:
        ValueError: If level < 1
    """
    if level < 1:
        raise ValueError(f"Level must be >= 1, got {level}")
    if level <= MAX_TABULATED_LEVEL:
        return LEVEL_THRESHOLDS[level - 1]

    xp = LEVEL_THRESHOLDS[-1]
    for lvl in range(MAX_TABULATED_LEVEL + 1, level + 1):
        xp += EXTRAPOLATION_BASE + EXTRAPOLATION_STEP * lvl
    return xp


def level_for_xp(total_xp: int) -> int:
    """
    Level reached with total_xp (uncapped)

    Inverse of xp_required_for_level: the highest level whose threshold is
    <= total_xp. Negative XP maps to level 1.
    """
    if total_xp < LEVEL_THRESHOLDS[-1]:
        return max(1, bisect_right(LEVEL_THRESHOLDS, total_xp))

    level = MAX_TABULATED_LEVEL
    next_threshold = xp_required_for_level(level + 1)
    while total_xp >= next_threshold:
        level += 1
        next_threshold += EXTRAPOLATION_BASE + EXTRAPOLATION_STEP * (level + 1)
    return level


def progress_within_level(total_xp: int, level: int) -> Tuple[int, int]:
    """
    XP earned inside the current level and XP the level spans

    Returns:
        (earned_in_level, needed_for_level)
    """
    current_threshold = xp_required_for_level(level)
    next_threshold = xp_required_for_level(level + 1)
    return total_xp - current_threshold, next_threshold - current_threshold


def tier_for_level(level: int) -> Tier:
    """Tier band for a level"""
    if level <= 10:
        return Tier.NOVICE
    if level <= 20:
        return Tier.APPRENTICE
    if level <= 30:
        return Tier.PRACTITIONER
    if level <= 40:
        return Tier.EXPERT
    return Tier.MASTER


def milestone_for_level(level: int) -> Optional[Dict[str, Any]]:
    """Tier-completion milestone reached at exactly this level, if any"""
    milestone = TIER_MILESTONES.get(level)
    if milestone is None:
        return None
    return {"level": level, **milestone}


def level_info(total_xp: int) -> Dict[str, Any]:
    """
    Summarize level progress for total XP

    Returns:
        {
            'level': int,
            'tier': Tier,
            'tier_info': dict (name, color, icon, description),
            'xp_in_level': int,
            'xp_for_level': int,
            'xp_to_next_level': int,
            'next_level_xp': int
        }
    """
    level = level_for_xp(total_xp)
    earned, needed = progress_within_level(total_xp, level)
    tier = tier_for_level(level)

    return {
        "level": level,
        "tier": tier,
        "tier_info": TIER_INFO[tier],
        "xp_in_level": earned,
        "xp_for_level": needed,
        "xp_to_next_level": needed - earned,
        "next_level_xp": xp_required_for_level(level + 1),
    }
