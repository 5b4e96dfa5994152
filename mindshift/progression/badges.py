"""
Badge Catalog and Evaluator

Badges are one-time achievements unlocked by lifetime stats:
- Milestones (practice count, streak, total repetitions)
- Tier completion (levels 10, 20, 30, 40, 50)
- Special (early bird, night owl, variety seeker)
- Affirmation creation

A badge is earned when every criterion it declares is met. Criteria it does
not declare are ignored. Badges are never revoked, and a badge the user
already holds is never re-evaluated.

Adding a badge only needs a new BADGE_CATALOG entry; bump CATALOG_VERSION
when the catalog changes.
"""

from typing import Dict, Iterable, List, Optional
import logging

from mindshift.models.badge import BadgeCriteria, BadgeType, StatsSnapshot
from mindshift.models.user import UserProgression

logger = logging.getLogger(__name__)

CATALOG_VERSION = 1


def _badge(badge_id: str, name: str, description: str, icon: str, **criteria) -> BadgeType:
    return BadgeType(
        id=badge_id,
        name=name,
        description=description,
        icon=icon,
        criteria=BadgeCriteria(**criteria),
    )


BADGE_CATALOG: Dict[str, BadgeType] = {
    badge.id: badge
    for badge in (
        # Milestones
        _badge("first_steps", "First Steps", "Complete your first practice session", "🌱", practices=1),
        _badge("week_warrior", "Week Warrior", "Maintain a 7-day streak", "🔥", streak=7),
        _badge("month_master", "Month Master", "Maintain a 30-day streak", "💪", streak=30),
        _badge("century_club", "Century Club", "Complete 100 total repetitions", "💯", total_reps=100),
        _badge("power_user", "Power User", "Complete 500 total repetitions", "⚡", total_reps=500),
        _badge("transformer", "Transformer", "Create 50 affirmations", "🎯", affirmations=50),
        _badge("grand_master", "Grand Master", "Complete 1,000 total repetitions", "👑", total_reps=1000),
        _badge("legend", "Legend", "Maintain a 100-day streak", "🌟", streak=100),
        _badge("elite", "Elite", "Complete 5,000 total repetitions", "💎", total_reps=5000),

        # Tier completion
        _badge("novice_complete", "Novice Graduate", "Reached Level 10", "🎓", level=10),
        _badge("apprentice_complete", "Apprentice Graduate", "Reached Level 20", "📚", level=20),
        _badge("practitioner_complete", "Practitioner Graduate", "Reached Level 30", "🥋", level=30),
        _badge("expert_complete", "Expert Graduate", "Reached Level 40", "🏅", level=40),
        _badge("master_complete", "Master", "Reached Level 50", "🏆", level=50),

        # Special
        _badge("early_bird", "Early Bird", "Practice before 7am 10 times", "🌅", early_practices=10),
        _badge("night_owl", "Night Owl", "Practice after 10pm 10 times", "🦉", late_practices=10),
        _badge("variety_seeker", "Variety Seeker", "Practice 20 different affirmations", "🎨", unique_affirmations=20),

        # Consistency
        _badge("ten_practices", "Getting Started", "Complete 10 practice sessions", "🎯", practices=10),
        _badge("fifty_practices", "Dedicated", "Complete 50 practice sessions", "🎪", practices=50),
        _badge("hundred_practices", "Committed", "Complete 100 practice sessions", "🏅", practices=100),

        # Affirmation creation
        _badge("first_affirmation", "Thought Shifter", "Create your first affirmation", "💭", affirmations=1),
        _badge("ten_affirmations", "Mind Builder", "Create 10 affirmations", "🧠", affirmations=10),
        _badge("twenty_five_affirmations", "Pattern Breaker", "Create 25 affirmations", "⚡", affirmations=25),
    )
}


def get_badge(badge_id: str) -> Optional[BadgeType]:
    """Catalog entry for a badge id"""
    return BADGE_CATALOG.get(badge_id)


def meets_criteria(badge: BadgeType, stats: StatsSnapshot) -> bool:
    """
    Check if stats satisfy every criterion the badge declares

    Criteria field names match StatsSnapshot field names.
    """
    declared = badge.criteria.model_dump(exclude_none=True)
    for field, minimum in declared.items():
        if getattr(stats, field) < minimum:
            return False
    return True


def evaluate(stats: StatsSnapshot, already_earned: Iterable[str]) -> List[str]:
    """
    Badges newly earned with the given stats

    Args:
        stats: Post-event lifetime aggregates
        already_earned: Badge ids the user holds; these are skipped

    Returns:
        Newly earned badge ids in catalog order
    """
    earned = set(already_earned)
    newly_earned = [
        badge_id
        for badge_id, badge in BADGE_CATALOG.items()
        if badge_id not in earned and meets_criteria(badge, stats)
    ]

    if newly_earned:
        logger.debug(f"Badges newly earned: {', '.join(newly_earned)}")

    return newly_earned


def progress_toward(badge: BadgeType, stats: StatsSnapshot) -> float:
    """
    Fraction (0.0-1.0) of the badge's criteria met, by its weakest criterion

    Used for locked badges on the badge listing.
    """
    declared = badge.criteria.model_dump(exclude_none=True)
    if not declared:
        return 1.0
    return min(min(getattr(stats, field) / minimum, 1.0) for field, minimum in declared.items())


def snapshot_from_user(user: UserProgression) -> StatsSnapshot:
    """Badge stats from the aggregate counters kept on the user record"""
    return StatsSnapshot(
        practices=user.total_practices,
        streak=user.longest_streak,
        total_reps=user.total_repetitions,
        affirmations=user.affirmations_created,
        level=user.level,
        early_practices=user.early_practices,
        late_practices=user.late_practices,
        unique_affirmations=user.distinct_affirmations_practiced,
    )
