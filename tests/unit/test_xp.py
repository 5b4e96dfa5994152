"""Unit tests for the XP award calculator (mindshift/progression/xp.py)"""
import pytest

from mindshift.progression.xp import (
    award_xp,
    is_early_practice,
    is_late_practice,
    is_morning_practice,
    streak_multiplier,
)


# ============================================================================
# Streak Multiplier
# ============================================================================

@pytest.mark.parametrize("streak,multiplier", [
    (0, 1.0),
    (1, 1.0),
    (2, 1.2),
    (6, 1.2),
    (7, 1.5),
    (13, 1.5),
    (14, 1.75),
    (29, 1.75),
    (30, 2.0),
    (365, 2.0),
])
def test_streak_multiplier_bands(streak, multiplier):
    assert streak_multiplier(streak) == multiplier


# ============================================================================
# Award Rules
# ============================================================================

def test_award_xp_all_bonuses_no_streak():
    """10 reps, first today, new affirmation, morning: 15 + 10 + 5 + 25 + 10"""
    assert award_xp(
        repetitions=10,
        streak=1,
        is_first_practice_today=True,
        is_new_affirmation=True,
        is_morning_practice=True,
    ) == 65


def test_multiplier_applies_to_bonuses():
    """Bonuses are summed before the multiplier: (15 + 10 + 5 + 25 + 10) * 2.0"""
    assert award_xp(
        repetitions=10,
        streak=30,
        is_first_practice_today=True,
        is_new_affirmation=True,
        is_morning_practice=True,
    ) == 130


def test_full_session_bonuses_stack_at_20_reps():
    # 30 + 5 + 15
    assert award_xp(20, 0, False, False, False) == 50


def test_base_only():
    # 9 reps, below the full-session bonus
    assert award_xp(9, 0, False, False, False) == 14  # 13.5 rounds up


def test_rounding_half_up():
    assert award_xp(1, 0, False, False, False) == 2  # 1.5
    assert award_xp(3, 0, False, False, False) == 5  # 4.5
    assert award_xp(5, 14, False, False, False) == 13  # 7.5 * 1.75 = 13.125


def test_week_streak_multiplier():
    # (15 + 10 + 5) * 1.5
    assert award_xp(10, 7, True, False, False) == 45


def test_award_is_integer():
    xp = award_xp(7, 3, True, False, True)
    assert isinstance(xp, int)
    assert xp == 37  # (10.5 + 10 + 10) * 1.2 = 36.6


# ============================================================================
# Hour Classification
# ============================================================================

def test_morning_practice_before_10():
    assert is_morning_practice(0)
    assert is_morning_practice(9)
    assert not is_morning_practice(10)


def test_early_practice_before_7():
    assert is_early_practice(6)
    assert not is_early_practice(7)


def test_late_practice_from_22():
    assert not is_late_practice(21)
    assert is_late_practice(22)
    assert is_late_practice(23)
