"""
XP Award Calculator

XP Award Rules (one practice session):
- 1.5 XP per repetition
- First practice of the calendar day: +10 XP
- Full session (10+ repetitions): +5 XP
- Extended session (20+ repetitions): +15 XP (stacks with the above)
- First-ever practice of an affirmation: +25 XP
- Morning practice (before 10:00): +10 XP

The bonuses are summed first and the streak multiplier is applied once to
the total:
- 30+ day streak: x2.0
- 14+ day streak: x1.75
- 7+ day streak: x1.5
- 2+ day streak: x1.2
- otherwise: x1.0
"""

import math

XP_PER_REP = 1.5
XP_FIRST_TODAY = 10
XP_FULL_SESSION_10 = 5
XP_FULL_SESSION_20 = 15
XP_NEW_AFFIRMATION = 25
XP_MORNING_PRACTICE = 10

FULL_SESSION_REPS = 10
EXTENDED_SESSION_REPS = 20

MORNING_CUTOFF_HOUR = 10
EARLY_PRACTICE_CUTOFF_HOUR = 7
LATE_PRACTICE_START_HOUR = 22

# (minimum streak, multiplier), highest band first
STREAK_MULTIPLIERS = (
    (30, 2.0),
    (14, 1.75),
    (7, 1.5),
    (2, 1.2),
)
MAX_STREAK_MULTIPLIER = STREAK_MULTIPLIERS[0][1]


def streak_multiplier(streak: int) -> float:
    """Multiplier for a streak length"""
    for minimum, multiplier in STREAK_MULTIPLIERS:
        if streak >= minimum:
            return multiplier
    return 1.0


def award_xp(
    repetitions: int,
    streak: int,
    is_first_practice_today: bool,
    is_new_affirmation: bool,
    is_morning_practice: bool,
) -> int:
    """
    XP earned for one practice session

    Args:
        repetitions: Repetitions typed in the session
        streak: Streak after this practice
        is_first_practice_today: No earlier practice today
        is_new_affirmation: The affirmation had never been practiced
        is_morning_practice: Practiced before MORNING_CUTOFF_HOUR

    Returns:
        Non-negative integer XP
    """
    xp = repetitions * XP_PER_REP

    if is_first_practice_today:
        xp += XP_FIRST_TODAY
    if repetitions >= FULL_SESSION_REPS:
        xp += XP_FULL_SESSION_10
    if repetitions >= EXTENDED_SESSION_REPS:
        xp += XP_FULL_SESSION_20
    if is_new_affirmation:
        xp += XP_NEW_AFFIRMATION
    if is_morning_practice:
        xp += XP_MORNING_PRACTICE

    # Round half up
    return max(0, math.floor(xp * streak_multiplier(streak) + 0.5))


def is_morning_practice(hour: int) -> bool:
    return hour < MORNING_CUTOFF_HOUR


def is_early_practice(hour: int) -> bool:
    return hour < EARLY_PRACTICE_CUTOFF_HOUR


def is_late_practice(hour: int) -> bool:
    return hour >= LATE_PRACTICE_START_HOUR
