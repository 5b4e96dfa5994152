"""
Daily Practice Streak Tracking

A streak counts consecutive calendar days with at least one practice.

Logic:
- Practice on the same day as the last practice: no change
- Practice the day after the last practice: streak + 1
- First practice ever: streak = 1
- Gap of two or more days: the streak breaks and restarts at 1, unless the
  Streak Shield fires

Streak Shield (pro and elite subscriptions):
- Preserves a streak across a gap (streak + 1 instead of a reset)
- Usable once per rolling 7-day window, measured from the last time it fired
- Only fires when there is a streak to protect
"""

from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional
import logging

logger = logging.getLogger(__name__)

SHIELD_COOLDOWN = timedelta(days=7)


class StreakUpdate(NamedTuple):
    """Outcome of one practice for the streak"""
    current_streak: int
    longest_streak: int
    shield_consumed: bool
    shield_used_at: Optional[datetime]
    status: str  # started / unchanged / continued / shielded / reset


def is_shield_available(last_shield_used: Optional[datetime], now: datetime) -> bool:
    """True if the shield has not fired within the trailing 7 days"""
    if last_shield_used is None:
        return True
    return now - last_shield_used >= SHIELD_COOLDOWN


def next_streak(
    last_practice_date: Optional[date],
    today: date,
    current_streak: int,
    is_pro: bool,
    last_shield_used: Optional[datetime],
    now: datetime,
    longest_streak: int = 0,
) -> StreakUpdate:
    """
    Compute the streak after a practice on `today`

    Callers must reject `today < last_practice_date` before calling.

    Args:
        last_practice_date: Calendar date of the last streak-advancing practice
        today: Calendar date of this practice
        current_streak: Streak before this practice
        is_pro: Whether the subscription includes the Streak Shield
        last_shield_used: When the shield last fired
        now: Current instant (for the shield cooldown)
        longest_streak: Longest streak before this practice

    Returns:
        StreakUpdate with the new streak, longest streak and shield usage
    """
    shield_used_at = last_shield_used
    shield_consumed = False

    if last_practice_date is None:
        new_streak = 1
        status = "started"
    elif last_practice_date == today:
        # Several practices a day count once
        new_streak = current_streak
        status = "unchanged"
    elif last_practice_date == today - timedelta(days=1):
        new_streak = current_streak + 1
        status = "continued"
    elif is_pro and current_streak > 0 and is_shield_available(last_shield_used, now):
        new_streak = current_streak + 1
        shield_consumed = True
        shield_used_at = now
        status = "shielded"
    else:
        new_streak = 1
        status = "reset"

    return StreakUpdate(
        current_streak=new_streak,
        longest_streak=max(longest_streak, new_streak),
        shield_consumed=shield_consumed,
        shield_used_at=shield_used_at,
        status=status,
    )


def format_streak_message(update: StreakUpdate, previous_streak: int) -> str:
    """Short user-facing line describing the streak change"""
    if update.status == "started":
        return "Streak started! Day 1 🎉"
    if update.status == "shielded":
        return f"Streak protected with your Streak Shield! Day {update.current_streak} 🛡️"
    if update.status == "reset":
        return f"Streak reset. Previous: {previous_streak} days. Starting fresh! Day 1 💪"
    return f"Streak continues! Day {update.current_streak} 🔥"
