"""
Service Layer Package

Business logic between the HTTP API and the progression store.

Services:
- PracticeService: Practice submissions (the only writer of XP, level,
  streak, practice history and automatic badges)
- UserService: Account sync, settings, usernames, subscriptions
- AffirmationService: Affirmation lifecycle
- StatsService: Stats, heatmap, badges, leaderboard
"""

from mindshift.services.container import ServiceContainer, get_container, init_container, reset_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "reset_container",
]
