"""
Database queries

Module organization:
- users.py: User progression records, leaderboard, per-user locking
- affirmations.py: Affirmations and practice events
- badges.py: Earned badges

Every function takes the connection of the caller's transaction and never
commits; PostgresStore owns transaction boundaries.
"""
