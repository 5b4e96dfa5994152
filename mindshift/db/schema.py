"""PostgreSQL schema for progression data"""
import logging

from mindshift.db.connection import Database

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    email TEXT,
    name TEXT,
    image_url TEXT,
    username TEXT UNIQUE,
    anonymous_mode BOOLEAN NOT NULL DEFAULT TRUE,

    total_xp BIGINT NOT NULL DEFAULT 0 CHECK (total_xp >= 0),
    level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 1),
    current_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_practice_date DATE,
    last_streak_shield_used TIMESTAMPTZ,

    total_practices INTEGER NOT NULL DEFAULT 0,
    total_repetitions BIGINT NOT NULL DEFAULT 0,
    affirmations_created INTEGER NOT NULL DEFAULT 0,
    distinct_affirmations_practiced INTEGER NOT NULL DEFAULT 0,
    early_practices INTEGER NOT NULL DEFAULT 0,
    late_practices INTEGER NOT NULL DEFAULT 0,

    daily_practice_goal INTEGER NOT NULL DEFAULT 1 CHECK (daily_practice_goal >= 1),
    reminder_enabled BOOLEAN NOT NULL DEFAULT FALSE,
    reminder_time TEXT,

    subscription_tier TEXT NOT NULL DEFAULT 'free'
        CHECK (subscription_tier IN ('free', 'pro', 'elite')),
    billing_customer_id TEXT,
    billing_subscription_id TEXT,
    subscription_status TEXT,
    subscription_ends_at TIMESTAMPTZ,

    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_users_total_xp ON users (total_xp DESC);

CREATE TABLE IF NOT EXISTS affirmations (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users (user_id) ON DELETE CASCADE,
    original_thought TEXT NOT NULL,
    detected_level INTEGER,
    cognitive_distortions TEXT[],
    theme_category TEXT,
    affirmation_text TEXT NOT NULL,
    chosen_level INTEGER,
    user_edited BOOLEAN NOT NULL DEFAULT FALSE,
    times_practiced INTEGER NOT NULL DEFAULT 0,
    total_repetitions BIGINT NOT NULL DEFAULT 0,
    last_practiced_at TIMESTAMPTZ,
    archived BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_affirmations_user ON affirmations (user_id, archived, created_at DESC);

CREATE TABLE IF NOT EXISTS practices (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users (user_id) ON DELETE CASCADE,
    affirmation_id TEXT NOT NULL REFERENCES affirmations (id) ON DELETE CASCADE,
    repetitions INTEGER NOT NULL CHECK (repetitions > 0),
    xp_earned INTEGER NOT NULL CHECK (xp_earned >= 0),
    duration_seconds INTEGER NOT NULL CHECK (duration_seconds >= 0),
    practiced_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_practices_user_date ON practices (user_id, practiced_at);
CREATE INDEX IF NOT EXISTS idx_practices_affirmation ON practices (affirmation_id);

CREATE TABLE IF NOT EXISTS badges (
    user_id TEXT NOT NULL REFERENCES users (user_id) ON DELETE CASCADE,
    badge_type TEXT NOT NULL,
    earned_at TIMESTAMPTZ NOT NULL,
    PRIMARY KEY (user_id, badge_type)
);
"""


async def create_schema(database: Database) -> None:
    """Create tables and indexes if they do not exist"""
    async with database.connection() as conn:
        await conn.execute(SCHEMA_SQL)
        await conn.commit()
    logger.info("Progression schema ensured")
