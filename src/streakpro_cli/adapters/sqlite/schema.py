"""Database schema definitions for the local SQLite vault."""

from __future__ import annotations

# Users table - local principal
CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
)
"""

# Activities table - the user's streak plans
# total_time is written only by user-facing activity updates.
CREATE_ACTIVITIES_TABLE = """
CREATE TABLE IF NOT EXISTS activities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT DEFAULT '',
    total_time INTEGER NOT NULL,
    break_minutes INTEGER NOT NULL DEFAULT 5,
    break_count INTEGER NOT NULL DEFAULT 1,
    break_time INTEGER NOT NULL DEFAULT 0,
    user_id TEXT NOT NULL,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    deleted_at DATETIME,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
)
"""

# Session history - one row per session
CREATE_STREAK_HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS streak_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    activity_id INTEGER NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT DEFAULT '',
    description TEXT DEFAULT '',
    started_at DATETIME NOT NULL,
    ended_at DATETIME,
    focus_duration_seconds INTEGER NOT NULL DEFAULT 0,
    total_break_seconds INTEGER NOT NULL DEFAULT 0,
    duration_minutes INTEGER NOT NULL DEFAULT 0,
    break_log TEXT NOT NULL DEFAULT '[]',
    photo_url TEXT,
    verified BOOLEAN DEFAULT 0,
    verification_note TEXT,
    session_key TEXT,
    reconciled BOOLEAN DEFAULT 0,
    created_at DATETIME NOT NULL,
    FOREIGN KEY (activity_id) REFERENCES activities(id) ON DELETE CASCADE
)
"""

# AI verification attempts
CREATE_AI_VERIFICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS ai_verifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    activity_id INTEGER NOT NULL,
    history_id INTEGER,
    description TEXT,
    image_ref TEXT,
    verified BOOLEAN DEFAULT 0,
    confidence REAL,
    result_text TEXT,
    created_at DATETIME NOT NULL,
    FOREIGN KEY (activity_id) REFERENCES activities(id) ON DELETE CASCADE,
    FOREIGN KEY (history_id) REFERENCES streak_history(id) ON DELETE SET NULL
)
"""

# Indexes for performance
CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_activities_user ON activities(user_id, deleted_at)",
    "CREATE INDEX IF NOT EXISTS idx_history_activity ON streak_history(activity_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_history_open ON streak_history(activity_id, ended_at)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_history_session_key "
    "ON streak_history(activity_id, session_key) WHERE session_key IS NOT NULL",
    "CREATE INDEX IF NOT EXISTS idx_verifications_history ON ai_verifications(history_id)",
]

ALL_TABLES = [
    CREATE_USERS_TABLE,
    CREATE_ACTIVITIES_TABLE,
    CREATE_STREAK_HISTORY_TABLE,
    CREATE_AI_VERIFICATIONS_TABLE,
]
