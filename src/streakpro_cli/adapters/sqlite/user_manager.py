"""Local principal management for the SQLite vault.

The vault belongs to a single local user. Its id is the principal id that
every reconciliation and verification call carries unless the configuration
names another one.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import UTC, datetime


def create_default_user(connection: sqlite3.Connection, name: str = "Local User") -> str:
    """Create the local user profile.

    Args:
        connection: Database connection
        name: Display name

    Returns:
        User ID (UUID string)
    """
    user_id = str(uuid.uuid4())
    now = datetime.now(UTC).isoformat()

    connection.execute(
        "INSERT INTO users (id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (user_id, name, now, now),
    )
    connection.commit()

    return user_id


def ensure_user(connection: sqlite3.Connection, user_id: str) -> str:
    """Make sure a users row exists for an externally supplied principal id."""
    cursor = connection.execute("SELECT id FROM users WHERE id = ?", (user_id,))
    if cursor.fetchone() is None:
        now = datetime.now(UTC).isoformat()
        connection.execute(
            "INSERT INTO users (id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (user_id, None, now, now),
        )
        connection.commit()
    return user_id


def get_or_create_local_user(connection: sqlite3.Connection) -> str:
    """Get existing local user or create one if it doesn't exist.

    Args:
        connection: Database connection

    Returns:
        User ID (UUID string)
    """
    cursor = connection.execute("SELECT id FROM users ORDER BY created_at LIMIT 1")
    row = cursor.fetchone()

    if row:
        return row[0]

    return create_default_user(connection)
