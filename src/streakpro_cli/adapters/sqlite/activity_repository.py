"""SQLite implementation of ActivityRepository."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from streakpro_cli.adapters.sqlite.connection import execute_with_retry, get_connection
from streakpro_cli.adapters.sqlite.utils import now_iso, row_to_dict
from streakpro_cli.models import Activity, ActivityCreate, ActivityUpdate
from streakpro_cli.models.exceptions import NotFoundError
from streakpro_cli.repositories import ActivityRepository

# streak_count is derived from reconciled history rows on every read; there
# is no stored counter to drift.
_SELECT_ACTIVITY = """
SELECT a.*,
       a.break_time AS break_time_seconds,
       (SELECT COUNT(*) FROM streak_history h
         WHERE h.activity_id = a.id AND h.reconciled = 1) AS streak_count
FROM activities a
"""


def _to_activity(row: sqlite3.Row) -> Activity:
    data = row_to_dict(row)
    data.pop("break_time", None)
    data.pop("deleted_at", None)
    return Activity(**data)


class SqliteActivityRepository(ActivityRepository):
    """SQLite implementation of activity repository."""

    def __init__(self, db_path: str | Path | None = None):
        """Initialize SQLite activity repository.

        Args:
            db_path: Optional database file path. If None, uses default location.
        """
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    async def list_all(self, user_id: str) -> list[Activity]:
        """List the principal's activities."""
        cursor = self.connection.execute(
            _SELECT_ACTIVITY + " WHERE a.user_id = ? AND a.deleted_at IS NULL ORDER BY a.id",
            (user_id,),
        )
        return [_to_activity(row) for row in cursor.fetchall()]

    async def get(self, activity_id: int) -> Activity:
        """Get a specific activity by ID."""
        cursor = self.connection.execute(
            _SELECT_ACTIVITY + " WHERE a.id = ? AND a.deleted_at IS NULL",
            (activity_id,),
        )
        row = cursor.fetchone()
        if not row:
            raise NotFoundError(f"Activity not found: {activity_id}")
        return _to_activity(row)

    async def create(self, user_id: str, data: ActivityCreate) -> Activity:
        """Create a new activity."""
        now = now_iso()
        cursor = execute_with_retry(
            self.connection,
            """INSERT INTO activities (
                title, description, total_time, break_minutes, break_count,
                break_time, user_id, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, 0, ?, ?, ?)""",
            (
                data.title,
                data.description,
                data.total_time,
                data.break_minutes,
                data.break_count,
                user_id,
                now,
                now,
            ),
        )
        self.connection.commit()
        return await self.get(cursor.lastrowid)

    async def update(self, activity_id: int, updates: ActivityUpdate) -> Activity:
        """Update an existing activity."""
        await self.get(activity_id)
        update_dict = updates.model_dump(exclude_none=True)
        if not update_dict:
            return await self.get(activity_id)

        set_parts = [f"{key} = ?" for key in update_dict]
        params: list[Any] = list(update_dict.values())
        set_parts.append("updated_at = ?")
        params.append(now_iso())
        params.append(activity_id)

        execute_with_retry(
            self.connection,
            f"UPDATE activities SET {', '.join(set_parts)} WHERE id = ?",
            params,
        )
        self.connection.commit()
        return await self.get(activity_id)

    async def delete(self, activity_id: int) -> bool:
        """Soft-delete an activity."""
        cursor = execute_with_retry(
            self.connection,
            "UPDATE activities SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
            (now_iso(), activity_id),
        )
        self.connection.commit()
        return cursor.rowcount > 0

    async def set_break_count(self, activity_id: int, break_count: int) -> None:
        """Overwrite the remaining break budget."""
        cursor = execute_with_retry(
            self.connection,
            "UPDATE activities SET break_count = ?, updated_at = ? "
            "WHERE id = ? AND deleted_at IS NULL",
            (break_count, now_iso(), activity_id),
        )
        self.connection.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Activity not found: {activity_id}")
