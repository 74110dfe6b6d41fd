"""SQLite implementation of HistoryRepository."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from streakpro_cli.adapters.sqlite.connection import execute_with_retry, get_connection
from streakpro_cli.adapters.sqlite.utils import now_iso, row_to_dict
from streakpro_cli.models import HistoryCreate, HistoryRecord
from streakpro_cli.models.exceptions import NotFoundError
from streakpro_cli.repositories import HistoryRepository


def _to_record(row: sqlite3.Row) -> HistoryRecord:
    data = row_to_dict(row)
    data["break_log"] = json.loads(data.get("break_log") or "[]")
    data["verified"] = bool(data.get("verified"))
    data["reconciled"] = bool(data.get("reconciled"))
    return HistoryRecord(**data)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class SqliteHistoryRepository(HistoryRepository):
    """SQLite implementation of the session history repository."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def _insert(self, data: HistoryCreate) -> int:
        cursor = execute_with_retry(
            self.connection,
            """INSERT INTO streak_history (
                activity_id, user_id, title, description, started_at, ended_at,
                focus_duration_seconds, total_break_seconds, duration_minutes,
                break_log, session_key, reconciled, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                data.activity_id,
                data.user_id,
                data.title,
                data.description,
                _iso(data.started_at),
                _iso(data.ended_at),
                data.focus_duration_seconds,
                data.total_break_seconds,
                data.duration_minutes,
                json.dumps(data.break_log),
                data.session_key,
                1 if data.reconciled else 0,
                now_iso(),
            ),
        )
        return cursor.lastrowid

    async def create(self, data: HistoryCreate) -> HistoryRecord:
        """Insert a history row."""
        history_id = self._insert(data)
        self.connection.commit()
        return await self.get(history_id)

    async def commit_session(
        self, data: HistoryCreate, open_history_id: int | None = None
    ) -> HistoryRecord:
        """Write the reconciled row and fold its break time into the activity."""
        try:
            if open_history_id is None:
                history_id = self._insert(data)
            else:
                history_id = open_history_id
                execute_with_retry(
                    self.connection,
                    """UPDATE streak_history SET
                        title = ?, description = ?, ended_at = ?,
                        focus_duration_seconds = ?, total_break_seconds = ?,
                        duration_minutes = ?, break_log = ?, reconciled = 1
                    WHERE id = ?""",
                    (
                        data.title,
                        data.description,
                        _iso(data.ended_at),
                        data.focus_duration_seconds,
                        data.total_break_seconds,
                        data.duration_minutes,
                        json.dumps(data.break_log),
                        open_history_id,
                    ),
                )
            execute_with_retry(
                self.connection,
                "UPDATE activities SET break_time = break_time + ?, updated_at = ? WHERE id = ?",
                (data.total_break_seconds, now_iso(), data.activity_id),
            )
            self.connection.commit()
        except Exception:
            self.connection.rollback()
            raise
        return await self.get(history_id)

    async def get(self, history_id: int) -> HistoryRecord:
        cursor = self.connection.execute(
            "SELECT * FROM streak_history WHERE id = ?", (history_id,)
        )
        row = cursor.fetchone()
        if not row:
            raise NotFoundError(f"History record not found: {history_id}")
        return _to_record(row)

    async def find_by_session_key(
        self, activity_id: int, session_key: str
    ) -> HistoryRecord | None:
        cursor = self.connection.execute(
            "SELECT * FROM streak_history WHERE activity_id = ? AND session_key = ?",
            (activity_id, session_key),
        )
        row = cursor.fetchone()
        return _to_record(row) if row else None

    async def latest(self, activity_id: int) -> HistoryRecord | None:
        cursor = self.connection.execute(
            "SELECT * FROM streak_history WHERE activity_id = ? "
            "ORDER BY created_at DESC, id DESC LIMIT 1",
            (activity_id,),
        )
        row = cursor.fetchone()
        return _to_record(row) if row else None

    async def latest_open(self, activity_id: int) -> HistoryRecord | None:
        cursor = self.connection.execute(
            "SELECT * FROM streak_history WHERE activity_id = ? AND ended_at IS NULL "
            "ORDER BY started_at DESC, id DESC LIMIT 1",
            (activity_id,),
        )
        row = cursor.fetchone()
        return _to_record(row) if row else None

    async def list_for_activity(
        self, activity_id: int, limit: int | None = None
    ) -> list[HistoryRecord]:
        query = "SELECT * FROM streak_history WHERE activity_id = ? ORDER BY created_at DESC, id DESC"
        params: list = [activity_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        cursor = self.connection.execute(query, params)
        return [_to_record(row) for row in cursor.fetchall()]

    async def count_reconciled(self, activity_id: int) -> int:
        cursor = self.connection.execute(
            "SELECT COUNT(*) FROM streak_history WHERE activity_id = ? AND reconciled = 1",
            (activity_id,),
        )
        return cursor.fetchone()[0]

    async def close(
        self, history_id: int, ended_at: datetime, duration_minutes: int
    ) -> HistoryRecord:
        execute_with_retry(
            self.connection,
            "UPDATE streak_history SET ended_at = ?, duration_minutes = ? WHERE id = ?",
            (ended_at.isoformat(), duration_minutes, history_id),
        )
        self.connection.commit()
        return await self.get(history_id)

    async def set_verification(
        self,
        history_id: int,
        *,
        photo_url: str | None,
        verified: bool,
        note: str | None,
    ) -> HistoryRecord:
        execute_with_retry(
            self.connection,
            "UPDATE streak_history SET photo_url = ?, verified = ?, verification_note = ? "
            "WHERE id = ?",
            (photo_url, 1 if verified else 0, note, history_id),
        )
        self.connection.commit()
        return await self.get(history_id)
