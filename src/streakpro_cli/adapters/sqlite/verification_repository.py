"""SQLite implementation of VerificationRepository."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from streakpro_cli.adapters.sqlite.connection import execute_with_retry, get_connection
from streakpro_cli.adapters.sqlite.utils import now_iso, row_to_dict
from streakpro_cli.models import VerificationRecord
from streakpro_cli.repositories import VerificationRepository


def _to_verification(row: sqlite3.Row) -> VerificationRecord:
    data = row_to_dict(row)
    data["verified"] = bool(data.get("verified"))
    return VerificationRecord(**data)


class SqliteVerificationRepository(VerificationRepository):
    """SQLite implementation of the AI verification repository."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    async def create(
        self,
        *,
        activity_id: int,
        history_id: int | None,
        description: str | None,
        image_ref: str | None,
        verified: bool,
        confidence: float | None,
        result_text: str,
    ) -> VerificationRecord:
        cursor = execute_with_retry(
            self.connection,
            """INSERT INTO ai_verifications (
                activity_id, history_id, description, image_ref, verified,
                confidence, result_text, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                activity_id,
                history_id,
                description,
                image_ref,
                1 if verified else 0,
                confidence,
                result_text,
                now_iso(),
            ),
        )
        self.connection.commit()
        row = self.connection.execute(
            "SELECT * FROM ai_verifications WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()
        return _to_verification(row)

    async def get_for_history(self, history_id: int) -> VerificationRecord | None:
        cursor = self.connection.execute(
            "SELECT * FROM ai_verifications WHERE history_id = ? ORDER BY id DESC LIMIT 1",
            (history_id,),
        )
        row = cursor.fetchone()
        return _to_verification(row) if row else None
