"""Repository abstraction layer for StreakPro CLI.

Abstract base classes (ports) for every persisted entity. Business logic in
``streakpro_cli.services`` depends only on these; the SQLite vault in
``streakpro_cli.adapters.sqlite`` implements them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from streakpro_cli.models import (
    Activity,
    ActivityCreate,
    ActivityUpdate,
    HistoryCreate,
    HistoryRecord,
    VerificationRecord,
)


class ActivityRepository(ABC):
    """Abstract base class for activity persistence operations.

    No method of this port other than ``update`` may write ``total_time``.
    """

    @abstractmethod
    async def list_all(self, user_id: str) -> list[Activity]:
        """List the principal's activities."""

    @abstractmethod
    async def get(self, activity_id: int) -> Activity:
        """Get an activity by id.

        Raises:
            NotFoundError: If the activity does not exist
        """

    @abstractmethod
    async def create(self, user_id: str, data: ActivityCreate) -> Activity:
        """Create an activity owned by *user_id*."""

    @abstractmethod
    async def update(self, activity_id: int, updates: ActivityUpdate) -> Activity:
        """Apply a user edit. Only provided fields change."""

    @abstractmethod
    async def delete(self, activity_id: int) -> bool:
        """Soft-delete an activity."""

    @abstractmethod
    async def set_break_count(self, activity_id: int, break_count: int) -> None:
        """Overwrite the remaining break budget."""


class HistoryRepository(ABC):
    """Abstract base class for session history persistence."""

    @abstractmethod
    async def create(self, data: HistoryCreate) -> HistoryRecord:
        """Insert a history row without touching the activity."""

    @abstractmethod
    async def commit_session(
        self, data: HistoryCreate, open_history_id: int | None = None
    ) -> HistoryRecord:
        """Write a reconciled session in one transaction.

        Inserts a row (or finalizes *open_history_id*) and adds
        ``data.total_break_seconds`` to the activity's cumulative break time.
        """

    @abstractmethod
    async def get(self, history_id: int) -> HistoryRecord:
        """Get a history record by id.

        Raises:
            NotFoundError: If the record does not exist
        """

    @abstractmethod
    async def find_by_session_key(
        self, activity_id: int, session_key: str
    ) -> HistoryRecord | None:
        """Find the record written for a client session key."""

    @abstractmethod
    async def latest(self, activity_id: int) -> HistoryRecord | None:
        """Most recently created record for the activity."""

    @abstractmethod
    async def latest_open(self, activity_id: int) -> HistoryRecord | None:
        """Most recently started record with no ``ended_at``."""

    @abstractmethod
    async def list_for_activity(
        self, activity_id: int, limit: int | None = None
    ) -> list[HistoryRecord]:
        """Records for the activity, newest first."""

    @abstractmethod
    async def count_reconciled(self, activity_id: int) -> int:
        """Number of reconciled sessions for the activity."""

    @abstractmethod
    async def close(
        self, history_id: int, ended_at: datetime, duration_minutes: int
    ) -> HistoryRecord:
        """Stamp an open record as ended."""

    @abstractmethod
    async def set_verification(
        self,
        history_id: int,
        *,
        photo_url: str | None,
        verified: bool,
        note: str | None,
    ) -> HistoryRecord:
        """Write the verification fields of a record."""


class VerificationRepository(ABC):
    """Abstract base class for AI verification records."""

    @abstractmethod
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
        """Store one verification attempt."""

    @abstractmethod
    async def get_for_history(self, history_id: int) -> VerificationRecord | None:
        """The verification linked to a history record, if any."""
