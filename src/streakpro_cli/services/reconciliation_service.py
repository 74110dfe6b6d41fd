"""Session reconciliation - turns a finished session into durable history.

``record_session`` is the one place that writes a reconciled history row and
folds its break time into the activity. The activity's streak count is not
stored: it is the number of reconciled rows, counted on every read.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from streakpro_cli.models import HistoryCreate, HistoryRecord
from streakpro_cli.models.exceptions import NotFoundError, ValidationError
from streakpro_cli.models.focus.duration import milliseconds_to_minutes, session_duration_minutes
from streakpro_cli.models.focus.engine import BreakRecord
from streakpro_cli.repositories import HistoryRepository
from streakpro_cli.services.activity_service import ActivityService
from streakpro_cli.utils.logger import get_logger

logger = get_logger("reconciliation")


def _break_dict(entry: BreakRecord | dict) -> dict:
    if isinstance(entry, BreakRecord):
        return entry.to_dict()
    return dict(entry)


def completed_break_seconds(break_log: Iterable[dict]) -> int:
    """Sum the durations of completed breaks. Skipped breaks count zero."""
    return sum(
        int(entry.get("duration_seconds") or 0)
        for entry in break_log
        if entry.get("kind") == "completed"
    )


class ReconciliationService:
    """Records sessions and owns the history side of an activity."""

    def __init__(self, activity_service: ActivityService, history_repository: HistoryRepository):
        self.activities = activity_service
        self.history = history_repository

    async def record_session(
        self,
        activity_id: int,
        principal_id: str,
        focus_seconds: int,
        break_log: Iterable[BreakRecord | dict] = (),
        *,
        description: str = "",
        title: str | None = None,
        session_key: str | None = None,
        started_at: datetime | None = None,
    ) -> HistoryRecord:
        """Persist one finished session.

        Args:
            activity_id: Activity the session ran against
            principal_id: Caller
            focus_seconds: Accumulated focus time
            break_log: Break records in order
            description: What the user did
            title: Session title, defaults to the activity title
            session_key: Client idempotency key
            started_at: Session start, derived from the totals when omitted

        Returns:
            The reconciled HistoryRecord

        Raises:
            NotFoundError: Activity missing
            ForbiddenError: Activity owned by someone else
            ValidationError: Negative focus time
        """
        if focus_seconds < 0:
            raise ValidationError("focus_seconds cannot be negative")
        activity = await self.activities.get_owned(activity_id, principal_id)

        open_row: HistoryRecord | None = None
        if session_key:
            existing = await self.history.find_by_session_key(activity_id, session_key)
            if existing is not None and existing.reconciled:
                logger.info(
                    "session %s for activity %s already recorded as #%s",
                    session_key,
                    activity_id,
                    existing.id,
                )
                return existing
            open_row = existing

        entries = [_break_dict(entry) for entry in break_log]
        total_break = completed_break_seconds(entries)
        now = datetime.now(UTC)
        if started_at is None:
            if open_row is not None:
                started_at = open_row.started_at
            else:
                started_at = datetime.fromtimestamp(
                    now.timestamp() - focus_seconds - total_break, UTC
                )

        data = HistoryCreate(
            activity_id=activity_id,
            user_id=principal_id,
            title=title if title is not None else activity.title,
            description=description or "",
            started_at=started_at,
            ended_at=now,
            focus_duration_seconds=focus_seconds,
            total_break_seconds=total_break,
            duration_minutes=session_duration_minutes(focus_seconds, total_break),
            break_log=entries,
            session_key=session_key,
            reconciled=True,
        )
        record = await self.history.commit_session(
            data, open_row.id if open_row is not None else None
        )
        logger.info(
            "recorded session #%s for activity %s: focus=%ss breaks=%ss",
            record.id,
            activity_id,
            focus_seconds,
            total_break,
        )
        return record

    async def open_session(
        self,
        activity_id: int,
        principal_id: str,
        *,
        title: str | None = None,
        description: str = "",
        break_count: int = 0,
        session_key: str | None = None,
    ) -> HistoryRecord:
        """Register a session as started, leaving ``ended_at`` empty."""
        activity = await self.activities.get_owned(activity_id, principal_id)
        if break_count > 0:
            await self.activities.update_break_count(activity_id, principal_id, break_count)
        data = HistoryCreate(
            activity_id=activity_id,
            user_id=principal_id,
            title=title if title is not None else activity.title,
            description=description or "",
            started_at=datetime.now(UTC),
            session_key=session_key,
        )
        record = await self.history.create(data)
        logger.debug("opened session #%s for activity %s", record.id, activity_id)
        return record

    async def end_open_session(self, activity_id: int, principal_id: str) -> HistoryRecord:
        """Close the newest open session without recording totals.

        Counters are not touched and the row does not count as a streak.

        Raises:
            NotFoundError: If the activity has no open session
        """
        await self.activities.get_owned(activity_id, principal_id)
        open_row = await self.history.latest_open(activity_id)
        if open_row is None:
            raise NotFoundError(f"No active session found for activity {activity_id}")

        now = datetime.now(UTC)
        started = open_row.started_at
        if started.tzinfo is None:
            started = started.replace(tzinfo=UTC)
        elapsed_ms = max(0.0, (now - started).total_seconds() * 1000)
        record = await self.history.close(open_row.id, now, milliseconds_to_minutes(elapsed_ms))
        logger.info("closed open session #%s for activity %s", record.id, activity_id)
        return record

    async def streak_count(self, activity_id: int) -> int:
        """Number of reconciled sessions for the activity."""
        return await self.history.count_reconciled(activity_id)

    async def list_history(
        self, activity_id: int, principal_id: str, limit: int | None = None
    ) -> list[HistoryRecord]:
        await self.activities.get_owned(activity_id, principal_id)
        return await self.history.list_for_activity(activity_id, limit)

    async def get_history(
        self, activity_id: int, history_id: int, principal_id: str
    ) -> HistoryRecord:
        """Get one history record of an owned activity.

        Raises:
            NotFoundError: If the record does not exist or belongs to another activity
        """
        await self.activities.get_owned(activity_id, principal_id)
        record = await self.history.get(history_id)
        if record.activity_id != activity_id:
            raise NotFoundError(f"History record not found: {history_id}")
        return record


def get_reconciliation_service() -> ReconciliationService:
    """Factory function to get a ReconciliationService instance."""
    from streakpro_cli.services.activity_service import get_activity_service
    from streakpro_cli.services.config_service import get_storage_strategy

    return ReconciliationService(
        get_activity_service(), get_storage_strategy().history_repository
    )
