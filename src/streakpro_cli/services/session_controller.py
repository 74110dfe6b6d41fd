"""Session lifecycle controller.

Glues one live engine to its persistence guard and to reconciliation. The
controller locks the activity's configuration at start, keeps the activity's
break budget in sync as breaks are taken, and records the finished session
exactly once.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from streakpro_cli.models import HistoryRecord, VerificationResult
from streakpro_cli.models.config_models import SessionSettings
from streakpro_cli.models.exceptions import (
    ForbiddenError,
    InvalidTransition,
    NetworkTransientError,
    NotFoundError,
    SessionAlreadyActive,
    StreakProError,
)
from streakpro_cli.models.focus.engine import (
    EndReason,
    FocusSessionEngine,
    SessionCompleted,
    SessionConfig,
    SessionResult,
)
from streakpro_cli.models.focus.state import PersistenceGuard, SessionSnapshotStore
from streakpro_cli.models.focus.ticker import AsyncioTicker, Ticker
from streakpro_cli.services.activity_service import ActivityService
from streakpro_cli.services.reconciliation_service import ReconciliationService
from streakpro_cli.services.verification_service import VerificationService
from streakpro_cli.utils.logger import get_logger

logger = get_logger("controller")

TickerFactory = Callable[[], Ticker]


@dataclass
class SessionHandle:
    """A live (or finished but not yet recorded) session."""

    activity_id: int
    session_key: str
    title: str
    description: str
    config: SessionConfig
    engine: FocusSessionEngine
    guard: PersistenceGuard
    initial_budget: int
    started_at: datetime | None
    open_record: HistoryRecord | None = None
    history_record: HistoryRecord | None = None
    resumed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def result(self) -> SessionResult | None:
        return self.engine.result

    @property
    def recorded(self) -> bool:
        return self.history_record is not None


class FocusSessionController:
    """Starts, drives and records focus sessions for one principal."""

    def __init__(
        self,
        activity_service: ActivityService,
        reconciliation: ReconciliationService,
        principal_id: str,
        *,
        snapshot_store: SessionSnapshotStore,
        verification: VerificationService | None = None,
        settings: SessionSettings | None = None,
        ticker_factory: TickerFactory | None = None,
    ):
        self.activities = activity_service
        self.reconciliation = reconciliation
        self.verification = verification
        self.principal_id = principal_id
        self.store = snapshot_store
        self.settings = settings or SessionSettings()
        self.ticker_factory = ticker_factory or (
            lambda: AsyncioTicker(self.settings.tick_seconds)
        )
        self._handles: dict[int, SessionHandle] = {}
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def get(self, activity_id: int) -> SessionHandle | None:
        """The live handle for an activity, if any."""
        return self._handles.get(activity_id)

    async def start(
        self, activity_id: int, title: str | None = None, description: str = ""
    ) -> SessionHandle:
        """Create a session for an activity.

        The activity is read once; its minutes and break budget are copied
        into a frozen SessionConfig for the rest of the session.

        Raises:
            SessionAlreadyActive: A handle for this activity is still live
            NotFoundError: Activity missing
            ForbiddenError: Activity owned by someone else
        """
        if activity_id in self._handles:
            raise SessionAlreadyActive(f"A session for activity {activity_id} is already active")

        activity = await self.activities.get_owned(activity_id, self.principal_id)

        snapshot = None
        if self.settings.resume_from_snapshot:
            snapshot = self.store.load(activity_id)

        if snapshot is not None:
            config = snapshot.config
            state = snapshot.state
            state.is_running = False
            session_key = snapshot.session_key
            session_title = snapshot.title or activity.title
            logger.info("resuming snapshot %s for activity %s", session_key, activity_id)
        else:
            config = SessionConfig.from_minutes(
                activity.total_time, activity.break_minutes, activity.break_count
            )
            state = None
            session_key = uuid.uuid4().hex
            session_title = title or activity.title

        engine = FocusSessionEngine(config, ticker=self.ticker_factory(), state=state)
        guard = PersistenceGuard(self.store, activity_id, session_key, session_title)
        guard.attach(engine)

        handle = SessionHandle(
            activity_id=activity_id,
            session_key=session_key,
            title=session_title,
            description=description,
            config=config,
            engine=engine,
            guard=guard,
            initial_budget=config.break_budget,
            started_at=None if snapshot is not None else datetime.now().astimezone(),
            resumed=snapshot is not None,
        )

        if snapshot is None:
            try:
                handle.open_record = await self.reconciliation.open_session(
                    activity_id,
                    self.principal_id,
                    title=session_title,
                    description=description,
                    break_count=config.break_budget,
                    session_key=session_key,
                )
                handle.started_at = handle.open_record.started_at
            except StreakProError as e:
                logger.warning("could not register session start for activity %s: %s", activity_id, e)

        self._handles[activity_id] = handle
        return handle

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_focus(self, handle: SessionHandle) -> bool:
        return handle.engine.start()

    def pause(self, handle: SessionHandle) -> bool:
        return handle.engine.pause()

    def take_break(self, handle: SessionHandle) -> bool:
        """Start a break and sync the remaining budget in the background."""
        if not handle.engine.take_break():
            return False
        remaining = handle.initial_budget - handle.engine.state.used_breaks
        self._spawn(self._sync_break_count(handle.activity_id, remaining))
        return True

    def skip_break(self, handle: SessionHandle) -> bool:
        return handle.engine.skip_break()

    def pause_break(self, handle: SessionHandle) -> bool:
        return handle.engine.pause_break()

    def resume_break(self, handle: SessionHandle) -> bool:
        return handle.engine.resume_break()

    def return_to_focus(self, handle: SessionHandle) -> bool:
        return handle.engine.return_to_focus_early()

    async def _sync_break_count(self, activity_id: int, remaining: int) -> None:
        try:
            await self.activities.update_break_count(activity_id, self.principal_id, remaining)
        except StreakProError as e:
            logger.warning("break count sync failed for activity %s: %s", activity_id, e)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for pending background syncs."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # End and record
    # ------------------------------------------------------------------

    async def end(self, handle: SessionHandle, reason: EndReason = "user") -> HistoryRecord:
        """Terminate the session early and record it."""
        if not handle.engine.finished:
            handle.engine.end_session(reason)
        return await self.reconcile(handle)

    async def complete(self, handle: SessionHandle) -> HistoryRecord:
        """Record a session whose focus countdown ran out."""
        if not isinstance(handle.result, SessionCompleted):
            raise InvalidTransition("complete session", "focus time is not used up")
        return await self.reconcile(handle)

    async def reconcile(self, handle: SessionHandle) -> HistoryRecord:
        """Record the finished session exactly once.

        Transient failures are retried with exponential backoff; when the
        retries run out the error propagates and the handle stays live so
        the caller can retry with the same totals.
        """
        result = handle.result
        if result is None:
            raise InvalidTransition("record session", "session is still running")

        async with handle.lock:
            if handle.history_record is not None:
                return handle.history_record

            retries = self.settings.record_retries
            for attempt in range(retries + 1):
                try:
                    record = await self.reconciliation.record_session(
                        handle.activity_id,
                        self.principal_id,
                        result.total_focus_seconds,
                        result.break_log,
                        description=handle.description,
                        title=handle.title,
                        session_key=handle.session_key,
                        started_at=handle.started_at,
                    )
                    break
                except NetworkTransientError as e:
                    if attempt >= retries:
                        logger.error(
                            "recording session %s failed after %s attempts: %s",
                            handle.session_key,
                            attempt + 1,
                            e,
                        )
                        raise
                    logger.warning("recording session %s failed, retrying: %s", handle.session_key, e)
                    await asyncio.sleep(2**attempt)
                except (NotFoundError, ForbiddenError):
                    logger.warning("discarding session %s for activity %s", handle.session_key, handle.activity_id)
                    self._discard(handle)
                    raise

            handle.history_record = record
            handle.guard.clear()
            self._handles.pop(handle.activity_id, None)
            return record

    def _discard(self, handle: SessionHandle) -> None:
        if not handle.engine.finished:
            handle.engine.end_session("closed")
        handle.guard.clear()
        self._handles.pop(handle.activity_id, None)

    async def verify(
        self, handle: SessionHandle, description: str, photo: str | None = None
    ) -> VerificationResult:
        """Verify the recorded session of *handle*."""
        if self.verification is None:
            raise RuntimeError("No verification service configured")
        if handle.history_record is None:
            raise InvalidTransition("verify session", "session has not been recorded")
        return await self.verification.attach_verification(
            handle.activity_id,
            self.principal_id,
            description,
            photo,
            history_id=handle.history_record.id,
        )

    async def abandon(self, activity_id: int) -> HistoryRecord:
        """Close the open session row without recording totals."""
        handle = self._handles.get(activity_id)
        if handle is not None:
            self._discard(handle)
        else:
            self.store.delete(activity_id)
        return await self.reconciliation.end_open_session(activity_id, self.principal_id)


def get_session_controller(ticker_factory: TickerFactory | None = None) -> FocusSessionController:
    """Factory function to get a controller for the configured principal."""
    from streakpro_cli.services.activity_service import get_activity_service
    from streakpro_cli.services.config_service import get_config_service, get_principal_id
    from streakpro_cli.services.reconciliation_service import get_reconciliation_service
    from streakpro_cli.services.verification_service import get_verification_service

    config_service = get_config_service()
    return FocusSessionController(
        get_activity_service(),
        get_reconciliation_service(),
        get_principal_id(),
        snapshot_store=SessionSnapshotStore(config_service.snapshot_dir),
        verification=get_verification_service(),
        settings=config_service.config.session,
        ticker_factory=ticker_factory,
    )
