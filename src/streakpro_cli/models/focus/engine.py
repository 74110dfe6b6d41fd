"""Focus/break session state machine.

A session has two live modes, ``focus`` and ``break``, and one terminal state
reached through natural focus completion or ``end_session``. The engine is
advanced only by its injected ticker (one tick per second) and by explicit
user transitions; it performs no I/O of its own. Listeners registered with
``add_listener`` run after every applied mutation, which is how the
persistence guard mirrors the state.

Break log policy: only breaks that finish through ``skip_break``, a natural
break timeout or ``return_to_focus_early`` are logged. A break still in
progress when ``end_session`` is called is abandoned without a record.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal

from streakpro_cli.models.exceptions import InvalidTransition
from streakpro_cli.models.focus.duration import minutes_to_seconds
from streakpro_cli.models.focus.ticker import Ticker
from streakpro_cli.utils.logger import get_logger

SessionMode = Literal["focus", "break"]
BreakKind = Literal["completed", "skipped"]
EndReason = Literal["user", "closed", "timeout"]

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class SessionConfig:
    """Session parameters copied from the activity when the session starts.

    The config is frozen for the whole session so edits to the activity made
    elsewhere cannot shift the time base of a running countdown.
    """

    focus_seconds: int
    break_seconds: int
    break_budget: int

    def __post_init__(self) -> None:
        if self.focus_seconds <= 0:
            raise ValueError("focus_seconds must be positive")
        if self.break_seconds < 0:
            raise ValueError("break_seconds must be non-negative")
        if self.break_budget < 0:
            raise ValueError("break_budget must be non-negative")

    @classmethod
    def from_minutes(
        cls, total_minutes: int, break_minutes: int, break_budget: int
    ) -> SessionConfig:
        """Build a config from the minute values stored on an activity."""
        return cls(
            focus_seconds=minutes_to_seconds(total_minutes),
            break_seconds=minutes_to_seconds(break_minutes),
            break_budget=break_budget,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SessionConfig:
        return cls(**data)


@dataclass(frozen=True)
class BreakRecord:
    """One finished break. Never mutated once appended to the log."""

    started_at: str  # ISO 8601
    ended_at: str | None  # ISO 8601
    duration_seconds: int
    focus_accumulated_before_break: int
    kind: BreakKind

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> BreakRecord:
        return cls(**data)


@dataclass
class SessionState:
    """Mutable countdown state, owned by exactly one engine."""

    mode: SessionMode
    remaining_seconds: int
    saved_focus_remaining: int
    accumulated_focus_seconds: int
    remaining_breaks: int
    used_breaks: int
    is_running: bool
    break_log: list[BreakRecord] = field(default_factory=list)
    # Focus countdown value at the last fold into accumulated_focus_seconds
    focus_mark: int = 0
    break_started_at: str | None = None

    @classmethod
    def initial(cls, config: SessionConfig) -> SessionState:
        return cls(
            mode="focus",
            remaining_seconds=config.focus_seconds,
            saved_focus_remaining=config.focus_seconds,
            accumulated_focus_seconds=0,
            remaining_breaks=config.break_budget,
            used_breaks=0,
            is_running=False,
            focus_mark=config.focus_seconds,
        )

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary."""
        data = asdict(self)
        data["break_log"] = [record.to_dict() for record in self.break_log]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> SessionState:
        """Create from dictionary."""
        data = dict(data)
        data["break_log"] = [BreakRecord.from_dict(r) for r in data.get("break_log", [])]
        return cls(**data)


@dataclass(frozen=True)
class SessionResult:
    """Final totals handed to reconciliation."""

    total_focus_seconds: int
    used_breaks: int
    break_log: tuple[BreakRecord, ...]
    finished_at: str

    @property
    def completed_break_seconds(self) -> int:
        return sum(r.duration_seconds for r in self.break_log if r.kind == "completed")


@dataclass(frozen=True)
class SessionCompleted(SessionResult):
    """The focus countdown reached zero."""


@dataclass(frozen=True)
class SessionEnded(SessionResult):
    """The user terminated the session early."""

    reason: EndReason = "user"


Listener = Callable[["FocusSessionEngine"], None]
FinishListener = Callable[[SessionResult], None]


class FocusSessionEngine:
    """Timer engine for one focus session.

    Every transition returns ``True`` when applied and ``False`` when its
    preconditions do not hold. A strict engine raises ``InvalidTransition``
    instead of returning ``False``.
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        ticker: Ticker | None = None,
        clock: Clock | None = None,
        state: SessionState | None = None,
        strict: bool = False,
    ):
        self.config = config
        self.state = state if state is not None else SessionState.initial(config)
        self.strict = strict
        self.result: SessionResult | None = None
        self._ticker = ticker
        self._clock = clock or _local_now
        self._listeners: list[Listener] = []
        self._finish_listeners: list[FinishListener] = []
        self._in_tick = False
        self._log = get_logger("engine")

        if self._ticker is not None:
            self._ticker.start(self.tick)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self.result is not None

    @property
    def mode(self) -> SessionMode:
        return self.state.mode

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    def add_listener(self, listener: Listener) -> None:
        """Call *listener* after every applied mutation, ticks included."""
        self._listeners.append(listener)

    def on_finish(self, listener: FinishListener) -> None:
        """Call *listener* once with the final result."""
        self._finish_listeners.append(listener)

    def focus_elapsed(self) -> int:
        """Focus seconds consumed so far, including the unfolded segment."""
        state = self.state
        if state.mode == "focus":
            return state.accumulated_focus_seconds + (state.focus_mark - state.remaining_seconds)
        return state.accumulated_focus_seconds

    def break_elapsed(self) -> int:
        """Seconds elapsed in the current break (0 outside a break)."""
        if self.state.mode != "break":
            return 0
        return self.config.break_seconds - self.state.remaining_seconds

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    def _reject(self, operation: str, reason: str) -> bool:
        self._log.debug("rejected %s: %s", operation, reason)
        if self.strict:
            raise InvalidTransition(operation, reason)
        return False

    def _guard(self, operation: str, mode: SessionMode | None = None) -> str | None:
        if self.result is not None:
            return "session already finished"
        if mode is not None and self.state.mode != mode:
            return f"requires {mode} mode, current mode is {self.state.mode}"
        return None

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _fold_focus(self) -> None:
        state = self.state
        state.accumulated_focus_seconds += state.focus_mark - state.remaining_seconds
        state.focus_mark = state.remaining_seconds

    def _append_break(self, kind: BreakKind, duration: int) -> None:
        state = self.state
        state.break_log.append(
            BreakRecord(
                started_at=state.break_started_at or self._now_iso(),
                ended_at=self._now_iso(),
                duration_seconds=duration,
                focus_accumulated_before_break=state.saved_focus_remaining,
                kind=kind,
            )
        )
        state.break_started_at = None

    def _back_to_focus(self, running: bool) -> None:
        state = self.state
        state.mode = "focus"
        state.remaining_seconds = state.saved_focus_remaining
        state.focus_mark = state.saved_focus_remaining
        state.is_running = running

    def _finish(self, result: SessionResult) -> SessionResult:
        if self._ticker is not None:
            self._ticker.stop()
        self.state.is_running = False
        self.result = result
        self._changed()
        for listener in list(self._finish_listeners):
            listener(result)
        return result

    # ------------------------------------------------------------------
    # Focus transitions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start (or resume) the focus countdown."""
        reason = self._guard("start", "focus")
        if reason:
            return self._reject("start", reason)
        if self.state.is_running:
            return False
        self.state.is_running = True
        self._changed()
        return True

    def pause(self) -> bool:
        """Pause the focus countdown."""
        reason = self._guard("pause", "focus")
        if reason:
            return self._reject("pause", reason)
        if not self.state.is_running:
            return self._reject("pause", "focus is not running")
        self.state.is_running = False
        self._changed()
        return True

    def tick(self) -> SessionResult | None:
        """Advance the active countdown by one second.

        Returns:
            The completion result when this tick finished the focus budget.
        """
        if self.result is not None or not self.state.is_running:
            return None
        if self._in_tick:
            self._reject("tick", "tick already in progress")
            return None

        self._in_tick = True
        try:
            state = self.state
            if state.mode == "focus":
                if state.remaining_seconds <= 1:
                    state.remaining_seconds = 0
                    self._fold_focus()
                    return self._finish(
                        SessionCompleted(
                            total_focus_seconds=state.accumulated_focus_seconds,
                            used_breaks=state.used_breaks,
                            break_log=tuple(state.break_log),
                            finished_at=self._now_iso(),
                        )
                    )
                state.remaining_seconds -= 1
            else:
                if state.remaining_seconds <= 1:
                    state.remaining_seconds = 0
                    self._append_break("completed", self.config.break_seconds)
                    self._back_to_focus(running=False)
                else:
                    state.remaining_seconds -= 1
            self._changed()
            return None
        finally:
            self._in_tick = False

    def take_break(self) -> bool:
        """Switch from focus to a break, consuming one unit of the budget."""
        reason = self._guard("take break", "focus")
        if reason:
            return self._reject("take break", reason)
        if self.state.remaining_breaks <= 0:
            return self._reject("take break", "no breaks left")

        state = self.state
        self._fold_focus()
        state.saved_focus_remaining = state.remaining_seconds
        state.remaining_breaks -= 1
        state.used_breaks += 1
        state.mode = "break"
        state.remaining_seconds = self.config.break_seconds
        state.break_started_at = self._now_iso()
        state.is_running = True
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Break transitions
    # ------------------------------------------------------------------

    def skip_break(self) -> bool:
        """Abandon the break, log it as skipped and resume focus immediately."""
        reason = self._guard("skip break", "break")
        if reason:
            return self._reject("skip break", reason)
        self._append_break("skipped", 0)
        self._back_to_focus(running=True)
        self._changed()
        return True

    def pause_break(self) -> bool:
        reason = self._guard("pause break", "break")
        if reason:
            return self._reject("pause break", reason)
        if not self.state.is_running:
            return self._reject("pause break", "break is not running")
        self.state.is_running = False
        self._changed()
        return True

    def resume_break(self) -> bool:
        reason = self._guard("resume break", "break")
        if reason:
            return self._reject("resume break", reason)
        if self.state.is_running:
            return self._reject("resume break", "break is already running")
        self.state.is_running = True
        self._changed()
        return True

    def return_to_focus_early(self) -> bool:
        """End the break now, crediting only the break time actually taken."""
        reason = self._guard("return to focus", "break")
        if reason:
            return self._reject("return to focus", reason)
        elapsed = self.config.break_seconds - self.state.remaining_seconds
        self._append_break("completed", elapsed)
        self._back_to_focus(running=True)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    def end_session(self, reason: EndReason = "user") -> SessionEnded | None:
        """Terminate the session from any live mode.

        The ticker is stopped before the result is built. An in-progress
        break is dropped, not logged.
        """
        guard = self._guard("end session")
        if guard:
            self._reject("end session", guard)
            return None
        if self._ticker is not None:
            self._ticker.stop()
        state = self.state
        if state.mode == "focus":
            self._fold_focus()
        state.break_started_at = None
        result = SessionEnded(
            total_focus_seconds=state.accumulated_focus_seconds,
            used_breaks=state.used_breaks,
            break_log=tuple(state.break_log),
            finished_at=self._now_iso(),
            reason=reason,
        )
        self._finish(result)
        return result

    def snapshot(self) -> dict[str, Any]:
        """Config and state as plain dictionaries."""
        return {"config": self.config.to_dict(), "state": self.state.to_dict()}
