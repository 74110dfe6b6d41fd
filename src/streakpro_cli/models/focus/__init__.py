"""Focus sessions - timer engine, tick sources and snapshot persistence."""

from .duration import minutes_to_seconds, seconds_to_minutes, to_clock
from .engine import (
    BreakRecord,
    FocusSessionEngine,
    SessionCompleted,
    SessionConfig,
    SessionEnded,
    SessionResult,
    SessionState,
)
from .state import PersistenceGuard, SessionSnapshot, SessionSnapshotStore
from .ticker import AsyncioTicker, ManualTicker, Ticker

__all__ = [
    "BreakRecord",
    "FocusSessionEngine",
    "SessionCompleted",
    "SessionConfig",
    "SessionEnded",
    "SessionResult",
    "SessionState",
    "SessionSnapshot",
    "SessionSnapshotStore",
    "PersistenceGuard",
    "Ticker",
    "ManualTicker",
    "AsyncioTicker",
    "minutes_to_seconds",
    "seconds_to_minutes",
    "to_clock",
]
