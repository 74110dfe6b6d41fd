"""Data models for StreakPro CLI."""

from .core import (
    Activity,
    ActivityCreate,
    ActivityUpdate,
    HistoryCreate,
    HistoryRecord,
    VerificationRecord,
    VerificationResult,
)

__all__ = [
    "Activity",
    "ActivityCreate",
    "ActivityUpdate",
    "HistoryCreate",
    "HistoryRecord",
    "VerificationRecord",
    "VerificationResult",
]
