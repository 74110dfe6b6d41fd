"""Repository interfaces for the StreakPro CLI.

Abstract base classes that define the contracts for data persistence. The
SQLite implementations live in ``streakpro_cli.adapters.sqlite``.
"""

from .repository import ActivityRepository, HistoryRepository, VerificationRepository

__all__ = [
    "ActivityRepository",
    "HistoryRepository",
    "VerificationRepository",
]
