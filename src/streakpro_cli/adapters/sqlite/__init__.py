"""SQLite adapter module - Local database storage implementation."""

from streakpro_cli.adapters.sqlite.activity_repository import SqliteActivityRepository
from streakpro_cli.adapters.sqlite.history_repository import SqliteHistoryRepository
from streakpro_cli.adapters.sqlite.user_manager import ensure_user, get_or_create_local_user
from streakpro_cli.adapters.sqlite.verification_repository import (
    SqliteVerificationRepository,
)

__all__ = [
    "SqliteActivityRepository",
    "SqliteHistoryRepository",
    "SqliteVerificationRepository",
    "ensure_user",
    "get_or_create_local_user",
]
