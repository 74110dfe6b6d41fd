"""Storage strategy container.

Holds the repository implementations chosen at startup and hands them to
services, so services only ever see the repository ports.
"""

from __future__ import annotations

from pathlib import Path

from streakpro_cli.repositories import (
    ActivityRepository,
    HistoryRepository,
    VerificationRepository,
)


class LocalStorageStrategy:
    """
    Local SQLite storage strategy.

    All repositories share one SQLite vault.
    """

    storage_type = "local"

    def __init__(self, db_path: str | Path):
        """
        Initialize local strategy.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        # Import here to avoid circular dependencies
        from streakpro_cli.adapters.sqlite import (
            SqliteActivityRepository,
            SqliteHistoryRepository,
            SqliteVerificationRepository,
        )

        self.activity_repository: ActivityRepository = SqliteActivityRepository(db_path)
        self.history_repository: HistoryRepository = SqliteHistoryRepository(db_path)
        self.verification_repository: VerificationRepository = SqliteVerificationRepository(
            db_path
        )

    def resolve_principal(self, configured: str | None = None) -> str:
        """Principal id for this vault: *configured* if given, else the local user."""
        from streakpro_cli.adapters.sqlite import ensure_user, get_or_create_local_user
        from streakpro_cli.adapters.sqlite.connection import get_connection

        connection = get_connection(self.db_path)
        if configured:
            return ensure_user(connection, configured)
        return get_or_create_local_user(connection)
