"""Database connection management for the SQLite vault.

A single connection per process, with WAL mode and foreign key enforcement.
Migrations run the first time a path is opened.
"""

from __future__ import annotations

import atexit
import os
import sqlite3
import time
from pathlib import Path

from platformdirs import user_data_dir

from streakpro_cli.adapters.sqlite.migrations import ALL_MIGRATIONS, MigrationRunner
from streakpro_cli.models.exceptions import NetworkTransientError
from streakpro_cli.utils.logger import get_logger

logger = get_logger("sqlite")


class DatabaseConnection:
    """Singleton connection manager for the local SQLite vault.

    Provides:
    - Single connection per process (connection reuse)
    - WAL mode for better concurrency
    - Foreign key constraint enforcement
    - Owner-only file permissions
    - Graceful cleanup on exit
    """

    _instance: DatabaseConnection | None = None
    _connection: sqlite3.Connection | None = None
    _db_path: Path | None = None
    _atexit_registered = False

    def __new__(cls) -> DatabaseConnection:
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_connection(cls, db_path: str | Path | None = None) -> sqlite3.Connection:
        """Get or create database connection.

        Args:
            db_path: Path to database file. If None, uses default location.

        Returns:
            sqlite3.Connection configured for StreakPro usage
        """
        instance = cls()

        if db_path is None:
            db_path = Path(user_data_dir("streakpro_cli")) / "streakpro.db"
        else:
            db_path = Path(db_path)

        if instance._connection is not None and instance._db_path == db_path:
            return instance._connection

        if instance._connection is not None:
            instance._connection.close()

        db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not db_path.exists()

        connection = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            timeout=30.0,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        connection.execute("PRAGMA journal_mode = WAL")

        if is_new_database:
            os.chmod(db_path, 0o600)
            logger.info("created vault at %s", db_path)

        applied = MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
        if applied:
            logger.info("applied %d migration(s) to %s", applied, db_path)

        instance._connection = connection
        instance._db_path = db_path

        if not cls._atexit_registered:
            atexit.register(cls.close_connection)
            cls._atexit_registered = True

        return connection

    @classmethod
    def close_connection(cls) -> None:
        """Close database connection gracefully."""
        instance = cls()
        if instance._connection is not None:
            try:
                instance._connection.commit()
                instance._connection.close()
            except sqlite3.Error as e:
                logger.warning("error while closing vault: %s", e)
            finally:
                instance._connection = None
                instance._db_path = None

    @classmethod
    def get_db_path(cls) -> Path | None:
        """Get current database path."""
        return cls()._db_path


def execute_with_retry(
    connection: sqlite3.Connection,
    sql: str,
    params: tuple | list | dict | None = None,
    max_retries: int = 3,
) -> sqlite3.Cursor:
    """Execute SQL, retrying while the database is locked.

    Raises:
        NetworkTransientError: If the database stays locked after all retries
        sqlite3.OperationalError: For any other operational failure
    """
    for attempt in range(max_retries):
        try:
            if params is not None:
                return connection.execute(sql, params)
            return connection.execute(sql)
        except sqlite3.OperationalError as e:
            if "database is locked" not in str(e):
                raise
            if attempt < max_retries - 1:
                # Exponential backoff: 0.1s, 0.2s, 0.4s
                time.sleep(0.1 * (2**attempt))
                continue
            raise NetworkTransientError(f"Vault is locked: {e}") from e

    raise NetworkTransientError("Max retries exceeded")


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Helper function to get database connection."""
    return DatabaseConnection.get_connection(db_path)
