"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem state.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from streakpro_cli.adapters.sqlite import (
    SqliteActivityRepository,
    SqliteHistoryRepository,
    SqliteVerificationRepository,
    ensure_user,
)
from streakpro_cli.adapters.sqlite.connection import DatabaseConnection, get_connection
from streakpro_cli.models import ActivityCreate
from streakpro_cli.models.focus.state import SessionSnapshotStore
from streakpro_cli.services.activity_service import ActivityService
from streakpro_cli.services.reconciliation_service import ReconciliationService

PRINCIPAL = "user-001"
OTHER_PRINCIPAL = "user-002"


# ---------------------------------------------------------------------------
# Config isolation helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data/state files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from streakpro_cli.services.config_service import ConfigService, get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with (
        patch("streakpro_cli.services.config_service.user_config_dir", return_value=tmpdir),
        patch("streakpro_cli.services.config_service.user_data_dir", return_value=tmpdir),
        patch("streakpro_cli.services.config_service.user_state_dir", return_value=tmpdir),
    ):
        svc = ConfigService()
        with patch(
            "streakpro_cli.services.config_service.get_config_service",
            return_value=svc,
        ):
            yield svc
    DatabaseConnection.close_connection()
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Vault fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path):
    """A migrated vault file; the shared connection is closed afterwards."""
    path = tmp_path / "vault.db"
    conn = get_connection(path)
    ensure_user(conn, PRINCIPAL)
    ensure_user(conn, OTHER_PRINCIPAL)
    yield path
    DatabaseConnection.close_connection()


@pytest.fixture()
def activity_repo(db_path):
    return SqliteActivityRepository(db_path)


@pytest.fixture()
def history_repo(db_path):
    return SqliteHistoryRepository(db_path)


@pytest.fixture()
def verification_repo(db_path):
    return SqliteVerificationRepository(db_path)


@pytest.fixture()
def activity_service(activity_repo):
    return ActivityService(activity_repo)


@pytest.fixture()
def reconciliation(activity_service, history_repo):
    return ReconciliationService(activity_service, history_repo)


@pytest.fixture()
def snapshot_store(tmp_path):
    return SessionSnapshotStore(tmp_path / "sessions")


@pytest.fixture()
def make_activity(activity_repo):
    """Factory creating activities in the vault."""

    async def _make(
        title: str = "Deep work",
        total_time: int = 10,
        break_minutes: int = 5,
        break_count: int = 1,
        owner: str = PRINCIPAL,
    ):
        return await activity_repo.create(
            owner,
            ActivityCreate(
                title=title,
                total_time=total_time,
                break_minutes=break_minutes,
                break_count=break_count,
            ),
        )

    return _make
