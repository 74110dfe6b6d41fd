"""Tests for local principal management and SQLite helpers."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime

import pytest

from streakpro_cli.adapters.sqlite.migrations import ALL_MIGRATIONS, MigrationRunner
from streakpro_cli.adapters.sqlite.user_manager import (
    create_default_user,
    ensure_user,
    get_or_create_local_user,
)
from streakpro_cli.adapters.sqlite.utils import parse_datetime, row_to_dict


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.row_factory = sqlite3.Row
    MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
    yield connection
    connection.close()


def _user_count(conn) -> int:
    return conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]


def test_local_user_created_once(conn):
    first = get_or_create_local_user(conn)
    assert get_or_create_local_user(conn) == first
    assert _user_count(conn) == 1


def test_local_user_prefers_existing(conn):
    existing = create_default_user(conn, name="Me")
    assert get_or_create_local_user(conn) == existing


def test_ensure_user_is_idempotent(conn):
    assert ensure_user(conn, "alice") == "alice"
    assert ensure_user(conn, "alice") == "alice"
    assert _user_count(conn) == 1


def test_row_to_dict(conn):
    ensure_user(conn, "bob")
    row = conn.execute("SELECT id, name FROM users").fetchone()
    assert row_to_dict(row) == {"id": "bob", "name": None}
    assert row_to_dict(None) == {}


def test_parse_datetime():
    assert parse_datetime(None) is None
    assert parse_datetime("") is None
    assert parse_datetime("2024-05-01T09:00:00Z") == datetime(2024, 5, 1, 9, tzinfo=UTC)
    naive = parse_datetime("2024-05-01T09:00:00")
    assert naive.tzinfo is UTC
    aware = datetime(2024, 5, 1, 9, tzinfo=UTC)
    assert parse_datetime(aware) is aware
