"""Initial database schema migration.

Creates the tables for the StreakPro vault:
- users
- activities
- streak_history
- ai_verifications
- schema_version (created by migration system)
"""

import sqlite3

from streakpro_cli.adapters.sqlite import schema

from .runner import Migration


class InitialSchemaMigration(Migration):
    """Migration 001: Create initial database schema."""

    @property
    def version(self) -> int:
        return 1

    @property
    def description(self) -> str:
        return "Initial database schema"

    def up(self, connection: sqlite3.Connection) -> None:
        """Create all initial tables."""
        for table_sql in schema.ALL_TABLES:
            connection.execute(table_sql)

        for index_sql in schema.CREATE_INDEXES:
            connection.execute(index_sql)


initial_migration = InitialSchemaMigration()
