"""Database migrations for the SQLite vault."""

from .m001_initial_schema import initial_migration
from .runner import Migration, MigrationRunner

ALL_MIGRATIONS: list[Migration] = [initial_migration]

__all__ = ["ALL_MIGRATIONS", "Migration", "MigrationRunner", "initial_migration"]
