"""Configuration service for managing StreakPro CLI configuration.

This module provides the ConfigService class, the single source of truth for
configuration. It handles:

- Loading and saving config.json
- Resolving default locations for the vault, snapshots and logs
- Dotted-key updates used by ``streakpro config set``
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_state_dir

from streakpro_cli.models.config_models import AppConfig
from streakpro_cli.models.storage_strategy import LocalStorageStrategy
from streakpro_cli.utils.logger import get_logger

logger = get_logger("config")


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir("streakpro_cli"))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir("streakpro_cli"))
        self.state_dir = Path(user_state_dir("streakpro_cli"))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None
        self._storage: LocalStorageStrategy | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config  # Return cached config if already loaded

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run - write the defaults so users can edit them
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self):
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))

            # Set file permissions
            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def set_value(self, dotted_key: str, raw_value: str) -> AppConfig:
        """Validate and persist a single dotted-key change."""
        self._config = self.config.set_value(dotted_key, raw_value)
        if dotted_key.startswith("storage."):
            self._storage = None
        self.save_config()
        logger.info("config updated: %s", dotted_key)
        return self._config

    def reset_config(self) -> AppConfig:
        """Reset configuration to defaults."""
        self._config = AppConfig()
        self._storage = None
        self.save_config()
        return self._config

    @property
    def db_path(self) -> Path:
        """Vault location, configured or default."""
        if self.config.storage.db_path:
            return Path(self.config.storage.db_path).expanduser()
        return self.data_dir / "streakpro.db"

    @property
    def storage(self) -> LocalStorageStrategy:
        """Repositories for the configured vault, created on first use."""
        if self._storage is None:
            self._storage = LocalStorageStrategy(self.db_path)
        return self._storage

    @property
    def snapshot_dir(self) -> Path:
        """Snapshot directory, configured or default."""
        if self.config.session.snapshot_dir:
            return Path(self.config.session.snapshot_dir).expanduser()
        return self.state_dir / "sessions"


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service


def get_storage_strategy() -> LocalStorageStrategy:
    """Storage strategy for the configured vault."""
    return get_config_service().storage


def get_principal_id() -> str:
    """Principal every command runs as."""
    config_service = get_config_service()
    return get_storage_strategy().resolve_principal(config_service.config.principal_id)
