"""Configuration models for StreakPro CLI.

The configuration is a single JSON document validated by these pydantic
models. Every section has defaults so a missing or partial file still loads.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    """Local vault configuration."""

    db_path: str | None = Field(
        default=None, description="SQLite vault path (defaults to the user data dir)"
    )


class SessionSettings(BaseModel):
    """Focus session engine settings."""

    tick_seconds: float = Field(default=1.0, gt=0)
    resume_from_snapshot: bool = Field(
        default=False,
        description="Resume a leftover snapshot instead of starting fresh",
    )
    record_retries: int = Field(default=3, ge=0)
    snapshot_dir: str | None = None
    default_break_minutes: int = Field(default=5, ge=0)
    default_break_count: int = Field(default=1, ge=0)
    stale_snapshot_hours: int = Field(default=24, gt=0)


class ClassifierConfig(BaseModel):
    """AI verification classifier configuration."""

    endpoint: str = Field(default="https://api.openai.com/v1")
    model: str = Field(default="gpt-3.5-turbo")
    temperature: float = Field(default=0.5, ge=0, le=2)
    timeout: int = Field(default=30)
    retry: int = Field(default=2, ge=0)
    api_key_env: str = Field(default="OPENAI_API_KEY")

    @field_validator("endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("endpoint cannot be empty")
        return v.strip().rstrip("/")


class OutputConfig(BaseModel):
    """Output configuration."""

    format: str = Field(default="pretty")
    color: bool = Field(default=True)


class AppConfig(BaseModel):
    """Main StreakPro configuration"""

    principal_id: str | None = Field(
        default=None, description="Principal id; the local vault user when unset"
    )
    storage: StorageConfig = Field(default_factory=StorageConfig)
    session: SessionSettings = Field(default_factory=SessionSettings)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def get_value(self, dotted_key: str):
        """Read a value by dotted key, e.g. ``session.tick_seconds``."""
        node = self
        for part in dotted_key.split("."):
            if not isinstance(node, BaseModel) or part not in type(node).model_fields:
                raise KeyError(f"Unknown config key '{dotted_key}'")
            node = getattr(node, part)
        return node

    def set_value(self, dotted_key: str, raw_value: str) -> AppConfig:
        """Return a new validated config with *dotted_key* set to *raw_value*."""
        self.get_value(dotted_key)
        data = self.model_dump()
        parts = dotted_key.split(".")
        target = data
        for part in parts[:-1]:
            target = target[part]
        target[parts[-1]] = None if raw_value.lower() in ("none", "null") else raw_value
        return AppConfig.model_validate(data)
