"""Session snapshot persistence.

Every mutation of a live engine is mirrored to a JSON file keyed by activity
id, so an interrupted client leaves behind enough to resume or discard the
session. The snapshot is removed once the session has been reconciled.
Whether a leftover snapshot is resumed is decided by the caller (see
``session.resume_from_snapshot`` in the config).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from streakpro_cli.models.focus.engine import FocusSessionEngine, SessionConfig, SessionState
from streakpro_cli.utils.logger import get_logger

logger = get_logger("snapshots")


@dataclass
class SessionSnapshot:
    """Everything needed to rebuild a live session."""

    activity_id: int
    session_key: str
    title: str
    config: SessionConfig
    state: SessionState
    position: dict[str, int] = field(default_factory=lambda: {"x": 0, "y": 0})
    saved_at: str = ""

    @property
    def saved_datetime(self) -> datetime | None:
        if not self.saved_at:
            return None
        return datetime.fromisoformat(self.saved_at.replace("Z", "+00:00"))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "activity_id": self.activity_id,
            "session_key": self.session_key,
            "title": self.title,
            "config": self.config.to_dict(),
            "state": self.state.to_dict(),
            "position": dict(self.position),
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionSnapshot:
        """Create from dictionary."""
        return cls(
            activity_id=int(data["activity_id"]),
            session_key=data["session_key"],
            title=data.get("title", ""),
            config=SessionConfig.from_dict(data["config"]),
            state=SessionState.from_dict(data["state"]),
            position=data.get("position") or {"x": 0, "y": 0},
            saved_at=data.get("saved_at", ""),
        )


class SessionSnapshotStore:
    """Manages snapshot files, one slot per activity."""

    def __init__(self, state_dir: Path | None = None):
        """Initialize the snapshot store."""
        if state_dir is None:
            from platformdirs import user_state_dir

            state_dir = Path(user_state_dir("streakpro_cli")) / "sessions"

        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, activity_id: int) -> Path:
        return self.state_dir / f"session-{activity_id}.json"

    def save(self, snapshot: SessionSnapshot) -> None:
        """Write the snapshot atomically with owner-only permissions."""
        snapshot.saved_at = datetime.now().astimezone().isoformat()
        target = self.path_for(snapshot.activity_id)
        tmp = target.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_dict(), f, indent=2)
        tmp.chmod(0o600)
        os.replace(tmp, target)

    def load(self, activity_id: int) -> SessionSnapshot | None:
        """Load a snapshot. Returns None if the file is missing or invalid."""
        path = self.path_for(activity_id)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return SessionSnapshot.from_dict(data)
        except (json.JSONDecodeError, TypeError, KeyError, ValueError):
            logger.warning("ignoring unreadable snapshot %s", path)
            return None

    def delete(self, activity_id: int) -> None:
        """Delete the snapshot for an activity, if any."""
        path = self.path_for(activity_id)
        if path.exists():
            path.unlink()

    def exists(self, activity_id: int) -> bool:
        return self.path_for(activity_id).exists()

    def list_snapshots(self) -> list[SessionSnapshot]:
        """All readable snapshots, oldest first."""
        snapshots = []
        for path in sorted(self.state_dir.glob("session-*.json")):
            try:
                activity_id = int(path.stem.removeprefix("session-"))
            except ValueError:
                continue
            snapshot = self.load(activity_id)
            if snapshot is not None:
                snapshots.append(snapshot)
        return sorted(snapshots, key=lambda s: s.saved_at)

    def purge_stale(self, max_age: timedelta) -> list[int]:
        """Delete snapshots not written for longer than *max_age*.

        Returns:
            Activity ids whose snapshot was removed.
        """
        cutoff = datetime.now().astimezone() - max_age
        purged = []
        for snapshot in self.list_snapshots():
            saved = snapshot.saved_datetime
            if saved is None or saved < cutoff:
                self.delete(snapshot.activity_id)
                purged.append(snapshot.activity_id)
        if purged:
            logger.info("purged stale snapshots for activities %s", purged)
        return purged


class PersistenceGuard:
    """Mirrors one engine into the snapshot store on every change."""

    def __init__(
        self,
        store: SessionSnapshotStore,
        activity_id: int,
        session_key: str,
        title: str = "",
    ):
        self.store = store
        self.activity_id = activity_id
        self.session_key = session_key
        self.title = title
        self.position: dict[str, int] = {"x": 0, "y": 0}
        self._engine: FocusSessionEngine | None = None

    def attach(self, engine: FocusSessionEngine) -> None:
        """Subscribe to the engine and write the initial snapshot."""
        self._engine = engine
        engine.add_listener(self._on_change)
        self.save()

    def _on_change(self, engine: FocusSessionEngine) -> None:
        # A finished session keeps its last snapshot until reconciliation succeeds.
        self.save()

    def move(self, x: int, y: int) -> None:
        """Record the widget position; written with the next snapshot."""
        self.position = {"x": x, "y": y}
        self.save()

    def save(self) -> None:
        """Write the current snapshot. A failed write is logged, never raised."""
        if self._engine is None:
            return
        try:
            self.store.save(
                SessionSnapshot(
                    activity_id=self.activity_id,
                    session_key=self.session_key,
                    title=self.title,
                    config=self._engine.config,
                    state=self._engine.state,
                    position=self.position,
                )
            )
        except OSError as e:
            logger.warning("could not write snapshot for activity %s: %s", self.activity_id, e)

    def clear(self) -> None:
        """Remove the snapshot after the session was recorded."""
        self.store.delete(self.activity_id)
