# cheatsync Sync State
# Persisted sync bookkeeping: last successful sync and pending conflicts

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from cheatsync.sync.conflicts import ConflictItem
from cheatsync.sync.errors import LocalStoreError
from cheatsync.sync.snapshot import format_timestamp, parse_timestamp
from cheatsync.utils.paths import atomic_write

STATE_FILE = ".sync_state.yaml"

logger = logging.getLogger(__name__)


@dataclass
class SyncState:
    """
    Sync bookkeeping kept between runs.

    Holds the last successful sync time and the conflicts still waiting for
    a user decision.
    """

    version: str = "1.0"
    last_sync: Optional[datetime] = None
    conflicts: list[ConflictItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "last_sync": format_timestamp(self.last_sync),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncState":
        """Create from dictionary."""
        return cls(
            version=str(data.get("version", "1.0")),
            last_sync=parse_timestamp(data.get("last_sync")),
            conflicts=[ConflictItem.from_dict(c) for c in data.get("conflicts") or []],
        )


class StateManager:
    """
    Manages sync state persistence.

    Handles loading and saving state as YAML beside the local data.
    """

    def __init__(self, state_path: Path):
        """
        Initialize state manager.

        Args:
            state_path: Path to state file, usually ``<data_dir>/.sync_state.yaml``.
        """
        self.state_path = state_path

    @classmethod
    def for_data_dir(cls, data_dir: Path) -> "StateManager":
        return cls(data_dir / STATE_FILE)

    def load(self) -> SyncState:
        """Load state from file; a missing or unreadable file gives a fresh state."""
        if not self.state_path.exists():
            return SyncState()

        try:
            with open(self.state_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning("Ignoring unreadable sync state %s: %s", self.state_path, e)
            return SyncState()

        if not isinstance(data, dict):
            return SyncState()

        try:
            return SyncState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed sync state %s: %s", self.state_path, e)
            return SyncState()

    def save(self, state: SyncState) -> None:
        """Save state to file."""
        content = yaml.dump(state.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        try:
            atomic_write(self.state_path, content)
        except OSError as e:
            raise LocalStoreError(f"Failed to write sync state {self.state_path}: {e}") from e

    def reset(self) -> None:
        """Reset state to empty."""
        self.save(SyncState())
