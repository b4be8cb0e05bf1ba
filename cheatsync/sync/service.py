# cheatsync Sync Service
# Backend contract and an in-process implementation

import copy
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from cheatsync.sync.conflicts import ConflictItem, Resolution
from cheatsync.sync.snapshot import Snapshot, utcnow


class SyncService(ABC):
    """
    Remote replica a sync manager reconciles against.

    Implementations must turn "no data yet" into a successful ``pull`` that
    returns an empty snapshot, so a first sync from a fresh device works.
    Every other failure raises ``SyncServiceError``.
    """

    @abstractmethod
    def push(self, snapshot: Snapshot) -> None:
        """Store a snapshot as the new remote state."""

    @abstractmethod
    def pull(self) -> Snapshot:
        """Fetch the current remote snapshot."""

    @abstractmethod
    def get_last_sync(self) -> Optional[datetime]:
        """Time of the last successful push, or None if never synced."""

    @abstractmethod
    def resolve_conflict(self, item: ConflictItem, resolution: Resolution) -> None:
        """Record how a conflict was settled."""

    def close(self) -> None:
        """Release backend resources."""


class InMemorySyncService(SyncService):
    """
    Sync backend held in process memory.

    Useful as an offline backend and as a test double. Snapshots are copied
    on the way in and out so callers never share state with the store.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._lock = threading.Lock()
        self._snapshot = copy.deepcopy(snapshot)
        self._last_sync: Optional[datetime] = None
        self.resolutions: list[tuple[ConflictItem, Resolution]] = []
        self.push_count = 0
        self.pull_count = 0

    @property
    def snapshot(self) -> Optional[Snapshot]:
        """Currently stored remote snapshot (a copy)."""
        with self._lock:
            return copy.deepcopy(self._snapshot)

    def push(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshot = copy.deepcopy(snapshot)
            self._last_sync = utcnow()
            self.push_count += 1

    def pull(self) -> Snapshot:
        with self._lock:
            self.pull_count += 1
            if self._snapshot is None:
                return Snapshot.empty()
            return copy.deepcopy(self._snapshot)

    def get_last_sync(self) -> Optional[datetime]:
        with self._lock:
            return self._last_sync

    def resolve_conflict(self, item: ConflictItem, resolution: Resolution) -> None:
        with self._lock:
            self.resolutions.append((item, resolution))
