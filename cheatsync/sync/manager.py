# cheatsync Sync Manager
# Runs sync cycles end to end and owns the single-cycle guarantee

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from cheatsync.config.schema import MergeMode
from cheatsync.sync.checksum import with_checksum
from cheatsync.sync.conflicts import (
    ConflictItem,
    ItemType,
    Resolution,
    SyncValue,
    auto_resolve,
    detect_conflicts,
    resolve_conflict,
)
from cheatsync.sync.errors import ConflictNotFoundError, SyncInProgressError
from cheatsync.sync.identity import get_or_create_device_id
from cheatsync.sync.scheduler import AutoSyncScheduler
from cheatsync.sync.service import SyncService
from cheatsync.sync.snapshot import SNAPSHOT_VERSION, Snapshot, utcnow
from cheatsync.sync.state import StateManager, SyncState
from cheatsync.sync.store import LocalStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncStatus:
    """Read-only view of a manager's sync state."""

    last_sync: Optional[datetime]
    is_syncing: bool
    conflicts: tuple[ConflictItem, ...]
    device_id: str

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0


@dataclass
class SyncResult:
    """Outcome of one completed sync cycle."""

    checksum: str
    source: str
    conflicts: list[ConflictItem] = field(default_factory=list)
    resolutions: list[tuple[ConflictItem, Resolution]] = field(default_factory=list)
    apps: int = 0
    notes: int = 0
    cheat_sheets: int = 0

    @property
    def total_items(self) -> int:
        return self.apps + self.notes + self.cheat_sheets


class SyncManager:
    """
    Reconciles the local store with a sync backend.

    Only one cycle runs at a time per manager: a second ``sync`` call while
    one is in flight fails immediately with ``SyncInProgressError``. Local
    files change only after the merged snapshot was pushed successfully.
    """

    def __init__(
        self,
        service: SyncService,
        data_dir: Path,
        *,
        merge_mode: MergeMode | str = MergeMode.SNAPSHOT,
        store: Optional[LocalStore] = None,
        state_manager: Optional[StateManager] = None,
    ):
        """
        Initialize sync manager.

        Args:
            service: Backend holding the remote replica.
            data_dir: Local data directory.
            merge_mode: How pulled and local snapshots are combined.
            store: Local collection store (defaults to files in data_dir).
            state_manager: Sync state persistence (defaults to data_dir).

        Raises:
            OSError: If the device identity cannot be read or created.
        """
        self.service = service
        self.data_dir = data_dir
        self.merge_mode = MergeMode(merge_mode)
        self.store = store or LocalStore(data_dir)
        self.state_manager = state_manager or StateManager.for_data_dir(data_dir)
        self.device_id = get_or_create_device_id(data_dir)

        state = self.state_manager.load()
        self._lock = threading.Lock()
        self._is_syncing = False
        self._last_sync: Optional[datetime] = state.last_sync
        self._conflicts: list[ConflictItem] = list(state.conflicts)
        self._scheduler = AutoSyncScheduler(self.sync)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_status(self) -> SyncStatus:
        """Return a snapshot of the current sync status."""
        with self._lock:
            return SyncStatus(
                last_sync=self._last_sync,
                is_syncing=self._is_syncing,
                conflicts=tuple(self._conflicts),
                device_id=self.device_id,
            )

    def get_remote_last_sync(self) -> Optional[datetime]:
        """Ask the backend when it last received a snapshot."""
        return self.service.get_last_sync()

    def _save_state(self) -> None:
        # Caller holds self._lock
        self.state_manager.save(SyncState(last_sync=self._last_sync, conflicts=list(self._conflicts)))

    # -------------------------------------------------------------------------
    # Sync cycle
    # -------------------------------------------------------------------------

    def sync(self) -> SyncResult:
        """
        Run one full sync cycle.

        Returns:
            SyncResult describing what was merged.

        Raises:
            SyncInProgressError: If another cycle is running.
            SyncServiceError: If pull, push or a conflict report fails.
            LocalStoreError: If local collections cannot be read or written.
            ChecksumError: If a snapshot cannot be serialized.
        """
        with self._lock:
            if self._is_syncing:
                raise SyncInProgressError()
            self._is_syncing = True

        try:
            return self._run_cycle()
        finally:
            with self._lock:
                self._is_syncing = False

    def _run_cycle(self) -> SyncResult:
        local = self.gather_local_snapshot()
        logger.debug("Gathered local snapshot %s", local.checksum[:12])

        remote = self.service.pull()
        logger.debug("Pulled remote snapshot from %s", remote.device_id or "empty backend")

        conflicts = detect_conflicts(local, remote)
        resolutions: list[tuple[ConflictItem, Resolution]] = []
        if conflicts:
            logger.info("Detected %d conflict(s)", len(conflicts))
            self._record_conflicts(conflicts)
            resolutions = auto_resolve(conflicts)
            for conflict, resolution in resolutions:
                self.service.resolve_conflict(conflict, resolution)
                logger.debug("Resolved %s %s: %s", conflict.type.value, conflict.id, resolution.value)

        merged, source = self.merge_snapshots(local, remote, resolutions)
        with_checksum(merged)

        self.service.push(merged)
        self.store.save_snapshot(merged)

        with self._lock:
            self._last_sync = utcnow()
            self._conflicts = []
            self._save_state()

        logger.info("Sync complete (%s)", merged.checksum[:12])
        return SyncResult(
            checksum=merged.checksum,
            source=source,
            conflicts=conflicts,
            resolutions=resolutions,
            apps=len(merged.apps),
            notes=len(merged.notes),
            cheat_sheets=len(merged.cheat_sheets),
        )

    def _record_conflicts(self, conflicts: list[ConflictItem]) -> None:
        detected = {(c.type, c.id) for c in conflicts}
        with self._lock:
            kept = [c for c in self._conflicts if (c.type, c.id) not in detected]
            self._conflicts = kept + list(conflicts)
            self._save_state()

    def gather_local_snapshot(self) -> Snapshot:
        """Build a fresh, checksummed snapshot of the local collections."""
        snapshot = Snapshot(version=SNAPSHOT_VERSION, timestamp=utcnow(), device_id=self.device_id)
        self.store.load_into(snapshot)
        return with_checksum(snapshot)

    def merge_snapshots(
        self,
        local: Snapshot,
        remote: Optional[Snapshot],
        resolutions: list[tuple[ConflictItem, Resolution]] | None = None,
    ) -> tuple[Snapshot, str]:
        """
        Combine local and remote snapshots.

        In snapshot mode the collections come wholesale from the local
        snapshot unless the remote one was captured later. In item mode the
        collections are unioned by key and conflicting items take the value
        chosen by their resolution.

        Returns:
            Tuple of (merged snapshot without checksum, source label).
        """
        merged = Snapshot(version=SNAPSHOT_VERSION, timestamp=utcnow(), device_id=self.device_id)

        if self.merge_mode == MergeMode.ITEM:
            chosen: dict[tuple[ItemType, str], Optional[SyncValue]] = {
                (conflict.type, conflict.id): resolve_conflict(conflict, resolution)
                for conflict, resolution in resolutions or []
            }
            remote = remote or Snapshot.empty()
            merged.apps = _union(local.apps, remote.apps, {})
            merged.notes = _union(
                local.notes,
                remote.notes,
                {key: value for (kind, key), value in chosen.items() if kind == ItemType.NOTE},
            )
            merged.cheat_sheets = _union(
                local.cheat_sheets,
                remote.cheat_sheets,
                {key: value for (kind, key), value in chosen.items() if kind == ItemType.CHEAT_SHEET},
            )
            return merged, "item"

        source = local
        if remote is not None and remote.timestamp is not None and local.timestamp is not None:
            if remote.timestamp > local.timestamp:
                source = remote

        merged.apps = list(source.apps)
        merged.notes = list(source.notes)
        merged.cheat_sheets = list(source.cheat_sheets)
        return merged, "remote" if source is remote else "local"

    # -------------------------------------------------------------------------
    # User-driven resolution
    # -------------------------------------------------------------------------

    def resolve_conflict(
        self,
        item_id: str,
        resolution: Resolution | str,
        item_type: Optional[ItemType] = None,
    ) -> Optional[SyncValue]:
        """
        Settle one pending conflict with a user-chosen policy.

        The decision is reported to the backend first. On success a
        ``keep_remote`` or ``merge`` result is written to the local store and
        the conflict leaves the pending list. ``skip`` keeps it pending.

        Args:
            item_id: ID of the conflicting item.
            resolution: Policy to apply.
            item_type: Disambiguates a note and a cheat sheet sharing an ID.

        Returns:
            The surviving value, or None for ``skip``.

        Raises:
            ConflictNotFoundError: If no pending conflict has this ID.
        """
        resolution = Resolution(resolution)

        with self._lock:
            conflict = next(
                (
                    c
                    for c in self._conflicts
                    if c.id == item_id and (item_type is None or c.type == item_type)
                ),
                None,
            )
            if conflict is None:
                raise ConflictNotFoundError(item_id)

        # Backend and store I/O must not hold the lock
        self.service.resolve_conflict(conflict, resolution)

        value = resolve_conflict(conflict, resolution)
        if resolution in (Resolution.KEEP_REMOTE, Resolution.MERGE) and value is not None:
            self.store.put_item(value)

        if resolution != Resolution.SKIP:
            with self._lock:
                self._conflicts = [c for c in self._conflicts if c is not conflict]
                self._save_state()

        logger.info("Conflict %s resolved: %s", item_id, resolution.value)
        return value

    # -------------------------------------------------------------------------
    # Background sync
    # -------------------------------------------------------------------------

    @property
    def scheduler(self) -> AutoSyncScheduler:
        return self._scheduler

    def start_auto_sync(self, interval: Optional[float] = None) -> None:
        """Start periodic background sync; ``interval`` in seconds (default 15 minutes)."""
        self._scheduler.start(interval)

    def stop_auto_sync(self, timeout: Optional[float] = None) -> bool:
        """Stop periodic background sync. Safe to call when not running."""
        return self._scheduler.stop(timeout)


def _union(local: list, remote: list, overrides: dict) -> list:
    """Local items first (with overrides applied), then items only the remote has."""
    result = []
    seen = set()
    for item in local:
        replacement = overrides.get(item.key)
        result.append(replacement if replacement is not None else item)
        seen.add(item.key)
    for item in remote:
        if item.key not in seen:
            result.append(item)
            seen.add(item.key)
    return result
