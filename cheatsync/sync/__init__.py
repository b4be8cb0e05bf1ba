# cheatsync Sync Module
# Snapshots, conflict handling, backends and the sync manager

from cheatsync.sync.checksum import calculate_checksum, verify_checksum, with_checksum
from cheatsync.sync.conflicts import (
    ConflictItem,
    ItemType,
    Resolution,
    auto_resolve,
    detect_conflicts,
    determine_auto_resolution,
    resolve_conflict,
)
from cheatsync.sync.errors import (
    ChecksumError,
    ConflictNotFoundError,
    LocalStoreError,
    SchedulerError,
    SyncError,
    SyncInProgressError,
    SyncServiceError,
)
from cheatsync.sync.http_service import HttpSyncService
from cheatsync.sync.identity import get_or_create_device_id
from cheatsync.sync.manager import SyncManager, SyncResult, SyncStatus
from cheatsync.sync.scheduler import AutoSyncScheduler, SchedulerState
from cheatsync.sync.service import InMemorySyncService, SyncService
from cheatsync.sync.snapshot import App, CheatSheet, Note, Shortcut, Snapshot
from cheatsync.sync.state import StateManager, SyncState
from cheatsync.sync.store import LocalStore

__all__ = [
    # Model
    "Snapshot",
    "Note",
    "App",
    "Shortcut",
    "CheatSheet",
    # Identity and checksums
    "get_or_create_device_id",
    "calculate_checksum",
    "with_checksum",
    "verify_checksum",
    # Conflicts
    "ConflictItem",
    "ItemType",
    "Resolution",
    "detect_conflicts",
    "resolve_conflict",
    "determine_auto_resolution",
    "auto_resolve",
    # Backends
    "SyncService",
    "InMemorySyncService",
    "HttpSyncService",
    # Storage and state
    "LocalStore",
    "SyncState",
    "StateManager",
    # Manager
    "SyncManager",
    "SyncResult",
    "SyncStatus",
    "AutoSyncScheduler",
    "SchedulerState",
    # Errors
    "SyncError",
    "SyncInProgressError",
    "SyncServiceError",
    "LocalStoreError",
    "ChecksumError",
    "ConflictNotFoundError",
    "SchedulerError",
]
