"""cheatsync - cross-device sync for cheat sheet notes, app definitions and cheat sheets.

Reconciles a local data directory with a remote sync backend, detecting
per-item conflicts and resolving them by last-writer-wins or on request.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "SyncManager",
    "SyncStatus",
    "SyncResult",
    "SyncService",
    "HttpSyncService",
    "InMemorySyncService",
    "Snapshot",
    "Resolution",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("SyncManager", "SyncStatus", "SyncResult"):
        from cheatsync.sync import manager

        return getattr(manager, name)
    if name in ("SyncService", "InMemorySyncService"):
        from cheatsync.sync import service

        return getattr(service, name)
    if name == "HttpSyncService":
        from cheatsync.sync.http_service import HttpSyncService

        return HttpSyncService
    if name == "Snapshot":
        from cheatsync.sync.snapshot import Snapshot

        return Snapshot
    if name == "Resolution":
        from cheatsync.sync.conflicts import Resolution

        return Resolution
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
