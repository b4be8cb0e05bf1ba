# cheatsync Sync Errors
# Exception hierarchy for sync cycles, backends and local storage

from typing import Optional


class SyncError(Exception):
    """Base class for all sync failures."""


class SyncInProgressError(SyncError):
    """Raised when a sync is requested while another cycle is running."""

    def __init__(self, message: str = "sync already in progress"):
        super().__init__(message)


class SyncServiceError(SyncError):
    """
    Transport or backend failure.

    Carries the HTTP status code and response body when the backend answered.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LocalStoreError(SyncError):
    """Failure reading or writing local collection files."""


class ChecksumError(SyncError):
    """A snapshot could not be serialized for checksumming."""


class ConflictNotFoundError(SyncError, KeyError):
    """No pending conflict exists for the requested item ID."""

    def __init__(self, item_id: str):
        super().__init__(f"conflict not found: {item_id}")
        self.item_id = item_id

    def __str__(self) -> str:
        return f"conflict not found: {self.item_id}"


class SchedulerError(SyncError):
    """Invalid auto-sync state transition."""
