# cheatsync Auto-Sync Scheduler
# One background worker running sync cycles at a fixed interval

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Optional

from cheatsync.sync.errors import SchedulerError, SyncError, SyncInProgressError

DEFAULT_INTERVAL = 15 * 60.0

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle of the scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"


class AutoSyncScheduler:
    """
    Calls a sync function once per interval on a dedicated worker thread.

    Every ``start`` gets a fresh stop event and worker, so the scheduler can
    be stopped and started again. A tick that finds a cycle already running
    is dropped, not queued; the next attempt happens on the following tick.
    """

    def __init__(self, sync: Callable[[], Any], *, name: str = "cheatsync-autosync"):
        """
        Initialize scheduler.

        Args:
            sync: Function running one sync cycle.
            name: Worker thread name.
        """
        self._sync = sync
        self._name = name
        self._lock = threading.Lock()
        self._state = SchedulerState.STOPPED
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.interval = DEFAULT_INTERVAL
        self.completed_ticks = 0
        self.dropped_ticks = 0
        self.failed_ticks = 0

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state == SchedulerState.RUNNING

    def start(self, interval: Optional[float] = None) -> None:
        """
        Start the background worker.

        Args:
            interval: Seconds between ticks (default 15 minutes).

        Raises:
            SchedulerError: If already running or the previous worker is still exiting.
            ValueError: If interval is not positive.
        """
        if interval is not None and interval <= 0:
            raise ValueError(f"Sync interval must be positive, got {interval}")

        with self._lock:
            if self._state == SchedulerState.RUNNING:
                raise SchedulerError("auto-sync already running")
            if self._thread is not None and self._thread.is_alive():
                raise SchedulerError("previous auto-sync worker has not exited yet")

            self.interval = interval if interval is not None else DEFAULT_INTERVAL
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event, self.interval),
                name=self._name,
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            self._state = SchedulerState.RUNNING
            thread.start()

        logger.info("Auto-sync started (every %.0fs)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Stop the background worker and wait for it to exit.

        A cycle already in flight runs to completion first. Stopping a
        stopped scheduler does nothing.

        Args:
            timeout: Maximum seconds to wait for the worker.

        Returns:
            True if a running worker was stopped and has exited. False when
            already stopped or when the worker outlived ``timeout``.
        """
        with self._lock:
            if self._state == SchedulerState.STOPPED:
                return False
            stop_event, thread = self._stop_event, self._thread
            self._stop_event = None
            self._state = SchedulerState.STOPPED

        stop_event.set()
        if thread is threading.current_thread():
            return True

        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Auto-sync worker still busy after %.1fs", timeout)
            return False
        logger.info("Auto-sync stopped")
        return True

    def _run(self, stop_event: threading.Event, interval: float) -> None:
        while not stop_event.wait(interval):
            self.tick()

    def tick(self) -> None:
        """Run one scheduled sync attempt."""
        try:
            self._sync()
        except SyncInProgressError:
            with self._lock:
                self.dropped_ticks += 1
            logger.debug("Auto-sync tick dropped: a sync is already in progress")
        except (SyncError, OSError) as e:
            with self._lock:
                self.failed_ticks += 1
            logger.warning("Auto-sync failed: %s", e)
        except Exception:
            with self._lock:
                self.failed_ticks += 1
            logger.exception("Auto-sync failed unexpectedly")
        else:
            with self._lock:
                self.completed_ticks += 1
