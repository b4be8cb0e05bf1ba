# cheatsync Sync Manager Tests
# Tests for sync cycles, mutual exclusion and user resolution

import threading
import time
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from cheatsync.config.schema import MergeMode
from cheatsync.sync.checksum import verify_checksum
from cheatsync.sync.conflicts import ItemType, Resolution
from cheatsync.sync.errors import ConflictNotFoundError, SyncInProgressError, SyncServiceError
from cheatsync.sync.identity import DEVICE_ID_FILE
from cheatsync.sync.manager import SyncManager
from cheatsync.sync.service import InMemorySyncService
from cheatsync.sync.snapshot import Snapshot
from cheatsync.sync.store import LocalStore


class BlockingService(InMemorySyncService):
    """In-memory backend whose pull waits until released."""

    def __init__(self, snapshot=None):
        super().__init__(snapshot)
        self.entered = threading.Event()
        self.release = threading.Event()

    def pull(self) -> Snapshot:
        self.entered.set()
        self.release.wait(5)
        return super().pull()


class FailingPushService(InMemorySyncService):
    """In-memory backend rejecting every push."""

    def push(self, snapshot: Snapshot) -> None:
        raise SyncServiceError("push failed (500): disk full", status_code=500, body="disk full")


def _remote(*notes, cheat_sheets=(), timestamp=None) -> Snapshot:
    return Snapshot(timestamp=timestamp, device_id="b" * 32, notes=list(notes), cheat_sheets=list(cheat_sheets))


@pytest.fixture
def store(data_dir: Path) -> LocalStore:
    return LocalStore(data_dir)


class TestSyncCycle:
    """Tests for a full sync cycle."""

    def test_first_sync_against_empty_backend(self, data_dir: Path, store: LocalStore, make_note):
        store.save_notes([make_note("n1", "hello")])
        service = InMemorySyncService()
        manager = SyncManager(service, data_dir)

        result = manager.sync()

        pushed = service.snapshot
        assert [n.id for n in pushed.notes] == ["n1"]
        assert pushed.device_id == manager.device_id
        assert pushed.checksum == result.checksum
        assert verify_checksum(pushed)
        assert result.conflicts == []
        assert manager.get_status().last_sync is not None

    def test_conflict_kept_local_when_newer(self, data_dir: Path, store: LocalStore, make_note, t0: datetime):
        store.save_notes([make_note("N", "A", updated_at=t0)])
        service = InMemorySyncService(_remote(make_note("N", "B", updated_at=t0 - timedelta(hours=1))))
        manager = SyncManager(service, data_dir)

        result = manager.sync()

        assert [c.id for c in result.conflicts] == ["N"]
        assert [r for _, r in result.resolutions] == [Resolution.KEEP_LOCAL]
        assert [r for _, r in service.resolutions] == [Resolution.KEEP_LOCAL]
        assert manager.get_status().conflicts == ()
        assert [n.content for n in store.load_notes()] == ["A"]
        assert [n.content for n in service.snapshot.notes] == ["A"]

    def test_push_failure_leaves_local_files(self, data_dir: Path, store: LocalStore, make_note, t0: datetime):
        store.save_notes([make_note("n1", "local")])
        before = (data_dir / "notes.json").read_text()
        service = FailingPushService(
            _remote(make_note("n2", "remote"), timestamp=t0 + timedelta(days=365 * 100))
        )
        manager = SyncManager(service, data_dir)

        with pytest.raises(SyncServiceError, match="disk full"):
            manager.sync()

        assert (data_dir / "notes.json").read_text() == before
        assert not (data_dir / "apps.json").exists()
        status = manager.get_status()
        assert status.last_sync is None
        assert status.is_syncing is False

    def test_conflicts_pending_after_failed_cycle(self, data_dir: Path, store: LocalStore, make_note, t0: datetime):
        store.save_notes([make_note("n1", "A")])
        service = FailingPushService(_remote(make_note("n1", "B", updated_at=t0 + timedelta(hours=1))))
        manager = SyncManager(service, data_dir)

        with pytest.raises(SyncServiceError):
            manager.sync()

        assert [c.id for c in manager.get_status().conflicts] == ["n1"]

    def test_device_id_persisted(self, data_dir: Path):
        first = SyncManager(InMemorySyncService(), data_dir)
        second = SyncManager(InMemorySyncService(), data_dir)

        assert first.device_id == second.device_id
        assert (data_dir / DEVICE_ID_FILE).read_text() == first.device_id

    def test_last_sync_persisted(self, data_dir: Path):
        SyncManager(InMemorySyncService(), data_dir).sync()

        reopened = SyncManager(InMemorySyncService(), data_dir)

        assert reopened.get_status().last_sync is not None


class TestMutualExclusion:
    """Tests for the single-cycle guarantee."""

    def test_second_sync_rejected(self, data_dir: Path):
        service = BlockingService()
        manager = SyncManager(service, data_dir)
        results = []

        worker = threading.Thread(target=lambda: results.append(manager.sync()))
        worker.start()
        assert service.entered.wait(5)

        assert manager.get_status().is_syncing is True
        with pytest.raises(SyncInProgressError):
            manager.sync()

        service.release.set()
        worker.join(5)

        assert len(results) == 1
        assert service.pull_count == 1
        assert service.push_count == 1
        assert manager.get_status().is_syncing is False

    def test_sync_allowed_after_previous_finished(self, data_dir: Path):
        service = InMemorySyncService()
        manager = SyncManager(service, data_dir)

        manager.sync()
        manager.sync()

        assert service.push_count == 2

    def test_flag_cleared_after_failure(self, data_dir: Path):
        manager = SyncManager(FailingPushService(), data_dir)

        with pytest.raises(SyncServiceError):
            manager.sync()

        assert manager.get_status().is_syncing is False


class TestMergeModes:
    """Tests for combining local and remote snapshots."""

    def test_snapshot_mode_prefers_later_snapshot(self, data_dir: Path, make_note, t0: datetime):
        manager = SyncManager(InMemorySyncService(), data_dir)
        local = Snapshot(timestamp=t0, notes=[make_note("local")])
        remote = _remote(make_note("remote"), timestamp=t0 + timedelta(seconds=1))

        merged, source = manager.merge_snapshots(local, remote)

        assert source == "remote"
        assert [n.id for n in merged.notes] == ["remote"]
        assert merged.device_id == manager.device_id

    def test_snapshot_mode_keeps_local_on_tie(self, data_dir: Path, make_note, t0: datetime):
        manager = SyncManager(InMemorySyncService(), data_dir)
        local = Snapshot(timestamp=t0, notes=[make_note("local")])
        remote = _remote(make_note("remote"), timestamp=t0)

        merged, source = manager.merge_snapshots(local, remote)

        assert source == "local"
        assert [n.id for n in merged.notes] == ["local"]

    def test_snapshot_mode_empty_remote(self, data_dir: Path, make_note, t0: datetime):
        manager = SyncManager(InMemorySyncService(), data_dir)
        local = Snapshot(timestamp=t0, notes=[make_note("local")])

        merged, source = manager.merge_snapshots(local, Snapshot.empty())

        assert source == "local"
        assert [n.id for n in merged.notes] == ["local"]

    def test_item_mode_unions_and_resolves(self, data_dir: Path, store: LocalStore, make_note, t0: datetime):
        store.save_notes([make_note("shared", "A", updated_at=t0), make_note("mine")])
        service = InMemorySyncService(
            _remote(
                make_note("shared", "B", updated_at=t0 + timedelta(hours=1)),
                make_note("theirs"),
                timestamp=t0,
            )
        )
        manager = SyncManager(service, data_dir, merge_mode=MergeMode.ITEM)

        result = manager.sync()

        notes = {n.id: n.content for n in store.load_notes()}
        assert notes == {"shared": "B", "mine": "content", "theirs": "content"}
        assert result.source == "item"
        assert [r for _, r in result.resolutions] == [Resolution.KEEP_REMOTE]

    def test_item_mode_accepts_string(self, data_dir: Path):
        manager = SyncManager(InMemorySyncService(), data_dir, merge_mode="item")
        assert manager.merge_mode == MergeMode.ITEM


class TestResolveConflict:
    """Tests for user-driven resolution."""

    @pytest.fixture
    def manager(self, data_dir: Path, store: LocalStore, make_note, t0: datetime) -> SyncManager:
        store.save_notes([make_note("n1", "A", tags=["mine"])])
        service = FailingPushService(
            _remote(make_note("n1", "B", tags=["theirs"], updated_at=t0 + timedelta(hours=1)))
        )
        manager = SyncManager(service, data_dir)
        with pytest.raises(SyncServiceError):
            manager.sync()
        return manager

    def test_unknown_id(self, manager: SyncManager):
        before = manager.get_status().conflicts

        with pytest.raises(ConflictNotFoundError) as exc_info:
            manager.resolve_conflict("missing", Resolution.KEEP_LOCAL)

        assert str(exc_info.value) == "conflict not found: missing"
        assert manager.get_status().conflicts == before

    def test_keep_local(self, manager: SyncManager, store: LocalStore):
        value = manager.resolve_conflict("n1", Resolution.KEEP_LOCAL)

        assert value.content == "A"
        assert manager.get_status().conflicts == ()
        assert [n.content for n in store.load_notes()] == ["A"]
        assert manager.service.resolutions[-1][1] == Resolution.KEEP_LOCAL

    def test_keep_remote_written_locally(self, manager: SyncManager, store: LocalStore):
        manager.resolve_conflict("n1", Resolution.KEEP_REMOTE)

        assert [n.content for n in store.load_notes()] == ["B"]
        assert manager.get_status().conflicts == ()

    def test_merge_written_locally(self, manager: SyncManager, store: LocalStore):
        manager.resolve_conflict("n1", "merge")

        note = store.load_notes()[0]
        assert "--- Remote Version ---" in note.content
        assert note.tags == ["mine", "theirs"]

    def test_skip_stays_pending(self, manager: SyncManager, store: LocalStore):
        value = manager.resolve_conflict("n1", Resolution.SKIP)

        assert value is None
        assert [c.id for c in manager.get_status().conflicts] == ["n1"]
        assert [n.content for n in store.load_notes()] == ["A"]
        assert manager.service.resolutions[-1][1] == Resolution.SKIP

    def test_type_filter(self, manager: SyncManager):
        with pytest.raises(ConflictNotFoundError):
            manager.resolve_conflict("n1", Resolution.KEEP_LOCAL, ItemType.CHEAT_SHEET)

        manager.resolve_conflict("n1", Resolution.KEEP_LOCAL, ItemType.NOTE)
        assert manager.get_status().conflicts == ()

    def test_resolution_persisted(self, manager: SyncManager, data_dir: Path):
        manager.resolve_conflict("n1", Resolution.KEEP_LOCAL)

        reopened = SyncManager(InMemorySyncService(), data_dir)

        assert reopened.get_status().conflicts == ()

    def test_pending_conflicts_survive_restart(self, manager: SyncManager, data_dir: Path):
        reopened = SyncManager(InMemorySyncService(), data_dir)

        assert [c.id for c in reopened.get_status().conflicts] == ["n1"]

    def test_backend_rejection_keeps_conflict(self, manager: SyncManager):
        def reject(item, resolution):
            raise SyncServiceError("resolve failed")

        manager.service.resolve_conflict = reject

        with pytest.raises(SyncServiceError):
            manager.resolve_conflict("n1", Resolution.KEEP_REMOTE)

        assert [c.id for c in manager.get_status().conflicts] == ["n1"]

    def test_slow_backend_does_not_block_status_or_sync(self, manager: SyncManager, store: LocalStore):
        entered = threading.Event()
        release = threading.Event()
        report = manager.service.resolve_conflict
        errors = []

        def slow_report(item, resolution):
            if threading.current_thread() is worker:
                entered.set()
                release.wait(5)
            report(item, resolution)

        def run():
            try:
                manager.resolve_conflict("n1", Resolution.KEEP_REMOTE)
            except Exception as e:
                errors.append(e)

        manager.service.resolve_conflict = slow_report
        worker = threading.Thread(target=run)
        worker.start()
        try:
            assert entered.wait(5)

            started = time.monotonic()
            status = manager.get_status()
            assert time.monotonic() - started < 0.5
            assert [c.id for c in status.conflicts] == ["n1"]

            # The cycle reaches the backend and fails on push, not on the guard
            started = time.monotonic()
            with pytest.raises(SyncServiceError, match="disk full"):
                manager.sync()
            assert time.monotonic() - started < 0.5
        finally:
            release.set()
            worker.join(5)

        assert not worker.is_alive()
        assert errors == []
        assert [n.content for n in store.load_notes()] == ["B"]
        assert (ItemType.NOTE, "n1", Resolution.KEEP_REMOTE) in [
            (c.type, c.id, r) for c, r in manager.service.resolutions
        ]


class TestAutoSyncControls:
    """Tests for starting and stopping background sync through the manager."""

    def test_start_and_stop(self, data_dir: Path):
        service = InMemorySyncService()
        manager = SyncManager(service, data_dir)

        manager.start_auto_sync(0.01)
        assert manager.scheduler.is_running

        assert manager.stop_auto_sync(timeout=5) is True
        assert not manager.scheduler.is_running
        assert manager.stop_auto_sync() is False
