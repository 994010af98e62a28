import os
import signal

import pytest

from backup_archiver.core.errors import PersistenceError
from backup_archiver.core.models import CheckResult, PathError
from backup_archiver.core.monitor import Monitor
from backup_archiver.core.scheduler import Scheduler
from backup_archiver.storage.record_store import PathRecordStore
from tests.conftest import list_files, write_tree


class ScriptedMonitor:
    """Returns queued results and can run a callback during a check."""

    def __init__(self, results, during_check=None):
        self.results = list(results)
        self.during_check = during_check
        self.calls = 0

    def check(self):
        self.calls += 1
        if self.during_check:
            self.during_check(self.calls)
        if self.results:
            return self.results.pop(0)
        return CheckResult()


class FailingStore:
    def __init__(self):
        self.saved = []

    def save(self, hashes):
        self.saved.append(hashes)
        raise PersistenceError("disk full")


def test_run_once_persists_changes(tmp_path):
    source = write_tree(tmp_path / "docs", {"a.txt": "a"})
    store = PathRecordStore(str(tmp_path / "db"))
    store.add(str(source))
    monitor = Monitor(str(tmp_path / "archive"), store.load())
    scheduler = Scheduler(monitor, store, interval=5)

    result = scheduler.run_once()

    assert result.changed_count == 1
    assert store.load() == result.updated_hashes
    assert store.load()[str(source)] != ""


def test_run_once_logs_errors_and_survives_save_failure(caplog):
    result = CheckResult(
        changed_count=1,
        updated_hashes={"/a": "h"},
        errors=[PathError(path="/b", kind="NotFound", message="Path does not exist: /b")],
    )
    store = FailingStore()
    scheduler = Scheduler(ScriptedMonitor([result]), store, interval=5)

    with caplog.at_level("INFO"):
        returned = scheduler.run_once()

    assert returned is result
    assert store.saved == [{"/a": "h"}]
    assert "NotFound" in caplog.text
    assert "failed to save path records" in caplog.text


def test_run_once_without_changes_skips_save():
    store = FailingStore()
    scheduler = Scheduler(ScriptedMonitor([CheckResult()]), store, interval=5)

    scheduler.run_once()

    assert store.saved == []


def test_run_checks_immediately_and_stops_after_inflight_check():
    scheduler = None

    def during_check(calls):
        if calls == 3:
            scheduler.request_stop()

    monitor = ScriptedMonitor([], during_check=during_check)
    scheduler = Scheduler(monitor, FailingStore(), interval=0.01)

    scheduler.run()

    assert monitor.calls == 3
    assert scheduler.stopped


def test_stop_before_run_still_performs_initial_check():
    monitor = ScriptedMonitor([])
    scheduler = Scheduler(monitor, FailingStore(), interval=60)
    scheduler.request_stop()

    scheduler.run()

    assert monitor.calls == 1


def test_signal_requests_stop():
    scheduler = Scheduler(ScriptedMonitor([]), FailingStore(), interval=60)
    previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        scheduler.install_signal_handlers()
        os.kill(os.getpid(), signal.SIGTERM)
        scheduler._stop.wait(1)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    assert scheduler.stopped


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Scheduler(ScriptedMonitor([]), FailingStore(), interval=0)


def test_path_removed_mid_run_is_archived_once_per_change(tmp_path):
    source = write_tree(tmp_path / "docs", {"a.txt": "a"})
    store = PathRecordStore(str(tmp_path / "db"))
    store.add(str(source))
    archive = tmp_path / "archive"
    monitor = Monitor(str(archive), store.load(), commit=store.update_hash)
    scheduler = Scheduler(monitor, store, interval=5)
    scheduler.run_once()

    store.remove(str(source))
    (source / "a.txt").write_text("edited")
    results = [scheduler.run_once() for _ in range(3)]

    assert [result.changed_count for result in results] == [1, 0, 0]
    assert all(not result.errors for result in results)
    assert len(list_files(archive)) == 2
    assert store.load() == {}
