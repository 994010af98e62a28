"""Polling loop driving periodic check cycles."""

import logging
import signal
import threading

from .errors import BackupError
from .models import CheckResult
from .monitor import Monitor
from ..storage.record_store import PathRecordStore


class Scheduler:
    """Runs ``Monitor.check`` on a fixed interval until asked to stop.

    A stop request never interrupts a check in progress; it only prevents
    the next one. Checks have no timeout, so a stalled filesystem read
    blocks the loop.
    """

    def __init__(self, monitor: Monitor, store: PathRecordStore, interval: float):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.monitor = monitor
        self.store = store
        self.interval = interval
        self.logger = logging.getLogger(__name__)
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def request_stop(self):
        """Ask the loop to exit after the current check."""
        self._stop.set()

    def install_signal_handlers(self):
        """Route SIGINT and SIGTERM to ``request_stop``."""
        def _handler(signum, frame):
            self.logger.info(f"Received signal {signum}, stopping after current check")
            self.request_stop()

        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)

    def run_once(self) -> CheckResult:
        """Run one check and persist the resulting hashes."""
        self.logger.info("checking...")
        result = self.monitor.check()

        for error in result.errors:
            self.logger.error(f"failed to back up {error.path} [{error.kind}]: {error.message}")

        if result.changed_count > 0:
            self.logger.info(f"archived {result.changed_count} directories")
            try:
                self.store.save(result.updated_hashes)
            except BackupError as e:
                self.logger.error(f"failed to save path records: {e}")
        else:
            self.logger.info("no change item.")

        return result

    def run(self):
        """Check immediately, then every ``interval`` seconds until stopped."""
        self.run_once()
        while not self._stop.wait(self.interval):
            self.run_once()
        self.logger.info("Terminate...")
