"""Change detection and archival for monitored directories."""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from .archiver import Archiver, ZipArchiver
from .errors import (
    ArchiveWriteError,
    BackupError,
    ConfigurationError,
    HashComputationError,
    PersistenceError,
)
from .hasher import DirectoryHasher
from .models import ArchiveRecord, CheckResult, PathError


CommitHook = Callable[[str, str], None]


@dataclass
class _PathOutcome:
    """What happened to one path before the shared state is touched."""
    path: str
    digest: Optional[str] = None
    archive: Optional[ArchiveRecord] = None
    error: Optional[BackupError] = None


class Monitor:
    """Detects changed directories and archives them.

    The monitor owns the path to last-known-hash mapping for the duration of
    a run. A path's hash only advances after its archive has been written
    (and committed, when a commit hook is given), so any failure leaves the
    path to be retried on the next check.
    """

    def __init__(self, destination: str, paths: Mapping[str, str],
                 archiver: Optional[Archiver] = None,
                 hasher: Optional[DirectoryHasher] = None,
                 max_workers: int = 1,
                 commit: Optional[CommitHook] = None):
        """Initialize monitor.

        Args:
            destination: Directory that receives archives.
            paths: Monitored paths mapped to their last known hash ("" if
                never checked).
            archiver: Archiver to use, ZIP by default.
            hasher: Directory hasher to use.
            max_workers: Number of paths hashed and archived in parallel.
            commit: Called with (path, digest) after a successful archive and
                before the in-memory hash advances. Raising aborts the advance.

        Raises:
            ConfigurationError: If no paths are given, or the destination is
                not a writable directory or lies inside a monitored path.
        """
        if not paths:
            raise ConfigurationError("No paths to monitor. Add a path first.")
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {max_workers}")

        self.destination = destination
        self.archiver = archiver or ZipArchiver()
        self.hasher = hasher or DirectoryHasher()
        self.max_workers = max_workers
        self.commit = commit
        self.logger = logging.getLogger(__name__)

        self._paths: Dict[str, str] = dict(paths)
        self._lock = threading.RLock()

        self._prepare_destination()

    @property
    def paths(self) -> Dict[str, str]:
        """Copy of the current path to hash mapping."""
        with self._lock:
            return dict(self._paths)

    def _prepare_destination(self):
        # Archives written inside a monitored tree would change its hash every cycle.
        destination = os.path.realpath(self.destination)
        for path in self._paths:
            monitored = os.path.realpath(path)
            if os.path.commonpath([destination, monitored]) == monitored:
                raise ConfigurationError(
                    f"Archive destination {self.destination} is inside monitored path {path}",
                    self.destination
                )

        try:
            os.makedirs(self.destination, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create archive destination {self.destination}: {e}", self.destination
            ) from e

        if not os.access(self.destination, os.W_OK | os.X_OK):
            raise ConfigurationError(
                f"Archive destination is not writable: {self.destination}", self.destination
            )

    def check(self) -> CheckResult:
        """Run one check cycle over all monitored paths.

        Never raises for per-path failures; those are returned in
        ``CheckResult.errors`` in path order.
        """
        with self._lock:
            snapshot = list(self._paths.items())
            self.logger.debug(f"Checking {len(snapshot)} paths")

            if self.max_workers > 1 and len(snapshot) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    outcomes = list(pool.map(lambda item: self._process(*item), snapshot))
            else:
                outcomes = [self._process(path, last_hash) for path, last_hash in snapshot]

            result = CheckResult()
            for outcome in outcomes:
                self._apply(outcome, result)

            result.updated_hashes = dict(self._paths)
            return result

    def _process(self, path: str, last_hash: str) -> _PathOutcome:
        """Hash ``path`` and archive it if the digest moved."""
        try:
            digest = self.hasher.hash(path)
        except BackupError as e:
            return _PathOutcome(path=path, error=e)
        except OSError as e:
            error = HashComputationError(f"I/O error under {path}: {e}", path)
            error.__cause__ = e
            return _PathOutcome(path=path, error=error)

        if digest == last_hash:
            return _PathOutcome(path=path, digest=digest)

        try:
            archive = self.archiver.write(path, self.destination)
        except BackupError as e:
            return _PathOutcome(path=path, digest=digest, error=e)
        except OSError as e:
            error = ArchiveWriteError(f"Failed to archive {path}: {e}", path)
            error.__cause__ = e
            return _PathOutcome(path=path, digest=digest, error=error)

        return _PathOutcome(path=path, digest=digest, archive=archive)

    def _apply(self, outcome: _PathOutcome, result: CheckResult):
        path = outcome.path

        if outcome.error is not None:
            self._record_error(result, path, outcome.error)
            return

        if outcome.archive is None:
            return

        result.archives.append(outcome.archive)

        if self.commit is not None:
            try:
                self.commit(path, outcome.digest)
            except Exception as e:
                error = PersistenceError(f"Failed to record new hash for {path}: {e}", path)
                error.__cause__ = e
                self._record_error(result, path, error)
                return

        self._paths[path] = outcome.digest
        result.changed_count += 1

    def _record_error(self, result: CheckResult, path: str, error: BackupError):
        self.logger.debug(f"Check failed for {path}: {error}")
        result.errors.append(PathError(path=path, kind=error.kind, message=str(error), error=error))
