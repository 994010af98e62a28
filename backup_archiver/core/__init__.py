"""Core change detection and archival functionality."""

from .errors import (
    BackupError,
    NotFoundError,
    PermissionDeniedError,
    HashComputationError,
    ArchiveWriteError,
    PersistenceError,
    StoreError,
    ConfigurationError,
)
from .models import MonitoredPath, ArchiveRecord, PathError, CheckResult
from .hasher import DirectoryHasher
from .archiver import Archiver, ZipArchiver, get_archiver
from .monitor import Monitor
from .scheduler import Scheduler

__all__ = [
    "BackupError", "NotFoundError", "PermissionDeniedError", "HashComputationError",
    "ArchiveWriteError", "PersistenceError", "StoreError", "ConfigurationError",
    "MonitoredPath", "ArchiveRecord", "PathError", "CheckResult",
    "DirectoryHasher", "Archiver", "ZipArchiver", "get_archiver",
    "Monitor", "Scheduler",
]
