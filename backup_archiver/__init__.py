"""
Backup Archiver - watches directories and archives them when they change.

This package hashes monitored directory trees on an interval and writes a
compressed archive of every directory whose content changed since the last check.
"""

__version__ = "1.0.0"

from .core.monitor import Monitor
from .core.hasher import DirectoryHasher
from .core.archiver import ZipArchiver
from .storage.record_store import PathRecordStore

__all__ = ["Monitor", "DirectoryHasher", "ZipArchiver", "PathRecordStore"]
