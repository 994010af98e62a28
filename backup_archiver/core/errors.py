"""Exception types raised by the backup archiver."""


class BackupError(Exception):
    """Base class for all backup archiver errors."""

    kind = "BackupError"

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class NotFoundError(BackupError):
    """A monitored path does not exist."""

    kind = "NotFound"


class PermissionDeniedError(BackupError):
    """An entry below a monitored path could not be read."""

    kind = "PermissionDenied"


class HashComputationError(BackupError):
    """Generic I/O failure while traversing or reading a tree."""

    kind = "HashComputationFailed"


class ArchiveWriteError(BackupError):
    """An archive could not be written to the destination."""

    kind = "ArchiveWriteFailed"


class PersistenceError(BackupError):
    """A new hash could not be recorded durably."""

    kind = "PersistenceFailed"


class StoreError(BackupError):
    """The path record store is unreadable or corrupt."""

    kind = "StoreError"


class ConfigurationError(BackupError):
    """Invalid configuration detected before the check loop starts."""

    kind = "ConfigurationError"
