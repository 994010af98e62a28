"""Data models for backup archiving."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class MonitoredPath:
    """A directory registered for change tracking."""
    path: str
    last_hash: str = ""


@dataclass(frozen=True)
class ArchiveRecord:
    """A single archive produced for a changed directory."""
    source_path: str
    destination_file: str
    created_at: datetime
    archive_format: str
    size: int = 0


@dataclass
class PathError:
    """A failure captured for one monitored path during a check."""
    path: str
    kind: str
    message: str
    error: Optional[Exception] = None

    def __str__(self) -> str:
        return f"{self.path}: [{self.kind}] {self.message}"


@dataclass
class CheckResult:
    """Outcome of one check cycle."""
    changed_count: int = 0
    updated_hashes: Dict[str, str] = field(default_factory=dict)
    errors: List[PathError] = field(default_factory=list)
    archives: List[ArchiveRecord] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
