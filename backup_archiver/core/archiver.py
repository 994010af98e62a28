"""Archive writers for changed directories."""

import logging
import os
import tempfile
import threading
import time
import zipfile
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Type

from .errors import ArchiveWriteError, BackupError
from .models import ArchiveRecord
from .walker import iter_tree


# Guards creation and removal of per-source archive directories.
_TARGET_DIR_LOCK = threading.Lock()


class Archiver(ABC):
    """Packages a directory subtree into a single archive file."""

    format_name = ""
    extension = ""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @abstractmethod
    def write(self, source_path: str, destination_dir: str) -> ArchiveRecord:
        """Archive ``source_path`` into a new file under ``destination_dir``.

        Returns:
            ArchiveRecord describing the created file.

        Raises:
            ArchiveWriteError: If the archive could not be written. No file
                is left behind in that case.
        """

    def archive_dir_name(self, source_path: str) -> str:
        """Name of the per-source directory that holds its archives."""
        name = os.path.basename(os.path.normpath(os.path.abspath(source_path)))
        return name or "root"

    def _reserve_name(self, target_dir: str) -> str:
        """Atomically claim an unused ``<time_ns>.<ext>`` file name."""
        stamp = time.time_ns()
        while True:
            candidate = os.path.join(target_dir, f"{stamp}.{self.extension}")
            try:
                fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                stamp += 1
                continue
            os.close(fd)
            return candidate


class ZipArchiver(Archiver):
    """Writes DEFLATE-compressed ZIP archives.

    The archive is built in a hidden ``.partial`` file next to its final
    location and renamed into place only once every entry has been written.
    On failure the partial file is removed, so a ``.zip`` in the destination
    is always complete.
    """

    format_name = "zip"
    extension = "zip"

    def __init__(self, compression_level: int = 6):
        """Initialize ZIP archiver.

        Args:
            compression_level: DEFLATE level from 0 (store) to 9 (best).
        """
        super().__init__()
        if not 0 <= compression_level <= 9:
            raise ValueError(f"Invalid ZIP compression level: {compression_level}")
        self.compression_level = compression_level

    def write(self, source_path: str, destination_dir: str) -> ArchiveRecord:
        target_dir = os.path.join(destination_dir, self.archive_dir_name(source_path))

        temp_path = None
        final_path = None
        created_dir = False
        try:
            # The temp file keeps the directory non-empty for a concurrent cleanup.
            with _TARGET_DIR_LOCK:
                created_dir = not os.path.isdir(target_dir)
                os.makedirs(target_dir, exist_ok=True)
                fd, temp_path = tempfile.mkstemp(prefix=".", suffix=".partial", dir=target_dir)
            os.close(fd)

            entry_count = self._write_entries(source_path, temp_path)

            final_path = self._reserve_name(target_dir)
            os.replace(temp_path, final_path)
            temp_path = None
            size = os.path.getsize(final_path)
        except (OSError, ValueError, zipfile.LargeZipFile, BackupError) as e:
            self._cleanup(temp_path, final_path, target_dir if created_dir else None)
            raise ArchiveWriteError(f"Failed to archive {source_path}: {e}", source_path) from e

        self.logger.info(f"Archived {source_path} ({entry_count} entries) to {final_path}")
        return ArchiveRecord(
            source_path=source_path,
            destination_file=final_path,
            created_at=datetime.now(),
            archive_format=self.format_name,
            size=size,
        )

    def _write_entries(self, source_path: str, archive_path: str) -> int:
        entries = iter_tree(source_path)
        with zipfile.ZipFile(
            archive_path,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
            strict_timestamps=False,
        ) as zf:
            for entry in entries:
                # Directories get their own entries so empty ones survive.
                zf.write(entry.absolute_path, self.entry_name(entry.relative_path))
        return len(entries)

    @staticmethod
    def entry_name(relative_path: str) -> str:
        """ZIP member name for ``relative_path``.

        ZIP names are UTF-8. Undecodable bytes in a file name are replaced
        with U+FFFD.
        """
        return os.fsencode(relative_path).decode("utf-8", "replace")

    def _cleanup(self, temp_path, final_path, created_dir) -> None:
        for leftover in (temp_path, final_path):
            if leftover and os.path.exists(leftover):
                try:
                    os.remove(leftover)
                except OSError as e:
                    self.logger.warning(f"Could not remove partial archive {leftover}: {e}")

        if created_dir:
            with _TARGET_DIR_LOCK:
                try:
                    os.rmdir(created_dir)
                except OSError:
                    # Not empty or already gone
                    pass


ARCHIVERS: Dict[str, Type[Archiver]] = {
    ZipArchiver.format_name: ZipArchiver,
}


def get_archiver(format_name: str = "zip", **options) -> Archiver:
    """Create an archiver for ``format_name``.

    Raises:
        ValueError: If the format is not supported.
    """
    try:
        archiver_class = ARCHIVERS[format_name.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported archive format: {format_name} "
            f"(supported: {', '.join(sorted(ARCHIVERS))})"
        )
    return archiver_class(**options)
