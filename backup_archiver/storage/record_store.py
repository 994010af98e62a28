"""Durable path to hash records.

Records live in a small document database: a directory holding one file per
collection, each line of which is a JSON document ``{"path": ..., "hash": ...}``.
"""

import json
import logging
import os
import tempfile
from typing import Dict, List, Mapping

from ..core.errors import PersistenceError, StoreError
from ..core.models import MonitoredPath


class PathRecordStore:
    """Loads and saves monitored path records."""

    def __init__(self, db_path: str, collection: str = "paths"):
        """Initialize record store.

        Args:
            db_path: Database directory. Created on first write.
            collection: Name of the collection file inside the database.
        """
        self.db_path = db_path
        self.collection = collection
        self.logger = logging.getLogger(__name__)

    @property
    def collection_file(self) -> str:
        return os.path.join(self.db_path, f"{self.collection}.jsonl")

    def records(self) -> List[MonitoredPath]:
        """Read all records in stored order.

        Raises:
            StoreError: If the collection cannot be read or holds a malformed
                document.
        """
        if not os.path.exists(self.collection_file):
            return []

        records = []
        seen = set()
        try:
            with open(self.collection_file, 'r', encoding='utf-8') as f:
                for line_number, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    record = self._parse(line, line_number)
                    if record.path in seen:
                        self.logger.warning(f"Ignoring duplicate record for {record.path}")
                        continue
                    seen.add(record.path)
                    records.append(record)
        except OSError as e:
            raise StoreError(f"Cannot read {self.collection_file}: {e}", self.collection_file) from e

        return records

    def _parse(self, line: str, line_number: int) -> MonitoredPath:
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise StoreError(
                f"Invalid JSON in {self.collection_file} line {line_number}: {e}",
                self.collection_file
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get('path'), str) or not data['path']:
            raise StoreError(
                f"Record on line {line_number} of {self.collection_file} has no path",
                self.collection_file
            )

        digest = data.get('hash') or ""
        if not isinstance(digest, str):
            raise StoreError(
                f"Record on line {line_number} of {self.collection_file} has an invalid hash",
                self.collection_file
            )
        return MonitoredPath(path=data['path'], last_hash=digest)

    def load(self) -> Dict[str, str]:
        """Return the stored path to hash mapping in stored order."""
        return {record.path: record.last_hash for record in self.records()}

    def add(self, path: str) -> bool:
        """Register ``path`` with an empty hash.

        Returns:
            False if the path was already registered.
        """
        records = self.records()
        if any(record.path == path for record in records):
            return False
        records.append(MonitoredPath(path=path))
        self._write(records)
        self.logger.info(f"Added path {path}")
        return True

    def remove(self, path: str) -> bool:
        """Unregister ``path``.

        Returns:
            False if the path was not registered.
        """
        records = self.records()
        remaining = [record for record in records if record.path != path]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        self.logger.info(f"Removed path {path}")
        return True

    def update_hash(self, path: str, digest: str) -> bool:
        """Durably record ``digest`` as the hash of ``path``.

        A path removed from the store while a run is in progress stays
        removed; its update is ignored.

        Returns:
            False if the path is not registered.

        Raises:
            PersistenceError: If the write fails.
        """
        records = self.records()
        for record in records:
            if record.path == path:
                record.last_hash = digest
                break
        else:
            self.logger.info(f"Path {path} is no longer registered, not recording its hash")
            return False
        self._write(records)
        return True

    def save(self, hashes: Mapping[str, str]) -> int:
        """Rewrite the hash of every stored record found in ``hashes``.

        Records not present in ``hashes`` keep their hash and no records are
        added, so paths removed while a run is in progress stay removed.

        Returns:
            Number of records whose hash changed.
        """
        records = self.records()
        updated = 0
        for record in records:
            digest = hashes.get(record.path)
            if digest is not None and digest != record.last_hash:
                record.last_hash = digest
                updated += 1

        if updated:
            self._write(records)
        return updated

    def _write(self, records: List[MonitoredPath]) -> None:
        temp_path = None
        try:
            os.makedirs(self.db_path, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=f".{self.collection}.", dir=self.db_path)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                for record in records:
                    f.write(json.dumps({'path': record.path, 'hash': record.last_hash}) + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.collection_file)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)
            raise PersistenceError(f"Cannot write {self.collection_file}: {e}", self.collection_file) from e
