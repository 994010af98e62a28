"""Content fingerprinting for monitored directories."""

import hashlib
import logging

from .walker import iter_tree, translate_os_error


class DirectoryHasher:
    """Computes a deterministic digest over a directory subtree.

    Only relative paths and file contents feed the digest. Timestamps and
    permission bits are ignored, so copying or restoring a tree does not
    register as a change.
    """

    DIR_MARKER = b"D"
    FILE_MARKER = b"F"

    def __init__(self, algorithm: str = "sha256", chunk_size: int = 65536):
        """Initialize directory hasher.

        Args:
            algorithm: Name of a hashlib algorithm.
            chunk_size: Bytes to read from a file at a time.
        """
        try:
            hashlib.new(algorithm)
        except ValueError as e:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}") from e
        self.algorithm = algorithm
        self.chunk_size = chunk_size
        self.logger = logging.getLogger(__name__)

    def hash(self, path: str) -> str:
        """Hash the subtree rooted at ``path``.

        Args:
            path: Directory to fingerprint.

        Returns:
            Hex digest of the subtree.

        Raises:
            NotFoundError: If the path does not exist.
            PermissionDeniedError: If any entry cannot be read.
            HashComputationError: On any other I/O failure.
        """
        digest = hashlib.new(self.algorithm)
        entries = iter_tree(path)

        for entry in entries:
            name = entry.relative_path.encode("utf-8", "surrogateescape")
            if entry.is_dir:
                digest.update(self.DIR_MARKER + name + b"\0")
                continue

            digest.update(self.FILE_MARKER + name + b"\0")
            self._feed_file(digest, entry.absolute_path, path)

        self.logger.debug(f"Hashed {len(entries)} entries under {path}")
        return digest.hexdigest()

    def _feed_file(self, digest, file_path: str, root: str) -> None:
        content = hashlib.new(self.algorithm)
        size = 0
        try:
            with open(file_path, "rb") as f:
                while chunk := f.read(self.chunk_size):
                    content.update(chunk)
                    size += len(chunk)
        except OSError as e:
            raise translate_os_error(e, root) from e

        # Length prefix keeps file boundaries unambiguous.
        digest.update(str(size).encode("ascii") + b"\0")
        digest.update(content.digest())

