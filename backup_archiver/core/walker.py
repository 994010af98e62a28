"""Deterministic directory traversal shared by hashing and archiving."""

import os
from dataclasses import dataclass
from typing import List

from .errors import HashComputationError, NotFoundError, PermissionDeniedError


@dataclass(frozen=True)
class TreeEntry:
    """An entry below a traversal root."""
    relative_path: str
    absolute_path: str
    is_dir: bool


def _raise(error: OSError):
    raise error


def translate_os_error(error: OSError, path: str):
    """Map an OSError raised while reading below ``path`` to a BackupError."""
    if isinstance(error, PermissionError):
        return PermissionDeniedError(f"Permission denied: {error.filename or path}", path)
    return HashComputationError(f"I/O error under {path}: {error}", path)


def check_root(root: str) -> None:
    """Ensure ``root`` is an existing directory.

    Raises:
        NotFoundError: If the path does not exist.
        HashComputationError: If the path is not a directory.
    """
    if not os.path.exists(root):
        raise NotFoundError(f"Path does not exist: {root}", root)
    if not os.path.isdir(root):
        raise HashComputationError(f"Path is not a directory: {root}", root)


def iter_tree(root: str) -> List[TreeEntry]:
    """List every entry below ``root`` ordered by relative POSIX path.

    Directories are listed but symlinked directories are not descended into.
    Any error aborts the listing; nothing is skipped silently.
    """
    check_root(root)

    entries = []
    try:
        for current, dirs, files in os.walk(root, onerror=_raise):
            for name in dirs:
                entries.append(_make_entry(root, current, name, True))
            for name in files:
                entries.append(_make_entry(root, current, name, False))
    except OSError as e:
        raise translate_os_error(e, root) from e

    entries.sort(key=lambda entry: entry.relative_path)
    return entries


def _make_entry(root: str, current: str, name: str, is_dir: bool) -> TreeEntry:
    absolute = os.path.join(current, name)
    relative = os.path.relpath(absolute, root).replace(os.sep, "/")
    return TreeEntry(relative_path=relative, absolute_path=absolute, is_dir=is_dir)
