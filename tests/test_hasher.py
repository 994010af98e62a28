import os

import pytest

from backup_archiver.core import hasher as hasher_module
from backup_archiver.core import walker
from backup_archiver.core.errors import (
    HashComputationError,
    NotFoundError,
    PermissionDeniedError,
)
from backup_archiver.core.hasher import DirectoryHasher
from tests.conftest import write_tree


def test_hash_is_stable_for_unmodified_tree(sample_tree):
    hasher = DirectoryHasher()

    first = hasher.hash(str(sample_tree))
    second = hasher.hash(str(sample_tree))

    assert first == second
    assert len(first) == 64


def test_identical_trees_hash_equal_regardless_of_creation_order(tmp_path):
    files = {"b.txt": "b", "a/x.txt": "x", "a/y.txt": "y", "c": None}
    left = write_tree(tmp_path / "left", files)
    right = write_tree(tmp_path / "right", dict(reversed(list(files.items()))))

    assert DirectoryHasher().hash(str(left)) == DirectoryHasher().hash(str(right))


def test_hash_independent_of_walk_order(sample_tree, monkeypatch):
    expected = DirectoryHasher().hash(str(sample_tree))
    real_walk = os.walk

    def reversed_walk(*args, **kwargs):
        for current, dirs, files in real_walk(*args, **kwargs):
            dirs.reverse()
            files.reverse()
            yield current, dirs, files

    monkeypatch.setattr(walker.os, "walk", reversed_walk)

    assert DirectoryHasher().hash(str(sample_tree)) == expected


def test_timestamps_do_not_affect_hash(sample_tree):
    before = DirectoryHasher().hash(str(sample_tree))

    os.utime(sample_tree / "README.md", (0, 0))
    os.utime(sample_tree / "src", (1_000_000, 1_000_000))

    assert DirectoryHasher().hash(str(sample_tree)) == before


def test_permission_bits_do_not_affect_hash(sample_tree):
    before = DirectoryHasher().hash(str(sample_tree))

    os.chmod(sample_tree / "src" / "main.py", 0o600)

    assert DirectoryHasher().hash(str(sample_tree)) == before


def test_single_byte_change_changes_hash(sample_tree):
    before = DirectoryHasher().hash(str(sample_tree))

    blob = sample_tree / "data" / "blob.bin"
    content = bytearray(blob.read_bytes())
    content[500] ^= 0x01
    blob.write_bytes(bytes(content))

    assert DirectoryHasher().hash(str(sample_tree)) != before


def test_adding_and_removing_files_changes_hash(sample_tree):
    original = DirectoryHasher().hash(str(sample_tree))

    (sample_tree / "src" / "new.py").write_text("")
    added = DirectoryHasher().hash(str(sample_tree))
    assert added != original

    (sample_tree / "src" / "new.py").unlink()
    assert DirectoryHasher().hash(str(sample_tree)) == original

    (sample_tree / "README.md").unlink()
    assert DirectoryHasher().hash(str(sample_tree)) != original


def test_rename_changes_hash(sample_tree):
    before = DirectoryHasher().hash(str(sample_tree))

    os.rename(sample_tree / "README.md", sample_tree / "README.txt")

    assert DirectoryHasher().hash(str(sample_tree)) != before


def test_empty_directory_changes_hash(sample_tree):
    before = DirectoryHasher().hash(str(sample_tree))

    (sample_tree / "another-empty").mkdir()

    assert DirectoryHasher().hash(str(sample_tree)) != before


def test_content_moved_between_files_changes_hash(tmp_path):
    left = write_tree(tmp_path / "left", {"a": "ab", "b": "c"})
    right = write_tree(tmp_path / "right", {"a": "a", "b": "bc"})

    assert DirectoryHasher().hash(str(left)) != DirectoryHasher().hash(str(right))


def test_missing_path_raises_not_found(tmp_path):
    with pytest.raises(NotFoundError) as exc_info:
        DirectoryHasher().hash(str(tmp_path / "missing"))

    assert exc_info.value.kind == "NotFound"


def test_file_instead_of_directory_fails(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")

    with pytest.raises(HashComputationError):
        DirectoryHasher().hash(str(target))


def test_unreadable_file_fails_whole_hash(sample_tree, monkeypatch):
    real_open = open

    def guarded_open(path, *args, **kwargs):
        if str(path).endswith("main.py"):
            raise PermissionError(13, "Permission denied", str(path))
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr(hasher_module, "open", guarded_open, raising=False)

    with pytest.raises(PermissionDeniedError) as exc_info:
        DirectoryHasher().hash(str(sample_tree))

    assert exc_info.value.kind == "PermissionDenied"
    assert "main.py" in str(exc_info.value)


def test_unlistable_directory_fails_whole_hash(sample_tree, monkeypatch):
    def failing_walk(top, onerror=None, **kwargs):
        onerror(PermissionError(13, "Permission denied", str(top)))
        yield from ()

    monkeypatch.setattr(walker.os, "walk", failing_walk)

    with pytest.raises(PermissionDeniedError):
        DirectoryHasher().hash(str(sample_tree))


def test_other_io_errors_are_hash_computation_failures(sample_tree, monkeypatch):
    def broken_open(path, *args, **kwargs):
        raise OSError(5, "Input/output error", str(path))

    monkeypatch.setattr(hasher_module, "open", broken_open, raising=False)

    with pytest.raises(HashComputationError):
        DirectoryHasher().hash(str(sample_tree))


def test_unknown_algorithm_rejected():
    with pytest.raises(ValueError):
        DirectoryHasher(algorithm="not-a-hash")


def test_algorithm_changes_digest(sample_tree):
    assert DirectoryHasher("md5").hash(str(sample_tree)) != DirectoryHasher().hash(str(sample_tree))
