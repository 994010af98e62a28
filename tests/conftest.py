"""Shared pytest fixtures for all tests."""

import os

import pytest

from backup_archiver.config.config_manager import ConfigManager


def write_tree(root, files):
    """
    Create files below root.

    Args:
        root: Directory to populate
        files: Mapping of relative path to content; a value of None makes
            an empty directory

    Returns:
        root
    """
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = root / relative
        if content is None:
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
    return root


def list_files(root):
    """Return every regular file below root as a sorted list of relative paths."""
    found = []
    for current, _, files in os.walk(root):
        for name in files:
            found.append(os.path.relpath(os.path.join(current, name), root))
    return sorted(found)


@pytest.fixture(autouse=True)
def no_default_config(monkeypatch):
    """Keep config files on the test machine out of the tests."""
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_LOCATIONS", [])


@pytest.fixture
def sample_tree(tmp_path):
    """
    Create a small directory tree with nested files and an empty directory.

    Returns:
        Path to the tree root
    """
    return write_tree(tmp_path / "project", {
        "README.md": "# project\n",
        "src/main.py": "print('hello')\n",
        "src/util/helpers.py": "def helper():\n    return 1\n",
        "data/blob.bin": bytes(range(256)) * 4,
        "empty": None,
    })


@pytest.fixture
def destination(tmp_path):
    """Archive destination directory."""
    path = tmp_path / "archive"
    path.mkdir()
    return path
