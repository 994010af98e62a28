"""Utility modules for backup archiving."""

from .formatters import format_file_size, format_date, format_hash

__all__ = ["format_file_size", "format_date", "format_hash"]
