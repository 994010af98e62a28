"""Persistence of monitored path records."""

from .record_store import PathRecordStore

__all__ = ["PathRecordStore"]
