"""Record store implementations (in-memory mock mode and PostgreSQL)."""

from .record_store import InMemoryRecordStore, InsertFailure, InsertReport, RecordStore, StoreError

__all__ = [
    "InMemoryRecordStore",
    "InsertFailure",
    "InsertReport",
    "RecordStore",
    "StoreError",
]
