# src/kadschema/storage/__init__.py
"""Record store collaborator: opaque records, the store Protocol, and an in-memory store."""

from kadschema.storage.memory import MemoryRecordStore, MemoryStoreConfig
from kadschema.storage.protocols import RecordStore
from kadschema.storage.records import ProviderRecord, Record

__all__ = [
    "MemoryRecordStore",
    "MemoryStoreConfig",
    "ProviderRecord",
    "Record",
    "RecordStore",
]
