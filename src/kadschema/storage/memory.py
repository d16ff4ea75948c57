# src/kadschema/storage/memory.py
"""
In-memory reference implementation of :class:`~kadschema.storage.protocols.RecordStore`.

Limits mirror a Kademlia node's default memory store. Exceeding a limit is a
recoverable condition reported as ``Failure(StoreError)``; the store is left
unchanged.
"""

from __future__ import annotations

import logging
import threading
from typing import Annotated, Iterator

from pydantic import BaseModel, ConfigDict, Field

from kadschema.errors.store import (
    MaxProvidedKeys,
    MaxProvidersPerKey,
    MaxRecordsReached,
    StoreError,
    ValueTooLarge,
)
from kadschema.result import Failure, Result, Success
from kadschema.storage.records import ProviderRecord, Record


logger = logging.getLogger(__name__)


class MemoryStoreConfig(BaseModel):
    """Capacity limits of a :class:`MemoryRecordStore`."""

    max_records: Annotated[int, Field(ge=1)] = 1024
    max_value_bytes: Annotated[int, Field(ge=1)] = 65 * 1024
    max_providers_per_key: Annotated[int, Field(ge=1)] = 20
    max_provided_keys: Annotated[int, Field(ge=1)] = 1024

    model_config = ConfigDict(frozen=True, extra="forbid")


class MemoryRecordStore:
    """
    Thread-safe record store backed by dictionaries.

    Provider records are kept per key in insertion order. Records announced by
    ``local_peer_id`` are additionally tracked as "provided" by this node.
    """

    def __init__(self, local_peer_id: str, config: MemoryStoreConfig | None = None) -> None:
        self.local_peer_id = local_peer_id
        self.config = config or MemoryStoreConfig()
        self._records: dict[bytes, Record] = {}
        self._providers: dict[bytes, list[ProviderRecord]] = {}
        self._provided: dict[bytes, ProviderRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Records
    # ------------------------------------------------------------------ #

    def put(self, record: Record) -> Result[None, StoreError]:
        if len(record.value) > self.config.max_value_bytes:
            return self._reject(
                ValueTooLarge(size=len(record.value), limit=self.config.max_value_bytes)
            )
        with self._lock:
            if record.key not in self._records and len(self._records) >= self.config.max_records:
                return self._reject(MaxRecordsReached(limit=self.config.max_records))
            self._records[record.key] = record
        return Success(None)

    def get(self, key: bytes) -> Record | None:
        with self._lock:
            return self._records.get(key)

    def remove(self, key: bytes) -> None:
        with self._lock:
            self._records.pop(key, None)

    def records(self) -> Iterator[Record]:
        with self._lock:
            snapshot = list(self._records.values())
        return iter(snapshot)

    # ------------------------------------------------------------------ #
    # Providers
    # ------------------------------------------------------------------ #

    def add_provider(self, record: ProviderRecord) -> Result[None, StoreError]:
        is_local = record.provider == self.local_peer_id
        with self._lock:
            if (
                is_local
                and record.key not in self._provided
                and len(self._provided) >= self.config.max_provided_keys
            ):
                return self._reject(MaxProvidedKeys(limit=self.config.max_provided_keys))

            entries = self._providers.setdefault(record.key, [])
            position = next(
                (i for i, entry in enumerate(entries) if entry.provider == record.provider), None
            )
            match position:
                case None if len(entries) >= self.config.max_providers_per_key:
                    return self._reject(
                        MaxProvidersPerKey(key=record.key, limit=self.config.max_providers_per_key)
                    )
                case None:
                    entries.append(record)
                case index:
                    entries[index] = record

            if is_local:
                self._provided[record.key] = record
        return Success(None)

    def remove_provider(self, key: bytes, provider: str) -> None:
        with self._lock:
            entries = self._providers.get(key, [])
            remaining = [entry for entry in entries if entry.provider != provider]
            if remaining:
                self._providers[key] = remaining
            else:
                self._providers.pop(key, None)
            if provider == self.local_peer_id:
                self._provided.pop(key, None)

    def providers(self, key: bytes) -> list[ProviderRecord]:
        with self._lock:
            return list(self._providers.get(key, []))

    def provided(self) -> Iterator[ProviderRecord]:
        with self._lock:
            snapshot = list(self._provided.values())
        return iter(snapshot)

    def _reject(self, error: StoreError) -> Result[None, StoreError]:
        logger.warning(f"Record store rejected write: {error}")
        return Failure(error)


__all__ = ["MemoryRecordStore", "MemoryStoreConfig"]
