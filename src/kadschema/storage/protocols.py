# src/kadschema/storage/protocols.py
"""
Shared Protocol definitions for record stores.

Codecs produce ``(key_bytes, value_bytes)`` pairs; anything satisfying
:class:`RecordStore` can hold them. The routing layer that decides where
records live is outside this package.
"""

from __future__ import annotations

from typing import Iterator, Protocol

from kadschema.errors.store import StoreError
from kadschema.result import Result
from kadschema.storage.records import ProviderRecord, Record


class RecordStore(Protocol):
    """Key-value store over opaque byte keys, with provider bookkeeping."""

    def put(self, record: Record) -> Result[None, StoreError]: ...
    def get(self, key: bytes) -> Record | None: ...
    def remove(self, key: bytes) -> None: ...
    def records(self) -> Iterator[Record]: ...
    def add_provider(self, record: ProviderRecord) -> Result[None, StoreError]: ...
    def remove_provider(self, key: bytes, provider: str) -> None: ...
    def providers(self, key: bytes) -> list[ProviderRecord]: ...
    def provided(self) -> Iterator[ProviderRecord]: ...


__all__ = ["RecordStore"]
