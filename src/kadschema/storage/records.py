# src/kadschema/storage/records.py
"""Opaque storage records exchanged between codecs and record stores."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Record:
    """
    One stored value under an opaque key.

    Attributes:
        key: Key bytes produced by a schema's key type.
        value: Value bytes produced by the schema's record codec.
        publisher: Peer that originally published the record, if known.
        expires: Absolute expiry (seconds since the epoch), or None for no expiry.
    """

    key: bytes
    value: bytes
    publisher: str | None = None
    expires: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires is not None and now >= self.expires


@dataclass(frozen=True)
class ProviderRecord:
    """A peer announcing that it can serve the value stored under ``key``."""

    key: bytes
    provider: str
    expires: float | None = None
    addresses: tuple[str, ...] = ()

    def is_expired(self, now: float) -> bool:
        return self.expires is not None and now >= self.expires


__all__ = ["ProviderRecord", "Record"]
