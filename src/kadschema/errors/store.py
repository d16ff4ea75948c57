"""ADTs for record store limit violations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class MaxRecordsReached:
    limit: int
    kind: Literal["MaxRecordsReached"] = "MaxRecordsReached"


@dataclass(frozen=True)
class ValueTooLarge:
    size: int
    limit: int
    kind: Literal["ValueTooLarge"] = "ValueTooLarge"


@dataclass(frozen=True)
class MaxProvidersPerKey:
    key: bytes
    limit: int
    kind: Literal["MaxProvidersPerKey"] = "MaxProvidersPerKey"


@dataclass(frozen=True)
class MaxProvidedKeys:
    limit: int
    kind: Literal["MaxProvidedKeys"] = "MaxProvidedKeys"


StoreError = MaxRecordsReached | ValueTooLarge | MaxProvidersPerKey | MaxProvidedKeys


__all__ = [
    "MaxProvidedKeys",
    "MaxProvidersPerKey",
    "MaxRecordsReached",
    "StoreError",
    "ValueTooLarge",
]
