"""ADTs for malformed record bytes. These are data errors and always recoverable."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeVar

from pydantic import ValidationError

from kadschema.result import Result


@dataclass(frozen=True)
class TruncatedInput:
    """Input ended before a value was complete."""

    offset: int
    needed: int
    available: int
    kind: Literal["TruncatedInput"] = "TruncatedInput"


@dataclass(frozen=True)
class InvalidVariantIndex:
    """A variant index does not name any declared variant."""

    type_name: str
    index: int
    variant_count: int
    kind: Literal["InvalidVariantIndex"] = "InvalidVariantIndex"


@dataclass(frozen=True)
class InvalidUtf8:
    """String bytes are not valid UTF-8."""

    offset: int
    reason: str
    kind: Literal["InvalidUtf8"] = "InvalidUtf8"


@dataclass(frozen=True)
class InvalidTag:
    """A bool or option tag byte is neither 0 nor 1."""

    offset: int
    value: int
    expected: str
    kind: Literal["InvalidTag"] = "InvalidTag"


@dataclass(frozen=True)
class NestingTooDeep:
    """Nested models go deeper than ``CodecConfig.max_nesting_depth``."""

    offset: int
    limit: int
    kind: Literal["NestingTooDeep"] = "NestingTooDeep"


@dataclass(frozen=True)
class ZeroWidthElements:
    """A collection whose elements encode to no bytes claims a non-zero count."""

    type_name: str
    offset: int
    count: int
    kind: Literal["ZeroWidthElements"] = "ZeroWidthElements"


@dataclass(frozen=True)
class TrailingBytes:
    """Bytes remain after a complete value was decoded."""

    consumed: int
    remaining: int
    kind: Literal["TrailingBytes"] = "TrailingBytes"


@dataclass(frozen=True)
class ValidationFailed:
    """Decoded fields violate the model's own constraints."""

    type_name: str
    error: ValidationError
    kind: Literal["ValidationFailed"] = "ValidationFailed"


@dataclass(frozen=True)
class KeyMismatch:
    """Supplied record key does not match the key of the decoded value."""

    expected: bytes
    found: bytes
    kind: Literal["KeyMismatch"] = "KeyMismatch"


DecodeError = (
    TruncatedInput
    | InvalidVariantIndex
    | InvalidUtf8
    | InvalidTag
    | NestingTooDeep
    | ZeroWidthElements
    | TrailingBytes
    | ValidationFailed
    | KeyMismatch
)

T = TypeVar("T")
DecodeResult = Result[T, DecodeError]


__all__ = [
    "DecodeError",
    "DecodeResult",
    "InvalidTag",
    "InvalidUtf8",
    "InvalidVariantIndex",
    "KeyMismatch",
    "NestingTooDeep",
    "TrailingBytes",
    "TruncatedInput",
    "ValidationFailed",
    "ZeroWidthElements",
]
