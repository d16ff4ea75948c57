"""ADTs for pipeline-internal failures while emitting key types and codecs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class TypeInferenceFailed:
    """No wire codec exists for a declared annotation."""

    schema: str
    location: str
    annotation: str
    kind: Literal["TypeInferenceFailed"] = "TypeInferenceFailed"


@dataclass(frozen=True)
class KeyTypeSynthesisFailed:
    """The key type for a schema could not be built."""

    schema: str
    reason: str
    kind: Literal["KeyTypeSynthesisFailed"] = "KeyTypeSynthesisFailed"


@dataclass(frozen=True)
class CodecAssemblyFailed:
    """The record codec for a schema could not be assembled."""

    schema: str
    reason: str
    kind: Literal["CodecAssemblyFailed"] = "CodecAssemblyFailed"


GenerationError = TypeInferenceFailed | KeyTypeSynthesisFailed | CodecAssemblyFailed


__all__ = [
    "CodecAssemblyFailed",
    "GenerationError",
    "KeyTypeSynthesisFailed",
    "TypeInferenceFailed",
]
