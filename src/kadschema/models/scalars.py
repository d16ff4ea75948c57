"""
`kadschema.models.scalars`
--------------------------
Fixed-width scalar annotations understood by the wire codec.

Each alias is an ``Annotated`` type carrying a :class:`FixedWidth` marker (read
by the codec builder) and Pydantic bounds (enforced when the model is built),
so a value that would not fit its wire slot is rejected at construction time
rather than at encode time.

Bare ``int`` encodes as ``I64`` and bare ``float`` as ``F64``. ``F32`` values are
rounded to single precision on validation, so a stored value is exactly what a
decode returns.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import AfterValidator, Field


__all__ = [
    "FixedWidth",
    "U8",
    "U16",
    "U32",
    "U64",
    "I8",
    "I16",
    "I32",
    "I64",
    "F32",
    "F64",
    "DEFAULT_INT_WIDTH",
    "DEFAULT_FLOAT_WIDTH",
]


@dataclass(frozen=True)
class FixedWidth:
    """Wire width (in bytes) and signedness of an int or float annotation."""

    size: Literal[1, 2, 4, 8]
    signed: bool = True

    def bounds(self) -> tuple[int, int]:
        """Inclusive integer range representable in this width."""
        bits = self.size * 8
        match self.signed:
            case True:
                return (-(1 << (bits - 1)), (1 << (bits - 1)) - 1)
            case False:
                return (0, (1 << bits) - 1)


DEFAULT_INT_WIDTH = FixedWidth(8, signed=True)
DEFAULT_FLOAT_WIDTH = FixedWidth(8)


U8 = Annotated[int, FixedWidth(1, signed=False), Field(ge=0, le=0xFF)]
U16 = Annotated[int, FixedWidth(2, signed=False), Field(ge=0, le=0xFFFF)]
U32 = Annotated[int, FixedWidth(4, signed=False), Field(ge=0, le=0xFFFF_FFFF)]
U64 = Annotated[int, FixedWidth(8, signed=False), Field(ge=0, le=0xFFFF_FFFF_FFFF_FFFF)]
I8 = Annotated[int, FixedWidth(1), Field(ge=-(1 << 7), le=(1 << 7) - 1)]
I16 = Annotated[int, FixedWidth(2), Field(ge=-(1 << 15), le=(1 << 15) - 1)]
I32 = Annotated[int, FixedWidth(4), Field(ge=-(1 << 31), le=(1 << 31) - 1)]
I64 = Annotated[int, FixedWidth(8), Field(ge=-(1 << 63), le=(1 << 63) - 1)]


def _round_to_f32(value: float) -> float:
    try:
        return float(struct.unpack("<f", struct.pack("<f", value))[0])
    except OverflowError as exc:
        raise ValueError(f"{value} is out of range for a 32-bit float") from exc


F32 = Annotated[float, FixedWidth(4), AfterValidator(_round_to_f32)]
F64 = Annotated[float, FixedWidth(8)]
