# src/kadschema/serialization/__init__.py
"""
Binary wire codecs.

Schema-level record codecs live in :mod:`kadschema.serialization.record`,
which depends on the synthesized key types.
"""

from kadschema.serialization.wire import (
    CodecBuilder,
    DecodeFailure,
    Reader,
    UnsupportedAnnotation,
    WireCodec,
)

__all__ = [
    "CodecBuilder",
    "DecodeFailure",
    "Reader",
    "UnsupportedAnnotation",
    "WireCodec",
]
