# src/kadschema/serialization/record.py
"""
Schema <-> storage record codec.

``encode(instance)`` yields ``(key_bytes, value_bytes)``: the key type's byte
encoding and the full instance in the binary wire format. ``decode`` is total
over arbitrary input and reports malformed bytes as a
:data:`~kadschema.errors.decode.DecodeError` value.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from kadschema.errors.decode import DecodeResult, KeyMismatch
from kadschema.errors.exceptions import RecordEncodeError
from kadschema.errors.generation import CodecAssemblyFailed, GenerationError, TypeInferenceFailed
from kadschema.markers import TaggedUnion
from kadschema.models.definitions import SchemaDefinition
from kadschema.result import Failure, Result, Success
from kadschema.serialization.wire import CodecBuilder, UnsupportedAnnotation, WireCodec
from kadschema.storage.records import Record
from kadschema.synthesizer import SchemaKey


logger = logging.getLogger(__name__)

S = TypeVar("S")


class RecordCodec(Generic[S]):
    """
    Generated codec for one schema.

    Holds only immutable, build-time state; every method is safe for
    concurrent callers.
    """

    __slots__ = ("schema_type", "key_type", "value_codec")

    def __init__(
        self, schema_type: type[S], key_type: type[SchemaKey], value_codec: WireCodec
    ) -> None:
        self.schema_type = schema_type
        self.key_type = key_type
        self.value_codec = value_codec

    # -- keys -------------------------------------------------------------- #

    def key(self, instance: S) -> SchemaKey | None:
        """
        Key of ``instance``.

        Only unit variants of a per-variant tagged union have no key (None).
        """
        self._check_instance(instance)
        return self.key_type.from_instance(instance)

    def key_bytes(self, instance: S) -> bytes:
        key = self.key(instance)
        if key is None:
            raise RecordEncodeError(
                self.schema_type.__name__,
                f"unit variant {type(instance).__name__} has no storage key",
            )
        return key.to_bytes()

    def decode_key(self, data: bytes) -> DecodeResult[SchemaKey]:
        return self.key_type.from_bytes(data)

    # -- values ------------------------------------------------------------ #

    def encode_value(self, instance: S) -> bytes:
        self._check_instance(instance)
        return self.value_codec.encode(instance)

    def encode(self, instance: S) -> tuple[bytes, bytes]:
        """Return ``(key_bytes, value_bytes)``; raises RecordEncodeError for ill-typed data."""
        return self.key_bytes(instance), self.encode_value(instance)

    def decode(self, value: bytes, *, key: bytes | None = None) -> DecodeResult[S]:
        """
        Decode value bytes back into a schema instance.

        When ``key`` is given, the decoded instance's own key bytes must equal
        it; a record stored under the wrong key is reported as ``KeyMismatch``.
        """
        decoded: DecodeResult[S] = self.value_codec.decode(value)
        match decoded, key:
            case Success(instance), bytes() as supplied:
                found = self.key(instance)
                actual = found.to_bytes() if found is not None else b""
                if actual != supplied:
                    return Failure(KeyMismatch(expected=actual, found=supplied))
                return decoded
            case _:
                return decoded

    # -- records ----------------------------------------------------------- #

    def to_record(
        self, instance: S, *, publisher: str | None = None, expires: float | None = None
    ) -> Record:
        key, value = self.encode(instance)
        return Record(key=key, value=value, publisher=publisher, expires=expires)

    def from_record(self, record: Record) -> DecodeResult[S]:
        return self.decode(record.value, key=record.key)

    def _check_instance(self, instance: object) -> None:
        if not isinstance(instance, self.schema_type):
            raise RecordEncodeError(
                self.schema_type.__name__,
                f"expected {self.schema_type.__name__}, got {type(instance).__name__}",
            )

    def __repr__(self) -> str:
        return f"RecordCodec({self.schema_type.__qualname__}, key={self.key_type.__qualname__})"


def generate_record_codec(
    definition: SchemaDefinition, key_type: type[SchemaKey], builder: CodecBuilder
) -> Result[RecordCodec[Any], GenerationError]:
    """Assemble the record codec for a validated schema and its synthesized key type."""
    schema_type = definition.schema_type
    try:
        match schema_type:
            case type() if issubclass(schema_type, TaggedUnion):
                value_codec: WireCodec = builder.union(schema_type)
            case type() if issubclass(schema_type, BaseModel):
                value_codec = builder.model(schema_type)
            case _:
                return Failure(
                    CodecAssemblyFailed(
                        schema=definition.qualified_name,
                        reason=f"{schema_type!r} is neither a model nor a tagged union",
                    )
                )
    except UnsupportedAnnotation as exc:
        return Failure(
            TypeInferenceFailed(
                schema=definition.qualified_name,
                location=exc.location,
                annotation=repr(exc.annotation),
            )
        )

    logger.debug(f"Assembled record codec for {definition.qualified_name}")
    return Success(RecordCodec(schema_type, key_type, value_codec))


__all__ = ["RecordCodec", "generate_record_codec"]
