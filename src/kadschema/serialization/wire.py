# src/kadschema/serialization/wire.py
"""
Type-directed binary codecs.

The wire format is fixed by :class:`~kadschema.models.config.CodecConfig`:

* integers and floats are fixed width in one byte order (``I64``/``F64`` when
  the annotation carries no :class:`~kadschema.models.scalars.FixedWidth`)
* ``bool`` and option tags are a single byte, 0 or 1
* ``str`` (UTF-8), ``bytes`` and variable-length collections are a length
  prefix followed by the raw bytes or elements
* fixed-size tuples and model fields are written back to back, in order
* enums and tagged unions are a variant index (declaration order) followed by
  the variant's fields

Codecs are built once per pipeline run and never mutated afterwards. Decoding
uses a fresh :class:`Reader` per call, so a codec can be shared by any number
of concurrent callers.
"""

from __future__ import annotations

import struct
import types
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Annotated, Any, Callable, Literal, Union, get_args, get_origin

from pydantic import BaseModel

from kadschema.errors.decode import (
    DecodeError,
    DecodeResult,
    InvalidTag,
    InvalidUtf8,
    InvalidVariantIndex,
    NestingTooDeep,
    TrailingBytes,
    TruncatedInput,
    ValidationFailed,
    ZeroWidthElements,
)
from kadschema.errors.exceptions import RecordEncodeError
from kadschema.markers import TaggedUnion
from kadschema.models.config import DEFAULT_CONFIG, CodecConfig
from kadschema.models.scalars import DEFAULT_FLOAT_WIDTH, DEFAULT_INT_WIDTH, FixedWidth
from kadschema.result import Failure, Success
from kadschema.validation import validate_model

ByteOrder = Literal["little", "big"]


class DecodeFailure(Exception):
    """Internal unwinding signal; converted to ``Failure`` at the codec boundary."""

    def __init__(self, error: DecodeError) -> None:
        self.error = error
        super().__init__(error.kind)


class UnsupportedAnnotation(Exception):
    """Raised by :class:`CodecBuilder` when no codec exists for an annotation."""

    def __init__(self, location: str, annotation: object) -> None:
        self.location = location
        self.annotation = annotation
        super().__init__(f"{location}: {annotation!r}")


class Reader:
    """Read cursor over one input buffer. Never shared between decode calls."""

    __slots__ = ("view", "offset", "depth")

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self.view = memoryview(data)
        self.offset = 0
        # Models currently being decoded, outermost first.
        self.depth = 0

    @property
    def remaining(self) -> int:
        return len(self.view) - self.offset

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            raise DecodeFailure(
                TruncatedInput(offset=self.offset, needed=size, available=self.remaining)
            )
        start = self.offset
        self.offset += size
        return bytes(self.view[start : self.offset])


class WireCodec(ABC):
    """Encoder/decoder pair for one annotation."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def write(self, value: Any, out: bytearray) -> None: ...

    @abstractmethod
    def read(self, reader: Reader) -> Any: ...

    def encode(self, value: Any) -> bytes:
        out = bytearray()
        self.write(value, out)
        return bytes(out)

    def decode(self, data: bytes | bytearray | memoryview) -> DecodeResult[Any]:
        """Decode exactly one value spanning all of ``data``."""
        reader = Reader(data)
        try:
            value = self.read(reader)
        except DecodeFailure as failure:
            return Failure(failure.error)
        match reader.remaining:
            case 0:
                return Success(value)
            case remaining:
                return Failure(TrailingBytes(consumed=reader.offset, remaining=remaining))

    def min_width(self) -> int:
        """Lower bound on the encoded size of one value."""
        return 1

    def _reject(self, value: object, expected: str) -> RecordEncodeError:
        return RecordEncodeError(self.name, f"expected {expected}, got {type(value).__name__}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


# --------------------------------------------------------------------------- #
# Scalars
# --------------------------------------------------------------------------- #


class IntCodec(WireCodec):
    __slots__ = ("width", "byte_order")

    def __init__(self, width: FixedWidth, byte_order: ByteOrder) -> None:
        prefix = "i" if width.signed else "u"
        super().__init__(f"{prefix}{width.size * 8}")
        self.width = width
        self.byte_order = byte_order

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, int):
            raise self._reject(value, "int")
        try:
            out += int(value).to_bytes(
                self.width.size, self.byte_order, signed=self.width.signed
            )
        except OverflowError as exc:
            raise RecordEncodeError(self.name, f"{value} out of range") from exc

    def read(self, reader: Reader) -> int:
        return int.from_bytes(
            reader.take(self.width.size), self.byte_order, signed=self.width.signed
        )


class FloatCodec(WireCodec):
    __slots__ = ("size", "_format")

    def __init__(self, size: int, byte_order: ByteOrder) -> None:
        super().__init__(f"f{size * 8}")
        self.size = size
        order = "<" if byte_order == "little" else ">"
        self._format = struct.Struct(order + ("f" if size == 4 else "d"))

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, (int, float)):
            raise self._reject(value, "float")
        try:
            out += self._format.pack(value)
        except (OverflowError, struct.error) as exc:
            raise RecordEncodeError(self.name, str(exc)) from exc

    def read(self, reader: Reader) -> float:
        (value,) = self._format.unpack(reader.take(self.size))
        return float(value)


class BoolCodec(WireCodec):
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__("bool")

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, bool):
            raise self._reject(value, "bool")
        out.append(1 if value else 0)

    def read(self, reader: Reader) -> bool:
        offset = reader.offset
        match reader.take(1)[0]:
            case 0:
                return False
            case 1:
                return True
            case other:
                raise DecodeFailure(InvalidTag(offset=offset, value=other, expected="bool"))


class BytesCodec(WireCodec):
    __slots__ = ("prefix",)

    def __init__(self, prefix: IntCodec) -> None:
        super().__init__("bytes")
        self.prefix = prefix

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise self._reject(value, "bytes")
        raw = bytes(value)
        self.prefix.write(len(raw), out)
        out += raw

    def read(self, reader: Reader) -> bytes:
        return reader.take(self.prefix.read(reader))


class StrCodec(WireCodec):
    __slots__ = ("prefix",)

    def __init__(self, prefix: IntCodec) -> None:
        super().__init__("str")
        self.prefix = prefix

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, str):
            raise self._reject(value, "str")
        raw = value.encode("utf-8")
        self.prefix.write(len(raw), out)
        out += raw

    def read(self, reader: Reader) -> str:
        length = self.prefix.read(reader)
        offset = reader.offset
        raw = reader.take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeFailure(InvalidUtf8(offset=offset + exc.start, reason=exc.reason)) from exc


# --------------------------------------------------------------------------- #
# Containers
# --------------------------------------------------------------------------- #


class OptionalCodec(WireCodec):
    __slots__ = ("inner",)

    def __init__(self, inner: WireCodec) -> None:
        super().__init__(f"optional[{inner.name}]")
        self.inner = inner

    def write(self, value: Any, out: bytearray) -> None:
        match value:
            case None:
                out.append(0)
            case _:
                out.append(1)
                self.inner.write(value, out)

    def read(self, reader: Reader) -> Any:
        offset = reader.offset
        match reader.take(1)[0]:
            case 0:
                return None
            case 1:
                return self.inner.read(reader)
            case other:
                raise DecodeFailure(InvalidTag(offset=offset, value=other, expected="option"))


class SequenceCodec(WireCodec):
    """Length-prefixed homogeneous collection (list, variadic tuple, set)."""

    __slots__ = ("item", "prefix", "factory", "unordered")

    def __init__(
        self,
        item: WireCodec,
        prefix: IntCodec,
        factory: Callable[[list[Any]], Any],
        unordered: bool = False,
    ) -> None:
        super().__init__(f"{getattr(factory, '__name__', 'seq')}[{item.name}]")
        self.item = item
        self.prefix = prefix
        self.factory = factory
        self.unordered = unordered

    def write(self, value: Any, out: bytearray) -> None:
        if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, set, frozenset)):
            raise self._reject(value, "sequence")
        if value and not self.item.min_width():
            raise RecordEncodeError(self.name, "elements encode to no bytes; only empty allowed")
        items = [self.item.encode(element) for element in value]
        if self.unordered:
            items.sort()
        self.prefix.write(len(items), out)
        for encoded in items:
            out += encoded

    def read(self, reader: Reader) -> Any:
        count = self.prefix.read(reader)
        _check_count(reader, count, self.item.min_width(), self.name)
        return self.factory([self.item.read(reader) for _ in range(count)])


class TupleCodec(WireCodec):
    """Fixed-size heterogeneous tuple; no length prefix."""

    __slots__ = ("items",)

    def __init__(self, items: tuple[WireCodec, ...]) -> None:
        super().__init__("tuple[" + ", ".join(item.name for item in items) + "]")
        self.items = items

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, tuple) or len(value) != len(self.items):
            raise self._reject(value, f"tuple of {len(self.items)}")
        for codec, element in zip(self.items, value):
            codec.write(element, out)

    def min_width(self) -> int:
        return sum(codec.min_width() for codec in self.items)

    def read(self, reader: Reader) -> tuple[Any, ...]:
        return tuple(codec.read(reader) for codec in self.items)


class MappingCodec(WireCodec):
    __slots__ = ("key", "value", "prefix")

    def __init__(self, key: WireCodec, value: WireCodec, prefix: IntCodec) -> None:
        super().__init__(f"dict[{key.name}, {value.name}]")
        self.key = key
        self.value = value
        self.prefix = prefix

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, Mapping):
            raise self._reject(value, "mapping")
        if value and not self._entry_width():
            raise RecordEncodeError(self.name, "entries encode to no bytes; only empty allowed")
        self.prefix.write(len(value), out)
        for entry_key, entry_value in value.items():
            self.key.write(entry_key, out)
            self.value.write(entry_value, out)

    def read(self, reader: Reader) -> dict[Any, Any]:
        count = self.prefix.read(reader)
        _check_count(reader, count, self._entry_width(), self.name)
        return {self.key.read(reader): self.value.read(reader) for _ in range(count)}

    def _entry_width(self) -> int:
        return self.key.min_width() + self.value.min_width()


# --------------------------------------------------------------------------- #
# Nominal types
# --------------------------------------------------------------------------- #


class EnumCodec(WireCodec):
    __slots__ = ("enum_type", "members", "index")

    def __init__(self, enum_type: type[Enum], index: IntCodec) -> None:
        super().__init__(enum_type.__name__)
        self.enum_type = enum_type
        self.members: tuple[Enum, ...] = tuple(enum_type)
        self.index = index

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, self.enum_type):
            raise self._reject(value, self.enum_type.__name__)
        self.index.write(self.members.index(value), out)

    def read(self, reader: Reader) -> Enum:
        position = self.index.read(reader)
        if not 0 <= position < len(self.members):
            raise DecodeFailure(
                InvalidVariantIndex(
                    type_name=self.name, index=position, variant_count=len(self.members)
                )
            )
        return self.members[position]


class ModelCodec(WireCodec):
    """Pydantic model: fields in declaration order, rebuilt through validation on read."""

    __slots__ = ("model", "fields", "max_depth")

    def __init__(self, model: type[BaseModel], max_depth: int) -> None:
        super().__init__(model.__qualname__)
        self.model = model
        self.max_depth = max_depth
        self.fields: tuple[tuple[str, WireCodec], ...] = ()

    def write(self, value: Any, out: bytearray) -> None:
        if not isinstance(value, self.model):
            raise self._reject(value, self.name)
        for field_name, codec in self.fields:
            codec.write(getattr(value, field_name), out)

    def min_width(self) -> int:
        return sum(codec.min_width() for _, codec in self.fields)

    def read(self, reader: Reader) -> BaseModel:
        if reader.depth >= self.max_depth:
            raise DecodeFailure(NestingTooDeep(offset=reader.offset, limit=self.max_depth))
        reader.depth += 1
        data = {field_name: codec.read(reader) for field_name, codec in self.fields}
        reader.depth -= 1
        match validate_model(self.model, data):
            case Success(instance):
                return instance
            case Failure(error):
                raise DecodeFailure(ValidationFailed(type_name=self.name, error=error))


class UnionCodec(WireCodec):
    """Tagged union: variant index, then the variant's fields."""

    __slots__ = ("union", "variants", "index")

    def __init__(
        self, union: type[TaggedUnion], variants: tuple[ModelCodec, ...], index: IntCodec
    ) -> None:
        super().__init__(union.__qualname__)
        self.union = union
        self.variants = variants
        self.index = index

    def variant_position(self, value: Any) -> int:
        for position, codec in enumerate(self.variants):
            if type(value) is codec.model:
                return position
        raise self._reject(value, f"variant of {self.name}")

    def write(self, value: Any, out: bytearray) -> None:
        position = self.variant_position(value)
        self.index.write(position, out)
        self.variants[position].write(value, out)

    def read(self, reader: Reader) -> Any:
        position = self.index.read(reader)
        if not 0 <= position < len(self.variants):
            raise DecodeFailure(
                InvalidVariantIndex(
                    type_name=self.name, index=position, variant_count=len(self.variants)
                )
            )
        return self.variants[position].read(reader)


# --------------------------------------------------------------------------- #
# Builder
# --------------------------------------------------------------------------- #


class CodecBuilder:
    """
    Derive wire codecs from type annotations.

    One builder serves one pipeline run. Model codecs are memoised by class so
    recursive models (a node holding a list of nodes) terminate.
    """

    def __init__(self, config: CodecConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.length_prefix = IntCodec(
            FixedWidth(config.length_prefix_width, signed=False), config.byte_order
        )
        self.variant_index = IntCodec(
            FixedWidth(config.variant_index_width, signed=False), config.byte_order
        )
        self._models: dict[type, ModelCodec] = {}
        self._unions: dict[type, UnionCodec] = {}

    def build(
        self, annotation: Any, metadata: Sequence[object] = (), location: str = ""
    ) -> WireCodec:
        """Return a codec for ``annotation`` or raise :class:`UnsupportedAnnotation`."""
        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is Annotated:
            return self.build(args[0], (*args[1:], *metadata), location)

        if annotation is bool:
            return BoolCodec()
        if annotation is int:
            return IntCodec(_width(metadata, DEFAULT_INT_WIDTH), self.config.byte_order)
        if annotation is float:
            width = _width(metadata, DEFAULT_FLOAT_WIDTH)
            return FloatCodec(width.size, self.config.byte_order)
        if annotation is str:
            return StrCodec(self.length_prefix)
        if annotation is bytes:
            return BytesCodec(self.length_prefix)

        if origin in (Union, types.UnionType):
            present = [arg for arg in args if arg is not type(None)]
            if len(present) == 1 and len(args) == 2:
                return OptionalCodec(self.build(present[0], (), f"{location}?"))
            raise UnsupportedAnnotation(location, annotation)

        if origin in (list, Sequence) and len(args) == 1:
            return SequenceCodec(self.build(args[0], (), f"{location}[]"), self.length_prefix, list)
        if origin in (set, frozenset) and len(args) == 1:
            return SequenceCodec(
                self.build(args[0], (), f"{location}[]"), self.length_prefix, origin, unordered=True
            )
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                item = self.build(args[0], (), f"{location}[]")
                return SequenceCodec(item, self.length_prefix, tuple)
            return TupleCodec(
                tuple(
                    self.build(arg, (), f"{location}[{position}]")
                    for position, arg in enumerate(args)
                )
            )
        if origin in (dict, Mapping) and len(args) == 2:
            return MappingCodec(
                self.build(args[0], (), f"{location}{{key}}"),
                self.build(args[1], (), f"{location}{{value}}"),
                self.length_prefix,
            )

        if isinstance(annotation, type) and origin is None:
            if issubclass(annotation, Enum):
                return EnumCodec(annotation, self.variant_index)
            if issubclass(annotation, TaggedUnion) and annotation is not TaggedUnion:
                return self.union(annotation)
            if issubclass(annotation, BaseModel):
                return self.model(annotation)

        raise UnsupportedAnnotation(location, annotation)

    def model(self, model: type[BaseModel]) -> ModelCodec:
        cached = self._models.get(model)
        if cached is not None:
            return cached
        codec = ModelCodec(model, self.config.max_nesting_depth)
        self._models[model] = codec
        try:
            codec.fields = tuple(
                (
                    field_name,
                    self.build(
                        info.annotation, info.metadata, f"{model.__qualname__}.{field_name}"
                    ),
                )
                for field_name, info in model.model_fields.items()
            )
        except UnsupportedAnnotation:
            del self._models[model]
            raise
        return codec

    def union(self, union: type[TaggedUnion]) -> UnionCodec:
        cached = self._unions.get(union)
        if cached is not None:
            return cached
        codec = UnionCodec(
            union, tuple(self.model(variant) for variant in union.__variants__), self.variant_index
        )
        self._unions[union] = codec
        return codec


def _check_count(reader: Reader, count: int, element_width: int, type_name: str) -> None:
    if not element_width:
        if count:
            raise DecodeFailure(
                ZeroWidthElements(type_name=type_name, offset=reader.offset, count=count)
            )
        return
    if count * element_width > reader.remaining:
        raise DecodeFailure(
            TruncatedInput(
                offset=reader.offset, needed=count * element_width, available=reader.remaining
            )
        )


def _width(metadata: Sequence[object], default: FixedWidth) -> FixedWidth:
    return next((item for item in metadata if isinstance(item, FixedWidth)), default)


__all__ = [
    "BoolCodec",
    "ByteOrder",
    "BytesCodec",
    "CodecBuilder",
    "DecodeFailure",
    "EnumCodec",
    "FloatCodec",
    "IntCodec",
    "MappingCodec",
    "ModelCodec",
    "OptionalCodec",
    "Reader",
    "SequenceCodec",
    "StrCodec",
    "TupleCodec",
    "UnionCodec",
    "UnsupportedAnnotation",
    "WireCodec",
]
