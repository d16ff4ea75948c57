# src/kadschema/synthesizer.py
"""
Key type synthesis.

For every validated schema ``S`` a nominal key type ``SKey`` is generated,
mirroring the schema's :data:`~kadschema.models.key_shape.KeyShape`:

========================  ==============================================
Shape                     Generated type
========================  ==============================================
``SingleField``           :class:`SingleFieldKey` wrapping one value
``CompositeFields``       :class:`CompositeKey` wrapping an ordered tuple
``WholeSchemaFunction``   :class:`FunctionKey` wrapping the return value
``PerVariant``            :class:`PerVariantKey` with one constructor
                          class per key-bearing variant (``SKey.Digital``)
========================  ==============================================

Key instances are immutable, hash and compare as their underlying value, and
round-trip through :meth:`SchemaKey.to_bytes` / :meth:`SchemaKey.from_bytes`.
The storage key of a composite is the concatenation of each segment's own
encoding, in declaration order, with no delimiter.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, Any, Callable, ClassVar, Self, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError

from kadschema.errors.decode import DecodeResult, ValidationFailed
from kadschema.errors.exceptions import RecordEncodeError
from kadschema.errors.generation import (
    GenerationError,
    KeyTypeSynthesisFailed,
    TypeInferenceFailed,
)
from kadschema.models.definitions import FieldDescriptor, SchemaDefinition
from kadschema.models.key_shape import (
    CompositeFields,
    KeyShape,
    PerVariant,
    SingleField,
    WholeSchemaFunction,
)
from kadschema.result import Failure, Result, Success
from kadschema.serialization.wire import CodecBuilder, TupleCodec, UnsupportedAnnotation, WireCodec
from kadschema.validation import validate_value


logger = logging.getLogger(__name__)

R = TypeVar("R")


def render_value(value: object) -> str:
    """Human-readable form of one key segment."""
    match value:
        case bytes():
            return value.hex()
        case Enum():
            return value.name
        case _:
            return str(value)


class SchemaKey:
    """
    Base class of every synthesized key type.

    Construct with the underlying value (``UserKey("u1")``); invalid values
    raise :class:`pydantic.ValidationError`. Use :meth:`from_value` for a
    non-raising constructor.
    """

    __slots__ = ("_value",)

    __schema__: ClassVar[type]
    __shape__: ClassVar[KeyShape]
    _codec: ClassVar[WireCodec]
    _adapter: ClassVar[TypeAdapter[Any]]

    _value: Any

    def __init__(self, value: Any) -> None:
        object.__setattr__(self, "_value", self._adapter.validate_python(value, strict=True))

    # -- construction ------------------------------------------------------ #

    @classmethod
    def _trusted(cls, value: Any) -> Self:
        instance = object.__new__(cls)
        object.__setattr__(instance, "_value", value)
        return instance

    @classmethod
    def from_value(cls, value: Any) -> Result[Self, ValidationError]:
        return validate_value(cls._adapter, value).map(cls._trusted)

    @classmethod
    def from_instance(cls, instance: Any) -> Self | None:
        """Extract the key of a schema instance."""
        raise NotImplementedError

    @classmethod
    def from_bytes(cls, data: bytes) -> DecodeResult[Self]:
        return cls._codec.decode(data).and_then(cls._revalidate)

    @classmethod
    def _revalidate(cls, value: Any) -> DecodeResult[Self]:
        match validate_value(cls._adapter, value):
            case Success(validated):
                return Success(cls._trusted(validated))
            case Failure(error):
                return Failure(ValidationFailed(type_name=cls.__name__, error=error))

    # -- decomposition ----------------------------------------------------- #

    @property
    def value(self) -> Any:
        return self._value

    def into_value(self) -> Any:
        return self._value

    def to_bytes(self) -> bytes:
        return self._codec.encode(self._value)

    # -- value semantics --------------------------------------------------- #

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SchemaKey):
            return type(self) is type(other) and self._value == other._value
        return bool(self._value == other)

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return render_value(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}({self._value!r})"


class SingleFieldKey(SchemaKey):
    __slots__ = ()

    field: ClassVar[str]

    @classmethod
    def from_instance(cls, instance: Any) -> Self:
        return cls._trusted(getattr(instance, cls.field))


class CompositeKey(SchemaKey):
    """Ordered tuple of key fields; ``str()`` joins the segments with ``:``."""

    __slots__ = ()

    fields: ClassVar[tuple[str, ...]]

    @classmethod
    def from_instance(cls, instance: Any) -> Self:
        return cls._trusted(tuple(getattr(instance, name) for name in cls.fields))

    @classmethod
    def from_fields(cls, **values: Any) -> Self:
        """Construct from keyword arguments named after the key fields."""
        missing = [name for name in cls.fields if name not in values]
        if missing or len(values) != len(cls.fields):
            raise TypeError(f"{cls.__name__} expects exactly the fields {list(cls.fields)}")
        return cls(tuple(values[name] for name in cls.fields))

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self.fields, self._value))

    def __str__(self) -> str:
        return ":".join(render_value(part) for part in self._value)

    def __repr__(self) -> str:
        parts = ", ".join(f"{name}={part!r}" for name, part in zip(self.fields, self._value))
        return f"{type(self).__qualname__}({parts})"


class FunctionKey(SchemaKey):
    __slots__ = ()

    function: ClassVar[Callable[[Any], object]]

    @classmethod
    def from_instance(cls, instance: Any) -> Self:
        produced = cls.function(instance)
        match cls.from_value(produced):
            case Success(key):
                return key
            case Failure(error):
                raise RecordEncodeError(
                    f"{cls.__schema__.__name__} key function",
                    f"returned {type(produced).__name__} not matching its annotation "
                    f"({error.error_count()} validation error(s))",
                )


class PerVariantKey(SchemaKey):
    """
    Key of a tagged union whose variants each declare one key field.

    The generated base (``ProductKey``) is abstract; its nested constructor
    classes (``ProductKey.Digital``) carry the value. Only the active variant's
    key field is encoded; the variant tag lives in the record value.
    """

    __slots__ = ()

    __variant__: ClassVar[str | None] = None
    __constructors__: ClassVar[tuple[type[PerVariantKey], ...]] = ()
    field: ClassVar[str]

    def __init__(self, value: Any) -> None:
        if self.__variant__ is None:
            raise TypeError(
                f"{type(self).__name__} is a per-variant key; use one of "
                f"{[c.__variant__ for c in self.__constructors__]}"
            )
        super().__init__(value)

    @classmethod
    def constructor(cls, variant: str) -> type[PerVariantKey]:
        for candidate in cls.__constructors__:
            if candidate.__variant__ == variant:
                return candidate
        raise ValueError(f"{cls.__name__} has no key constructor for variant '{variant}'")

    @classmethod
    def _candidates(cls, variant: str | None) -> tuple[type[PerVariantKey], ...]:
        if cls.__variant__ is not None:
            return (cls,)
        if variant is not None:
            return (cls.constructor(variant),)
        return cls.__constructors__

    @classmethod
    def from_instance(cls, instance: Any) -> PerVariantKey | None:
        variant = type(instance).__name__
        for candidate in cls.__constructors__:
            if candidate.__variant__ == variant:
                return candidate._trusted(getattr(instance, candidate.field))
        return None

    @classmethod
    def from_value(  # type: ignore[override]
        cls, value: Any, *, variant: str | None = None
    ) -> Result[PerVariantKey, ValidationError]:
        """Validate against each candidate constructor in declaration order."""
        failures: list[Result[PerVariantKey, ValidationError]] = []
        for candidate in cls._candidates(variant):
            result = validate_value(candidate._adapter, value).map(candidate._trusted)
            if result.is_success():
                return result
            failures.append(result)
        return cls._first_failure(failures)

    @classmethod
    def from_bytes(  # type: ignore[override]
        cls, data: bytes, *, variant: str | None = None
    ) -> DecodeResult[PerVariantKey]:
        """
        Decode key bytes.

        Key bytes carry no variant tag, so on the generated base class each
        constructor is tried in declaration order and the first that consumes
        the input exactly wins. Pass ``variant`` to pick one explicitly.
        """
        failures: list[DecodeResult[PerVariantKey]] = []
        for candidate in cls._candidates(variant):
            result = candidate._codec.decode(data).and_then(candidate._revalidate)
            if result.is_success():
                return result
            failures.append(result)
        return cls._first_failure(failures)

    @classmethod
    def _first_failure(cls, failures: list[R]) -> R:
        match failures:
            case [first, *_]:
                return first
            case _:
                raise TypeError(f"{cls.__name__} has no key constructors")

    @property
    def variant(self) -> str:
        match self.__variant__:
            case str(name):
                return name
            case _:
                raise TypeError(f"{type(self).__name__} is not bound to a variant")

    def __str__(self) -> str:
        return f"{self.__variant__}:{render_value(self._value)}"


# --------------------------------------------------------------------------- #
# Synthesis
# --------------------------------------------------------------------------- #


class _SynthesisFailure(Exception):
    def __init__(self, error: GenerationError) -> None:
        self.error = error
        super().__init__(error.kind)


class KeyTypeSynthesizer:
    """Builds one key class per schema; codecs come from the run's shared builder."""

    def __init__(self, builder: CodecBuilder) -> None:
        self.builder = builder

    def synthesize(
        self, definition: SchemaDefinition, shape: KeyShape
    ) -> Result[type[SchemaKey], GenerationError]:
        try:
            key_type = self._synthesize(definition, shape)
        except _SynthesisFailure as failure:
            return Failure(failure.error)
        logger.debug(f"Synthesized {key_type.__qualname__} for {definition.qualified_name}")
        return Success(key_type)

    def _synthesize(self, definition: SchemaDefinition, shape: KeyShape) -> type[SchemaKey]:
        schema_type = definition.schema_type
        match shape:
            case SingleField(field=key_field):
                return self._make(
                    definition,
                    shape,
                    SingleFieldKey,
                    codec=self._codec(
                        definition, key_field.annotation, key_field.metadata, key_field.name
                    ),
                    adapter=self._adapter(definition, _annotated(key_field)),
                    field=key_field.name,
                )
            case CompositeFields(fields=key_fields):
                return self._make(
                    definition,
                    shape,
                    CompositeKey,
                    codec=TupleCodec(
                        tuple(
                            self._codec(definition, f.annotation, f.metadata, f.name)
                            for f in key_fields
                        )
                    ),
                    adapter=self._adapter(
                        definition,
                        tuple[tuple(_annotated(f) for f in key_fields)],  # type: ignore[misc]
                    ),
                    fields=tuple(f.name for f in key_fields),
                )
            case WholeSchemaFunction(function=function, return_annotation=returns):
                return self._make(
                    definition,
                    shape,
                    FunctionKey,
                    codec=self._codec(
                        definition, returns, (), f"{shape.function_name}() -> return"
                    ),
                    adapter=self._adapter(definition, returns),
                    function=staticmethod(function),
                )
            case PerVariant(keys=keys):
                base = self._make(definition, shape, PerVariantKey)
                constructors: list[type[PerVariantKey]] = []
                for variant_key in keys:
                    key_field = variant_key.field
                    location = f"{variant_key.variant}.{key_field.name}"
                    constructor = type(
                        variant_key.variant,
                        (base,),
                        {
                            "__slots__": (),
                            "__module__": schema_type.__module__,
                            "__qualname__": f"{base.__qualname__}.{variant_key.variant}",
                            "__variant__": variant_key.variant,
                            "_codec": self._codec(
                                definition, key_field.annotation, key_field.metadata, location
                            ),
                            "_adapter": self._adapter(definition, _annotated(key_field)),
                            "field": key_field.name,
                        },
                    )
                    setattr(base, variant_key.variant, constructor)
                    constructors.append(constructor)
                base.__constructors__ = tuple(constructors)
                return base

    def _make(
        self,
        definition: SchemaDefinition,
        shape: KeyShape,
        base: type[Any],
        codec: WireCodec | None = None,
        adapter: TypeAdapter[Any] | None = None,
        **attributes: Any,
    ) -> type[Any]:
        schema_type = definition.schema_type
        namespace: dict[str, Any] = {
            "__slots__": (),
            "__module__": schema_type.__module__,
            "__qualname__": f"{schema_type.__qualname__}Key",
            "__doc__": f"Storage key of :class:`{schema_type.__qualname__}`.",
            "__schema__": schema_type,
            "__shape__": shape,
            **attributes,
        }
        if codec is not None:
            namespace["_codec"] = codec
        if adapter is not None:
            namespace["_adapter"] = adapter
        return type(f"{schema_type.__name__}Key", (base,), namespace)

    def _codec(
        self,
        definition: SchemaDefinition,
        annotation: Any,
        metadata: tuple[object, ...],
        location: str,
    ) -> WireCodec:
        try:
            return self.builder.build(annotation, metadata, f"{definition.name}.{location}")
        except UnsupportedAnnotation as exc:
            raise _SynthesisFailure(
                TypeInferenceFailed(
                    schema=definition.qualified_name,
                    location=exc.location,
                    annotation=repr(exc.annotation),
                )
            ) from exc

    @staticmethod
    def _adapter(definition: SchemaDefinition, annotation: Any) -> TypeAdapter[Any]:
        try:
            return TypeAdapter(annotation)
        except PydanticUserError as exc:
            raise _SynthesisFailure(
                KeyTypeSynthesisFailed(schema=definition.qualified_name, reason=str(exc))
            ) from exc


def synthesize_key_type(
    definition: SchemaDefinition, shape: KeyShape, builder: CodecBuilder | None = None
) -> Result[type[SchemaKey], GenerationError]:
    return KeyTypeSynthesizer(builder or CodecBuilder()).synthesize(definition, shape)


def _annotated(descriptor: FieldDescriptor) -> Any:
    if not descriptor.metadata:
        return descriptor.annotation
    return Annotated[(descriptor.annotation, *descriptor.metadata)]  # type: ignore[valid-type]


__all__ = [
    "CompositeKey",
    "FunctionKey",
    "KeyTypeSynthesizer",
    "PerVariantKey",
    "SchemaKey",
    "SingleFieldKey",
    "render_value",
    "synthesize_key_type",
]
