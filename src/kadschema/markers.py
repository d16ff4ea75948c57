"""
Declaration surface: the schema marker, key markers, and tagged unions.

A struct schema is a Pydantic model::

    @schema
    class User(BaseModel):
        id: Annotated[str, Key()]
        name: str

A tagged union nests its variants (Pydantic models) in declaration order::

    @schema
    class Product(TaggedUnion):
        class Digital(Variant):
            sku: Annotated[str, Key()]
            price: U32

        class Physical(Variant):
            __key__ = "barcode"
            barcode: str

        class Discontinued(Variant):
            pass

A whole-schema key function is passed by reference or by name::

    @schema(key_fn="order_key")
    class Order(BaseModel): ...

    def order_key(order: Order) -> str: ...

Markers only annotate declarations. Nothing is validated or generated until the
pipeline runs over the namespace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, TypeVar, overload

from pydantic import BaseModel, ConfigDict, GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema


SCHEMA_ATTR = "__kadschema__"

TType = TypeVar("TType", bound=type)

KeyFunctionRef = Callable[..., object] | str


@dataclass(frozen=True)
class Key:
    """Field-level key marker, used as ``Annotated`` metadata."""


@dataclass(frozen=True)
class SchemaMarker:
    """Attached to a class by :func:`schema`."""

    key_fn: KeyFunctionRef | None = None


@overload
def schema(cls: TType, /) -> TType: ...


@overload
def schema(*, key_fn: KeyFunctionRef | None = None) -> Callable[[TType], TType]: ...


def schema(
    cls: TType | None = None, /, *, key_fn: KeyFunctionRef | None = None
) -> TType | Callable[[TType], TType]:
    """Mark a class as a storage schema, optionally with a whole-schema key function."""

    def mark(target: TType) -> TType:
        setattr(target, SCHEMA_ATTR, SchemaMarker(key_fn=key_fn))
        return target

    match cls:
        case None:
            return mark
        case _:
            return mark(cls)


def schema_marker(obj: object) -> SchemaMarker | None:
    """Return the marker declared directly on ``obj`` (never an inherited one)."""
    if not isinstance(obj, type):
        return None
    marker = vars(obj).get(SCHEMA_ATTR)
    return marker if isinstance(marker, SchemaMarker) else None


class Variant(BaseModel):
    """Base class for tagged-union variants. A variant without fields is a unit variant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    __union__: ClassVar[type[TaggedUnion] | None] = None
    __key__: ClassVar[str | None] = None


class _TaggedUnionMeta(type):
    def __instancecheck__(cls, instance: object) -> bool:
        if cls is TaggedUnion:
            return isinstance(instance, Variant) and type(instance).__union__ is not None
        variants: tuple[type[Variant], ...] = getattr(cls, "__variants__", ())
        return isinstance(instance, variants)


class TaggedUnion(metaclass=_TaggedUnionMeta):
    """
    Base class for sum types.

    Subclasses are namespaces: their nested :class:`Variant` classes are the
    alternatives, in declaration order. ``isinstance(variant_instance, Union)``
    holds, and the union may be used as a field type in other models.
    """

    __variants__: ClassVar[tuple[type[Variant], ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        variants = tuple(
            member
            for member in vars(cls).values()
            if isinstance(member, type) and issubclass(member, Variant)
        )
        cls.__variants__ = variants
        for variant in variants:
            variant.__union__ = cls

    def __new__(cls, *args: object, **kwargs: object) -> TaggedUnion:
        raise TypeError(f"{cls.__name__} is a tagged union; instantiate one of its variants")

    @classmethod
    def variant_index(cls, instance: Variant) -> int:
        """Declaration index of the variant ``instance`` belongs to."""
        return cls.__variants__.index(type(instance))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.union_schema(
            [handler.generate_schema(variant) for variant in cls.__variants__]
        )


__all__ = [
    "Key",
    "KeyFunctionRef",
    "SCHEMA_ATTR",
    "SchemaMarker",
    "TaggedUnion",
    "Variant",
    "schema",
    "schema_marker",
]
