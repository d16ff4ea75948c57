"""Immutable descriptions of scanned schema declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kadschema.markers import KeyFunctionRef, Variant


class SchemaKind(str, Enum):
    """Shape of a schema declaration."""

    struct = "struct"
    tagged_union = "tagged_union"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One declared field of a struct or variant.

    Attributes:
        name: Field name as declared.
        index: Position among the owner's fields (declaration order).
        annotation: Declared value type, with ``Annotated`` wrappers removed.
        metadata: ``Annotated`` extras and Pydantic constraints, in order.
        key_markers: Number of :class:`~kadschema.markers.Key` markers on the field.
    """

    name: str
    index: int
    annotation: Any
    metadata: tuple[object, ...] = ()
    key_markers: int = 0

    @property
    def is_key(self) -> bool:
        return self.key_markers > 0


@dataclass(frozen=True)
class VariantDefinition:
    """A tagged-union alternative with its own ordered fields."""

    name: str
    index: int
    model: type[Variant]
    fields: tuple[FieldDescriptor, ...]
    declared_key: str | None = None

    @property
    def is_unit(self) -> bool:
        return not self.fields

    @property
    def key_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(descriptor for descriptor in self.fields if descriptor.is_key)


@dataclass(frozen=True)
class SchemaDefinition:
    """
    A collected schema declaration.

    Exactly one of ``fields`` (struct) or ``variants`` (tagged union) is populated.
    """

    qualified_name: str
    schema_type: type
    kind: SchemaKind
    fields: tuple[FieldDescriptor, ...] = ()
    variants: tuple[VariantDefinition, ...] = ()
    key_function: KeyFunctionRef | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.schema_type.__name__

    @property
    def key_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(descriptor for descriptor in self.fields if descriptor.is_key)

    def variant(self, name: str) -> VariantDefinition | None:
        return next((variant for variant in self.variants if variant.name == name), None)


__all__ = [
    "FieldDescriptor",
    "SchemaDefinition",
    "SchemaKind",
    "VariantDefinition",
]
