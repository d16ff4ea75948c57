"""Resolved key policies. Every valid schema has exactly one KeyShape."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal

from kadschema.models.definitions import FieldDescriptor


@dataclass(frozen=True)
class SingleField:
    """The key is one field's value."""

    field: FieldDescriptor
    kind: Literal["SingleField"] = "SingleField"


@dataclass(frozen=True)
class CompositeFields:
    """The key is the ordered tuple of two or more fields (declaration order)."""

    fields: tuple[FieldDescriptor, ...]
    kind: Literal["CompositeFields"] = "CompositeFields"

    def __post_init__(self) -> None:
        if len(self.fields) < 2:
            raise ValueError("CompositeFields requires at least two key fields")


@dataclass(frozen=True)
class WholeSchemaFunction:
    """The key is computed by a registered function of the whole instance."""

    function: Callable[..., object]
    return_annotation: Any
    kind: Literal["WholeSchemaFunction"] = "WholeSchemaFunction"

    @property
    def function_name(self) -> str:
        return getattr(self.function, "__qualname__", repr(self.function))


@dataclass(frozen=True)
class VariantKey:
    """One key-bearing variant of a per-variant key."""

    variant: str
    index: int
    field: FieldDescriptor


@dataclass(frozen=True)
class PerVariant:
    """Each non-unit variant contributes one key field; unit variants have no key."""

    keys: tuple[VariantKey, ...]
    kind: Literal["PerVariant"] = "PerVariant"

    def for_variant(self, name: str) -> VariantKey | None:
        return next((key for key in self.keys if key.variant == name), None)


KeyShape = SingleField | CompositeFields | WholeSchemaFunction | PerVariant


def describe_shape(shape: KeyShape) -> str:
    """One-line human description used by the CLI and log messages."""
    match shape:
        case SingleField(field=key_field):
            return f"single field '{key_field.name}'"
        case CompositeFields(fields=key_fields):
            return "composite (" + ", ".join(f.name for f in key_fields) + ")"
        case WholeSchemaFunction():
            return f"key function '{shape.function_name}'"
        case PerVariant(keys=keys):
            return "per variant (" + ", ".join(f"{k.variant}.{k.field.name}" for k in keys) + ")"


__all__ = [
    "CompositeFields",
    "KeyShape",
    "PerVariant",
    "SingleField",
    "VariantKey",
    "WholeSchemaFunction",
    "describe_shape",
]
