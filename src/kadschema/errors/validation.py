"""ADTs for schema-authoring failures, reported before any codec is emitted."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


# --------------------------------------------------------------------------- #
# Inner key errors: field and variant level markers
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class KeyNotFound:
    """No key marker (and no key function) where one is required."""

    variant: str | None = None
    kind: Literal["KeyNotFound"] = "KeyNotFound"


@dataclass(frozen=True)
class TooManyKeys:
    """A tagged-union variant marks more than one key field."""

    variant: str
    fields: tuple[str, ...]
    kind: Literal["TooManyKeys"] = "TooManyKeys"


@dataclass(frozen=True)
class DuplicateKeyMarker:
    """The same field carries the key marker more than once."""

    field: str
    count: int
    variant: str | None = None
    kind: Literal["DuplicateKeyMarker"] = "DuplicateKeyMarker"


@dataclass(frozen=True)
class UnitVariantWithKey:
    """A variant without fields declares a key."""

    variant: str
    kind: Literal["UnitVariantWithKey"] = "UnitVariantWithKey"


@dataclass(frozen=True)
class KeyFieldNotFound:
    """A variant-level ``__key__`` names a field the variant does not declare."""

    variant: str
    field: str
    kind: Literal["KeyFieldNotFound"] = "KeyFieldNotFound"


InnerKeyError = (
    KeyNotFound | TooManyKeys | DuplicateKeyMarker | UnitVariantWithKey | KeyFieldNotFound
)


# --------------------------------------------------------------------------- #
# Outer key errors: whole-schema key functions
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class KeyFunctionNotFound:
    """A key function referenced by name does not exist in the schema's module."""

    reference: str
    module: str
    kind: Literal["KeyFunctionNotFound"] = "KeyFunctionNotFound"


@dataclass(frozen=True)
class KeyFunctionNotCallable:
    """The key function reference resolved to something that cannot be called."""

    reference: str
    found: str
    kind: Literal["KeyFunctionNotCallable"] = "KeyFunctionNotCallable"


@dataclass(frozen=True)
class KeyFunctionArity:
    """The key function does not take exactly one parameter."""

    function: str
    parameter_count: int
    kind: Literal["KeyFunctionArity"] = "KeyFunctionArity"


@dataclass(frozen=True)
class KeyFunctionParameterMismatch:
    """The key function's parameter is not annotated with the schema's own type."""

    function: str
    expected: str
    found: str
    kind: Literal["KeyFunctionParameterMismatch"] = "KeyFunctionParameterMismatch"


@dataclass(frozen=True)
class ReturnTypeNotFound:
    """The key function has no return annotation, so no key type can be built."""

    function: str
    kind: Literal["ReturnTypeNotFound"] = "ReturnTypeNotFound"


@dataclass(frozen=True)
class ConflictingKeyPolicy:
    """A key function and field/variant key markers are declared together."""

    function: str
    marked: tuple[str, ...]
    kind: Literal["ConflictingKeyPolicy"] = "ConflictingKeyPolicy"


OuterKeyError = (
    KeyFunctionNotFound
    | KeyFunctionNotCallable
    | KeyFunctionArity
    | KeyFunctionParameterMismatch
    | ReturnTypeNotFound
    | ConflictingKeyPolicy
)


@dataclass(frozen=True)
class KeyDeclarationError:
    """Key policy failure (inner: markers, outer: key function)."""

    error: InnerKeyError | OuterKeyError
    kind: Literal["KeyDeclarationError"] = "KeyDeclarationError"


# --------------------------------------------------------------------------- #
# Malformed schemas
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class InvalidSchemaType:
    """A marked declaration cannot be a schema (no fields, no variants)."""

    reason: str
    kind: Literal["InvalidSchemaType"] = "InvalidSchemaType"


@dataclass(frozen=True)
class UnresolvableAnnotation:
    """Type hints of a schema or variant could not be resolved."""

    owner: str
    message: str
    kind: Literal["UnresolvableAnnotation"] = "UnresolvableAnnotation"


@dataclass(frozen=True)
class ModuleImportFailed:
    """A module under the scanned namespace raised while being imported."""

    module: str
    message: str
    kind: Literal["ModuleImportFailed"] = "ModuleImportFailed"


MalformedSchemaError = InvalidSchemaType | UnresolvableAnnotation | ModuleImportFailed


@dataclass(frozen=True)
class SchemaValidationError:
    """Top-level validation diagnostic, attributed to one schema."""

    schema: str
    error: KeyDeclarationError | MalformedSchemaError
    kind: Literal["SchemaValidationError"] = "SchemaValidationError"


def key_error(schema: str, error: InnerKeyError | OuterKeyError) -> SchemaValidationError:
    """Wrap an inner or outer key error for ``schema``."""
    return SchemaValidationError(schema=schema, error=KeyDeclarationError(error=error))


__all__ = [
    "ConflictingKeyPolicy",
    "DuplicateKeyMarker",
    "InnerKeyError",
    "InvalidSchemaType",
    "KeyDeclarationError",
    "KeyFieldNotFound",
    "KeyFunctionArity",
    "KeyFunctionNotCallable",
    "KeyFunctionNotFound",
    "KeyFunctionParameterMismatch",
    "KeyNotFound",
    "MalformedSchemaError",
    "ModuleImportFailed",
    "OuterKeyError",
    "ReturnTypeNotFound",
    "SchemaValidationError",
    "TooManyKeys",
    "UnitVariantWithKey",
    "UnresolvableAnnotation",
    "key_error",
]
