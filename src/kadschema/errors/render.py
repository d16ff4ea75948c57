"""Human-readable rendering of diagnostics and decode errors."""

from __future__ import annotations

from typing import Literal, Never

from kadschema.errors.decode import (
    DecodeError,
    InvalidTag,
    InvalidUtf8,
    InvalidVariantIndex,
    KeyMismatch,
    NestingTooDeep,
    TrailingBytes,
    TruncatedInput,
    ValidationFailed,
    ZeroWidthElements,
)
from kadschema.errors.generation import (
    CodecAssemblyFailed,
    GenerationError,
    KeyTypeSynthesisFailed,
    TypeInferenceFailed,
)
from kadschema.errors.validation import (
    ConflictingKeyPolicy,
    DuplicateKeyMarker,
    InnerKeyError,
    InvalidSchemaType,
    KeyDeclarationError,
    KeyFieldNotFound,
    KeyFunctionArity,
    KeyFunctionNotCallable,
    KeyFunctionNotFound,
    KeyFunctionParameterMismatch,
    KeyNotFound,
    ModuleImportFailed,
    OuterKeyError,
    ReturnTypeNotFound,
    SchemaValidationError,
    TooManyKeys,
    UnitVariantWithKey,
    UnresolvableAnnotation,
)


Diagnostic = SchemaValidationError | GenerationError

DiagnosticCategory = Literal["import", "validation", "generation"]


def assert_never(value: Never) -> Never:
    """Exhaustiveness guard for match statements over closed unions."""
    raise AssertionError(f"Unhandled case: {value!r}")


def _in_variant(variant: str | None) -> str:
    return f" in variant '{variant}'" if variant is not None else ""


def _render_key_error(schema: str, error: InnerKeyError | OuterKeyError) -> str:
    match error:
        case KeyNotFound(variant=None):
            return (
                f"Schema '{schema}' has no key. Mark a field with Key() "
                "or declare a key function with @schema(key_fn=...)"
            )
        case KeyNotFound(variant=variant):
            return (
                f"Schema '{schema}' variant '{variant}' has no key field, "
                "but its sibling variants do. Mark exactly one field with Key()"
            )
        case TooManyKeys(variant=variant, fields=fields):
            return (
                f"Schema '{schema}' variant '{variant}' has multiple key fields: "
                f"[{', '.join(fields)}]. Variants can have at most 1 key field"
            )
        case DuplicateKeyMarker(field=field, count=count, variant=variant):
            return (
                f"Schema '{schema}' field '{field}'{_in_variant(variant)} "
                f"carries the key marker {count} times"
            )
        case UnitVariantWithKey(variant=variant):
            return (
                f"Schema '{schema}' unit variant '{variant}' "
                "has no fields and cannot declare a key"
            )
        case KeyFieldNotFound(variant=variant, field=field):
            return (
                f"Schema '{schema}' variant '{variant}' "
                f"declares key '{field}', which is not a field"
            )
        case KeyFunctionNotFound(reference=reference, module=module):
            return f"Schema '{schema}' key function '{reference}' not found in module '{module}'"
        case KeyFunctionNotCallable(reference=reference, found=found):
            return f"Schema '{schema}' key function '{reference}' is not callable (found {found})"
        case KeyFunctionArity(function=function, parameter_count=count):
            return (
                f"Schema '{schema}' key function '{function}' must take exactly one "
                f"parameter, found {count}"
            )
        case KeyFunctionParameterMismatch(function=function, expected=expected, found=found):
            return (
                f"Schema '{schema}' key function '{function}' parameter must be annotated "
                f"'{expected}', found '{found}'"
            )
        case ReturnTypeNotFound(function=function):
            return f"Schema '{schema}' key function '{function}' has no return annotation"
        case ConflictingKeyPolicy(function=function, marked=marked):
            return (
                f"Schema '{schema}' declares key function '{function}' and key markers on "
                f"[{', '.join(marked)}]; use one or the other"
            )
        case _:
            assert_never(error)


def render_validation_error(diagnostic: SchemaValidationError) -> str:
    schema = diagnostic.schema
    match diagnostic.error:
        case KeyDeclarationError(error=inner):
            return _render_key_error(schema, inner)
        case InvalidSchemaType(reason=reason):
            return (
                f"Invalid schema type '{schema}': {reason}. "
                "Only fielded structs and tagged unions are allowed"
            )
        case UnresolvableAnnotation(owner=owner, message=message):
            return f"Schema '{schema}' has unresolvable annotations on '{owner}': {message}"
        case ModuleImportFailed(module=module, message=message):
            return f"Cannot import module '{module}': {message}"
        case other:
            assert_never(other)


def render_generation_error(error: GenerationError) -> str:
    match error:
        case TypeInferenceFailed(schema=schema, location=location, annotation=annotation):
            return (
                f"Type inference failed for '{schema}' at {location}: "
                f"no wire codec for {annotation}"
            )
        case KeyTypeSynthesisFailed(schema=schema, reason=reason):
            return f"Key type synthesis failed for '{schema}': {reason}"
        case CodecAssemblyFailed(schema=schema, reason=reason):
            return f"Codec assembly failed for '{schema}': {reason}"
        case _:
            assert_never(error)


def diagnostic_category(diagnostic: Diagnostic) -> DiagnosticCategory:
    match diagnostic:
        case SchemaValidationError(error=ModuleImportFailed()):
            return "import"
        case SchemaValidationError():
            return "validation"
        case _:
            return "generation"


def render_diagnostic(diagnostic: Diagnostic) -> str:
    """Render one diagnostic with its category prefix, e.g. ``error[validation]: ...``."""
    match diagnostic:
        case SchemaValidationError():
            body = render_validation_error(diagnostic)
        case _:
            body = render_generation_error(diagnostic)
    return f"error[{diagnostic_category(diagnostic)}]: {body}"


def render_decode_error(error: DecodeError) -> str:
    match error:
        case TruncatedInput(offset=offset, needed=needed, available=available):
            return (
                f"truncated input at offset {offset}: "
                f"needed {needed} bytes, {available} available"
            )
        case InvalidVariantIndex(type_name=type_name, index=index, variant_count=count):
            return f"variant index {index} out of range for {type_name} ({count} variants)"
        case InvalidUtf8(offset=offset, reason=reason):
            return f"invalid UTF-8 at offset {offset}: {reason}"
        case InvalidTag(offset=offset, value=value, expected=expected):
            return f"invalid {expected} tag {value} at offset {offset}"
        case NestingTooDeep(offset=offset, limit=limit):
            return f"models nested deeper than {limit} levels at offset {offset}"
        case ZeroWidthElements(type_name=type_name, offset=offset, count=count):
            return (
                f"{type_name} at offset {offset} claims {count} elements "
                "that encode to no bytes"
            )
        case TrailingBytes(consumed=consumed, remaining=remaining):
            return f"{remaining} trailing bytes after {consumed} decoded bytes"
        case ValidationFailed(type_name=type_name, error=validation_error):
            count = validation_error.error_count()
            return f"decoded {type_name} failed validation: {count} error(s)"
        case KeyMismatch(expected=expected, found=found):
            return f"record key {found.hex()} does not match value key {expected.hex()}"
        case _:
            assert_never(error)


__all__ = [
    "Diagnostic",
    "DiagnosticCategory",
    "assert_never",
    "diagnostic_category",
    "render_decode_error",
    "render_diagnostic",
    "render_generation_error",
    "render_validation_error",
]
