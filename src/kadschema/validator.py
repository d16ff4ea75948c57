# src/kadschema/validator.py
"""
Key policy validation.

Resolves exactly one :data:`~kadschema.models.key_shape.KeyShape` per scanned
schema, or the complete list of reasons it has none. Errors are accumulated
per schema so an author sees every problem with a declaration at once.

Struct rules:

* a whole-schema key function excludes every field marker
* otherwise one marked field is a ``SingleField`` key and two or more form a
  ``CompositeFields`` key in declaration order
* a field may carry the marker only once

Tagged-union rules:

* every non-unit variant contributes exactly one key field
  (``Annotated[..., Key()]`` or ``__key__ = "field"``)
* unit variants are exempt and may not declare a key
* a whole-schema key function excludes every per-variant marker
"""

from __future__ import annotations

import inspect
import logging
import sys
import typing
from typing import Any, Callable

from kadschema.errors.validation import (
    ConflictingKeyPolicy,
    DuplicateKeyMarker,
    InnerKeyError,
    KeyFieldNotFound,
    KeyFunctionArity,
    KeyFunctionNotCallable,
    KeyFunctionNotFound,
    KeyFunctionParameterMismatch,
    KeyNotFound,
    OuterKeyError,
    ReturnTypeNotFound,
    SchemaValidationError,
    TooManyKeys,
    UnitVariantWithKey,
    key_error,
)
from kadschema.markers import KeyFunctionRef
from kadschema.models.definitions import (
    FieldDescriptor,
    SchemaDefinition,
    SchemaKind,
    VariantDefinition,
)
from kadschema.models.key_shape import (
    CompositeFields,
    KeyShape,
    PerVariant,
    SingleField,
    VariantKey,
    WholeSchemaFunction,
)
from kadschema.result import Failure, Result, Success


logger = logging.getLogger(__name__)

KeyErrorDetail = InnerKeyError | OuterKeyError
ValidationOutcome = Result[KeyShape, list[SchemaValidationError]]


class KeyPolicyValidator:
    """Stateless validator; one instance may be shared across threads."""

    def validate(self, definition: SchemaDefinition) -> ValidationOutcome:
        match definition.kind:
            case SchemaKind.struct:
                outcome = self._validate_struct(definition)
            case SchemaKind.tagged_union:
                outcome = self._validate_union(definition)

        match outcome:
            case Success(shape):
                logger.debug(f"Resolved key shape {shape.kind} for {definition.qualified_name}")
                return Success(shape)
            case Failure(errors):
                return Failure([key_error(definition.qualified_name, error) for error in errors])

    # ------------------------------------------------------------------ #
    # Structs
    # ------------------------------------------------------------------ #

    def _validate_struct(
        self, definition: SchemaDefinition
    ) -> Result[KeyShape, list[KeyErrorDetail]]:
        errors: list[KeyErrorDetail] = _duplicate_markers(definition.fields, variant=None)
        marked = definition.key_fields

        if definition.key_function is not None:
            return self._function_shape(
                definition, definition.key_function, [f.name for f in marked], errors
            )

        match marked:
            case ():
                errors.append(KeyNotFound())
            case (single,):
                shape: KeyShape = SingleField(field=single)
            case _:
                shape = CompositeFields(fields=marked)

        return Failure(errors) if errors else Success(shape)

    # ------------------------------------------------------------------ #
    # Tagged unions
    # ------------------------------------------------------------------ #

    def _validate_union(
        self, definition: SchemaDefinition
    ) -> Result[KeyShape, list[KeyErrorDetail]]:
        errors: list[KeyErrorDetail] = []
        marked_by_variant: list[tuple[VariantDefinition, tuple[FieldDescriptor, ...]]] = []

        for variant in definition.variants:
            if variant.is_unit:
                if variant.declared_key is not None:
                    errors.append(UnitVariantWithKey(variant=variant.name))
                continue
            errors.extend(_duplicate_markers(variant.fields, variant=variant.name))
            match _variant_key_fields(variant):
                case Success(fields):
                    marked_by_variant.append((variant, fields))
                case Failure(error):
                    errors.append(error)

        if definition.key_function is not None:
            marked = [
                f"{variant.name}.{descriptor.name}"
                for variant, fields in marked_by_variant
                for descriptor in fields
            ]
            return self._function_shape(definition, definition.key_function, marked, errors)

        if not any(fields for _, fields in marked_by_variant):
            # Nothing declared at all: the whole union is keyless.
            if not errors:
                errors.append(KeyNotFound())
            return Failure(errors)

        keys: list[VariantKey] = []
        for variant, fields in marked_by_variant:
            match fields:
                case ():
                    errors.append(KeyNotFound(variant=variant.name))
                case (single,):
                    keys.append(VariantKey(variant=variant.name, index=variant.index, field=single))
                case _:
                    errors.append(
                        TooManyKeys(variant=variant.name, fields=tuple(f.name for f in fields))
                    )

        return Failure(errors) if errors else Success(PerVariant(keys=tuple(keys)))

    # ------------------------------------------------------------------ #
    # Whole-schema key functions
    # ------------------------------------------------------------------ #

    def _function_shape(
        self,
        definition: SchemaDefinition,
        reference: KeyFunctionRef,
        marked: list[str],
        errors: list[KeyErrorDetail],
    ) -> Result[KeyShape, list[KeyErrorDetail]]:
        match resolve_key_function(reference, definition.schema_type):
            case Failure(error):
                errors.append(error)
                function_name = (
                    reference if isinstance(reference, str) else _function_name(reference)
                )
            case Success((function, return_annotation)):
                function_name = _function_name(function)
        if marked:
            errors.append(ConflictingKeyPolicy(function=function_name, marked=tuple(marked)))
        if errors:
            return Failure(errors)
        return Success(WholeSchemaFunction(function=function, return_annotation=return_annotation))


def resolve_key_function(
    reference: KeyFunctionRef, schema_type: type
) -> Result[tuple[Callable[..., object], Any], OuterKeyError]:
    """
    Resolve a key function reference and check its signature.

    A string reference is looked up in the schema's defining module, so the
    function may be declared after the schema. The function must take exactly
    one parameter annotated with the schema type and must annotate its return.
    """
    module_name = schema_type.__module__
    match reference:
        case str():
            module = sys.modules.get(module_name)
            candidate = getattr(module, reference, None) if module is not None else None
            if candidate is None:
                return Failure(KeyFunctionNotFound(reference=reference, module=module_name))
            label = reference
        case _:
            candidate = reference
            label = _function_name(reference)

    if not callable(candidate):
        return Failure(KeyFunctionNotCallable(reference=label, found=type(candidate).__name__))

    function: Callable[..., object] = candidate
    name = _function_name(function)
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return Failure(KeyFunctionNotCallable(reference=label, found=type(candidate).__name__))

    parameters = list(signature.parameters.values())
    if len(parameters) != 1 or parameters[0].kind in (
        inspect.Parameter.VAR_POSITIONAL,
        inspect.Parameter.VAR_KEYWORD,
    ):
        return Failure(KeyFunctionArity(function=name, parameter_count=len(parameters)))

    hints = _type_hints(function, schema_type)
    parameter = parameters[0]
    declared = hints.get(parameter.name, parameter.annotation)
    if not _names_schema(declared, schema_type):
        return Failure(
            KeyFunctionParameterMismatch(
                function=name, expected=schema_type.__name__, found=_annotation_name(declared)
            )
        )

    return_annotation = hints.get("return", signature.return_annotation)
    if return_annotation in (inspect.Signature.empty, None, type(None)):
        return Failure(ReturnTypeNotFound(function=name))

    return Success((function, return_annotation))


def validate_definition(definition: SchemaDefinition) -> ValidationOutcome:
    return KeyPolicyValidator().validate(definition)


def _variant_key_fields(
    variant: VariantDefinition,
) -> Result[tuple[FieldDescriptor, ...], KeyFieldNotFound]:
    marked = list(variant.key_fields)
    if variant.declared_key is not None:
        declared = next((f for f in variant.fields if f.name == variant.declared_key), None)
        if declared is None:
            return Failure(KeyFieldNotFound(variant=variant.name, field=variant.declared_key))
        if declared not in marked:
            marked.append(declared)
    return Success(tuple(sorted(marked, key=lambda descriptor: descriptor.index)))


def _duplicate_markers(
    fields: tuple[FieldDescriptor, ...], variant: str | None
) -> list[KeyErrorDetail]:
    return [
        DuplicateKeyMarker(field=descriptor.name, count=descriptor.key_markers, variant=variant)
        for descriptor in fields
        if descriptor.key_markers > 1
    ]


def _type_hints(function: Callable[..., object], schema_type: type) -> dict[str, Any]:
    # The schema may live in a local scope the function's globals cannot see.
    try:
        return typing.get_type_hints(function, localns={schema_type.__name__: schema_type})
    except (NameError, TypeError):
        # Unresolvable annotations fall back to the raw (string) annotations.
        return {}


def _names_schema(annotation: Any, schema_type: type) -> bool:
    match annotation:
        case str():
            return annotation in (
                schema_type.__name__,
                schema_type.__qualname__,
                f"{schema_type.__module__}.{schema_type.__qualname__}",
            )
        case _:
            return annotation is schema_type


def _function_name(function: object) -> str:
    name = getattr(function, "__qualname__", None) or getattr(function, "__name__", None)
    return str(name or repr(function))


def _annotation_name(annotation: Any) -> str:
    if annotation is inspect.Parameter.empty:
        return "<missing>"
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation)


__all__ = [
    "KeyPolicyValidator",
    "ValidationOutcome",
    "resolve_key_function",
    "validate_definition",
]
