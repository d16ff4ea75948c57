# src/kadschema/scanner.py
"""
Schema discovery.

Walks a root namespace (a module or package, a ``SimpleNamespace``, or a plain
class used as a namespace) depth first and collects every class carrying the
:func:`~kadschema.markers.schema` marker, in declaration order.

The scan is a pure collection pass: it reports malformed declarations
(``InvalidSchemaType``, ``UnresolvableAnnotation``) and submodules that fail
to import (``ModuleImportFailed``) but never judges key policy. That is
:mod:`kadschema.validator`'s job.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from types import ModuleType, SimpleNamespace
from typing import Iterator

from pydantic import BaseModel
from pydantic.errors import PydanticUndefinedAnnotation

from kadschema.errors.validation import (
    InvalidSchemaType,
    ModuleImportFailed,
    SchemaValidationError,
    UnresolvableAnnotation,
)
from kadschema.markers import Key, KeyFunctionRef, TaggedUnion, Variant, schema_marker
from kadschema.models.definitions import (
    FieldDescriptor,
    SchemaDefinition,
    SchemaKind,
    VariantDefinition,
)
from kadschema.result import Failure, Result, Success


logger = logging.getLogger(__name__)

ScanResult = Result[SchemaDefinition, SchemaValidationError]


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class SchemaScanner:
    """
    Depth-first collector of schema declarations.

    A scanner instance holds per-walk bookkeeping (visited namespaces, seen
    classes) and is meant for a single :meth:`scan` call.
    """

    def __init__(self, *, import_submodules: bool = True) -> None:
        self._import_submodules = import_submodules
        self._visited: set[int] = set()
        self._seen: set[int] = set()

    def scan(self, root: object) -> list[ScanResult]:
        """Return one result per marked declaration, in scan order."""
        match root:
            case type():
                found: Iterator[type | SchemaValidationError] = self._visit_class(root)
            case _:
                found = self._walk(root, _namespace_name(root))

        results: list[ScanResult] = []
        for item in found:
            match item:
                case SchemaValidationError():
                    results.append(Failure(item))
                case _:
                    results.append(self._describe(item))
        return results

    # ------------------------------------------------------------------ #
    # Walking
    # ------------------------------------------------------------------ #

    def _walk(self, namespace: object, path: str) -> Iterator[type | SchemaValidationError]:
        if id(namespace) in self._visited:
            return
        self._visited.add(id(namespace))
        walks_package = isinstance(namespace, ModuleType) and self._walks_package(namespace)

        for member_name, member in list(vars(namespace).items()):
            match member:
                case ModuleType() if not walks_package and _is_submodule(member, path):
                    yield from self._walk(member, member.__name__)
                case type() if self._owns(namespace, member):
                    yield from self._visit_class(member)
                case SimpleNamespace():
                    yield from self._walk(member, f"{path}.{member_name}")
                case _:
                    continue

        if walks_package and isinstance(namespace, ModuleType):
            yield from self._walk_package(namespace)

    def _walks_package(self, namespace: object) -> bool:
        # Submodules of a package are walked in pkgutil order, whether or not
        # they were already imported.
        return self._import_submodules and hasattr(namespace, "__path__")

    def _walk_package(self, package: ModuleType) -> Iterator[type | SchemaValidationError]:
        for info in pkgutil.iter_modules(package.__path__, prefix=f"{package.__name__}."):
            try:
                module = importlib.import_module(info.name)
            except Exception as exc:
                logger.warning(f"Cannot import {info.name}: {exc}")
                yield SchemaValidationError(
                    schema=info.name,
                    error=ModuleImportFailed(
                        module=info.name, message=f"{type(exc).__name__}: {exc}"
                    ),
                )
                continue
            yield from self._walk(module, module.__name__)

    def _visit_class(self, cls: type) -> Iterator[type]:
        if id(cls) in self._seen:
            return
        self._seen.add(id(cls))

        if schema_marker(cls) is not None:
            if _is_schema_shape(cls):
                yield cls
            else:
                logger.debug(f"Skipping marked non-schema declaration {qualified_name(cls)}")

        # Classes nested in a class body are part of the same namespace tree.
        for member in list(vars(cls).values()):
            if isinstance(member, type) and member.__qualname__.startswith(f"{cls.__qualname__}."):
                yield from self._visit_class(member)

    @staticmethod
    def _owns(namespace: object, cls: type) -> bool:
        match namespace:
            case ModuleType():
                return cls.__module__ == namespace.__name__
            case _:
                return True

    # ------------------------------------------------------------------ #
    # Describing
    # ------------------------------------------------------------------ #

    def _describe(self, cls: type) -> ScanResult:
        name = qualified_name(cls)
        marker = schema_marker(cls)
        key_function = marker.key_fn if marker is not None else None

        if issubclass(cls, TaggedUnion):
            return self._describe_union(cls, name, key_function)

        if not issubclass(cls, BaseModel):
            reason = "schema is neither a pydantic model nor a tagged union"
            return _malformed(name, InvalidSchemaType(reason=reason))
        match _field_descriptors(cls):
            case Failure(message):
                return _malformed(
                    name, UnresolvableAnnotation(owner=cls.__qualname__, message=message)
                )
            case Success(fields) if not fields:
                reason = "struct schema declares no fields"
                return _malformed(name, InvalidSchemaType(reason=reason))
            case Success(fields):
                logger.debug(f"Collected struct schema {name} ({len(fields)} fields)")
                return Success(
                    SchemaDefinition(
                        qualified_name=name,
                        schema_type=cls,
                        kind=SchemaKind.struct,
                        fields=fields,
                        key_function=key_function,
                    )
                )

    def _describe_union(
        self, cls: type[TaggedUnion], name: str, key_function: KeyFunctionRef | None
    ) -> ScanResult:
        if not cls.__variants__:
            return _malformed(name, InvalidSchemaType(reason="tagged union declares no variants"))

        variants: list[VariantDefinition] = []
        for index, variant in enumerate(cls.__variants__):
            match _field_descriptors(variant):
                case Failure(message):
                    return _malformed(
                        name, UnresolvableAnnotation(owner=variant.__qualname__, message=message)
                    )
                case Success(fields):
                    variants.append(
                        VariantDefinition(
                            name=variant.__name__,
                            index=index,
                            model=variant,
                            fields=fields,
                            declared_key=variant.__key__,
                        )
                    )

        logger.debug(f"Collected tagged union schema {name} ({len(variants)} variants)")
        return Success(
            SchemaDefinition(
                qualified_name=name,
                schema_type=cls,
                kind=SchemaKind.tagged_union,
                variants=tuple(variants),
                key_function=key_function,
            )
        )


def scan_namespace(root: object) -> list[ScanResult]:
    """Collect every marked schema under ``root``; see :class:`SchemaScanner`."""
    return SchemaScanner().scan(root)


def _field_descriptors(model: type[BaseModel]) -> Result[tuple[FieldDescriptor, ...], str]:
    """Ordered field descriptors, rebuilding models whose forward references are pending."""
    if not model.__pydantic_complete__:
        try:
            model.model_rebuild()
        except (PydanticUndefinedAnnotation, NameError) as exc:
            return Failure(str(exc))
        if not model.__pydantic_complete__:
            return Failure("model is not fully defined")

    return Success(
        tuple(
            FieldDescriptor(
                name=field_name,
                index=index,
                annotation=info.annotation,
                metadata=tuple(info.metadata),
                key_markers=sum(1 for item in info.metadata if isinstance(item, Key)),
            )
            for index, (field_name, info) in enumerate(model.model_fields.items())
        )
    )


def _is_schema_shape(cls: type) -> bool:
    if issubclass(cls, TaggedUnion):
        return cls is not TaggedUnion
    return issubclass(cls, BaseModel) and not issubclass(cls, Variant)


def _is_submodule(module: ModuleType, parent: str) -> bool:
    return module.__name__.startswith(f"{parent}.")


def _namespace_name(root: object) -> str:
    match root:
        case ModuleType():
            return root.__name__
        case type():
            return root.__qualname__
        case _:
            return type(root).__name__


def _malformed(name: str, error: InvalidSchemaType | UnresolvableAnnotation) -> ScanResult:
    logger.debug(f"Malformed schema {name}: {error.kind}")
    return Failure(SchemaValidationError(schema=name, error=error))


__all__ = [
    "ScanResult",
    "SchemaScanner",
    "qualified_name",
    "scan_namespace",
]
