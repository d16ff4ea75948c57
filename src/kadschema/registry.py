# src/kadschema/registry.py
"""
Generated artifacts and the runtime schema registry.

A :class:`SchemaRegistry` is the product of one successful pipeline run. It
maps every compiled schema (by type, by qualified name, and by short name when
unambiguous) to its :class:`SchemaArtifacts`, and dispatches record
operations for instances of any registered schema, including variants of a
registered tagged union.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence

from kadschema.errors.decode import DecodeResult
from kadschema.errors.exceptions import UnknownSchemaError
from kadschema.markers import Variant
from kadschema.models.config import DEFAULT_CONFIG, CodecConfig
from kadschema.models.definitions import SchemaDefinition
from kadschema.models.key_shape import KeyShape, describe_shape
from kadschema.serialization.record import RecordCodec
from kadschema.storage.records import Record
from kadschema.synthesizer import SchemaKey


@dataclass(frozen=True)
class SchemaArtifacts:
    """Everything generated for one schema. Never mutated once emitted."""

    definition: SchemaDefinition
    shape: KeyShape
    key_type: type[SchemaKey]
    codec: RecordCodec[Any]

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def qualified_name(self) -> str:
        return self.definition.qualified_name

    def key(self, instance: Any) -> SchemaKey | None:
        return self.codec.key(instance)

    def encode(self, instance: Any) -> tuple[bytes, bytes]:
        return self.codec.encode(instance)

    def decode(self, value: bytes, *, key: bytes | None = None) -> DecodeResult[Any]:
        return self.codec.decode(value, key=key)

    def to_record(
        self, instance: Any, *, publisher: str | None = None, expires: float | None = None
    ) -> Record:
        return self.codec.to_record(instance, publisher=publisher, expires=expires)

    def from_record(self, record: Record) -> DecodeResult[Any]:
        return self.codec.from_record(record)

    def describe(self) -> dict[str, str]:
        """Summary used by ``kadschema describe``."""
        return {
            "schema": self.qualified_name,
            "kind": self.definition.kind.value,
            "key_shape": describe_shape(self.shape),
            "key_type": self.key_type.__qualname__,
        }


class SchemaRegistry:
    """Immutable lookup of compiled schemas, in scan order."""

    def __init__(
        self, artifacts: Sequence[SchemaArtifacts], config: CodecConfig = DEFAULT_CONFIG
    ) -> None:
        self.config = config
        self._artifacts = tuple(artifacts)
        self._by_type: Mapping[type, SchemaArtifacts] = MappingProxyType(
            {entry.definition.schema_type: entry for entry in self._artifacts}
        )
        by_name = {entry.qualified_name: entry for entry in self._artifacts}
        short_names: dict[str, list[SchemaArtifacts]] = {}
        for entry in self._artifacts:
            short_names.setdefault(entry.name, []).append(entry)
        for short, entries in short_names.items():
            if len(entries) == 1:
                by_name.setdefault(short, entries[0])
        self._by_name: Mapping[str, SchemaArtifacts] = MappingProxyType(by_name)

    # -- lookup ------------------------------------------------------------ #

    def artifacts_for(self, target: type | str | object) -> SchemaArtifacts:
        """
        Resolve a schema type, a name, or an instance to its artifacts.

        Variant classes and variant instances resolve to their tagged union.
        """
        match target:
            case str():
                found = self._by_name.get(target)
            case type():
                found = self._by_type.get(_schema_type(target))
            case _:
                found = self._by_type.get(_schema_type(type(target)))
        if found is None:
            raise UnknownSchemaError(_label(target))
        return found

    def key_type(self, target: type | str | object) -> type[SchemaKey]:
        return self.artifacts_for(target).key_type

    def names(self) -> list[str]:
        return [entry.qualified_name for entry in self._artifacts]

    def __iter__(self) -> Iterator[SchemaArtifacts]:
        return iter(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, target: object) -> bool:
        match target:
            case str():
                return target in self._by_name
            case type():
                return _schema_type(target) in self._by_type
            case _:
                return False

    # -- record operations ------------------------------------------------- #

    def key(self, instance: Any) -> SchemaKey | None:
        return self.artifacts_for(instance).key(instance)

    def encode(self, instance: Any) -> tuple[bytes, bytes]:
        return self.artifacts_for(instance).encode(instance)

    def decode(
        self, schema: type | str, value: bytes, *, key: bytes | None = None
    ) -> DecodeResult[Any]:
        return self.artifacts_for(schema).decode(value, key=key)

    def to_record(
        self, instance: Any, *, publisher: str | None = None, expires: float | None = None
    ) -> Record:
        artifacts = self.artifacts_for(instance)
        return artifacts.to_record(instance, publisher=publisher, expires=expires)

    def from_record(self, schema: type | str, record: Record) -> DecodeResult[Any]:
        return self.artifacts_for(schema).from_record(record)

    def __repr__(self) -> str:
        return f"SchemaRegistry({', '.join(entry.name for entry in self._artifacts)})"


def _schema_type(cls: type) -> type:
    if issubclass(cls, Variant) and cls.__union__ is not None:
        return cls.__union__
    return cls


def _label(target: object) -> str:
    match target:
        case str():
            return target
        case type():
            return target.__qualname__
        case _:
            return type(target).__qualname__


__all__ = ["SchemaArtifacts", "SchemaRegistry"]
