"""Data model for scanned schemas, resolved key shapes, and configuration."""

from kadschema.models.config import DEFAULT_CONFIG, CodecConfig, build_config
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
    describe_shape,
)
from kadschema.models.scalars import F32, F64, I8, I16, I32, I64, U8, U16, U32, U64, FixedWidth

__all__ = [
    "CodecConfig",
    "CompositeFields",
    "DEFAULT_CONFIG",
    "F32",
    "F64",
    "FieldDescriptor",
    "FixedWidth",
    "I8",
    "I16",
    "I32",
    "I64",
    "KeyShape",
    "PerVariant",
    "SchemaDefinition",
    "SchemaKind",
    "SingleField",
    "U8",
    "U16",
    "U32",
    "U64",
    "VariantDefinition",
    "VariantKey",
    "WholeSchemaFunction",
    "build_config",
    "describe_shape",
]
