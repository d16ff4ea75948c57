"""kadschema error ADTs and the exceptions raised at API boundaries."""

from kadschema.errors.decode import (
    DecodeError,
    DecodeResult,
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
from kadschema.errors.exceptions import (
    KadSchemaError,
    RecordEncodeError,
    SchemaCompilationError,
    UnknownSchemaError,
)
from kadschema.errors.generation import (
    CodecAssemblyFailed,
    GenerationError,
    KeyTypeSynthesisFailed,
    TypeInferenceFailed,
)
from kadschema.errors.render import (
    Diagnostic,
    diagnostic_category,
    render_decode_error,
    render_diagnostic,
)
from kadschema.errors.store import (
    MaxProvidedKeys,
    MaxProvidersPerKey,
    MaxRecordsReached,
    StoreError,
    ValueTooLarge,
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
    MalformedSchemaError,
    ModuleImportFailed,
    OuterKeyError,
    ReturnTypeNotFound,
    SchemaValidationError,
    TooManyKeys,
    UnitVariantWithKey,
    UnresolvableAnnotation,
)

__all__ = [
    # Validation
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
    # Generation
    "CodecAssemblyFailed",
    "GenerationError",
    "KeyTypeSynthesisFailed",
    "TypeInferenceFailed",
    # Decode
    "DecodeError",
    "DecodeResult",
    "InvalidTag",
    "InvalidUtf8",
    "InvalidVariantIndex",
    "KeyMismatch",
    "NestingTooDeep",
    "TrailingBytes",
    "TruncatedInput",
    "ValidationFailed",
    "ZeroWidthElements",
    # Store
    "MaxProvidedKeys",
    "MaxProvidersPerKey",
    "MaxRecordsReached",
    "StoreError",
    "ValueTooLarge",
    # Rendering
    "Diagnostic",
    "diagnostic_category",
    "render_decode_error",
    "render_diagnostic",
    # Exceptions
    "KadSchemaError",
    "RecordEncodeError",
    "SchemaCompilationError",
    "UnknownSchemaError",
]
