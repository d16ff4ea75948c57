# tests/test_pipeline.py
"""Tests for the schema compiler: aggregation, ordering, concurrency, configuration."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from kadschema.errors.exceptions import SchemaCompilationError, UnknownSchemaError
from kadschema.errors.generation import TypeInferenceFailed
from kadschema.errors.render import diagnostic_category, render_diagnostic
from kadschema.errors.validation import SchemaValidationError
from kadschema.models.config import CodecConfig, build_config
from kadschema.pipeline import (
    compile_definition,
    compile_namespace,
    compile_namespace_or_raise,
    compile_schema,
)
from kadschema.scanner import scan_namespace
from tests.helpers import (
    expect_failure,
    expect_success,
    inner_errors,
    invalid_schemas,
    partly_broken,
    sample_schemas,
    unsupported_schemas,
)
from tests.helpers.sample_schemas import NotASchema, User

INVALID_IN_SCAN_ORDER = [
    ("NoKey", "KeyNotFound"),
    ("DoubleMarked", "DuplicateKeyMarker"),
    ("EmptyStruct", "InvalidSchemaType"),
    ("Unresolvable", "UnresolvableAnnotation"),
    ("MissingFunction", "KeyFunctionNotFound"),
    ("NotCallable", "KeyFunctionNotCallable"),
    ("WrongArity", "KeyFunctionArity"),
    ("WrongParameter", "KeyFunctionParameterMismatch"),
    ("NoReturnAnnotation", "ReturnTypeNotFound"),
    ("Conflicting", "ConflictingKeyPolicy"),
    ("TooManyVariantKeys", "TooManyKeys"),
    ("MixedVariants", "KeyNotFound"),
    ("UnitWithKey", "UnitVariantWithKey"),
    ("MissingDeclaredKey", "KeyFieldNotFound"),
    ("OnlyUnits", "KeyNotFound"),
    ("EmptyUnion", "InvalidSchemaType"),
    ("FunctionAndVariantKeys", "ConflictingKeyPolicy"),
]


def _summary(diagnostics: list[object]) -> list[tuple[str, str]]:
    schemas = [
        diagnostic.schema.rsplit(".", 1)[-1]
        for diagnostic in diagnostics
        if isinstance(diagnostic, SchemaValidationError)
    ]
    kinds = [getattr(leaf, "kind") for leaf in inner_errors(diagnostics)]  # type: ignore[arg-type]
    return list(zip(schemas, kinds))


def test_valid_namespace_compiles() -> None:
    """Test every sample schema compiles into one registry."""
    registry = expect_success(compile_namespace(sample_schemas))

    assert len(registry) == 9
    assert registry.names()[0] == f"{sample_schemas.__name__}.User"


def test_every_diagnostic_is_reported_in_scan_order() -> None:
    """Test a failing run reports all schemas' diagnostics, not just the first."""
    diagnostics = expect_failure(compile_namespace(invalid_schemas))

    assert _summary(diagnostics) == INVALID_IN_SCAN_ORDER
    assert {diagnostic_category(diagnostic) for diagnostic in diagnostics} == {"validation"}


@pytest.mark.parametrize("max_workers", [2, 4, 8])
def test_concurrent_compilation_matches_sequential(max_workers: int) -> None:
    """Test a thread pool yields the same diagnostics in the same order."""
    config = CodecConfig(max_workers=max_workers)
    diagnostics = expect_failure(compile_namespace(invalid_schemas, config=config))

    assert _summary(diagnostics) == INVALID_IN_SCAN_ORDER


def test_concurrent_compilation_of_valid_namespace() -> None:
    """Test concurrently compiled artifacts encode exactly like sequential ones."""
    sequential = expect_success(compile_namespace(sample_schemas))
    concurrent = expect_success(
        compile_namespace(sample_schemas, config=CodecConfig(max_workers=4))
    )
    user = User(id="u1", name="Ann", age=9)

    assert concurrent.names() == sequential.names()
    assert concurrent.encode(user) == sequential.encode(user)


def test_generation_failures_are_collected() -> None:
    """Test annotations without a wire codec become generation diagnostics."""
    diagnostics = expect_failure(compile_namespace(unsupported_schemas))

    assert all(isinstance(diagnostic, TypeInferenceFailed) for diagnostic in diagnostics)
    assert [diagnostic.location for diagnostic in diagnostics] == [  # type: ignore[union-attr]
        "Invoice.amount",
        "Ledger.account",
    ]
    assert {diagnostic_category(diagnostic) for diagnostic in diagnostics} == {"generation"}


def test_submodule_import_failure_fails_compilation() -> None:
    """Test an unimportable submodule is an import diagnostic, not an exception."""
    (diagnostic,) = expect_failure(compile_namespace(partly_broken))

    assert diagnostic_category(diagnostic) == "import"
    assert render_diagnostic(diagnostic).startswith(
        "error[import]: Cannot import module 'tests.helpers.partly_broken.broken': "
        "ModuleNotFoundError"
    )


def test_nothing_is_emitted_when_any_schema_fails() -> None:
    """Test one broken schema fails the whole run."""
    from types import SimpleNamespace

    namespace = SimpleNamespace(user=User, broken=invalid_schemas.NoKey)

    assert len(expect_failure(compile_namespace(namespace))) == 1


def test_compile_definition_passes_scan_failures_through() -> None:
    """Test a malformed scan result is returned unchanged as a diagnostic."""
    (scanned,) = scan_namespace(invalid_schemas.EmptyStruct)

    assert expect_failure(compile_definition(scanned)) == [expect_failure(scanned)]


def test_compile_namespace_or_raise() -> None:
    """Test the raising entry point carries the rendered diagnostics."""
    assert len(compile_namespace_or_raise(sample_schemas)) == 9

    with pytest.raises(SchemaCompilationError) as info:
        compile_namespace_or_raise(invalid_schemas)
    assert len(info.value.diagnostics) == len(INVALID_IN_SCAN_ORDER)
    assert "error[validation]: Schema" in str(info.value)


def test_compile_schema_single_class() -> None:
    """Test compiling one class returns its artifacts."""
    artifacts = expect_success(compile_schema(User))

    assert artifacts.name == "User"
    assert artifacts.key_type.__name__ == "UserKey"


def test_compile_schema_unmarked_class() -> None:
    """Test compiling a class the scanner skips raises UnknownSchemaError."""
    with pytest.raises(UnknownSchemaError):
        compile_schema(NotASchema)


def test_codec_config_changes_wire_format() -> None:
    """Test configuration is applied to every generated codec."""
    config = CodecConfig(byte_order="big", length_prefix_width=2)
    artifacts = expect_success(compile_schema(User, config=config))

    key, value = artifacts.encode(User(id="u1", age=1))
    assert key == b"\x00\x02u1"
    assert value == b"\x00\x02u1" + b"\x00\x00" + b"\x01"


def test_codec_config_validation() -> None:
    """Test configuration values are validated."""
    assert isinstance(expect_failure(build_config(byte_order="middle")), ValidationError)
    assert expect_success(build_config(max_workers=3)).max_workers == 3
    with pytest.raises(ValidationError):
        CodecConfig(max_workers=0)
    with pytest.raises(ValidationError):
        CodecConfig(length_prefix_width=3)  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        CodecConfig(max_nesting_depth=0)
    with pytest.raises(ValidationError):
        CodecConfig(max_nesting_depth=1000)


def test_compilation_logs_summary(caplog: pytest.LogCaptureFixture) -> None:
    """Test a run logs one summary line at INFO."""
    with caplog.at_level(logging.INFO, logger="kadschema.pipeline"):
        compile_namespace(sample_schemas)

    assert "Compiled 9 schema(s)" in caplog.text
