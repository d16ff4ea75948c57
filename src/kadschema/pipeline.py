# src/kadschema/pipeline.py
"""
The schema compiler: scan -> validate -> synthesize -> generate.

The pipeline is a total function from a namespace to either a
:class:`~kadschema.registry.SchemaRegistry` or the complete list of
diagnostics, in scan order. Nothing is emitted if any schema fails.

Schemas are independent, so with ``CodecConfig(max_workers=N)`` they are
compiled on a thread pool; results are still aggregated in scan order, which
keeps diagnostics deterministic.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

from kadschema.errors.exceptions import SchemaCompilationError
from kadschema.errors.render import Diagnostic
from kadschema.models.config import DEFAULT_CONFIG, CodecConfig
from kadschema.registry import SchemaArtifacts, SchemaRegistry
from kadschema.result import Failure, Result, Success, collect_errors
from kadschema.scanner import ScanResult, scan_namespace
from kadschema.serialization.record import generate_record_codec
from kadschema.serialization.wire import CodecBuilder
from kadschema.synthesizer import KeyTypeSynthesizer
from kadschema.validator import KeyPolicyValidator


logger = logging.getLogger(__name__)

CompileResult = Result[SchemaRegistry, list[Diagnostic]]


def compile_definition(
    scanned: ScanResult, config: CodecConfig = DEFAULT_CONFIG
) -> Result[SchemaArtifacts, list[Diagnostic]]:
    """Run validation and generation for one scanned schema."""
    match scanned:
        case Failure(error):
            return Failure([error])
        case Success(definition):
            pass

    match KeyPolicyValidator().validate(definition):
        case Failure(errors):
            logger.debug(f"{definition.qualified_name}: {len(errors)} validation diagnostic(s)")
            return Failure(list(errors))
        case Success(shape):
            pass

    # One builder per schema: no codec state is shared between worker threads.
    builder = CodecBuilder(config)
    match KeyTypeSynthesizer(builder).synthesize(definition, shape):
        case Failure(generation_error):
            return Failure([generation_error])
        case Success(key_type):
            pass

    match generate_record_codec(definition, key_type, builder):
        case Failure(generation_error):
            return Failure([generation_error])
        case Success(codec):
            logger.debug(f"Compiled {definition.qualified_name} -> {key_type.__qualname__}")
            return Success(
                SchemaArtifacts(definition=definition, shape=shape, key_type=key_type, codec=codec)
            )


def compile_namespace(root: Any, *, config: CodecConfig | None = None) -> CompileResult:
    """Compile every schema under ``root`` into a registry, or return all diagnostics."""
    config = config or DEFAULT_CONFIG
    scanned = scan_namespace(root)
    compile_one = partial(compile_definition, config=config)

    if config.max_workers > 1 and len(scanned) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
            outcomes = list(pool.map(compile_one, scanned))
    else:
        outcomes = [compile_one(entry) for entry in scanned]

    match collect_errors(outcomes):
        case Success(artifacts):
            logger.info(f"Compiled {len(artifacts)} schema(s)")
            return Success(SchemaRegistry(artifacts, config))
        case Failure(diagnostics):
            logger.info(
                f"Schema compilation failed: {len(diagnostics)} diagnostic(s) "
                f"across {len(scanned)} schema(s)"
            )
            return Failure(diagnostics)


def compile_namespace_or_raise(root: Any, *, config: CodecConfig | None = None) -> SchemaRegistry:
    """Like :func:`compile_namespace`, raising :class:`SchemaCompilationError` on failure."""
    match compile_namespace(root, config=config):
        case Success(registry):
            return registry
        case Failure(diagnostics):
            raise SchemaCompilationError(diagnostics)


def compile_schema(
    schema_type: type, *, config: CodecConfig | None = None
) -> Result[SchemaArtifacts, list[Diagnostic]]:
    """Compile a single marked class (and any schemas nested in its body)."""
    match compile_namespace(schema_type, config=config):
        case Success(registry):
            return Success(registry.artifacts_for(schema_type))
        case Failure(diagnostics):
            return Failure(diagnostics)


__all__ = [
    "CompileResult",
    "compile_definition",
    "compile_namespace",
    "compile_namespace_or_raise",
    "compile_schema",
]
