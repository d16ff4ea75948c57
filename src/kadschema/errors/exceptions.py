"""Exception hierarchy for callers that prefer raising over Result values."""

from __future__ import annotations

from typing import Sequence

from kadschema.errors.render import Diagnostic, render_diagnostic


class KadSchemaError(Exception):
    """Base exception for all kadschema errors."""

    pass


class SchemaCompilationError(KadSchemaError):
    """One or more schemas failed validation or code generation."""

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics = tuple(diagnostics)
        lines = "\n".join(render_diagnostic(diagnostic) for diagnostic in self.diagnostics)
        super().__init__(f"{len(self.diagnostics)} schema diagnostic(s):\n{lines}")


class RecordEncodeError(KadSchemaError):
    """A value does not fit the wire type declared for it (programming error)."""

    def __init__(self, location: str, message: str) -> None:
        self.location = location
        self.message = message
        super().__init__(f"Cannot encode {location}: {message}")


class UnknownSchemaError(KadSchemaError):
    """A registry lookup named a schema that was not compiled."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Schema not registered: {name}")


__all__ = [
    "KadSchemaError",
    "RecordEncodeError",
    "SchemaCompilationError",
    "UnknownSchemaError",
]
