# tests/helpers/diagnostics.py
"""Accessors that dig the leaf error out of a SchemaValidationError."""

from __future__ import annotations

from typing import Sequence

from kadschema.errors.render import Diagnostic
from kadschema.errors.validation import KeyDeclarationError, SchemaValidationError


def inner_errors(diagnostics: Sequence[Diagnostic]) -> list[object]:
    """Leaf error of every diagnostic, unwrapping KeyDeclarationError."""
    leaves: list[object] = []
    for diagnostic in diagnostics:
        match diagnostic:
            case SchemaValidationError(error=KeyDeclarationError(error=leaf)):
                leaves.append(leaf)
            case SchemaValidationError(error=leaf):
                leaves.append(leaf)
            case _:
                leaves.append(diagnostic)
    return leaves


def single_inner_error(diagnostics: Sequence[Diagnostic]) -> object:
    """The only leaf error; fails the test if there is not exactly one."""
    leaves = inner_errors(diagnostics)
    assert len(leaves) == 1, f"expected one diagnostic, got {leaves}"
    return leaves[0]
