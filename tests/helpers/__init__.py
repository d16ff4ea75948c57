# tests/helpers/__init__.py
"""Shared test utilities for the kadschema test suite.

Result unwrapping helpers, diagnostic accessors, and sample schema namespaces
(``tests.helpers.sample_schemas`` and friends) used across test modules.

Usage:
    >>> from tests.helpers import expect_success, inner_errors
    >>> from tests.helpers import sample_schemas
    >>>
    >>> registry = expect_success(compile_namespace(sample_schemas))
"""

from __future__ import annotations

from tests.helpers.diagnostics import inner_errors, single_inner_error
from tests.helpers.result_utils import expect_failure, expect_success

__all__ = [
    "expect_failure",
    "expect_success",
    "inner_errors",
    "single_inner_error",
]
