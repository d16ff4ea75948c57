# tests/conftest.py
"""Global PyTest fixtures for the kadschema test-suite.

The sample schema namespace is compiled once per session; generated artifacts
are immutable, so sharing them across tests is safe.
"""

from __future__ import annotations

import pytest

from kadschema.pipeline import compile_namespace
from kadschema.registry import SchemaRegistry
from kadschema.storage import MemoryRecordStore, MemoryStoreConfig
from tests.helpers import expect_success, sample_schemas

LOCAL_PEER = "peer-local"


@pytest.fixture(scope="session")
def registry() -> SchemaRegistry:
    """Registry compiled from ``tests.helpers.sample_schemas`` (and its submodules)."""
    return expect_success(compile_namespace(sample_schemas))


@pytest.fixture
def store() -> MemoryRecordStore:
    """Fresh in-memory record store with small limits, owned by ``LOCAL_PEER``."""
    return MemoryRecordStore(
        LOCAL_PEER,
        MemoryStoreConfig(
            max_records=3,
            max_value_bytes=64,
            max_providers_per_key=2,
            max_provided_keys=2,
        ),
    )
