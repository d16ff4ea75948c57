# tests/helpers/partly_broken/__init__.py
"""A schema package with one submodule that cannot be imported."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel

from kadschema.markers import Key, schema


@schema
class Crate(BaseModel):
    label: Annotated[str, Key()]
