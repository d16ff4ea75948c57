# tests/helpers/partly_broken/pallets.py
"""Schemas after the broken submodule, still collected by the scan."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel

from kadschema.markers import Key, schema
from kadschema.models.scalars import U32


@schema
class Pallet(BaseModel):
    number: Annotated[U32, Key()]
