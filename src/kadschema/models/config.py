"""Pipeline and wire-format configuration."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kadschema.result import Result
from kadschema.validation import validate_model


class CodecConfig(BaseModel):
    """
    Knobs shared by every generated codec in one pipeline run.

    Both sides of a storage network must agree on these values; they are part
    of the wire contract, not a per-call option.
    """

    byte_order: Literal["little", "big"] = "little"
    length_prefix_width: Literal[1, 2, 4, 8] = 8
    variant_index_width: Literal[1, 2, 4] = 4
    max_nesting_depth: Annotated[
        int, Field(ge=1, le=128, description="Nested model levels accepted when decoding")
    ] = 64
    max_workers: Annotated[
        int, Field(ge=1, description="Schemas compiled concurrently (1 = sequential)")
    ] = 1

    model_config = ConfigDict(frozen=True, extra="forbid")


DEFAULT_CONFIG = CodecConfig()


def build_config(**overrides: object) -> Result[CodecConfig, ValidationError]:
    """Build a CodecConfig from keyword overrides without raising."""
    return validate_model(CodecConfig, overrides)


__all__ = ["CodecConfig", "DEFAULT_CONFIG", "build_config"]
