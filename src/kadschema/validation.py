"""Helper utilities for pure, Result-based Pydantic validation."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from kadschema.result import Failure, Result, Success


TModel = TypeVar("TModel", bound=BaseModel)

__all__: list[str] = ["validate_model", "validate_value"]


def validate_model(
    model_cls: type[TModel], data: Mapping[str, object]
) -> Result[TModel, ValidationError]:
    """
    Construct a Pydantic model and surface validation issues as a Result.

    Used when rebuilding schema instances from decoded bytes: a record whose
    fields decode cleanly can still violate the model's constraints (bounds,
    custom validators), and that must come back as a value, not an exception.
    """
    try:
        return Success(model_cls.model_validate(dict(data)))
    except ValidationError as exc:
        return Failure(exc)


def validate_value(adapter: TypeAdapter[Any], value: object) -> Result[Any, ValidationError]:
    """Validate a bare key value (not a model) in strict mode."""
    try:
        return Success(adapter.validate_python(value, strict=True))
    except ValidationError as exc:
        return Failure(exc)
