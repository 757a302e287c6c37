"""Schema validator adapter.

Schemas are pydantic models. Both entry points return a ``Result`` and never
raise for invalid data; pydantic's exception is caught here and republished
as a ``ValidationError`` value.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Optional, TypeVar

from pydantic import BaseModel, Field, create_model
from pydantic import ValidationError as SchemaValidationError

from .error_mapper import ErrorMapper
from .exceptions import ValidationError
from .result import Err, Ok, Result

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_with_schema(
    schema: type[ModelT], raw: Any, context: str
) -> Result[ModelT, ValidationError]:
    """Validate ``raw`` against ``schema``.

    Args:
        schema: Pydantic model class
        raw: Untrusted input (mapping or model instance)
        context: Error context string

    Returns:
        Result: ``Ok`` with the model instance or ``Err`` with field errors
    """
    if isinstance(raw, schema):
        raw = raw.model_dump(by_alias=True)
    try:
        return Ok(schema.model_validate(raw))
    except SchemaValidationError as e:
        return Err(ErrorMapper.from_schema_validation(e, context))


@lru_cache(maxsize=None)
def partial_schema(schema: type[BaseModel]) -> type[BaseModel]:
    """All-optional variant of ``schema``.

    Field constraints and validators are kept and only run on supplied
    values.
    """
    overrides: dict[str, Any] = {}
    for name, field in schema.model_fields.items():
        annotation = field.annotation
        if field.metadata:
            annotation = Annotated[(annotation, *field.metadata)]
        overrides[name] = (
            Optional[annotation],  # noqa: UP007
            Field(default=None, alias=field.alias, description=field.description),
        )
    return create_model(f"Partial{schema.__name__}", __base__=schema, **overrides)


def validate_partial_with_schema(
    schema: type[BaseModel], raw: Any, context: str
) -> Result[dict[str, Any], ValidationError]:
    """Validate a partial-update payload.

    Returns:
        Result: ``Ok`` with only the supplied fields, keyed by field name
    """
    try:
        partial = partial_schema(schema)
    except (TypeError, ValueError) as e:
        return Err(
            ErrorMapper.validation_failed(
                f"Schema does not support partial validation: {e}", context
            )
        )
    try:
        validated = partial.model_validate(raw)
    except SchemaValidationError as e:
        return Err(ErrorMapper.from_schema_validation(e, context))
    return Ok(validated.model_dump(exclude_unset=True))
