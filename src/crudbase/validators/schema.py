"""
Model-level validation schemas.

A model's validations are a declarative constraint set, field name -> rule. They
can be given either as a ready pydantic model class, or as a plain mapping that is
turned into one with `pydantic.create_model`:

    validations = {
        "name": (str, Field(min_length=1, max_length=50)),
        "quantity": (int, Field(default=0, ge=0)),
        "sku": str,                  # bare annotation -> required field
    }

Creates validate the whole payload. Updates validate only the keys they carry,
so a patch of `{"quantity": 3}` is not rejected for lacking `name`.
"""
from functools import lru_cache
from typing import Any, Mapping, Optional

from pydantic import BaseModel, create_model


def build_schema(validations: Any, name: str = "Validation") -> type[BaseModel] | None:
    """
    Return a pydantic model class for `validations`, or None when there is nothing to validate.

    Raises:
        TypeError: If `validations` is neither a BaseModel subclass nor a mapping.
    """
    if validations is None:
        return None

    if isinstance(validations, type) and issubclass(validations, BaseModel):
        return validations

    if isinstance(validations, Mapping):
        fields = {}
        for field_name, rule in validations.items():
            # (annotation, default | Field(...)) tuples pass straight through
            fields[field_name] = rule if isinstance(rule, tuple) else (rule, ...)
        return create_model(name, **fields)

    raise TypeError(
        f"validations must be a pydantic model class or a mapping, got {type(validations).__name__}"
    )


@lru_cache(maxsize=256)
def _patch_schema(schema: type[BaseModel], absent: frozenset[str]) -> type[BaseModel]:
    # Fields missing from the patch become optional; everything else (validators, config) is inherited.
    overrides = {
        field_name: (Optional[field.annotation], None)
        for field_name, field in schema.model_fields.items()
        if field_name in absent
    }
    return create_model(f"{schema.__name__}Patch", __base__=schema, **overrides)


def validate_payload(schema: type[BaseModel] | None, attrs: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """
    Validate `attrs` against `schema` and return the payload with coerced values.

    Keys that the schema does not declare are passed through untouched. Raises
    `pydantic.ValidationError` when the payload is rejected.
    """
    payload = dict(attrs)
    if schema is None:
        return payload

    if partial:
        absent = frozenset(name for name in schema.model_fields if name not in payload)
        schema = _patch_schema(schema, absent)

    validated = schema.model_validate(payload)
    # only keys the caller supplied; column defaults stay in charge of the rest
    payload.update(validated.model_dump(exclude_unset=True))
    return payload
