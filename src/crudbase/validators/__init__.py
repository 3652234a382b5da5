from .schema import build_schema, validate_payload
from .model_validators import column_keys, find_unknown_columns, find_unknown_model_kwargs

__all__ = [
    "build_schema",
    "validate_payload",
    "column_keys",
    "find_unknown_columns",
    "find_unknown_model_kwargs",
]
