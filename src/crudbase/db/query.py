"""
Query composition for model operations.

Criteria can be expressed three ways:

    Widget.find_all({"name": "bolt"})                       # equality
    Widget.find_all({"quantity__gte": 5, "name__like": "b%"})  # column__op
    Widget.find_all([Widget.quantity > 5])                  # SQLAlchemy expressions

Supported ops: eq (default), ne, lt, lte, gt, gte, in, notin, like, ilike, isnull.
An equality test against None compiles to IS NULL.
"""
import logging
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy import Select, inspect as sa_inspect, select
from sqlalchemy.orm import load_only
from sqlalchemy.sql.elements import ColumnElement

from .errors import UnknownFieldError
from .options import Options
from crudbase.validators.model_validators import column_keys, find_unknown_columns

logger = logging.getLogger(__name__)

LOOKUP_SEPARATOR = "__"

OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    "eq": lambda col, value: col.is_(None) if value is None else col == value,
    "ne": lambda col, value: col.is_not(None) if value is None else col != value,
    "lt": lambda col, value: col < value,
    "lte": lambda col, value: col <= value,
    "gt": lambda col, value: col > value,
    "gte": lambda col, value: col >= value,
    "in": lambda col, value: col.in_(list(value)),
    "notin": lambda col, value: col.not_in(list(value)),
    "like": lambda col, value: col.like(value),
    "ilike": lambda col, value: col.ilike(value),
    "isnull": lambda col, value: col.is_(None) if value else col.is_not(None),
}


def primary_key_name(model) -> str:
    """Return the attribute key of the model's (first) primary key column."""
    mapper = sa_inspect(model)
    return mapper.get_property_by_column(mapper.primary_key[0]).key


def compose_filters(model, criteria: Any) -> list[ColumnElement]:
    """
    Turn `criteria` into a list of WHERE clauses for `model`.

    Raises:
        UnknownFieldError: If a mapping key names an unmapped column or an unknown op.
    """
    if criteria is None:
        return []

    if isinstance(criteria, ColumnElement):
        return [criteria]

    if isinstance(criteria, Mapping):
        known = set(column_keys(model))
        clauses = []
        unknown = []
        for key, value in criteria.items():
            field, _, op = key.partition(LOOKUP_SEPARATOR)
            op = op or "eq"
            if field not in known or op not in OPERATORS:
                unknown.append(key)
                continue
            clauses.append(OPERATORS[op](getattr(model, field), value))
        if unknown:
            raise UnknownFieldError(
                f"Unknown filter(s) for {model.__name__}: {', '.join(unknown)}", fields=unknown
            )
        return clauses

    if isinstance(criteria, Sequence) and not isinstance(criteria, (str, bytes)):
        return list(criteria)

    raise TypeError(f"Unsupported criteria type for {model.__name__}: {type(criteria).__name__}")


def _apply_ordering(query: Select, model, order_by: str | None) -> Select:
    if order_by:
        descending = order_by.startswith("-")
        field = order_by.lstrip("-")
        if field in column_keys(model):
            column = getattr(model, field)
            logger.debug(f"Ordering {model.__name__} by field: '{field}'{' DESC' if descending else ''}")
            return query.order_by(column.desc() if descending else column)
        logger.warning(
            f"Ignored invalid 'order_by' field: '{field}' does not exist on {model.__name__}")

    # deterministic default: primary key ascending
    return query.order_by(getattr(model, primary_key_name(model)))


def build_select(model, criteria: Any, options: Options) -> Select:
    """Build the SELECT for `model` honouring criteria, columns, ordering and pagination."""
    query = select(model).where(*compose_filters(model, criteria))

    if options.columns:
        unknown = find_unknown_columns(model, options.columns)
        if unknown:
            raise UnknownFieldError(
                f"Unknown column(s) for {model.__name__}: {', '.join(unknown)}", fields=unknown
            )
        query = query.options(load_only(*(getattr(model, name) for name in options.columns)))

    query = _apply_ordering(query, model, options.order_by)

    if options.offset:
        query = query.offset(options.offset)
    if options.limit is not None:
        query = query.limit(options.limit)
    return query
