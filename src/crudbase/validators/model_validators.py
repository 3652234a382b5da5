from typing import Iterable

from sqlalchemy import inspect as sa_inspect


def column_keys(model) -> list[str]:
    """
    Return the attribute keys of the model's mapped columns, in mapper order.
    - model: the SQLAlchemy model class (not instance)
    """
    mapper = sa_inspect(model)
    return [attr.key for attr in mapper.column_attrs]


def find_unknown_model_kwargs(model, kwargs: dict) -> list[str]:
    """
    Return list of unknown kwarg keys that are not part of the model's mapped attributes.
    - model: the SQLAlchemy model class (not instance)
    - kwargs: dict of incoming kwargs to validate
    """
    mapper = sa_inspect(model)
    # mapper.attrs includes columns and relationships; attr.key is the name callers use
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs.keys() if k not in allowed]


def find_unknown_columns(model, names: Iterable[str]) -> list[str]:
    """
    Return the names that are not mapped columns of the model (relationships excluded).
    Used for column selection and ordering, where only real columns make sense.
    """
    known = set(column_keys(model))
    return [name for name in names if name not in known]
