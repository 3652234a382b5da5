import logging

import pytest
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from crudbase.db.base import make_declarative_base
from crudbase.db.errors import UnknownFieldError
from crudbase.db.options import Options
from crudbase.db.query import build_select, compose_filters, primary_key_name

Base = make_declarative_base()


class Part(Base):
    __tablename__ = "parts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    note: Mapped[str | None] = mapped_column(String(200), nullable=True)


def sql(statement) -> str:
    return str(statement.compile(compile_kwargs={"literal_binds": True}))


def clause_sql(criteria) -> list[str]:
    return [sql(clause) for clause in compose_filters(Part, criteria)]


def test_primary_key_name():
    assert primary_key_name(Part) == "id"


def test_no_criteria_means_no_filters():
    assert compose_filters(Part, None) == []
    assert compose_filters(Part, {}) == []


def test_plain_keys_compile_to_equality():
    assert clause_sql({"name": "bolt"}) == ["parts.name = 'bolt'"]


def test_equality_with_none_compiles_to_is_null():
    assert clause_sql({"note": None}) == ["parts.note IS NULL"]
    assert clause_sql({"note__ne": None}) == ["parts.note IS NOT NULL"]


@pytest.mark.parametrize(
    "criteria, expected",
    [
        ({"quantity__lt": 5}, "parts.quantity < 5"),
        ({"quantity__lte": 5}, "parts.quantity <= 5"),
        ({"quantity__gt": 5}, "parts.quantity > 5"),
        ({"quantity__gte": 5}, "parts.quantity >= 5"),
        ({"name__like": "b%"}, "parts.name LIKE 'b%'"),
        ({"note__isnull": True}, "parts.note IS NULL"),
        ({"note__isnull": False}, "parts.note IS NOT NULL"),
    ],
)
def test_lookup_operators(criteria, expected):
    assert clause_sql(criteria) == [expected]


def test_in_and_notin():
    [in_clause] = clause_sql({"name__in": ["a", "b"]})
    [notin_clause] = clause_sql({"name__notin": ("a",)})

    assert "parts.name IN" in in_clause and "'b'" in in_clause
    assert "NOT IN" in notin_clause


def test_expressions_pass_through():
    expression = Part.quantity > 3
    assert compose_filters(Part, expression) == [expression]
    assert compose_filters(Part, [expression]) == [expression]


def test_unknown_column_and_operator_are_reported_together():
    """
    Behavior:
            - Filter on an unmapped column and with an unsupported operator.
            - Both keys are reported on one UnknownFieldError.
    """
    with pytest.raises(UnknownFieldError) as exc_info:
        compose_filters(Part, {"colour": "red", "quantity__between": (1, 2), "name": "ok"})

    assert exc_info.value.fields == ["colour", "quantity__between"]


def test_unsupported_criteria_type():
    with pytest.raises(TypeError):
        compose_filters(Part, "name = 'bolt'")


def test_default_order_is_primary_key():
    statement = sql(build_select(Part, None, Options()))
    assert "ORDER BY parts.id" in statement


def test_descending_order_and_pagination():
    statement = sql(build_select(Part, None, Options(order_by="-quantity", limit=10, offset=5)))

    assert "ORDER BY parts.quantity DESC" in statement
    assert "LIMIT 10" in statement
    assert "OFFSET 5" in statement


def test_invalid_order_by_falls_back_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="crudbase.db.query"):
        statement = sql(build_select(Part, None, Options(order_by="colour")))

    assert "ORDER BY parts.id" in statement
    assert any("colour" in record.getMessage() for record in caplog.records)


def test_unknown_columns_option_raises():
    with pytest.raises(UnknownFieldError) as exc_info:
        build_select(Part, None, Options(columns=("name", "weight")))
    assert exc_info.value.fields == ["weight"]
