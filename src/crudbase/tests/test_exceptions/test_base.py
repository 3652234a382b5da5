import pytest

from crudbase.exceptions import (
    DatabaseUnavailableError,
    DuplicateError,
    IllegalArgumentError,
    InvalidFieldError,
    ModelError,
    NoRowsDeletedError,
    NoRowsUpdatedError,
    NotFoundError,
    ValidationError,
)


@pytest.mark.parametrize("error, code, status", [
    (IllegalArgumentError(), "illegal_argument", 500),
    (NotFoundError(), "not_found", 404),
    (NoRowsDeletedError(), "no_rows_deleted", 404),
    (NoRowsUpdatedError(), "no_rows_updated", 404),
    (DuplicateError("dup"), "duplicate", 409),
    (InvalidFieldError("bad"), "invalid_field", 422),
    (ValidationError("bad"), "invalid_input", 422),
    (DatabaseUnavailableError(), "unavailable", 503),
])
def test_error_codes_and_statuses(error, code, status):
    assert isinstance(error, ModelError)
    assert error.error_code == code
    assert error.http_status() == status


def test_generic_model_error_defaults_to_400():
    assert ModelError("something").http_status() == 400
    assert ModelError("something", error_code="made_up").http_status() == 400


def test_payload_never_includes_constraint():
    """
    Behavior:
            - Serialise a DuplicateError carrying a constraint name.
            - The payload exposes detail, code and fields only.

    Importance:
            - Constraint names leak schema internals; they are for logs only.
    """
    error = DuplicateError("Widget already exists", fields=["name"], constraint="uq_widgets_name")

    assert error.to_payload() == {
        "detail": "Widget already exists",
        "code": "duplicate",
        "fields": ["name"],
    }
    assert "uq_widgets_name" in str(error)


def test_str_without_extras_is_the_message():
    assert str(ModelError("plain")) == "plain"
