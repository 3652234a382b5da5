"""
Application-level errors raised by model operations.

Every operation of a model built by `create_model()` surfaces failures either as
one of the classes below or, when the underlying error is not recognised, as the
original exception object.
"""

from typing import Iterable


class ModelError(Exception):
    """
    Base exception for model/service errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'duplicate', 'not_found') used by clients
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "illegal_argument": 500,
        "not_found": 404,
        "no_rows_deleted": 404,
        "no_rows_updated": 404,
        "duplicate": 409,
        "invalid_field": 422,
        "invalid_input": 422,
        "unavailable": 503,
        # fallback: default to 400 for general model errors
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for API responses.
        Standard shape:
            {
                "detail": "A human-friendly message",
                "code": "duplicate",           # optional canonical code
                "fields": ["name"],            # optional list for client usage
            }
        The constraint name is never included.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        """
        Return the HTTP status code that should accompany this error.
        Unknown or missing codes map to 400 (Bad Request).
        """
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class IllegalArgumentError(ModelError):
    """Raised when a model is configured without the collaborators it needs."""

    def __init__(self, message: str = "Illegal argument", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="illegal_argument")


class NotFoundError(ModelError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class NoRowsDeletedError(ModelError):
    def __init__(self, message: str = "No rows deleted", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="no_rows_deleted")


class NoRowsUpdatedError(ModelError):
    def __init__(self, message: str = "No rows updated", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="no_rows_updated")


class DuplicateError(ModelError):
    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class InvalidFieldError(ModelError):
    """Raised when the caller references columns the model does not have."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


class ValidationError(ModelError):
    """Raised when a payload is rejected by the model's validation schema."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_input")


class DatabaseUnavailableError(ModelError):
    """Raised when the database cannot be reached or the connection dropped."""

    def __init__(self, message: str = "Database unavailable"):
        super().__init__(message, error_code="unavailable")


__all__ = [
    "ModelError",
    "IllegalArgumentError",
    "NotFoundError",
    "NoRowsDeletedError",
    "NoRowsUpdatedError",
    "DuplicateError",
    "InvalidFieldError",
    "ValidationError",
    "DatabaseUnavailableError",
]
