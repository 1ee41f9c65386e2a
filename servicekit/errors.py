"""
Application errors raised by decorated services.

Each error carries the HTTP status an API layer should answer with, so a
single exception handler can translate any ``ServiceError`` into a
response without a lookup table.

Usage::

    from servicekit.errors import NotFoundError
    raise NotFoundError("Challenge not found")
"""
from typing import Any


class ServiceError(Exception):
    """Base class for errors surfaced to callers of a service."""

    http_status: int = 500

    def __init__(self, message: str | None = None, cause: Any = None) -> None:
        self.message = message or type(self).__name__
        self.cause = cause
        super().__init__(self.message)


class BadRequestError(ServiceError):
    http_status = 400


class NotFoundError(ServiceError):
    http_status = 404


class ValidationError(BadRequestError):
    """
    Input rejected by a method's schema.

    Raised before the underlying implementation runs.  *details* holds one
    ``{"field", "message", "type"}`` dict per failing field; it is empty
    when the validator reported no field-level information.
    """

    def __init__(
        self,
        message: str | None = None,
        details: list[dict] | None = None,
        cause: Any = None,
    ) -> None:
        super().__init__(message or "Validation failed", cause)
        self.details = details or []

    def to_dict(self) -> dict:
        return {"message": self.message, "details": self.details}
