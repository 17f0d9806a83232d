"""Typed failures raised by the ledgers and the service layer.

Each error derives from the builtin the code base already uses for the
same concern (``ValueError`` for bad input, ``PermissionError`` for
ownership), so callers catching the builtin keep working.
"""
from __future__ import annotations


class ServiceError(Exception):
    """Base class for every error the service boundary knows how to render."""

    status_code = 500
    default_message = "Server error"
    # When False the response carries default_message and the detail stays in the logs.
    expose_detail = True

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self) if self.expose_detail else self.default_message


class ValidationError(ServiceError, ValueError):
    status_code = 400
    default_message = "Invalid request"


class UnauthenticatedError(ServiceError):
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(ServiceError, PermissionError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ServiceError, LookupError):
    status_code = 404
    default_message = "Not found"


class CollaboratorError(ServiceError):
    """The catalog lookup failed or returned nothing usable."""

    status_code = 404
    default_message = "Title not found"
    expose_detail = False


class StorageError(ServiceError):
    status_code = 500
    default_message = "Server error"
    expose_detail = False
