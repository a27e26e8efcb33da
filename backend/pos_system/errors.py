# Overview: Domain exception taxonomy shared by services and routes.

"""
Every error the API surfaces maps to one of these classes. Each carries the
HTTP status it is rendered with, so routes and the app-level error handler
translate them the same way.
"""


class PosError(Exception):
    """Base class for errors that are safe to show to API clients."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnauthorizedError(PosError):
    """Missing, invalid or expired session token."""
    status_code = 401


class ForbiddenError(PosError):
    """Valid identity, insufficient role."""
    status_code = 403


class ValidationError(PosError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(PosError):
    status_code = 404


class ConflictError(PosError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409


class StorageError(PosError):
    """Underlying transaction or connection failure."""
    status_code = 500
