# services/errors.py
from __future__ import annotations


class AppError(Exception):
    """
    Base for errors that map onto a structured {error, message} response.
    """

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    error = "Validation error"


class NotFoundError(AppError):
    status_code = 404
    error = "Not found"


class AuthorizationError(AppError):
    status_code = 403
    error = "Forbidden"


class UnauthenticatedError(AuthorizationError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(AuthorizationError):
    status_code = 403
    error = "Forbidden"


class StorageError(AppError):
    # message is for server logs only; handlers never echo it
    status_code = 500
    error = "Internal server error"
