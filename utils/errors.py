"""
Domain errors raised by the services.

Every error carries the HTTP status it maps to; api/errors.py turns them into
the response envelope. Services never catch these themselves.
"""
from __future__ import annotations

from typing import List, Optional


class ApiError(Exception):
    status = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)


class InvalidInput(ApiError):
    status = 400
    default_message = "Bad request"


class Unauthorized(ApiError):
    status = 401
    default_message = "Unauthorized request"


class Forbidden(ApiError):
    status = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status = 409
    default_message = "Conflict"


class InternalError(ApiError):
    status = 500
