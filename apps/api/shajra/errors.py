# apps/api/shajra/errors.py
from __future__ import annotations


class ShajraError(Exception):
    """Base error; `status_code` is what the HTTP layer answers with."""
    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ShajraError):
    status_code = 400


class Unauthorized(ShajraError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized - User not authenticated", details=None):
        super().__init__(message, details)


class NotFound(ShajraError):
    status_code = 404


class StoreError(ShajraError):
    """Persistence failure; `details` keeps the driver's diagnostic."""
    status_code = 500
