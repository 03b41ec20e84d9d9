"""Base exception for business rule failures raised by services."""

from __future__ import annotations


class ServiceError(Exception):
    """Carries a user-facing message and the HTTP status routers should use."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
