"""
Domain errors.

Each error is an HTTPException with a structured detail
``{"code", "message", "details"}`` so services can raise them directly and
FastAPI renders them without extra handlers.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for structured domain errors."""

    code: str = "INTERNAL_ERROR"
    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **details: Any) -> None:
        self.message = message
        self.details = details or None
        super().__init__(
            status_code=self.status_code_default,
            detail={"code": self.code, "message": message, "details": self.details},
        )


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code_default = 422


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, **details: Any) -> None:
        super().__init__(f"{resource} not found", **details)


class ConflictError(AppError):
    code = "CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code_default = status.HTTP_403_FORBIDDEN


class LimitExceededError(AppError):
    code = "LIMIT_EXCEEDED"
    status_code_default = status.HTTP_429_TOO_MANY_REQUESTS
