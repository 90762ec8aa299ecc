from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """JSON body returned for every handled error."""

    error_code: str
    message: str
    details: Optional[str] = None
    timestamp: datetime


class AppError(Exception):
    """Base class for errors the API turns into an ``ErrorResponse``."""

    error_code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self, timestamp: datetime) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code,
            message=self.message,
            details=self.details,
            timestamp=timestamp,
        )


class NotFoundError(AppError):
    """The acting user (or another looked-up row) does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404


class ValidationError(AppError):
    """A listing parameter could not be interpreted."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class DatabaseError(AppError):
    """The ticket store failed while answering a query."""

    error_code = "DB_ERROR"
    status_code = 500
