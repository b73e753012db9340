"""Typed failures raised by the message board core."""
from typing import Any, Dict, Optional


class MessageBoardError(Exception):
    """Base exception for the message board."""

    def __init__(
        self,
        message: str,
        error_code: str = "MESSAGE_BOARD_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(MessageBoardError):
    """Rejected input, such as empty message content."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details,
        )


class StorageError(MessageBoardError):
    """Reading or writing the persistence layer failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=500,
            details=details,
        )
