"""
Application errors

Store failures are mapped to a short error code plus a message that is safe
to show to the end user.
"""

import logging
from typing import Dict, Optional

from bson.errors import InvalidId
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."

USER_MESSAGES: Dict[str, str] = {
    "permission-denied": "You do not have permission to perform this action.",
    "not-found": "The requested item was not found.",
    "unavailable": "Service temporarily unavailable. Try again in a few moments.",
    "deadline-exceeded": "The operation took too long to complete. Try again.",
    "unauthenticated": "You need to be signed in to perform this action.",
    "failed-precondition": "The operation cannot be performed right now.",
    "aborted": "The operation was aborted.",
    "already-exists": "This item already exists.",
    "resource-exhausted": "Resource limit exceeded. Try again later.",
    "cancelled": "Operation cancelled.",
    "data-loss": "Error processing the data.",
    "internal": "Internal server error. Try again.",
    "invalid-argument": "Invalid data provided.",
    "not-implemented": "This feature is not available yet.",
    "out-of-range": "Value out of the allowed range.",
}

STATUS_CODES: Dict[str, int] = {
    "permission-denied": 403,
    "not-found": 404,
    "unavailable": 503,
    "deadline-exceeded": 504,
    "unauthenticated": 401,
    "failed-precondition": 412,
    "aborted": 409,
    "already-exists": 409,
    "resource-exhausted": 429,
    "cancelled": 499,
    "invalid-argument": 400,
    "not-implemented": 501,
    "out-of-range": 400,
}

# MongoDB server error codes
_UNAUTHORIZED = 13
_AUTHENTICATION_FAILED = 18


def user_message_for(code: str) -> str:
    return USER_MESSAGES.get(code, GENERIC_MESSAGE)


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        user_message: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.user_message = user_message or user_message_for(code)
        self.status_code = status_code or STATUS_CODES.get(code, 500)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "userMessage": self.user_message}


def _store_error_code(exc: BaseException) -> str:
    if isinstance(exc, DuplicateKeyError):
        return "already-exists"
    if isinstance(exc, (ExecutionTimeout, NetworkTimeout, WTimeoutError)):
        return "deadline-exceeded"
    if isinstance(exc, (ServerSelectionTimeoutError, ConnectionFailure)):
        return "unavailable"
    if isinstance(exc, OperationFailure):
        if exc.code == _UNAUTHORIZED:
            return "permission-denied"
        if exc.code == _AUTHENTICATION_FAILED:
            return "unauthenticated"
        return "internal"
    if isinstance(exc, InvalidId):
        return "invalid-argument"
    return "unknown"


def handle_store_error(exc: BaseException) -> AppError:
    """Convert any exception raised around a store call into an AppError."""
    if isinstance(exc, AppError):
        return exc

    code = _store_error_code(exc)
    if isinstance(exc, (PyMongoError, InvalidId)):
        logger.error("Store error occurred (code=%s): %s", code, exc)
    else:
        logger.error("Unexpected error occurred: %r", exc)
    return AppError(code, str(exc) or type(exc).__name__)
