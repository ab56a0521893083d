"""
RouletteBot - API Error System
==============================

Centralized error codes and exception handling for consistent API responses.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
    HTTP_504_GATEWAY_TIMEOUT,
)

from src.services.roulette.errors import DatabaseUnavailableError, ErrorKind, RouletteError


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """
    Centralized error codes for the API.

    Format: CATEGORY_SPECIFIC_ERROR
    """

    # Pool errors (404, 409)
    POOL_NOT_FOUND = "POOL_NOT_FOUND"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"

    # Service errors (503)
    SERVICE_NOT_INITIALIZED = "SERVICE_NOT_INITIALIZED"

    # Validation errors (422)
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # Concurrency errors (409, 504)
    CONTENTION = "CONTENTION"
    TIMEOUT = "TIMEOUT"

    # Server errors (500, 503)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_DATABASE_ERROR = "SERVER_DATABASE_ERROR"
    SERVER_DATABASE_UNAVAILABLE = "SERVER_DATABASE_UNAVAILABLE"


# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.POOL_NOT_FOUND: "Pool not found",
    ErrorCode.POOL_EXHAUSTED: "No eligible entries remain in this pool",
    ErrorCode.SERVICE_NOT_INITIALIZED: "Roulette service is not initialized",
    ErrorCode.VALIDATION_FAILED: "Request validation failed",
    ErrorCode.CONTENTION: "Another operation is in progress, retry shortly",
    ErrorCode.TIMEOUT: "Storage did not answer in time",
    ErrorCode.SERVER_ERROR: "An internal server error occurred",
    ErrorCode.SERVER_DATABASE_ERROR: "A database error occurred",
    ErrorCode.SERVER_DATABASE_UNAVAILABLE: "The database is unavailable",
}


# =============================================================================
# Default Status Codes
# =============================================================================

ERROR_STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.POOL_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.POOL_EXHAUSTED: HTTP_409_CONFLICT,
    ErrorCode.SERVICE_NOT_INITIALIZED: HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.VALIDATION_FAILED: HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.CONTENTION: HTTP_409_CONFLICT,
    ErrorCode.TIMEOUT: HTTP_504_GATEWAY_TIMEOUT,
    ErrorCode.SERVER_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVER_DATABASE_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVER_DATABASE_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
}

# Roulette error kind -> API error code
KIND_CODES: Dict[ErrorKind, ErrorCode] = {
    ErrorKind.VALIDATION_ERROR: ErrorCode.VALIDATION_FAILED,
    ErrorKind.POOL_NOT_FOUND: ErrorCode.POOL_NOT_FOUND,
    ErrorKind.POOL_EXHAUSTED: ErrorCode.POOL_EXHAUSTED,
    ErrorKind.PERSISTENCE_FAILURE: ErrorCode.SERVER_DATABASE_ERROR,
    ErrorKind.TIMEOUT: ErrorCode.TIMEOUT,
    ErrorKind.CONTENTION: ErrorCode.CONTENTION,
}


# =============================================================================
# API Error Exception
# =============================================================================

class APIError(HTTPException):
    """
    Custom API exception with error codes.

    Usage:
        raise APIError(ErrorCode.POOL_NOT_FOUND)
        raise APIError(ErrorCode.VALIDATION_FAILED, details={"field": "since"})
    """

    def __init__(
        self,
        code: ErrorCode,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = code
        self.error_message = message or ERROR_MESSAGES.get(code, "An error occurred")
        self.error_details = details

        # Use default status code if not provided
        if status_code is None:
            status_code = ERROR_STATUS_CODES.get(code, HTTP_400_BAD_REQUEST)

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error_code": code.value,
                "message": self.error_message,
                "details": details,
            },
            headers=headers,
        )


# =============================================================================
# Helper Functions
# =============================================================================

def error_response(
    code: ErrorCode,
    status_code: Optional[int] = None,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """
    Create a JSON error response without raising an exception.

    Useful for returning errors in exception handlers.
    """
    if status_code is None:
        status_code = ERROR_STATUS_CODES.get(code, HTTP_400_BAD_REQUEST)

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error_code": code.value,
            "message": message or ERROR_MESSAGES.get(code, "An error occurred"),
            "details": details,
        },
    )


def from_roulette_error(error: RouletteError) -> APIError:
    """Translate a roulette exception into an APIError."""
    if isinstance(error, DatabaseUnavailableError):
        return APIError(ErrorCode.SERVER_DATABASE_UNAVAILABLE)

    code = KIND_CODES.get(error.kind, ErrorCode.SERVER_ERROR)
    if code == ErrorCode.SERVER_DATABASE_ERROR:
        # Storage internals stay in the logs
        return APIError(code)
    return APIError(code, message=str(error), details={"kind": error.kind.value})


__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_STATUS_CODES",
    "KIND_CODES",
    "APIError",
    "error_response",
    "from_roulette_error",
]
