"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("haulbook.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class DuplicateRateError(AppException):
    """Raised when a rate version with the exact same interval already exists."""

    def __init__(self, existing_id: int):
        super().__init__(
            message="A rate with the same effective dates already exists for this party, material, and locations.",
            error_code="ERR_RATE_DUPLICATE",
            status_code=status.HTTP_409_CONFLICT,
            details={"conflicting_id": existing_id}
        )


class OverlappingRateError(AppException):
    """Raised when a rate version interval collides with another version of the same key."""

    def __init__(self, conflicting_id: int):
        super().__init__(
            message="Overlapping rate exists for this party, material, and locations.",
            error_code="ERR_RATE_OVERLAP",
            status_code=status.HTTP_409_CONFLICT,
            details={"conflicting_id": conflicting_id}
        )


class InvalidIntervalError(AppException):
    """Raised when effective_to falls before effective_from."""

    def __init__(self, effective_from: Any, effective_to: Any):
        super().__init__(
            message="Effective to date cannot be before effective from date.",
            error_code="ERR_RATE_INTERVAL",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"effective_from": str(effective_from), "effective_to": str(effective_to)}
        )


class InvalidAmountError(AppException):
    """Raised for negative ledger amounts. Sign is carried by direction only."""

    def __init__(self, amount: Any):
        super().__init__(
            message="Amount must be zero or positive; use the direction to record outflows.",
            error_code="ERR_LEDGER_AMOUNT",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"amount": str(amount)}
        )


class TransactionFailureError(AppException):
    """Raised when the storage transaction aborted. Nothing was applied; safe to retry."""

    def __init__(self, operation: str, reason: str = ""):
        super().__init__(
            message=f"Could not complete {operation}. No changes were saved, please retry.",
            error_code="ERR_TX_FAILED",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"operation": operation, "reason": reason, "retryable": True}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details)
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception: %s", type(exc).__name__,
        extra={"method": request.method, "path": request.url.path}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
