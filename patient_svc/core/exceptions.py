"""
Shared exception classes and error handling utilities for the Patient Records API.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting: {"error": ..., "code": ...}
- Exception handlers for FastAPI integration

Internal error text (driver messages, object store responses) is logged
but never placed in a response body.

Usage:
    from patient_svc.core.exceptions import PatientNotFoundError

    # In service layer - raise domain exceptions
    raise PatientNotFoundError(patient_id=42)

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class PatientServiceError(Exception):
    """
    Base exception for all Patient Records API domain errors.

    Carries an HTTP status code, a stable machine-readable code and a
    human-readable detail message that is safe to return to callers.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context included in the error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: Dict[str, Any] = {"error": self.detail, "code": self.code}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# CLIENT ERRORS
# =============================================================================

class ValidationError(PatientServiceError):
    """Raised when request data is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    detail = "Invalid request data"


class InvalidFileTypeError(ValidationError):
    """Raised when the uploaded image has an unsupported content type."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    detail = "Unsupported image type"


class FileTooLargeError(ValidationError):
    """Raised when the uploaded image exceeds the size limit."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    detail = "Image size exceeds maximum allowed"


class PatientNotFoundError(PatientServiceError):
    """Raised when no patient row matches the requested id."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    detail = "Patient not found"

    def __init__(self, patient_id: Optional[int] = None, **kwargs: Any):
        detail = f"Patient {patient_id} not found" if patient_id is not None else self.detail
        super().__init__(detail=detail, patient_id=patient_id, **kwargs)


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================

class StoreUnavailableError(PatientServiceError):
    """Raised when a record store connection or query fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "store_unavailable"
    detail = "Record store unavailable"

    def __init__(self, operation: Optional[str] = None):
        # operation is kept for logs only
        self.operation = operation
        super().__init__()


class BlobStoreError(PatientServiceError):
    """Raised when an upload to or deletion from the object store fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "blob_store_error"
    detail = "Image storage failed"

    def __init__(self, operation: Optional[str] = None, identifier: Optional[str] = None):
        self.operation = operation
        self.identifier = identifier
        super().__init__()


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def patient_service_exception_handler(
    request: Request,
    exc: PatientServiceError
) -> JSONResponse:
    """
    Handle PatientServiceError exceptions and return consistent JSON responses.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "operation": getattr(exc, "operation", None),
            "cause": repr(exc.__cause__) if exc.__cause__ else None,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Convert framework HTTP errors (unknown route, wrong method) to the
    same error body shape as domain errors.
    """
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        # Routing misses carry the default "Not Found" detail
        message = "Endpoint not found" if exc.detail == "Not Found" else str(exc.detail)
        content = {"error": message, "code": "not_found"}
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        content = {"error": "Method not allowed", "code": "method_not_allowed"}
    else:
        content = {"error": str(exc.detail), "code": "http_error"}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None)
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Report missing or malformed request fields as 400 with a readable message.
    """
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    message = "Invalid request: " + "; ".join(problems) if problems else "Invalid request"
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": problems}
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "code": ValidationError.code}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions with a generic error response.

    Logs the full exception for debugging but returns a safe error message.
    """
    logger.exception(
        f"Unhandled exception: {type(exc).__name__}",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": "internal_error"}
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(PatientServiceError, patient_service_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
