"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the API
- Machine-readable error codes for client handling
- A single place where domain errors are mapped to HTTP statuses

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures (400)
    ├── PermissionDeniedError - Authorization failures (403)
    ├── NotFoundError - Resource not found (404)
    ├── ConflictError - State conflicts, duplicates, unavailable resources (409)
    ├── ExternalServiceError - Third-party service failures (502)
    └── TransientStoreError - Retryable data-store failures (503)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    warehouse = Warehouse.objects.filter(id=warehouse_id).first()
    if warehouse is None:
        raise NotFoundError(
            f"Warehouse {warehouse_id} not found",
            error_code="WAREHOUSE_NOT_FOUND",
            details={"warehouse_id": str(warehouse_id)},
        )

    # Views do not need to catch these: api_exception_handler renders
    # e.to_dict() with e.http_status for every BaseApplicationError.

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework.response import Response
from rest_framework.views import exception_handler

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, ids, etc.)
        http_status: Status code used when the error reaches the API layer
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Warehouse is not available",
                "error_code": "WAREHOUSE_UNAVAILABLE",
                "details": {"status": "rented"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for service-layer rules such as a missing rental duration or a
    duration supplied for a sale listing. Field-format checks stay in
    DRF serializers.
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource is not found."""

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when user lacks permission for an operation.

    For authentication failures (missing/invalid token), DRF's
    AuthenticationFailed is used instead.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Duplicate entries (unique constraint violations)
    - Resources that are no longer available
    - Invalid state transitions
    - Lock contention
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Log the original error for debugging but don't expose provider
    internals to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502


class TransientStoreError(BaseApplicationError):
    """
    Raised when the data store fails in a way that is worth retrying.

    Background jobs let this propagate so Celery's retry policy applies.
    """

    default_error_code: str = "TRANSIENT_STORE_ERROR"
    http_status: int = 503


def api_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that renders BaseApplicationError subclasses.

    Configured via REST_FRAMEWORK["EXCEPTION_HANDLER"]. Anything that is not
    a domain error falls through to DRF's default handler.
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.info(
            f"Domain error in {view.__class__.__name__ if view else 'view'}: {exc}",
            extra={"error_code": exc.error_code, "status_code": exc.http_status},
        )
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
