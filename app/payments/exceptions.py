"""
Payment-specific exceptions for booking, verification and payout operations.

Exception Hierarchy:
    ExternalServiceError (core, 502)
    └── GatewayError - Base for all Razorpay errors
        ├── GatewayRequestError - Rejected request / bad credentials (permanent)
        ├── GatewayUnavailableError - Network error or 5xx (transient)
        └── GatewayTimeoutError - No response within RAZORPAY_TIMEOUT_SECONDS

    ValidationError (core, 400)
    └── SignatureMismatchError - Checkout callback signature did not verify

    ConflictError (core, 409)
    ├── WarehouseUnavailableError - Warehouse is not bookable
    ├── LockAcquisitionError - Distributed lock already held
    └── InvalidStateTransitionError - FSM transition not allowed

Usage:
    from payments.exceptions import GatewayError, WarehouseUnavailableError

    if not warehouse.is_available:
        raise WarehouseUnavailableError(
            f"Warehouse {warehouse.id} is {warehouse.status}",
            details={"warehouse_id": str(warehouse.id), "status": warehouse.status},
        )

Note:
    Gateway errors are never retried automatically. is_retryable only tells
    the client whether trying again later is reasonable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ConflictError, ExternalServiceError, ValidationError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(ExternalServiceError):
    """
    Base exception for all payment gateway errors.

    Attributes:
        gateway_code: Razorpay's error code (e.g. BAD_REQUEST_ERROR)
        is_retryable: Whether the same request may succeed later

    Example:
        try:
            RazorpayAdapter.create_order(params)
        except GatewayError as e:
            logger.warning(f"Gateway rejected order: {e}")
            raise
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if gateway_code:
            details["gateway_code"] = gateway_code
        super().__init__(message, error_code=error_code, details=details)
        self.gateway_code = gateway_code


class GatewayRequestError(GatewayError):
    """
    The gateway rejected the request.

    Covers invalid parameters and authentication failures. Retrying the same
    request will not help; usually a configuration problem.
    """

    default_error_code: str = "GATEWAY_REQUEST_REJECTED"
    is_retryable: bool = False


class GatewayUnavailableError(GatewayError):
    """
    The gateway could not be reached or returned a server error.

    Covers connection failures and 5xx responses.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayTimeoutError(GatewayError):
    """
    The gateway did not answer within RAZORPAY_TIMEOUT_SECONDS.

    IMPORTANT: The order may exist on Razorpay's side. It is harmless: an
    order nobody pays for expires there, and no local rows were committed.
    """

    default_error_code: str = "GATEWAY_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Verification Exceptions
# =============================================================================


class SignatureMismatchError(ValidationError):
    """
    Raised when the checkout callback signature does not verify.

    The transaction is marked failed before this is raised; the order and
    warehouse are left for the reconciliation job to settle.
    """

    default_error_code: str = "SIGNATURE_MISMATCH"


# =============================================================================
# Conflict Exceptions
# =============================================================================


class WarehouseUnavailableError(ConflictError):
    """
    Raised when a booking targets a warehouse that is not available.

    The warehouse is pending approval, already rented, or already sold.
    """

    default_error_code: str = "WAREHOUSE_UNAVAILABLE"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another process holds the lock and it couldn't be acquired within the
    timeout period (or immediately, for non-blocking locks).

    Attributes:
        details: Contains key and timeout information
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed in our standard error format.

    Example:
        from django_fsm import TransitionNotAllowed

        try:
            monthly_payment.start_processing()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot start payment from '{monthly_payment.status}'",
                details={
                    "current_state": monthly_payment.status,
                    "transition": "start_processing",
                },
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Gateway
    "GatewayError",
    "GatewayRequestError",
    "GatewayUnavailableError",
    "GatewayTimeoutError",
    # Verification
    "SignatureMismatchError",
    # Conflicts
    "WarehouseUnavailableError",
    "LockAcquisitionError",
    "InvalidStateTransitionError",
]
