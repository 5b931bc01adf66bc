"""
Razorpay adapter for gateway order creation and checkout signature checks.

This module wraps the Razorpay SDK with:
- Bounded timeouts on every API call (RAZORPAY_TIMEOUT_SECONDS)
- Structured logging with timing metrics
- Translation of SDK and network errors into domain exceptions

Gateway calls are never retried here. A failed order creation aborts the
booking's unit of work and the client simply tries again.

Usage:
    from payments.adapters import CreateGatewayOrderParams, RazorpayAdapter

    result = RazorpayAdapter.create_order(
        CreateGatewayOrderParams(
            amount_paise=150000,
            currency="INR",
            receipt="rcpt_ORD-20260101120000-3fa2c1-K9QX2M",
            notes={"order_id": str(order.id)},
        )
    )
    # Pass result.id and result.key_id to the client checkout

    if not RazorpayAdapter.verify_payment_signature(order_id, payment_id, signature):
        raise SignatureMismatchError("Payment signature did not verify")
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import razorpay
import requests
from django.conf import settings

from payments.exceptions import (
    GatewayError,
    GatewayRequestError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)

# Razorpay rejects receipts longer than this
MAX_RECEIPT_LENGTH = 40


# =============================================================================
# Data Transfer Objects
# =============================================================================


@dataclass
class CreateGatewayOrderParams:
    """
    Parameters for creating a Razorpay order.

    Attributes:
        amount_paise: Amount in the smallest currency unit (must be positive)
        currency: ISO currency code (e.g. "INR")
        receipt: Merchant reference shown on the gateway dashboard
        notes: Key/value pairs stored on the gateway order
    """

    amount_paise: int
    currency: str
    receipt: str
    notes: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.amount_paise <= 0:
            raise ValueError("amount_paise must be positive")
        if len(self.currency) != 3:
            raise ValueError("currency must be a 3-letter ISO code")
        if not self.receipt:
            raise ValueError("receipt is required")
        if len(self.receipt) > MAX_RECEIPT_LENGTH:
            raise ValueError(
                f"receipt must be at most {MAX_RECEIPT_LENGTH} characters"
            )


@dataclass
class GatewayOrderResult:
    """
    Result of a Razorpay order creation.

    Carries what the client checkout needs: the gateway order id, the amount
    in paise, the currency and the public key id.
    """

    id: str
    amount_paise: int
    currency: str
    receipt: str
    status: str
    key_id: str
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Razorpay Adapter
# =============================================================================


class RazorpayAdapter:
    """
    Adapter for Razorpay API operations.

    All methods are class methods; a fresh client is built per call so the
    adapter holds no state and is safe in Celery workers.

    Configuration (via settings):
    - RAZORPAY_KEY_ID: Public key id, also returned to the checkout
    - RAZORPAY_KEY_SECRET: API secret, also the checkout signature key
    - RAZORPAY_TIMEOUT_SECONDS: API call timeout (default: 10)
    """

    @classmethod
    def get_client(cls) -> razorpay.Client:
        """Build an authenticated Razorpay client."""
        return razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def create_order(
        cls,
        params: CreateGatewayOrderParams,
        trace_id: str | None = None,
    ) -> GatewayOrderResult:
        """
        Create a Razorpay order the customer can pay against.

        Args:
            params: Amount, currency, receipt and notes
            trace_id: Optional trace ID for log correlation

        Returns:
            GatewayOrderResult with the gateway order id

        Raises:
            GatewayRequestError: Invalid parameters or bad credentials
            GatewayUnavailableError: Network failure or gateway 5xx
            GatewayTimeoutError: No answer within RAZORPAY_TIMEOUT_SECONDS
        """
        logger = cls.get_logger()
        timeout = getattr(settings, "RAZORPAY_TIMEOUT_SECONDS", 10)

        log_context = {
            "operation": "create_order",
            "amount_paise": params.amount_paise,
            "currency": params.currency,
            "receipt": params.receipt,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Razorpay operation", extra=log_context)

        try:
            response = cls.get_client().order.create(
                data={
                    "amount": params.amount_paise,
                    "currency": params.currency,
                    "receipt": params.receipt,
                    "notes": params.notes,
                },
                timeout=timeout,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_gateway_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Razorpay operation completed",
            extra={
                **log_context,
                "gateway_order_id": response.get("id"),
                "status": response.get("status"),
                "duration_ms": duration_ms,
            },
        )

        if not response.get("id"):
            raise GatewayError(
                "Razorpay returned an order without an id",
                details={"receipt": params.receipt},
            )

        return GatewayOrderResult(
            id=response["id"],
            amount_paise=int(response.get("amount", params.amount_paise)),
            currency=response.get("currency", params.currency),
            receipt=response.get("receipt", params.receipt),
            status=response.get("status", "created"),
            key_id=settings.RAZORPAY_KEY_ID,
            raw_response=dict(response),
        )

    @classmethod
    def compute_signature(cls, order_id: str, payment_id: str) -> str:
        """HMAC-SHA256 of "order_id|payment_id" keyed with the API secret."""
        return hmac.new(
            settings.RAZORPAY_KEY_SECRET.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()

    @classmethod
    def verify_payment_signature(
        cls,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """
        Check the signature the checkout returned for a payment.

        Pure local computation, no API call. Comparison is constant-time.

        Returns:
            True if the signature matches, False otherwise (including when
            no secret is configured)
        """
        if not settings.RAZORPAY_KEY_SECRET:
            cls.get_logger().error(
                "RAZORPAY_KEY_SECRET is not configured, rejecting signature",
                extra={"gateway_order_id": order_id},
            )
            return False

        if not (order_id and payment_id and signature):
            return False

        expected = cls.compute_signature(order_id, payment_id)
        return hmac.compare_digest(expected, signature)

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_gateway_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Razorpay SDK and network exceptions to domain exceptions.

        Raises:
            GatewayTimeoutError: Request timed out
            GatewayUnavailableError: Connection failure or gateway server error
            GatewayRequestError: Request rejected by the gateway
            GatewayError: Anything else
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        # Timeout before ConnectionError: ConnectTimeout is both
        if isinstance(error, requests.exceptions.Timeout):
            logger.error("Razorpay request timed out", extra=log_context)
            raise GatewayTimeoutError(
                "Payment gateway did not respond in time. Please retry.",
                gateway_code="timeout",
            ) from error

        if isinstance(error, requests.exceptions.ConnectionError):
            logger.error(
                "Connection error to Razorpay",
                extra=log_context,
                exc_info=True,
            )
            raise GatewayUnavailableError(
                "Could not connect to the payment gateway. Please retry.",
                gateway_code="connection_error",
            ) from error

        if isinstance(error, razorpay.errors.BadRequestError):
            logger.critical(
                "Razorpay rejected the request - check parameters and API keys",
                extra={**log_context, "gateway_message": str(error)},
            )
            raise GatewayRequestError(
                str(error) or "Payment gateway rejected the request",
                gateway_code="BAD_REQUEST_ERROR",
            ) from error

        if isinstance(error, (razorpay.errors.GatewayError, razorpay.errors.ServerError)):
            logger.error(
                "Razorpay server error",
                extra={**log_context, "gateway_message": str(error)},
                exc_info=True,
            )
            raise GatewayUnavailableError(
                "Payment gateway error. Please retry.",
                gateway_code="SERVER_ERROR",
            ) from error

        logger.error(
            "Unexpected error calling Razorpay",
            extra={**log_context, "error_type": type(error).__name__},
            exc_info=True,
        )
        raise GatewayError(
            f"Unexpected payment gateway error: {error}",
            gateway_code="unknown",
        ) from error


__all__ = [
    "CreateGatewayOrderParams",
    "GatewayOrderResult",
    "RazorpayAdapter",
]
