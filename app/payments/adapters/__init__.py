"""
Payment gateway adapters.

Adapters isolate the third-party SDK from the booking workflows:
- RazorpayAdapter: order creation and checkout signature verification
"""

from payments.adapters.razorpay_adapter import (
    CreateGatewayOrderParams,
    GatewayOrderResult,
    RazorpayAdapter,
)

__all__ = [
    "CreateGatewayOrderParams",
    "GatewayOrderResult",
    "RazorpayAdapter",
]
