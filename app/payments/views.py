"""
DRF views for payments app.

This module provides API views for:
- Booking a warehouse and listing/viewing orders
- Starting the next month's rent payment
- The gateway checkout callback (signature verification)
- Recording and listing partner payouts, earnings summary

Related files:
    - services/: Business logic (views only translate HTTP)
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/orders/                   - Book a warehouse (customer)
    GET  /api/v1/payments/orders/                   - List visible orders
    GET  /api/v1/payments/orders/{id}/              - Order detail
    POST /api/v1/payments/orders/{id}/rent-payment/ - Pay next rent month (customer)
    POST /api/v1/payments/orders/{id}/payouts/      - Record partner payout (admin)
    POST /api/v1/payments/verify/                   - Verify checkout signature
    GET  /api/v1/payments/payouts/                  - List payouts (partner/admin)
    GET  /api/v1/payments/payouts/earnings/         - Earnings summary (partner)

Security:
    - All endpoints require authentication
    - Customers see their own orders, partners the orders on their
      warehouses, admins everything
    - Domain errors are rendered by core.exceptions.api_exception_handler
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import (
    IsCustomer,
    IsPartner,
    IsPartnerOrPlatformAdmin,
    IsPlatformAdmin,
)
from payments.models import Order, PartnerPayout
from payments.services import (
    OrderCreationService,
    PartnerPayoutService,
    PaymentVerificationService,
    RentPaymentService,
)

from .serializers import (
    CheckoutResponseSerializer,
    EarningsSummarySerializer,
    OrderCreateSerializer,
    OrderDetailSerializer,
    OrderListSerializer,
    PartnerPayoutSerializer,
    PayoutCreateSerializer,
    VerifyPaymentResponseSerializer,
    VerifyPaymentSerializer,
)

logger = logging.getLogger(__name__)

UUID_LOOKUP_REGEX = "[0-9a-fA-F-]{36}"


def _trace_id(request) -> str | None:
    return request.headers.get("X-Request-ID")


# =============================================================================
# Orders
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_orders",
        summary="List orders",
        tags=["Payments - Orders"],
    ),
    retrieve=extend_schema(
        operation_id="get_order",
        summary="Get order",
        tags=["Payments - Orders"],
    ),
)
class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bookings and their payments.

    Scope:
        customer: orders they placed
        partner: orders on their warehouses
        admin: all orders
    """

    lookup_value_regex = UUID_LOOKUP_REGEX

    def get_queryset(self):
        user = self.request.user
        queryset = Order.objects.select_related(
            "warehouse", "current_transaction"
        ).prefetch_related("monthly_payments")

        if user.is_platform_admin:
            return queryset
        if user.is_partner:
            return queryset.filter(partner=user)
        return queryset.filter(customer=user)

    def get_serializer_class(self):
        if self.action == "list":
            return OrderListSerializer
        if self.action == "create":
            return OrderCreateSerializer
        if self.action == "payouts":
            return PayoutCreateSerializer
        return OrderDetailSerializer

    def get_permissions(self):
        if self.action in ("create", "rent_payment"):
            return [IsCustomer()]
        if self.action == "payouts":
            return [IsPlatformAdmin()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="create_order",
        summary="Book a warehouse",
        description=(
            "Reserves the warehouse and opens the first payment. The "
            "reservation is released if the payment is not verified within "
            "the reconciliation window."
        ),
        request=OrderCreateSerializer,
        responses={201: CheckoutResponseSerializer},
        tags=["Payments - Orders"],
    )
    def create(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = OrderCreationService.create_order(
            customer=request.user,
            warehouse_id=serializer.validated_data["warehouse_id"],
            duration_months=serializer.validated_data.get("duration_months"),
            trace_id=_trace_id(request),
        )

        return Response(
            CheckoutResponseSerializer(result).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="start_rent_payment",
        summary="Pay the next rent month",
        request=None,
        responses={201: CheckoutResponseSerializer},
        tags=["Payments - Orders"],
    )
    @action(detail=True, methods=["post"], url_path="rent-payment")
    def rent_payment(self, request, pk=None):
        result = RentPaymentService.initiate_rent_payment(
            customer=request.user,
            order_id=pk,
            trace_id=_trace_id(request),
        )
        return Response(
            CheckoutResponseSerializer(result).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="record_partner_payout",
        summary="Record a partner payout",
        request=PayoutCreateSerializer,
        responses={201: PartnerPayoutSerializer},
        tags=["Payments - Payouts"],
    )
    @action(detail=True, methods=["post"])
    def payouts(self, request, pk=None):
        serializer = PayoutCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payout = PartnerPayoutService.record_payout(
            order_id=pk,
            recorded_by=request.user,
            **serializer.validated_data,
        )
        return Response(
            PartnerPayoutSerializer(payout).data,
            status=status.HTTP_201_CREATED,
        )


# =============================================================================
# Verification
# =============================================================================


class PaymentVerificationView(APIView):
    """
    Gateway checkout callback.

    POST /api/v1/payments/verify/

    Request body:
        {
            "gateway_order_id": "order_xxx",
            "gateway_payment_id": "pay_xxx",
            "gateway_signature": "..."
        }

    Customers can only verify their own transactions; admins any.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="verify_payment",
        summary="Verify a checkout payment",
        request=VerifyPaymentSerializer,
        responses={
            200: VerifyPaymentResponseSerializer,
            400: OpenApiResponse(description="Signature mismatch"),
        },
        tags=["Payments - Orders"],
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = None if request.user.is_platform_admin else request.user
        txn = PaymentVerificationService.verify_payment(
            customer=customer,
            **serializer.validated_data,
        )

        order = Order.objects.get(id=txn.order_id)
        return Response(
            VerifyPaymentResponseSerializer(
                {
                    "status": "verified",
                    "order_id": order.id,
                    "order_status": order.status,
                    "transaction": txn,
                }
            ).data
        )


# =============================================================================
# Payouts
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_payouts",
        summary="List partner payouts",
        tags=["Payments - Payouts"],
    ),
)
class PayoutViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Recorded payouts: a partner sees their own, an admin all."""

    serializer_class = PartnerPayoutSerializer
    permission_classes = [IsPartnerOrPlatformAdmin]

    def get_queryset(self):
        user = self.request.user
        queryset = PartnerPayout.objects.select_related(
            "order", "partner__bank_detail"
        )
        if user.is_platform_admin:
            return queryset
        return queryset.filter(partner=user)

    @extend_schema(
        operation_id="get_earnings_summary",
        summary="Partner earnings summary",
        responses={200: EarningsSummarySerializer},
        tags=["Payments - Payouts"],
    )
    @action(detail=False, methods=["get"], permission_classes=[IsPartner])
    def earnings(self, request):
        summary = PartnerPayoutService.earnings_summary(request.user)
        return Response(EarningsSummarySerializer(summary).data)
