"""
DRF serializers for payments app.

This module provides serializers for:
- Orders with their monthly entries and latest transaction
- Booking and rent-payment checkout responses
- The gateway verification callback
- Partner payouts and earnings summaries

Related files:
    - models/: Order, MonthlyPayment, Transaction, PartnerPayout
    - views.py: Payment API views

Usage:
    serializer = OrderDetailSerializer(order)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import MonthlyPayment, Order, PartnerPayout, Transaction
from payments.state_machines import PayoutMethod


# =============================================================================
# Ledger Serializers
# =============================================================================


class MonthlyPaymentSerializer(serializers.ModelSerializer):
    """One month of a rental, as shown on the order detail."""

    class Meta:
        model = MonthlyPayment
        fields = [
            "id",
            "sequence",
            "label",
            "amount",
            "status",
            "partner_payout_status",
            "paid_at",
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """
    A gateway payment attempt.

    The checkout signature is never returned.
    """

    monthly_payment_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "kind",
            "amount",
            "currency",
            "status",
            "gateway_order_id",
            "gateway_payment_id",
            "receipt",
            "monthly_payment_id",
            "created_at",
            "completed_at",
            "failed_at",
            "failure_reason",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Compact order representation for list views."""

    warehouse_id = serializers.UUIDField(read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_code",
            "warehouse_id",
            "warehouse_name",
            "listing_type",
            "status",
            "duration_months",
            "total_amount",
            "payment_day",
            "sale_payment_status",
            "sale_payout_status",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderListSerializer):
    """
    Full order with amounts, monthly entries and the latest transaction.

    Fields (in addition to the list fields):
        customer_id / partner_id: Parties
        monthly_amount / one_time_amount / sub_total_amount / discount_amount
        monthly_payments: Rental entries in sequence order (empty for sales)
        current_transaction: Latest payment attempt
    """

    customer_id = serializers.IntegerField(read_only=True)
    partner_id = serializers.IntegerField(read_only=True)
    monthly_payments = MonthlyPaymentSerializer(many=True, read_only=True)
    current_transaction = TransactionSerializer(read_only=True, allow_null=True)

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            "customer_id",
            "partner_id",
            "monthly_amount",
            "one_time_amount",
            "sub_total_amount",
            "discount_amount",
            "failed_at",
            "monthly_payments",
            "current_transaction",
        ]
        read_only_fields = fields


# =============================================================================
# Booking & Checkout Serializers
# =============================================================================


class OrderCreateSerializer(serializers.Serializer):
    """
    Booking request.

    duration_months is required for rentals and must be omitted for sales;
    the service checks it against the warehouse's listing type.
    """

    warehouse_id = serializers.UUIDField()
    duration_months = serializers.IntegerField(
        min_value=1,
        max_value=120,
        required=False,
        allow_null=True,
    )


class CheckoutSerializer(serializers.Serializer):
    """What the client passes to the Razorpay checkout."""

    key_id = serializers.CharField()
    gateway_order_id = serializers.CharField()
    amount_paise = serializers.IntegerField()
    currency = serializers.CharField()
    receipt = serializers.CharField()


class CheckoutResponseSerializer(serializers.Serializer):
    """Response of booking creation and rent-payment initiation."""

    order = OrderDetailSerializer(read_only=True)
    transaction = TransactionSerializer(read_only=True)
    checkout = CheckoutSerializer(read_only=True)


class VerifyPaymentSerializer(serializers.Serializer):
    """Values the Razorpay checkout hands back after payment."""

    gateway_order_id = serializers.CharField(max_length=64)
    gateway_payment_id = serializers.CharField(max_length=64)
    gateway_signature = serializers.CharField(max_length=128)


class VerifyPaymentResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    order_id = serializers.UUIDField()
    order_status = serializers.CharField()
    transaction = TransactionSerializer()


# =============================================================================
# Payout Serializers
# =============================================================================


class PayoutCreateSerializer(serializers.Serializer):
    """Admin request to record a bank transfer to the partner."""

    payment_method = serializers.ChoiceField(choices=PayoutMethod.choices)
    utr = serializers.CharField(max_length=64)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PartnerPayoutSerializer(serializers.ModelSerializer):
    """
    A recorded payout.

    destination shows the partner's bank account with the number masked.
    """

    order_id = serializers.UUIDField(read_only=True)
    order_code = serializers.CharField(source="order.order_code", read_only=True)
    warehouse_id = serializers.UUIDField(read_only=True)
    partner_id = serializers.IntegerField(read_only=True)
    monthly_payment_id = serializers.UUIDField(read_only=True, allow_null=True)
    destination = serializers.SerializerMethodField()

    class Meta:
        model = PartnerPayout
        fields = [
            "id",
            "order_id",
            "order_code",
            "warehouse_id",
            "partner_id",
            "monthly_payment_id",
            "amount",
            "payment_method",
            "utr",
            "status",
            "notes",
            "paid_at",
            "destination",
        ]
        read_only_fields = fields

    def get_destination(self, obj) -> dict | None:
        bank = getattr(obj.partner, "bank_detail", None)
        if bank is None:
            return None
        return {
            "bank_name": bank.bank_name,
            "account_number": bank.masked_account_number,
            "ifsc_code": bank.ifsc_code,
            "account_holder_name": bank.account_holder_name,
        }


class EarningsSummarySerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    this_month = serializers.DecimalField(max_digits=14, decimal_places=2)
    this_week = serializers.DecimalField(max_digits=14, decimal_places=2)
    payout_count = serializers.IntegerField()
