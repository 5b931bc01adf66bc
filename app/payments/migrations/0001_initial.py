import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models

ORDER_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("processing", "Processing"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
    ("failed", "Failed"),
]
TRANSACTION_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
    ("failed", "Failed"),
]
MONTHLY_PAYMENT_STATUS_CHOICES = [
    ("unpaid", "Unpaid"),
    ("processing", "Processing"),
    ("paid", "Paid"),
]
SETTLEMENT_CHOICES = [("unpaid", "Unpaid"), ("paid", "Paid")]


def timestamp_fields():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                help_text="Unique identifier for this record",
                primary_key=True,
                serialize=False,
            ),
        ),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("warehouses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=timestamp_fields()
            + [
                (
                    "order_code",
                    models.CharField(
                        help_text="Human-readable order code (ORD-<timestamp>-<warehouse>-<random>)",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "listing_type",
                    models.CharField(
                        choices=[("rent", "Rent"), ("sale", "Sale")],
                        help_text="rent or sale, copied from the warehouse at booking",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=ORDER_STATUS_CHOICES,
                        db_index=True,
                        default="pending",
                        help_text="Current state of the order (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "duration_months",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Rental length in months (null for sales)",
                        null=True,
                    ),
                ),
                (
                    "monthly_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Monthly rent at booking",
                        max_digits=12,
                    ),
                ),
                (
                    "one_time_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Flat charge included in a rental total",
                        max_digits=12,
                    ),
                ),
                (
                    "sub_total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Price before discount",
                        max_digits=12,
                    ),
                ),
                (
                    "discount_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Discount applied",
                        max_digits=12,
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount the customer pays in total",
                        max_digits=12,
                    ),
                ),
                (
                    "payment_day",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Days until the next rent payment is due (rentals only)",
                        null=True,
                    ),
                ),
                (
                    "sale_payment_status",
                    models.CharField(
                        blank=True,
                        choices=SETTLEMENT_CHOICES,
                        help_text="Whether the customer paid for the sale (sales only)",
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "sale_payout_status",
                    models.CharField(
                        blank=True,
                        choices=SETTLEMENT_CHOICES,
                        help_text="Whether the partner was paid out for the sale (sales only)",
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the first payment was verified",
                        null=True,
                    ),
                ),
                (
                    "failed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the order was last reconciled as unpaid",
                        null=True,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer who booked the warehouse",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        help_text="Warehouse owner at the time of booking",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="partner_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        help_text="Booked warehouse",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["customer", "status"], name="order_customer_status_idx"
                    ),
                    models.Index(
                        fields=["partner", "status"], name="order_partner_status_idx"
                    ),
                    models.Index(
                        fields=["warehouse", "status"], name="order_warehouse_status_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gt", 0)),
                        name="order_total_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("duration_months__isnull", True), ("listing_type", "sale")),
                            models.Q(("duration_months__gt", 0), ("listing_type", "rent")),
                            _connector="OR",
                        ),
                        name="order_duration_matches_listing_type",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MonthlyPayment",
            fields=timestamp_fields()
            + [
                (
                    "sequence",
                    models.PositiveSmallIntegerField(
                        help_text="Month number within the rental, starting at 1"
                    ),
                ),
                (
                    "label",
                    models.CharField(
                        help_text="Display label (e.g. 'First Month')", max_length=50
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount due for this month",
                        max_digits=12,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=MONTHLY_PAYMENT_STATUS_CHOICES,
                        db_index=True,
                        default="unpaid",
                        help_text="Customer payment state (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "partner_payout_status",
                    models.CharField(
                        choices=SETTLEMENT_CHOICES,
                        default="unpaid",
                        help_text="Whether this month was paid out to the partner",
                        max_length=10,
                    ),
                ),
                (
                    "paid_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the customer's payment was verified",
                        null=True,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Rental this entry belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="monthly_payments",
                        to="payments.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Monthly Payment",
                "verbose_name_plural": "Monthly Payments",
                "ordering": ["order", "sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "sequence"),
                        name="monthly_payment_unique_sequence",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("status", "processing")),
                        fields=("order",),
                        name="monthly_payment_one_processing_per_order",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="monthly_payment_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=timestamp_fields()
            + [
                (
                    "kind",
                    models.CharField(
                        choices=[("booking", "Booking"), ("rent", "Rent")],
                        default="booking",
                        help_text="booking (first charge / sale) or rent (later month)",
                        max_length=10,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Charged amount in rupees",
                        max_digits=12,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="INR", help_text="ISO 4217 currency code", max_length=3
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=TRANSACTION_STATUS_CHOICES,
                        db_index=True,
                        default="pending",
                        help_text="Current state of the payment attempt (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "gateway_order_id",
                    models.CharField(
                        help_text="Razorpay order ID (order_xxx)",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "gateway_payment_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Razorpay payment ID (pay_xxx), set on completion",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "gateway_signature",
                    models.CharField(
                        blank=True,
                        help_text="Checkout signature, set on completion",
                        max_length=128,
                    ),
                ),
                (
                    "receipt",
                    models.CharField(
                        help_text="Receipt string sent to the gateway", max_length=64
                    ),
                ),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True, help_text="When the payment was verified", null=True
                    ),
                ),
                (
                    "failed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the attempt was marked failed",
                        null=True,
                    ),
                ),
                (
                    "failure_reason",
                    models.TextField(blank=True, help_text="Why the attempt failed"),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer making the payment",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "monthly_payment",
                    models.ForeignKey(
                        blank=True,
                        help_text="Monthly entry this attempt pays (rentals only)",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="payments.monthlypayment",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order this payment belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="payments.order",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        help_text="Warehouse being paid for",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name": "Transaction",
                "verbose_name_plural": "Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["order", "status"], name="transaction_order_status_idx"
                    ),
                    models.Index(
                        fields=["customer", "created_at"], name="transaction_customer_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="transaction_amount_positive",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="order",
            name="current_transaction",
            field=models.ForeignKey(
                blank=True,
                help_text="Latest payment attempt for this order",
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="+",
                to="payments.transaction",
            ),
        ),
        migrations.CreateModel(
            name="PartnerPayout",
            fields=timestamp_fields()
            + [
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount transferred to the partner",
                        max_digits=12,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("imps", "IMPS"),
                            ("upi", "UPI"),
                            ("neft", "NEFT"),
                            ("other", "Other"),
                        ],
                        help_text="Bank rail used for the transfer",
                        max_length=10,
                    ),
                ),
                (
                    "utr",
                    models.CharField(
                        help_text="Bank Unique Transaction Reference",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("completed", "Completed"), ("reversed", "Reversed")],
                        db_index=True,
                        default="completed",
                        help_text="Whether the transfer stands or was reversed",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, help_text="Free-text remarks")),
                (
                    "paid_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="When the transfer was made",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer whose payment is being passed on",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "monthly_payment",
                    models.ForeignKey(
                        blank=True,
                        help_text="Month being settled (rentals only)",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="payments.monthlypayment",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order being settled",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="payments.order",
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        help_text="Partner receiving the money",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin who recorded the payout",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        help_text="Warehouse the payout relates to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name": "Partner Payout",
                "verbose_name_plural": "Partner Payouts",
                "ordering": ["-paid_at"],
                "indexes": [
                    models.Index(
                        fields=["partner", "paid_at"], name="payout_partner_paid_at_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="partner_payout_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReconciliationJob",
            fields=timestamp_fields()
            + [
                (
                    "job_type",
                    models.CharField(
                        db_index=True,
                        help_text="Registered handler name (e.g. 'order_reconciliation')",
                        max_length=50,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(
                        default=dict, help_text="JSON arguments passed to the handler"
                    ),
                ),
                (
                    "run_at",
                    models.DateTimeField(
                        db_index=True, help_text="Earliest time the job should run"
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("running", "Running"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                            ("dead_lettered", "Dead Lettered"),
                            ("discarded", "Discarded"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current processing status",
                        max_length=20,
                    ),
                ),
                (
                    "attempts",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of processing attempts"
                    ),
                ),
                (
                    "last_error",
                    models.TextField(
                        blank=True,
                        help_text="Error message of the last failed attempt",
                        null=True,
                    ),
                ),
                (
                    "result",
                    models.JSONField(
                        blank=True,
                        help_text="Handler outcome of the final attempt",
                        null=True,
                    ),
                ),
                (
                    "started_at",
                    models.DateTimeField(
                        blank=True, help_text="When the last attempt started", null=True
                    ),
                ),
                (
                    "finished_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the job reached a final status",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Reconciliation Job",
                "verbose_name_plural": "Reconciliation Jobs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "run_at"], name="recon_job_status_run_at_idx"
                    ),
                    models.Index(
                        fields=["job_type", "status"], name="recon_job_type_status_idx"
                    ),
                ],
            },
        ),
    ]
