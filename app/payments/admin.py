"""
Payment admin configuration.

Orders, transactions and payouts are shown read-mostly: state changes go
through the services (verification, reconciliation, payout recording), never
through admin forms. Nothing in the ledger can be deleted.
"""

from django.contrib import admin

from payments.models import (
    MonthlyPayment,
    Order,
    PartnerPayout,
    ReconciliationJob,
    Transaction,
)
from payments.scheduler import get_scheduler
from payments.state_machines import ReconciliationJobStatus

__all__ = [
    "OrderAdmin",
    "TransactionAdmin",
    "PartnerPayoutAdmin",
    "ReconciliationJobAdmin",
]


class MonthlyPaymentInline(admin.TabularInline):
    """Monthly entries shown on the order page."""

    model = MonthlyPayment
    extra = 0
    fields = ["sequence", "label", "amount", "status", "partner_payout_status", "paid_at"]
    readonly_fields = fields
    ordering = ["sequence"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


class TransactionInline(admin.TabularInline):
    """Payment attempts shown on the order page."""

    model = Transaction
    fk_name = "order"
    extra = 0
    fields = ["kind", "amount", "status", "gateway_order_id", "gateway_payment_id", "created_at"]
    readonly_fields = fields
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin configuration for Order.

    Status and amounts are read-only; they are owned by the booking flow.
    """

    list_display = [
        "order_code",
        "customer",
        "warehouse",
        "listing_type",
        "status",
        "total_amount",
        "payment_day",
        "created_at",
    ]
    list_filter = ["status", "listing_type", "sale_payment_status", "sale_payout_status"]
    search_fields = ["order_code", "customer__email", "partner__email", "warehouse__name"]
    readonly_fields = [
        "id",
        "order_code",
        "customer",
        "partner",
        "warehouse",
        "listing_type",
        "status",
        "duration_months",
        "monthly_amount",
        "one_time_amount",
        "sub_total_amount",
        "discount_amount",
        "total_amount",
        "payment_day",
        "sale_payment_status",
        "sale_payout_status",
        "current_transaction",
        "completed_at",
        "failed_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [MonthlyPaymentInline, TransactionInline]

    fieldsets = (
        (None, {"fields": ("id", "order_code", "status", "listing_type")}),
        ("Parties", {"fields": ("customer", "partner", "warehouse")}),
        (
            "Amounts",
            {
                "fields": (
                    "duration_months",
                    "monthly_amount",
                    "one_time_amount",
                    "sub_total_amount",
                    "discount_amount",
                    "total_amount",
                ),
            },
        ),
        (
            "Settlement",
            {
                "fields": (
                    "payment_day",
                    "sale_payment_status",
                    "sale_payout_status",
                    "current_transaction",
                ),
            },
        ),
        ("Timestamps", {"fields": ("completed_at", "failed_at", "created_at", "updated_at")}),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Orders are never deleted."""
        return False

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Admin configuration for Transaction."""

    list_display = [
        "gateway_order_id",
        "order",
        "kind",
        "amount",
        "status",
        "gateway_payment_id",
        "created_at",
    ]
    list_filter = ["status", "kind", "created_at"]
    search_fields = ["gateway_order_id", "gateway_payment_id", "receipt", "order__order_code"]
    readonly_fields = [field.name for field in Transaction._meta.fields]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(PartnerPayout)
class PartnerPayoutAdmin(admin.ModelAdmin):
    """
    Admin configuration for PartnerPayout.

    Payouts are recorded through the API so the month or sale they settle
    is marked paid in the same transaction; admin only shows them.
    """

    list_display = [
        "utr",
        "partner",
        "order",
        "amount",
        "payment_method",
        "status",
        "paid_at",
    ]
    list_filter = ["payment_method", "status", "paid_at"]
    search_fields = ["utr", "partner__email", "order__order_code"]
    readonly_fields = [field.name for field in PartnerPayout._meta.fields]
    date_hierarchy = "paid_at"
    ordering = ["-paid_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(ReconciliationJob)
class ReconciliationJobAdmin(admin.ModelAdmin):
    """
    Admin configuration for ReconciliationJob.

    Dead-lettered jobs end up here for inspection; the redispatch action
    puts them back in the queue.
    """

    list_display = [
        "id",
        "job_type",
        "status",
        "attempts",
        "run_at",
        "finished_at",
    ]
    list_filter = ["status", "job_type"]
    search_fields = ["id"]
    readonly_fields = [field.name for field in ReconciliationJob._meta.fields]
    date_hierarchy = "run_at"
    ordering = ["-run_at"]
    actions = ["redispatch"]

    @admin.action(description="Re-dispatch selected jobs")
    def redispatch(self, request, queryset):
        scheduler = get_scheduler()
        count = 0
        for job in queryset.exclude(status=ReconciliationJobStatus.SUCCEEDED):
            job.status = ReconciliationJobStatus.PENDING
            job.attempts = 0
            job.finished_at = None
            job.save(update_fields=["status", "attempts", "finished_at", "updated_at"])
            scheduler.dispatch(job.id)
            count += 1
        self.message_user(request, f"Re-dispatched {count} job(s).")

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False
