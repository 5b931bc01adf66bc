"""
Django admin configuration for warehouse listings.

Status is FSM-managed and read-only here; the publish action moves pending
listings to available.
"""

from django.contrib import admin, messages
from django_fsm import can_proceed

from warehouses.models import Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    """Admin configuration for Warehouse model."""

    list_display = (
        "name",
        "partner",
        "city",
        "listing_type",
        "status",
        "monthly_price",
        "total_price",
        "created_at",
    )
    list_filter = ("listing_type", "status", "city")
    search_fields = ("name", "city", "partner__email")
    ordering = ("-created_at",)
    raw_id_fields = ("partner",)
    readonly_fields = ("id", "status", "created_at", "updated_at")
    actions = ["publish_listings"]

    @admin.action(description="Publish selected pending listings")
    def publish_listings(self, request, queryset):
        published = 0
        for warehouse in queryset:
            if can_proceed(warehouse.publish):
                warehouse.publish()
                warehouse.save(update_fields=["status", "updated_at"])
                published += 1
        self.message_user(
            request, f"Published {published} listing(s).", messages.SUCCESS
        )
