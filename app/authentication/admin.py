"""
Django admin configuration for authentication models.

This module registers User and PartnerBankDetail with the Django admin site.

Related files:
    - models.py: Model definitions
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import PartnerBankDetail, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication with a marketplace role.
    """

    list_display = (
        "email",
        "full_name",
        "role",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (
        "role",
        "is_active",
        "is_staff",
        "is_superuser",
        "date_joined",
    )
    search_fields = ("email", "full_name", "phone")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("full_name", "phone", "role")}),
        (
            "Status",
            {"fields": ("is_active", "is_staff", "is_superuser")},
        ),
        (
            "Permissions",
            {"fields": ("groups", "user_permissions")},
        ),
        (
            "Important dates",
            {"fields": ("date_joined", "last_login")},
        ),
    )

    # Fields for creating a new user
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "role", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login")


@admin.register(PartnerBankDetail)
class PartnerBankDetailAdmin(admin.ModelAdmin):
    """Admin configuration for partner payout accounts."""

    list_display = (
        "partner",
        "bank_name",
        "masked_account_number",
        "ifsc_code",
        "created_at",
    )
    search_fields = ("partner__email", "bank_name", "ifsc_code")
    ordering = ("-created_at",)
    raw_id_fields = ("partner",)
    readonly_fields = ("created_at", "updated_at")
