"""
Role-based permission classes for the marketplace API.

- IsCustomer: Booking and rent-payment endpoints
- IsPartner: Partner-facing payout and earnings endpoints
- IsPlatformAdmin: Payout recording (role=admin or superuser)
- IsPartnerOrPlatformAdmin: Payout listing

Object-level scoping (a customer only sees their own orders) is done in the
views' get_queryset(), so these classes only check the role.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsCustomer(permissions.BasePermission):
    """Allows access only to users with the customer role."""

    message = "Only customers can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_customer)


class IsPartner(permissions.BasePermission):
    """Allows access only to users with the partner role."""

    message = "Only partners can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_partner)


class IsPlatformAdmin(permissions.BasePermission):
    """
    Allows access only to platform admins.

    Used for settlement operations such as recording a partner payout.
    """

    message = "Only platform admins can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_platform_admin)


class IsPartnerOrPlatformAdmin(permissions.BasePermission):
    """Allows access to partners and platform admins."""

    message = "Only partners or platform admins can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and (user.is_partner or user.is_platform_admin)
        )
