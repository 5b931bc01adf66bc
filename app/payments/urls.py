"""
URL configuration for the payments app.

URL Structure:
    /orders/                      GET, POST
    /orders/{id}/                 GET
    /orders/{id}/rent-payment/    POST
    /orders/{id}/payouts/         POST
    /verify/                      POST
    /payouts/                     GET
    /payouts/earnings/            GET

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from payments.views import OrderViewSet, PaymentVerificationView, PayoutViewSet

router = DefaultRouter()
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"payouts", PayoutViewSet, basename="payout")

app_name = "payments"

urlpatterns = [
    path("verify/", PaymentVerificationView.as_view(), name="verify-payment"),
    path("", include(router.urls)),
]
