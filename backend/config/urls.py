from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.api import LoginView, MeView, RegisterView
from bookings.api import BookingViewSet
from packages.api import PackageViewSet
from payments.api import (
    PaymentViewSet,
    StripeBalanceView,
    StripeTransactionDetailView,
    StripeTransactionListView,
)

router = DefaultRouter()
router.register(r"packages", PackageViewSet, basename="package")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"payments", PaymentViewSet, basename="payment")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/register/", RegisterView.as_view(), name="auth-register"),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),
    path(
        "api/payments/stripe/balance/",
        StripeBalanceView.as_view(),
        name="stripe-balance",
    ),
    path(
        "api/payments/stripe/transactions/",
        StripeTransactionListView.as_view(),
        name="stripe-transactions",
    ),
    path(
        "api/payments/stripe/transactions/<str:charge_id>/",
        StripeTransactionDetailView.as_view(),
        name="stripe-transaction-detail",
    ),
    path("api/", include(router.urls)),
]
