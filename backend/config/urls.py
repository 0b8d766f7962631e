from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.api import LoginView, MeView, RegisterView
from bookings.api import BookingViewSet
from memberships.api import (
    MembershipListCreateView,
    MyActiveMembershipView,
    StudioActiveMembershipView,
)
from payments.api import (
    BookingPaymentView,
    MembershipPaymentView,
    PaymentCaptureView,
    PaymentConfirmView,
    PaymentLedgerView,
    PaymentSimulateView,
    StripeWebhookView,
)
from studios.api import StripeAccountStatusView, StripeOnboardingLinkView

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/register/", RegisterView.as_view(), name="auth-register"),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),
    path("api/", include(router.urls)),
    path("api/payments/booking/", BookingPaymentView.as_view(), name="payment-booking"),
    path("api/payments/membership/", MembershipPaymentView.as_view(), name="payment-membership"),
    path(
        "api/payments/confirm/<str:intent_id>/",
        PaymentConfirmView.as_view(),
        name="payment-confirm",
    ),
    path(
        "api/payments/capture/<str:intent_id>/",
        PaymentCaptureView.as_view(),
        name="payment-capture",
    ),
    path("api/payments/simulate/", PaymentSimulateView.as_view(), name="payment-simulate"),
    path("api/payments/webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("api/payments/ledger/", PaymentLedgerView.as_view(), name="payment-ledger"),
    path("api/memberships/", MembershipListCreateView.as_view(), name="membership-list"),
    path(
        "api/memberships/mine/active/",
        MyActiveMembershipView.as_view(),
        name="membership-mine-active",
    ),
    path(
        "api/memberships/studios/<int:studio_id>/active/",
        StudioActiveMembershipView.as_view(),
        name="membership-studio-active",
    ),
    path(
        "api/studios/<int:studio_id>/stripe/link/",
        StripeOnboardingLinkView.as_view(),
        name="studio-stripe-link",
    ),
    path(
        "api/studios/<int:studio_id>/stripe/status/",
        StripeAccountStatusView.as_view(),
        name="studio-stripe-status",
    ),
]
