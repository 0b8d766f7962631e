import logging

from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsPlatformAdmin
from bookings.serializers import BookingSerializer

from .models import Payment
from .serializers import (
    BookingPaymentRequestSerializer,
    BookingPaymentSerializer,
    ConfirmationSerializer,
    MembershipPaymentRequestSerializer,
    MembershipPaymentSerializer,
    PaymentSerializer,
    SimulatePaymentRequestSerializer,
)
from .services import reconciliation, webhooks

logger = logging.getLogger(__name__)


def _processor_unavailable(exc: RuntimeError) -> Response:
    logger.error("Stripe is not configured: %s", exc)
    return Response({"detail": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class BookingPaymentView(APIView):
    """Open a payment intent for one of the caller's bookings."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = BookingPaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = reconciliation.create_booking_payment(
            request.user,
            serializer.validated_data["booking_id"],
            serializer.validated_data["add_on_ids"],
        )
        return Response(BookingPaymentSerializer(result).data, status=status.HTTP_201_CREATED)


class MembershipPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = MembershipPaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = reconciliation.create_membership_payment(request.user, serializer.validated_data["plan"])
        return Response(MembershipPaymentSerializer(result).data, status=status.HTTP_201_CREATED)


class PaymentConfirmView(APIView):
    """Client poll after checkout; reconciles against Stripe's current status."""

    permission_classes = [AllowAny]

    def get(self, request, intent_id, *args, **kwargs):
        try:
            result = reconciliation.confirm_payment(intent_id)
        except RuntimeError as exc:
            return _processor_unavailable(exc)
        return Response(ConfirmationSerializer(result).data)


class PaymentCaptureView(APIView):
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def post(self, request, intent_id, *args, **kwargs):
        try:
            result = reconciliation.capture_payment(intent_id)
        except RuntimeError as exc:
            return _processor_unavailable(exc)
        return Response(ConfirmationSerializer(result).data)


class PaymentSimulateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = SimulatePaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = reconciliation.simulate_booking_payment(request.user, serializer.validated_data["booking_id"])
        return Response(BookingSerializer(booking).data)


class StripeWebhookView(APIView):
    """Receive Stripe webhook events for payment intents and connected accounts."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        payload = request.body
        signature = request.META.get("HTTP_STRIPE_SIGNATURE")
        try:
            webhooks.handle_webhook(payload, signature)
        except RuntimeError as exc:
            return _processor_unavailable(exc)
        return Response({"received": True})


class LedgerPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 200


class PaymentLedgerView(generics.ListAPIView):
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    pagination_class = LedgerPagination
    filterset_fields = ["status", "currency", "booking", "membership", "stripe_payment_intent"]
    ordering_fields = ["created_at", "amount"]

    def get_queryset(self):
        return Payment.objects.all()
