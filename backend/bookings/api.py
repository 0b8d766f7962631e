from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from bookings.models import Booking
from bookings.pricing import calculate_price
from bookings.serializers import (
    BookingSerializer,
    PriceQuoteRequestSerializer,
    PriceQuoteSerializer,
)


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Bookings visible to the caller: musicians see their own, studio owners see
    their studio's, admins see everything.
    """

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "payment_status", "is_paid", "studio", "room"]
    ordering_fields = ["start_time", "created_at"]

    def get_queryset(self):
        return (
            Booking.objects.visible_to(self.request.user)
            .select_related("studio", "room", "musician")
            .prefetch_related("add_ons")
        )

    @action(detail=False, methods=["post"], url_path="quote")
    def quote(self, request):
        serializer = PriceQuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = calculate_price(
            data["room_id"],
            data["start_time"],
            data["end_time"],
            data["add_on_ids"],
        )
        return Response(PriceQuoteSerializer(result).data, status=status.HTTP_200_OK)
