from rest_framework import serializers

from bookings.models import Booking
from bookings.pricing import PricingResult, round_money
from studios.serializers import AddOnSerializer


class BookingSerializer(serializers.ModelSerializer):
    studio_name = serializers.CharField(source="studio.name", read_only=True)
    room_name = serializers.CharField(source="room.name", read_only=True, default=None)
    musician_email = serializers.EmailField(source="musician.email", read_only=True)
    add_ons = AddOnSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "studio",
            "studio_name",
            "room",
            "room_name",
            "musician",
            "musician_email",
            "start_time",
            "end_time",
            "status",
            "is_paid",
            "payment_status",
            "payment_intent_id",
            "total_price",
            "add_ons",
            "created_at",
        ]
        read_only_fields = fields


class PriceQuoteRequestSerializer(serializers.Serializer):
    room_id = serializers.IntegerField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    add_on_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        default=list,
    )


class PriceQuoteSerializer(serializers.Serializer):
    """Render a PricingResult with amounts rounded to cents."""

    def to_representation(self, instance: PricingResult):
        return {
            "room_id": instance.room.pk,
            "hours": float(instance.hours),
            "room_cost": str(round_money(instance.room_cost)),
            "add_on_cost": str(round_money(instance.add_on_cost)),
            "room_commission": str(round_money(instance.room_commission)),
            "room_owner_amount": str(round_money(instance.room_owner_amount)),
            "total_price": str(round_money(instance.total_price)),
            "add_ons": AddOnSerializer(instance.add_ons, many=True).data,
        }
