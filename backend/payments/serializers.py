from rest_framework import serializers

from memberships.models import Membership

from .models import Payment
from .services.reconciliation import ConfirmationResult


class BookingPaymentRequestSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()
    add_on_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        default=list,
    )


class MembershipPaymentRequestSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(choices=Membership.PLANS)


class SimulatePaymentRequestSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()


class BookingPaymentSerializer(serializers.Serializer):
    client_secret = serializers.CharField()
    booking_id = serializers.IntegerField()
    payment_intent_id = serializers.CharField()
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2)


class MembershipPaymentSerializer(serializers.Serializer):
    client_secret = serializers.CharField()
    membership_id = serializers.IntegerField()
    payment_intent_id = serializers.CharField()
    plan = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class ConfirmationSerializer(serializers.Serializer):
    """Minimal view of a reconciliation outcome; safe for the public poll."""

    def to_representation(self, instance: ConfirmationResult):
        data = {
            "kind": instance.kind,
            "payment_intent_id": getattr(instance.intent, "id", None),
            "intent_status": instance.intent_status,
            "booking": None,
            "membership": None,
        }
        if instance.booking is not None:
            data["booking"] = {
                "id": instance.booking.pk,
                "status": instance.booking.status,
                "is_paid": instance.booking.is_paid,
                "payment_status": instance.booking.payment_status,
            }
        if instance.membership is not None:
            data["membership"] = {
                "id": instance.membership.pk,
                "plan": instance.membership.plan,
                "status": instance.membership.status,
                "end_date": serializers.DateTimeField().to_representation(instance.membership.end_date)
                if instance.membership.end_date
                else None,
            }
        return data


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "membership",
            "stripe_payment_intent",
            "amount",
            "currency",
            "status",
            "created_at",
        ]
        read_only_fields = fields
