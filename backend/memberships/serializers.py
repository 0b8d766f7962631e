from rest_framework import serializers

from .models import Membership


class MembershipSerializer(serializers.ModelSerializer):
    studio_name = serializers.CharField(source="studio.name", read_only=True)

    class Meta:
        model = Membership
        fields = [
            "id",
            "studio",
            "studio_name",
            "plan",
            "status",
            "start_date",
            "end_date",
            "payment_id",
            "created_at",
        ]
        read_only_fields = fields


class MembershipCreateSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(choices=Membership.PLANS)
