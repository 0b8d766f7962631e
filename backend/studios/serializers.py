from rest_framework import serializers

from .models import AddOn, Studio


class StripeOnboardingLinkSerializer(serializers.Serializer):
    url = serializers.URLField()
    expires_at = serializers.DateTimeField()


class StripeAccountStatusSerializer(serializers.Serializer):
    connected = serializers.BooleanField()
    account_id = serializers.CharField(allow_null=True, required=False)
    charges_enabled = serializers.BooleanField(required=False)
    payouts_enabled = serializers.BooleanField(required=False)
    details_submitted = serializers.BooleanField(required=False)
    onboarding_link_url = serializers.CharField(allow_blank=True, required=False)

    @staticmethod
    def from_studio(studio: Studio) -> dict:
        if not studio.stripe_account_id:
            return {"connected": False}

        return {
            "connected": True,
            "account_id": studio.stripe_account_id,
            "charges_enabled": studio.charges_enabled,
            "payouts_enabled": studio.payouts_enabled,
            "details_submitted": studio.details_submitted,
            "onboarding_link_url": studio.onboarding_link_url or "",
        }


class AddOnSerializer(serializers.ModelSerializer):
    class Meta:
        model = AddOn
        fields = ["id", "name", "price"]

