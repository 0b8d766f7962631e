import logging
from datetime import datetime, timezone

import stripe
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.services import gateway

from .models import Studio
from .permissions import IsStudioOwnerOrAdmin
from .serializers import StripeAccountStatusSerializer, StripeOnboardingLinkSerializer

logger = logging.getLogger(__name__)


def _account_flag(stripe_account, field: str) -> bool:
    if isinstance(stripe_account, dict):
        return bool(stripe_account.get(field, False))
    return bool(getattr(stripe_account, field, False))


def sync_studio_from_stripe(studio: Studio, stripe_account) -> None:
    """Mirror the connected account flags; accepts a Stripe object or an event payload."""
    changed_fields: list[str] = []
    for field in ("charges_enabled", "payouts_enabled", "details_submitted"):
        value = _account_flag(stripe_account, field)
        if getattr(studio, field) != value:
            setattr(studio, field, value)
            changed_fields.append(field)

    if changed_fields:
        changed_fields.append("updated_at")
        studio.save(update_fields=changed_fields)


class StudioBaseView(APIView):
    permission_classes = [IsAuthenticated, IsStudioOwnerOrAdmin]
    studio: Studio | None = None

    def initial(self, request, *args, **kwargs):
        self.studio = get_object_or_404(Studio.objects.select_related("owner"), pk=kwargs.get("studio_id"))
        super().initial(request, *args, **kwargs)


class StripeOnboardingLinkView(StudioBaseView):
    """
    Create (or refresh) an onboarding link for the studio's Stripe Express account.
    """

    def post(self, request, studio_id, *args, **kwargs):
        try:
            gateway.configure_stripe()
        except RuntimeError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        studio = self.studio
        try:
            if not studio.stripe_account_id:
                stripe_account = gateway.create_connected_account(email=studio.owner.email)
                studio.stripe_account_id = stripe_account.id
                studio.save(update_fields=["stripe_account_id", "updated_at"])
            else:
                stripe_account = gateway.retrieve_account(studio.stripe_account_id)
            sync_studio_from_stripe(studio, stripe_account)
            link = gateway.create_account_link(studio.stripe_account_id)
        except stripe.StripeError as exc:
            logger.exception("Failed to create Stripe onboarding link for studio %s: %s", studio.pk, exc)
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        expires_at = datetime.fromtimestamp(link.expires_at, tz=timezone.utc)
        studio.onboarding_link_url = link.url
        studio.onboarding_expires_at = expires_at
        studio.save(update_fields=["onboarding_link_url", "onboarding_expires_at", "updated_at"])

        serializer = StripeOnboardingLinkSerializer({"url": link.url, "expires_at": expires_at})
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class StripeAccountStatusView(StudioBaseView):
    """Return the payout account status for the studio, refreshed from Stripe when connected."""

    def get(self, request, studio_id, *args, **kwargs):
        studio = self.studio
        if studio.stripe_account_id:
            try:
                stripe_account = gateway.retrieve_account(studio.stripe_account_id)
                sync_studio_from_stripe(studio, stripe_account)
            except RuntimeError as exc:
                logger.warning("Skipping Stripe refresh for studio %s: %s", studio.pk, exc)
            except stripe.StripeError as exc:
                logger.exception("Failed to refresh Stripe account status: %s", exc)

        return Response(StripeAccountStatusSerializer.from_studio(studio))
