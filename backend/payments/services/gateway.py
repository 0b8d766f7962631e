from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import uuid4

import stripe
from django.conf import settings

from core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntentStub:
    """
    Lightweight stand-in for stripe.PaymentIntent when running in stub mode.

    Local development does not hit Stripe for intent creation; the rest of the
    booking flow receives predictable identifiers as if Stripe responded.
    """

    id: str
    client_secret: str
    amount: int
    currency: str
    status: str = "requires_payment_method"
    amount_received: int = 0
    metadata: dict = field(default_factory=dict)


def _get_stripe_api_key() -> Optional[str]:
    key = getattr(settings, "STRIPE_SECRET_KEY", "")
    return key or None


def _should_use_stub() -> bool:
    if getattr(settings, "STRIPE_USE_STUB", False):
        return True
    return _get_stripe_api_key() is None


def configure_stripe() -> None:
    api_key = _get_stripe_api_key()
    if not api_key:
        raise RuntimeError("STRIPE_SECRET_KEY is not configured.")
    stripe.api_key = api_key
    stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
    if not isinstance(stripe.default_http_client, stripe.RequestsClient):
        stripe.default_http_client = stripe.RequestsClient(timeout=settings.STRIPE_API_TIMEOUT)


def to_plain_dict(value) -> dict[str, Any]:
    """
    Plain nested dict for a Stripe object, event payload or stub metadata.

    Newer stripe releases no longer make ``StripeObject`` a dict, so ``.get``
    and ``dict(obj)`` fail on them; ``to_dict()`` converts recursively.
    """

    if value is None:
        return {}
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(value)


def _upstream_error(action: str, exc: stripe.StripeError) -> UpstreamError:
    message = getattr(exc, "user_message", None) or str(exc) or "Stripe request failed."
    logger.warning("Stripe %s failed: %s", action, message)
    return UpstreamError(f"Payment processor error: {message}")


def _stub_payment_intent(*, amount_cents: int, currency: str, metadata: dict) -> PaymentIntentStub:
    intent_id = f"pi_test_{uuid4().hex}"
    return PaymentIntentStub(
        id=intent_id,
        client_secret=f"{intent_id}_secret_{uuid4().hex[:16]}",
        amount=amount_cents,
        currency=currency,
        metadata=metadata,
    )


def create_payment_intent(
    *,
    amount_cents: int,
    currency: str,
    metadata: dict[str, Any],
    application_fee_cents: int | None = None,
    destination: str | None = None,
):
    """
    Create an automatically captured PaymentIntent (or stub equivalent).

    When a destination is given the charge is routed to that connected account
    and the platform keeps ``application_fee_cents``.
    """

    metadata = {key: "" if value is None else str(value) for key, value in metadata.items()}
    if _should_use_stub():
        return _stub_payment_intent(amount_cents=amount_cents, currency=currency, metadata=metadata)

    configure_stripe()
    stripe_kwargs: dict[str, Any] = {}
    if destination:
        stripe_kwargs["transfer_data"] = {"destination": destination}
        if application_fee_cents:
            stripe_kwargs["application_fee_amount"] = application_fee_cents

    try:
        return stripe.PaymentIntent.create(
            amount=amount_cents,
            currency=currency,
            capture_method="automatic",
            automatic_payment_methods={"enabled": True},
            metadata=metadata,
            **stripe_kwargs,
        )
    except stripe.StripeError as exc:
        raise _upstream_error("intent creation", exc) from exc


def retrieve_payment_intent(intent_id: str):
    configure_stripe()
    try:
        return stripe.PaymentIntent.retrieve(intent_id)
    except stripe.StripeError as exc:
        raise _upstream_error("intent retrieval", exc) from exc


def capture_payment_intent(intent_id: str):
    configure_stripe()
    try:
        return stripe.PaymentIntent.capture(intent_id)
    except stripe.StripeError as exc:
        raise _upstream_error("intent capture", exc) from exc


def construct_webhook_event(payload: bytes, signature: str, secret: str):
    """Verify the payload signature; raises ValueError or SignatureVerificationError."""
    return stripe.Webhook.construct_event(payload, signature, secret)


def create_connected_account(*, email: str | None):
    configure_stripe()
    return stripe.Account.create(type="express", email=email or None)


def retrieve_account(account_id: str):
    configure_stripe()
    return stripe.Account.retrieve(account_id)


def create_account_link(account_id: str):
    configure_stripe()
    return stripe.AccountLink.create(
        account=account_id,
        type="account_onboarding",
        refresh_url=settings.STRIPE_CONNECT_REFRESH_URL,
        return_url=settings.STRIPE_CONNECT_RETURN_URL,
    )
