from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import stripe
from django.conf import settings

from core import emails
from core.exceptions import WebhookRejected
from payments.services import gateway, reconciliation
from studios.api import sync_studio_from_stripe
from studios.models import Studio

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
ACCOUNT_UPDATED = "account.updated"


@dataclass(frozen=True)
class ParsedEvent:
    type: str
    data_object: dict = field(default_factory=dict)

    @property
    def object_id(self) -> str | None:
        return self.data_object.get("id")

    @property
    def is_payment_failure(self) -> bool:
        return self.type == PAYMENT_FAILED


def verify_webhook(payload: bytes, signature: str | None):
    """Check the signature before anything else happens; fails closed."""

    secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    if not secret:
        logger.error("Stripe webhook secret not configured.")
        raise WebhookRejected("Webhook secret is not configured.")
    if not signature:
        logger.warning("Stripe webhook received without a signature header.")
        raise WebhookRejected("Missing Stripe-Signature header.")

    try:
        return gateway.construct_webhook_event(payload, signature, secret)
    except ValueError:
        logger.warning("Invalid payload received on Stripe webhook.")
        raise WebhookRejected("Invalid webhook payload.")
    except stripe.SignatureVerificationError:
        logger.warning("Invalid Stripe signature.")
        raise WebhookRejected("Invalid webhook signature.")


def parse_event(event) -> ParsedEvent:
    event = gateway.to_plain_dict(event)
    data = event.get("data") or {}
    return ParsedEvent(type=event.get("type") or "", data_object=data.get("object") or {})


def _sync_connected_account(data_object: dict) -> Optional[Studio]:
    account_id = data_object.get("id")
    if not account_id:
        return None
    studio = Studio.objects.filter(stripe_account_id=account_id).first()
    if studio is None:
        logger.info("account.updated for unknown account %s", account_id)
        return None
    sync_studio_from_stripe(studio, data_object)
    return studio


def dispatch_event(parsed: ParsedEvent) -> Any:
    if parsed.type == PAYMENT_SUCCEEDED and parsed.object_id:
        return reconciliation.confirm_payment(parsed.object_id)
    if parsed.type == PAYMENT_FAILED and parsed.object_id:
        return reconciliation.confirm_payment(parsed.object_id, record_failure=True)
    if parsed.type == ACCOUNT_UPDATED:
        return _sync_connected_account(parsed.data_object)

    logger.info("Acknowledging unhandled Stripe event %s", parsed.type)
    return None


def notify_payment_failure(parsed: ParsedEvent, result=None) -> bool:
    recipients = list(getattr(settings, "PAYMENTS_ADMIN_EMAILS", []) or [])
    if not recipients:
        return False

    data_object = parsed.data_object
    metadata = data_object.get("metadata") or {}
    booking = getattr(result, "booking", None)
    last_error = data_object.get("last_payment_error") or {}
    return emails.send_notification(
        emails.PAYMENT_FAILED_ADMIN,
        recipients,
        {
            "intent_id": parsed.object_id,
            "booking_id": booking.pk if booking is not None else metadata.get("booking_id"),
            "amount": Decimal(data_object.get("amount") or 0) / 100,
            "currency": data_object.get("currency") or settings.PAYMENTS_CURRENCY,
            "reason": last_error.get("message") or data_object.get("cancellation_reason"),
        },
    )


def handle_webhook(payload: bytes, signature: str | None) -> ParsedEvent:
    event = verify_webhook(payload, signature)
    parsed = parse_event(event)
    logger.info("Received Stripe event %s for %s", parsed.type, parsed.object_id)
    result = dispatch_event(parsed)
    if parsed.is_payment_failure:
        notify_payment_failure(parsed, result)
    return parsed
