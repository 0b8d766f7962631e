from __future__ import annotations

import logging
from typing import Any, Iterable

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

BOOKING_CONFIRMED = "booking_confirmed"
MEMBERSHIP_ACTIVATED = "membership_activated"
MEMBERSHIP_EXPIRED = "membership_expired"
PAYMENT_FAILED_ADMIN = "payment_failed_admin"


def _format_date(value) -> str:
    if value is None:
        return "-"
    return f"{value:%B %d, %Y}"


def _booking_confirmed(context: dict[str, Any]) -> tuple[str, list[str]]:
    subject = f"Your booking at {context['studio_name']} is confirmed"
    lines = [
        f"Hi {context.get('recipient_name') or 'there'},",
        "",
        f"Your payment of {context['amount']} {context['currency'].upper()} was received.",
        f"Room: {context['room_name']}",
        f"When: {context['start_time']:%B %d, %Y %H:%M} to {context['end_time']:%H:%M}",
        "",
        "See you in the studio!",
        "",
        "— The StudioConnect Team",
    ]
    return subject, lines


def _membership_activated(context: dict[str, Any]) -> tuple[str, list[str]]:
    subject = f"{context['studio_name']}: your {context['plan'].lower()} membership is active"
    lines = [
        f"Your {context['plan'].lower()} membership for {context['studio_name']} is now active.",
        f"Valid from {_format_date(context['start_date'])} to {_format_date(context['end_date'])}.",
        "",
        "— The StudioConnect Team",
    ]
    return subject, lines


def _membership_expired(context: dict[str, Any]) -> tuple[str, list[str]]:
    subject = f"{context['studio_name']}: your membership has expired"
    lines = [
        f"The {context['plan'].lower()} membership for {context['studio_name']} "
        f"expired on {_format_date(context['expired_at'])}.",
        "Renew it from your dashboard to keep receiving bookings.",
        "",
        "— The StudioConnect Team",
    ]
    return subject, lines


def _payment_failed_admin(context: dict[str, Any]) -> tuple[str, list[str]]:
    subject = f"Payment failed for intent {context['intent_id']}"
    lines = [
        f"Payment intent: {context['intent_id']}",
        f"Booking: {context.get('booking_id') or '-'}",
        f"Amount: {context.get('amount')} {str(context.get('currency') or '').upper()}",
        f"Reason: {context.get('reason') or 'unknown'}",
    ]
    return subject, lines


TEMPLATES = {
    BOOKING_CONFIRMED: _booking_confirmed,
    MEMBERSHIP_ACTIVATED: _membership_activated,
    MEMBERSHIP_EXPIRED: _membership_expired,
    PAYMENT_FAILED_ADMIN: _payment_failed_admin,
}


def send_notification(kind: str, recipients: Iterable[str], context: dict[str, Any]) -> bool:
    """
    Render and send a plain-text notification.

    Delivery is best effort: any failure is logged and reported through the
    return value, never raised to the caller.
    """

    recipient_list = [email for email in recipients if email]
    if not recipient_list:
        return False

    try:
        subject, lines = TEMPLATES[kind](context)
        send_mail(
            subject,
            "\n".join(lines),
            settings.DEFAULT_FROM_EMAIL,
            recipient_list,
            fail_silently=False,
        )
    except Exception:
        logger.exception("Failed to send %s notification to %s", kind, ", ".join(recipient_list))
        return False
    return True
