from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import uuid4

from django.conf import settings
from django.db import transaction

from bookings.models import Booking
from bookings.pricing import calculate_price, round_money, to_cents
from core import emails
from core.exceptions import (
    BookingAlreadyPaid,
    BookingNotFound,
    BookingNotPayable,
    BookingRoomMissing,
    MembershipNotFound,
    MusicianRequired,
    PayoutDestinationMissing,
    SimulationDisabled,
    StudioInactive,
    StudioOwnerRequired,
    UpstreamError,
)
from memberships import services as membership_services
from memberships.models import Membership
from payments.models import Payment, PaymentReconciliationIssue
from payments.services import gateway

logger = logging.getLogger(__name__)

INTENT_SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class BookingPaymentResult:
    client_secret: str
    booking_id: int
    payment_intent_id: str
    total_price: Decimal


@dataclass(frozen=True)
class MembershipPaymentResult:
    client_secret: str
    membership_id: int
    payment_intent_id: str
    plan: str
    amount: Decimal


@dataclass(frozen=True)
class ConfirmationResult:
    """
    Outcome of reconciling one intent with local state.

    ``kind`` tells which aggregate the intent settled. For membership intents
    that failed or could not be applied, ``membership`` is None and only the
    raw intent is available.
    """

    BOOKING = "booking"
    MEMBERSHIP = "membership"
    UNMATCHED = "unmatched"

    kind: str
    intent: Any
    booking: Optional[Booking] = None
    membership: Optional[Membership] = None

    @property
    def intent_status(self) -> str | None:
        return getattr(self.intent, "status", None)


def intent_metadata(intent) -> dict[str, Any]:
    return gateway.to_plain_dict(getattr(intent, "metadata", None))


def intent_amount(intent) -> Decimal:
    """Received amount in major units, falling back to the requested amount."""
    cents = getattr(intent, "amount_received", None) or getattr(intent, "amount", None) or 0
    return round_money(Decimal(cents) / 100)


def intent_currency(intent) -> str:
    return getattr(intent, "currency", None) or settings.PAYMENTS_CURRENCY


def plan_price(plan: str) -> Decimal:
    return Decimal(str(settings.MEMBERSHIP_PLAN_PRICES[plan]))


def _require_complete_intent(intent) -> tuple[str, str]:
    intent_id = getattr(intent, "id", None)
    client_secret = getattr(intent, "client_secret", None)
    if not intent_id or not client_secret:
        raise UpstreamError("Payment processor returned an incomplete payment intent.")
    return intent_id, client_secret


def _load_payable_booking(actor, booking_id: int) -> Booking:
    if not getattr(actor, "is_musician", False):
        raise MusicianRequired()

    booking = Booking.objects.for_payment().filter(pk=booking_id, musician=actor).first()
    if booking is None:
        raise BookingNotFound()
    if booking.is_paid:
        raise BookingAlreadyPaid()
    if booking.status not in Booking.PAYABLE_STATUSES:
        raise BookingNotPayable()
    return booking


def create_booking_payment(actor, booking_id: int, add_on_ids: Iterable[int] = ()) -> BookingPaymentResult:
    """
    Price the booking and open a payment intent routed to the studio.

    The platform commission on room revenue is kept as the application fee;
    everything else is transferred to the studio's connected account.
    """

    booking = _load_payable_booking(actor, booking_id)
    if booking.room_id is None:
        raise BookingRoomMissing()
    studio = booking.studio
    if not studio.is_active:
        raise StudioInactive()
    if not studio.has_payout_destination:
        raise PayoutDestinationMissing()

    pricing = calculate_price(booking.room_id, booking.start_time, booking.end_time, add_on_ids)

    with transaction.atomic():
        booking.total_price = round_money(pricing.total_price)
        booking.save(update_fields=["total_price", "updated_at"])
        booking.add_ons.set(pricing.add_ons)

    metadata = {
        "booking_id": booking.pk,
        "studio_id": studio.pk,
        "room_id": booking.room_id,
        "add_on_ids": ",".join(str(add_on.pk) for add_on in pricing.add_ons),
        **pricing.breakdown_metadata(),
    }
    intent = gateway.create_payment_intent(
        amount_cents=pricing.total_cents,
        currency=settings.PAYMENTS_CURRENCY,
        metadata=metadata,
        application_fee_cents=pricing.commission_cents,
        destination=studio.stripe_account_id,
    )
    intent_id, client_secret = _require_complete_intent(intent)

    booking.payment_intent_id = intent_id
    booking.payment_status = Booking.PAYMENT_PENDING
    booking.save(update_fields=["payment_intent_id", "payment_status", "updated_at"])
    logger.info("Created payment intent %s for booking %s (%s)", intent_id, booking.pk, booking.total_price)

    return BookingPaymentResult(
        client_secret=client_secret,
        booking_id=booking.pk,
        payment_intent_id=intent_id,
        total_price=booking.total_price,
    )


def create_membership_payment(actor, plan: str) -> MembershipPaymentResult:
    if not getattr(actor, "is_studio_owner", False):
        raise StudioOwnerRequired()

    membership = membership_services.create_membership(actor, plan)
    amount = plan_price(plan)
    try:
        intent = gateway.create_payment_intent(
            amount_cents=to_cents(amount),
            currency=settings.PAYMENTS_CURRENCY,
            metadata={
                "membership_plan": plan,
                "membership_id": membership.pk,
                "studio_id": membership.studio_id,
                "user_id": actor.pk,
            },
        )
        intent_id, client_secret = _require_complete_intent(intent)
    except UpstreamError:
        membership.delete()
        raise

    membership.payment_id = intent_id
    membership.save(update_fields=["payment_id", "updated_at"])
    logger.info("Created payment intent %s for membership %s (%s)", intent_id, membership.pk, plan)

    return MembershipPaymentResult(
        client_secret=client_secret,
        membership_id=membership.pk,
        payment_intent_id=intent_id,
        plan=plan,
        amount=amount,
    )


def send_booking_confirmation(booking: Booking) -> bool:
    musician = booking.musician
    return emails.send_notification(
        emails.BOOKING_CONFIRMED,
        [musician.email],
        {
            "studio_name": booking.studio.name,
            "recipient_name": musician.display_name or musician.get_full_name() or musician.username,
            "amount": booking.total_price,
            "currency": settings.PAYMENTS_CURRENCY,
            "room_name": booking.room.name if booking.room else "-",
            "start_time": booking.start_time,
            "end_time": booking.end_time,
        },
    )


def _reconcile_booking(intent_id: str, intent, *, record_failure: bool) -> Booking | None:
    transitioned = False
    with transaction.atomic():
        booking = (
            Booking.objects.for_payment()
            .select_for_update(of=("self",))
            .filter(payment_intent_id=intent_id)
            .first()
        )
        if booking is None:
            return None

        if getattr(intent, "status", None) == INTENT_SUCCEEDED:
            Payment.objects.get_or_create(
                stripe_payment_intent=intent_id,
                status=Payment.SUCCEEDED,
                defaults={
                    "booking": booking,
                    "amount": intent_amount(intent),
                    "currency": intent_currency(intent),
                },
            )
            if not booking.is_paid:
                booking.is_paid = True
                booking.status = Booking.CONFIRMED
                booking.payment_status = Booking.PAYMENT_SUCCEEDED
                booking.save(update_fields=["is_paid", "status", "payment_status", "updated_at"])
                transitioned = True
        elif not booking.is_paid:
            if booking.payment_status != Booking.PAYMENT_FAILED:
                booking.payment_status = Booking.PAYMENT_FAILED
                booking.save(update_fields=["payment_status", "updated_at"])
            if record_failure:
                Payment.objects.get_or_create(
                    stripe_payment_intent=intent_id,
                    status=Payment.FAILED,
                    defaults={
                        "booking": booking,
                        "amount": intent_amount(intent),
                        "currency": intent_currency(intent),
                    },
                )

    if transitioned:
        logger.info("Booking %s paid via %s", booking.pk, intent_id)
        send_booking_confirmation(booking)
    else:
        logger.info("Booking %s reconciled with intent %s status %s", booking.pk, intent_id, getattr(intent, "status", None))
    return booking


def _record_issue(intent_id: str, intent, reason: str) -> PaymentReconciliationIssue:
    return PaymentReconciliationIssue.objects.create(
        stripe_payment_intent=intent_id,
        reason=reason,
        payload={
            "status": getattr(intent, "status", None),
            "amount": getattr(intent, "amount", None),
            "amount_received": getattr(intent, "amount_received", None),
            "currency": getattr(intent, "currency", None),
            "metadata": {key: str(value) for key, value in intent_metadata(intent).items()},
        },
    )


def _reconcile_membership(intent_id: str, intent) -> Membership | None:
    if getattr(intent, "status", None) != INTENT_SUCCEEDED:
        logger.info("Membership intent %s not succeeded (%s)", intent_id, getattr(intent, "status", None))
        return None

    existing = (
        Payment.objects.select_related("membership")
        .filter(stripe_payment_intent=intent_id, status=Payment.SUCCEEDED, membership__isnull=False)
        .first()
    )
    if existing is not None:
        return existing.membership

    try:
        membership = membership_services.activate_membership(intent_id)
    except MembershipNotFound as exc:
        # A concurrent confirmation may have activated it first.
        membership = Membership.objects.filter(payment_id=intent_id, status=Membership.ACTIVE).first()
        if membership is None:
            logger.error("No pending membership for succeeded intent %s", intent_id)
            _record_issue(intent_id, intent, str(exc.detail))
            return None
    except Exception as exc:
        logger.exception("Failed to activate membership for intent %s", intent_id)
        _record_issue(intent_id, intent, f"{exc.__class__.__name__}: {exc}")
        return None

    Payment.objects.get_or_create(
        stripe_payment_intent=intent_id,
        status=Payment.SUCCEEDED,
        defaults={
            "membership": membership,
            "amount": intent_amount(intent),
            "currency": intent_currency(intent),
        },
    )
    return membership


def confirm_payment(intent_id: str, record_failure: bool = False) -> ConfirmationResult:
    """
    Apply the processor's authoritative intent status to local state.

    Safe to call any number of times for the same intent: ledger rows are
    unique per (intent, status) and the confirmation email only goes out on
    the transition to paid.
    """

    intent = gateway.retrieve_payment_intent(intent_id)

    booking = _reconcile_booking(intent_id, intent, record_failure=record_failure)
    if booking is not None:
        return ConfirmationResult(kind=ConfirmationResult.BOOKING, intent=intent, booking=booking)

    metadata = intent_metadata(intent)
    if metadata.get("membership_plan"):
        membership = _reconcile_membership(intent_id, intent)
        return ConfirmationResult(kind=ConfirmationResult.MEMBERSHIP, intent=intent, membership=membership)

    booking_id = metadata.get("booking_id")
    if booking_id and getattr(intent, "status", None) == INTENT_SUCCEEDED:
        # The booking was relinked to a newer intent after this one was paid.
        logger.error("Succeeded intent %s no longer linked to booking %s", intent_id, booking_id)
        open_issues = PaymentReconciliationIssue.objects.filter(
            stripe_payment_intent=intent_id, resolved_at__isnull=True
        )
        if not open_issues.exists():
            _record_issue(intent_id, intent, f"Succeeded intent is not linked to booking {booking_id}.")
        return ConfirmationResult(kind=ConfirmationResult.UNMATCHED, intent=intent)

    logger.info("Intent %s does not match any booking or membership", intent_id)
    return ConfirmationResult(kind=ConfirmationResult.UNMATCHED, intent=intent)


def capture_payment(intent_id: str) -> ConfirmationResult:
    gateway.capture_payment_intent(intent_id)
    return confirm_payment(intent_id, record_failure=True)


def simulate_booking_payment(actor, booking_id: int) -> Booking:
    """Mark a booking paid without the processor. Development deployments only."""

    if not settings.PAYMENTS_ALLOW_SIMULATION:
        raise SimulationDisabled()

    booking = _load_payable_booking(actor, booking_id)
    if booking.total_price is None:
        if booking.room_id is None:
            raise BookingRoomMissing()
        add_on_ids = list(booking.add_ons.values_list("pk", flat=True))
        pricing = calculate_price(booking.room_id, booking.start_time, booking.end_time, add_on_ids)
        booking.total_price = round_money(pricing.total_price)

    intent_id = f"pi_sim_{uuid4().hex}"
    with transaction.atomic():
        locked = Booking.objects.select_for_update().get(pk=booking.pk)
        if locked.is_paid:
            raise BookingAlreadyPaid()
        booking.is_paid = True
        booking.status = Booking.CONFIRMED
        booking.payment_status = Booking.PAYMENT_SUCCEEDED
        booking.payment_intent_id = intent_id
        booking.save(
            update_fields=["total_price", "is_paid", "status", "payment_status", "payment_intent_id", "updated_at"]
        )
        Payment.objects.create(
            booking=booking,
            stripe_payment_intent=intent_id,
            amount=booking.total_price,
            currency=settings.PAYMENTS_CURRENCY,
            status=Payment.SUCCEEDED,
        )

    logger.info("Simulated payment %s for booking %s", intent_id, booking.pk)
    send_booking_confirmation(booking)
    return booking
