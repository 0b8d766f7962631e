from __future__ import annotations

import logging
from datetime import datetime

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.utils import timezone

from core import emails
from core.exceptions import (
    MembershipAlreadyActive,
    MembershipNotFound,
    NotStudioOwner,
    StudioNotFound,
)
from memberships.models import Membership
from studios.models import Studio

logger = logging.getLogger(__name__)

PLAN_DURATIONS = {
    Membership.MONTHLY: relativedelta(months=1),
    Membership.YEARLY: relativedelta(years=1),
}


def membership_end_date(plan: str, start: datetime) -> datetime:
    return start + PLAN_DURATIONS[plan]


def resolve_owned_studio(owner, studio: Studio | None = None) -> Studio:
    if studio is None:
        studio = Studio.objects.filter(owner=owner).first()
        if studio is None:
            raise StudioNotFound("You do not have a studio yet.")
    if studio.owner_id != owner.pk:
        raise NotStudioOwner("You cannot purchase memberships for another studio.")
    return studio


def create_membership(
    owner,
    plan: str,
    payment_id: str | None = None,
    *,
    studio: Studio | None = None,
) -> Membership:
    """Register a purchase intent; the membership stays INACTIVE until paid."""
    studio = resolve_owned_studio(owner, studio)

    with transaction.atomic():
        # Serialises concurrent purchases for the same studio.
        Studio.objects.select_for_update().filter(pk=studio.pk).first()
        if Membership.objects.filter(studio=studio, plan=plan).currently_active().exists():
            raise MembershipAlreadyActive(f"You already have an active {plan.lower()} membership.")
        membership = Membership.objects.create(
            studio=studio,
            plan=plan,
            status=Membership.INACTIVE,
            payment_id=payment_id,
        )

    logger.info("Registered %s membership %s for studio %s", plan, membership.pk, studio.pk)
    return membership


def activate_membership(payment_id: str, *, now: datetime | None = None) -> Membership:
    with transaction.atomic():
        membership = (
            Membership.objects.for_activation()
            .select_for_update()
            .filter(payment_id=payment_id, status=Membership.INACTIVE)
            .first()
        )
        if membership is None:
            raise MembershipNotFound(f"No pending membership found for payment {payment_id}.")

        start = now or timezone.now()
        membership.start_date = start
        membership.end_date = membership_end_date(membership.plan, start)
        membership.status = Membership.ACTIVE
        membership.save(update_fields=["start_date", "end_date", "status", "updated_at"])

    studio = membership.studio
    logger.info("Activated membership %s for studio %s until %s", membership.pk, studio.pk, membership.end_date)
    emails.send_notification(
        emails.MEMBERSHIP_ACTIVATED,
        [studio.owner.email],
        {
            "plan": membership.plan,
            "studio_name": studio.name,
            "start_date": membership.start_date,
            "end_date": membership.end_date,
        },
    )
    return membership


def get_active_membership(studio: Studio) -> Membership | None:
    return (
        Membership.objects.filter(studio=studio)
        .currently_active()
        .order_by("-end_date")
        .first()
    )


def _expire_one(pk: int, now: datetime) -> Membership | None:
    with transaction.atomic():
        membership = (
            Membership.objects.for_activation()
            .select_for_update()
            .filter(pk=pk, status=Membership.ACTIVE, end_date__lte=now)
            .first()
        )
        if membership is None:
            return None
        membership.status = Membership.EXPIRED
        membership.save(update_fields=["status", "updated_at"])
    return membership


def expire_memberships(now: datetime | None = None) -> list[Membership]:
    """
    Move every ACTIVE membership whose end date has passed to EXPIRED.

    Each row is handled in its own transaction so one failure does not stop
    the rest of the sweep.
    """

    now = now or timezone.now()
    candidate_ids = list(
        Membership.objects.filter(status=Membership.ACTIVE, end_date__lte=now)
        .order_by("end_date")
        .values_list("pk", flat=True)
    )

    expired: list[Membership] = []
    for pk in candidate_ids:
        try:
            membership = _expire_one(pk, now)
        except Exception:
            logger.exception("Failed to expire membership %s", pk)
            continue
        if membership is None:
            continue
        expired.append(membership)

        studio = membership.studio
        emails.send_notification(
            emails.MEMBERSHIP_EXPIRED,
            [studio.owner.email],
            {
                "plan": membership.plan,
                "studio_name": studio.name,
                "expired_at": membership.end_date,
            },
        )

    logger.info("Membership sweep expired %d of %d candidates", len(expired), len(candidate_ids))
    return expired
