from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core import mail
from django.utils import timezone

from core.exceptions import MembershipAlreadyActive, MembershipNotFound, NotStudioOwner, StudioNotFound
from memberships import services
from memberships.models import Membership
from studios.models import Studio


def test_create_registers_inactive_membership(studio, owner):
    membership = services.create_membership(owner, Membership.MONTHLY, "pi_member_1")

    assert membership.studio == studio
    assert membership.status == Membership.INACTIVE
    assert membership.payment_id == "pi_member_1"
    assert membership.start_date is None and membership.end_date is None


def test_create_rejects_owner_without_studio(user_factory):
    lonely = user_factory("lonely@example.com", role="STUDIO_OWNER")

    with pytest.raises(StudioNotFound):
        services.create_membership(lonely, Membership.MONTHLY)


def test_create_rejects_foreign_studio(studio, user_factory):
    intruder = user_factory("intruder@example.com", role="STUDIO_OWNER")

    with pytest.raises(NotStudioOwner):
        services.create_membership(intruder, Membership.MONTHLY, studio=studio)

    assert not Membership.objects.exists()


def test_create_conflicts_with_active_membership_of_same_plan(studio, owner):
    Membership.objects.create(
        studio=studio,
        plan=Membership.MONTHLY,
        status=Membership.ACTIVE,
        start_date=timezone.now() - timedelta(days=3),
        end_date=timezone.now() + timedelta(days=27),
    )

    with pytest.raises(MembershipAlreadyActive):
        services.create_membership(owner, Membership.MONTHLY)

    yearly = services.create_membership(owner, Membership.YEARLY)
    assert yearly.status == Membership.INACTIVE


def test_create_allows_renewal_after_active_membership_lapsed(studio, owner):
    Membership.objects.create(
        studio=studio,
        plan=Membership.MONTHLY,
        status=Membership.ACTIVE,
        start_date=timezone.now() - timedelta(days=40),
        end_date=timezone.now() - timedelta(days=10),
    )

    membership = services.create_membership(owner, Membership.MONTHLY)

    assert membership.status == Membership.INACTIVE


@pytest.mark.parametrize(
    "plan, start, expected_end",
    [
        (
            Membership.MONTHLY,
            datetime(2025, 1, 31, 12, 0, tzinfo=dt_timezone.utc),
            datetime(2025, 2, 28, 12, 0, tzinfo=dt_timezone.utc),
        ),
        (
            Membership.MONTHLY,
            datetime(2025, 3, 15, 9, 30, tzinfo=dt_timezone.utc),
            datetime(2025, 4, 15, 9, 30, tzinfo=dt_timezone.utc),
        ),
        (
            Membership.YEARLY,
            datetime(2024, 2, 29, 8, 0, tzinfo=dt_timezone.utc),
            datetime(2025, 2, 28, 8, 0, tzinfo=dt_timezone.utc),
        ),
        (
            Membership.YEARLY,
            datetime(2025, 6, 1, 0, 0, tzinfo=dt_timezone.utc),
            datetime(2026, 6, 1, 0, 0, tzinfo=dt_timezone.utc),
        ),
    ],
)
def test_activation_window_uses_calendar_arithmetic(studio, plan, start, expected_end):
    Membership.objects.create(studio=studio, plan=plan, payment_id="pi_window")

    membership = services.activate_membership("pi_window", now=start)

    assert membership.status == Membership.ACTIVE
    assert membership.start_date == start
    assert membership.end_date == expected_end


def test_activation_emails_the_owner(studio, owner):
    Membership.objects.create(studio=studio, plan=Membership.YEARLY, payment_id="pi_mail")

    services.activate_membership("pi_mail")

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == [owner.email]
    assert "yearly membership is active" in mail.outbox[0].subject


def test_activation_without_pending_membership_mutates_nothing(studio):
    active = Membership.objects.create(
        studio=studio,
        plan=Membership.MONTHLY,
        status=Membership.ACTIVE,
        payment_id="pi_done",
        start_date=timezone.now(),
        end_date=timezone.now() + timedelta(days=30),
    )

    with pytest.raises(MembershipNotFound):
        services.activate_membership("pi_done")
    with pytest.raises(MembershipNotFound):
        services.activate_membership("pi_unknown")

    active.refresh_from_db()
    assert active.status == Membership.ACTIVE
    assert mail.outbox == []


def test_activation_survives_email_failure(studio, monkeypatch):
    Membership.objects.create(studio=studio, plan=Membership.MONTHLY, payment_id="pi_flaky")

    def broken_send_mail(*args, **kwargs):
        raise ConnectionError("smtp down")

    monkeypatch.setattr("core.emails.send_mail", broken_send_mail)

    membership = services.activate_membership("pi_flaky")

    assert membership.status == Membership.ACTIVE


def test_get_active_membership(studio):
    assert services.get_active_membership(studio) is None

    Membership.objects.create(
        studio=studio,
        plan=Membership.MONTHLY,
        status=Membership.ACTIVE,
        start_date=timezone.now() - timedelta(days=60),
        end_date=timezone.now() - timedelta(days=30),
    )
    current = Membership.objects.create(
        studio=studio,
        plan=Membership.YEARLY,
        status=Membership.ACTIVE,
        start_date=timezone.now(),
        end_date=timezone.now() + timedelta(days=365),
    )

    assert services.get_active_membership(studio) == current


def test_get_active_membership_is_scoped_to_studio(studio, user_factory):
    other = Studio.objects.create(owner=user_factory("else@example.com", role="STUDIO_OWNER"), name="Else")
    Membership.objects.create(
        studio=other,
        plan=Membership.MONTHLY,
        status=Membership.ACTIVE,
        start_date=timezone.now(),
        end_date=timezone.now() + timedelta(days=30),
    )

    assert services.get_active_membership(studio) is None
