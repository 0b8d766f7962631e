"""
Shared pytest fixtures for every app's tests.

Stripe is never contacted: intent creation falls back to the stub because the
test settings carry no secret key, and tests that need retrieve/capture
monkeypatch ``payments.services.gateway``.
"""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from studios.models import AddOn, Room, Studio

User = get_user_model()


def make_user(email: str, role: str = User.MUSICIAN, **extra):
    return User.objects.create_user(
        username=email,
        email=email,
        password="password123",
        role=role,
        **extra,
    )


def make_intent(intent_id: str = "pi_123", status: str = "succeeded", amount: int = 5000, **extra):
    """Fake stripe.PaymentIntent exposing the attributes reconciliation reads."""
    values = {
        "id": intent_id,
        "status": status,
        "amount": amount,
        "amount_received": amount if status == "succeeded" else 0,
        "currency": "usd",
        "client_secret": f"{intent_id}_secret",
        "metadata": {},
    }
    values.update(extra)
    return SimpleNamespace(**values)


def make_stripe_intent(intent_id: str = "pi_123", status: str = "succeeded", amount: int = 5000, **extra):
    """A real stripe.PaymentIntent built offline, as retrieve would return it."""
    values = vars(make_intent(intent_id, status=status, amount=amount, **extra))
    return stripe.PaymentIntent.construct_from({"object": "payment_intent", **values}, "sk_test_123")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def musician(db):
    return make_user("musician@example.com", display_name="Mia Musician")


@pytest.fixture
def owner(db):
    return make_user("owner@example.com", role=User.STUDIO_OWNER, display_name="Otto Owner")


@pytest.fixture
def admin_user(db):
    return make_user("admin@example.com", role=User.ADMIN)


@pytest.fixture
def studio(owner):
    return Studio.objects.create(
        owner=owner,
        name="Basement Sound",
        city="Berlin",
        status=Studio.STATUS_APPROVED,
        stripe_account_id="acct_studio_123",
    )


@pytest.fixture
def room(studio):
    return Room.objects.create(studio=studio, name="Live Room", capacity=5, hourly_rate=Decimal("20.00"))


@pytest.fixture
def add_on(room):
    return AddOn.objects.create(room=room, name="Drum kit", price=Decimal("10.00"))


@pytest.fixture
def booking_window():
    start = (timezone.now() + timedelta(days=3)).replace(minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=2)


@pytest.fixture
def booking(studio, room, musician, booking_window):
    start, end = booking_window
    return Booking.objects.create(
        studio=studio,
        room=room,
        musician=musician,
        start_time=start,
        end_time=end,
    )


@pytest.fixture
def fake_intent():
    return make_intent


@pytest.fixture
def stripe_intent():
    return make_stripe_intent


@pytest.fixture
def user_factory(db):
    return make_user
