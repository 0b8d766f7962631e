from decimal import Decimal

import pytest
from django.urls import reverse

from bookings.models import Booking
from memberships.models import Membership
from payments.models import Payment


@pytest.fixture
def intents(monkeypatch):
    registry = {}
    monkeypatch.setattr("payments.services.gateway.retrieve_payment_intent", registry.__getitem__)
    return registry


@pytest.mark.django_db
def test_booking_payment_endpoint_returns_client_secret(api_client, musician, booking, add_on):
    api_client.force_authenticate(user=musician)

    response = api_client.post(
        reverse("payment-booking"),
        {"booking_id": booking.id, "add_on_ids": [add_on.id]},
        format="json",
    )

    assert response.status_code == 201
    data = response.json()
    assert data["booking_id"] == booking.id
    assert data["total_price"] == "50.00"
    assert data["client_secret"].startswith(data["payment_intent_id"])
    booking.refresh_from_db()
    assert booking.payment_intent_id == data["payment_intent_id"]


@pytest.mark.django_db
def test_booking_payment_by_owner_is_forbidden(api_client, owner, booking):
    api_client.force_authenticate(user=owner)

    response = api_client.post(reverse("payment-booking"), {"booking_id": booking.id}, format="json")

    assert response.status_code == 403


@pytest.mark.django_db
def test_booking_payment_on_paid_booking_is_conflict(api_client, musician, booking):
    booking.is_paid = True
    booking.save(update_fields=["is_paid"])
    api_client.force_authenticate(user=musician)

    response = api_client.post(reverse("payment-booking"), {"booking_id": booking.id}, format="json")

    assert response.status_code == 409


@pytest.mark.django_db
def test_booking_payment_requires_authentication(api_client, booking):
    response = api_client.post(reverse("payment-booking"), {"booking_id": booking.id}, format="json")

    assert response.status_code == 401


@pytest.mark.django_db
def test_membership_payment_endpoint(api_client, owner, studio):
    api_client.force_authenticate(user=owner)

    response = api_client.post(reverse("payment-membership"), {"plan": Membership.MONTHLY}, format="json")

    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == "79.90"
    assert Membership.objects.get(pk=data["membership_id"]).payment_id == data["payment_intent_id"]


@pytest.mark.django_db
def test_confirm_poll_is_public(api_client, booking, intents, fake_intent):
    booking.payment_intent_id = "pi_poll"
    booking.save()
    intents["pi_poll"] = fake_intent("pi_poll")

    response = api_client.get(reverse("payment-confirm", args=["pi_poll"]))

    assert response.status_code == 200
    data = response.json()
    assert data["kind"] == "booking"
    assert data["intent_status"] == "succeeded"
    assert data["booking"] == {
        "id": booking.id,
        "status": Booking.CONFIRMED,
        "is_paid": True,
        "payment_status": Booking.PAYMENT_SUCCEEDED,
    }


@pytest.mark.django_db
def test_confirm_without_stripe_key_is_server_error(api_client, settings):
    settings.STRIPE_SECRET_KEY = ""

    response = api_client.get(reverse("payment-confirm", args=["pi_any"]))

    assert response.status_code == 500


@pytest.mark.django_db
def test_capture_is_admin_only(api_client, musician, admin_user, booking, intents, fake_intent, monkeypatch):
    booking.payment_intent_id = "pi_cap"
    booking.save()
    intents["pi_cap"] = fake_intent("pi_cap")
    monkeypatch.setattr("payments.services.gateway.capture_payment_intent", lambda intent_id: intents[intent_id])
    url = reverse("payment-capture", args=["pi_cap"])

    api_client.force_authenticate(user=musician)
    assert api_client.post(url).status_code == 403

    api_client.force_authenticate(user=admin_user)
    response = api_client.post(url)
    assert response.status_code == 200
    assert response.json()["booking"]["is_paid"] is True


@pytest.mark.django_db
def test_simulate_endpoint(api_client, musician, booking, settings):
    settings.PAYMENTS_ALLOW_SIMULATION = True
    api_client.force_authenticate(user=musician)

    response = api_client.post(reverse("payment-simulate"), {"booking_id": booking.id}, format="json")

    assert response.status_code == 200
    assert response.json()["is_paid"] is True


@pytest.mark.django_db
def test_simulate_endpoint_disabled(api_client, musician, booking, settings):
    settings.PAYMENTS_ALLOW_SIMULATION = False
    api_client.force_authenticate(user=musician)

    response = api_client.post(reverse("payment-simulate"), {"booking_id": booking.id}, format="json")

    assert response.status_code == 403
    booking.refresh_from_db()
    assert not booking.is_paid


@pytest.mark.django_db
def test_ledger_is_admin_only_and_filterable(api_client, owner, admin_user, booking, studio):
    membership = Membership.objects.create(studio=studio, plan=Membership.MONTHLY)
    Payment.objects.create(booking=booking, stripe_payment_intent="pi_a", amount=Decimal("40.00"), status=Payment.SUCCEEDED)
    Payment.objects.create(booking=booking, stripe_payment_intent="pi_b", amount=Decimal("40.00"), status=Payment.FAILED)
    Payment.objects.create(
        membership=membership,
        stripe_payment_intent="pi_c",
        amount=Decimal("79.90"),
        status=Payment.SUCCEEDED,
    )

    api_client.force_authenticate(user=owner)
    assert api_client.get(reverse("payment-ledger")).status_code == 403

    api_client.force_authenticate(user=admin_user)
    response = api_client.get(reverse("payment-ledger"), {"status": Payment.SUCCEEDED})
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert {row["stripe_payment_intent"] for row in data["results"]} == {"pi_a", "pi_c"}

    response = api_client.get(reverse("payment-ledger"), {"booking": booking.id})
    assert response.json()["count"] == 2
