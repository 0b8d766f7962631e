import types

import pytest
import stripe
from django.urls import reverse

from studios.api import sync_studio_from_stripe
from studios.models import Studio


@pytest.fixture
def stripe_key(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    original = (stripe.api_key, stripe.max_network_retries, stripe.default_http_client)
    yield
    stripe.api_key, stripe.max_network_retries, stripe.default_http_client = original


@pytest.fixture
def unconnected_studio(studio):
    studio.stripe_account_id = ""
    studio.save(update_fields=["stripe_account_id"])
    return studio


@pytest.mark.django_db
def test_onboarding_link_creates_connected_account(api_client, owner, unconnected_studio, stripe_key, monkeypatch):
    created = {}

    def fake_create(*, email):
        created["email"] = email
        return types.SimpleNamespace(id="acct_new", charges_enabled=False, payouts_enabled=False, details_submitted=False)

    monkeypatch.setattr("payments.services.gateway.create_connected_account", fake_create)
    monkeypatch.setattr(
        "payments.services.gateway.create_account_link",
        lambda account_id: types.SimpleNamespace(url="https://connect.stripe.test/onboard", expires_at=1893456000),
    )
    api_client.force_authenticate(user=owner)

    response = api_client.post(reverse("studio-stripe-link", args=[unconnected_studio.id]))

    assert response.status_code == 201
    assert response.json()["url"] == "https://connect.stripe.test/onboard"
    assert created["email"] == owner.email
    unconnected_studio.refresh_from_db()
    assert unconnected_studio.stripe_account_id == "acct_new"
    assert unconnected_studio.onboarding_link_url == "https://connect.stripe.test/onboard"
    assert unconnected_studio.onboarding_expires_at is not None


@pytest.mark.django_db
def test_onboarding_link_reuses_existing_account(api_client, owner, studio, stripe_key, monkeypatch):
    def fail_create(**kwargs):
        raise AssertionError("account should be reused")

    monkeypatch.setattr("payments.services.gateway.create_connected_account", fail_create)
    monkeypatch.setattr(
        "payments.services.gateway.retrieve_account",
        lambda account_id: types.SimpleNamespace(
            id=account_id, charges_enabled=True, payouts_enabled=False, details_submitted=True
        ),
    )
    monkeypatch.setattr(
        "payments.services.gateway.create_account_link",
        lambda account_id: types.SimpleNamespace(url="https://connect.stripe.test/again", expires_at=1893456000),
    )
    api_client.force_authenticate(user=owner)

    response = api_client.post(reverse("studio-stripe-link", args=[studio.id]))

    assert response.status_code == 201
    studio.refresh_from_db()
    assert studio.charges_enabled
    assert studio.details_submitted


@pytest.mark.django_db
def test_onboarding_link_without_secret_key(api_client, owner, studio, settings):
    settings.STRIPE_SECRET_KEY = ""
    api_client.force_authenticate(user=owner)

    response = api_client.post(reverse("studio-stripe-link", args=[studio.id]))

    assert response.status_code == 500


@pytest.mark.django_db
def test_onboarding_link_stripe_error_is_bad_gateway(api_client, owner, unconnected_studio, stripe_key, monkeypatch):
    def failing_create(*, email):
        raise stripe.InvalidRequestError("Connect is not enabled", param=None)

    monkeypatch.setattr("payments.services.gateway.create_connected_account", failing_create)
    api_client.force_authenticate(user=owner)

    response = api_client.post(reverse("studio-stripe-link", args=[unconnected_studio.id]))

    assert response.status_code == 502
    assert "Connect is not enabled" in response.json()["detail"]


@pytest.mark.django_db
def test_other_owner_cannot_onboard_studio(api_client, studio, user_factory, stripe_key):
    intruder = user_factory("intruder@example.com", role="STUDIO_OWNER")
    Studio.objects.create(owner=intruder, name="Intruder Hall")
    api_client.force_authenticate(user=intruder)

    response = api_client.post(reverse("studio-stripe-link", args=[studio.id]))

    assert response.status_code == 403


@pytest.mark.django_db
def test_status_for_unconnected_studio(api_client, owner, unconnected_studio):
    api_client.force_authenticate(user=owner)

    response = api_client.get(reverse("studio-stripe-status", args=[unconnected_studio.id]))

    assert response.status_code == 200
    assert response.json() == {"connected": False}


@pytest.mark.django_db
def test_status_refreshes_flags(api_client, admin_user, studio, stripe_key, monkeypatch):
    monkeypatch.setattr(
        "payments.services.gateway.retrieve_account",
        lambda account_id: types.SimpleNamespace(
            id=account_id, charges_enabled=True, payouts_enabled=True, details_submitted=True
        ),
    )
    api_client.force_authenticate(user=admin_user)

    response = api_client.get(reverse("studio-stripe-status", args=[studio.id]))

    data = response.json()
    assert data["connected"] is True
    assert data["account_id"] == studio.stripe_account_id
    assert data["payouts_enabled"] is True


@pytest.mark.django_db
def test_status_unknown_studio_is_404(api_client, owner):
    api_client.force_authenticate(user=owner)

    response = api_client.get(reverse("studio-stripe-status", args=[987654]))

    assert response.status_code == 404


@pytest.mark.django_db
def test_sync_reads_flags_from_stripe_account_object(studio):
    account = stripe.Account.construct_from(
        {"id": studio.stripe_account_id, "object": "account", "charges_enabled": True, "payouts_enabled": False},
        "sk_test_123",
    )

    sync_studio_from_stripe(studio, account)

    studio.refresh_from_db()
    assert studio.charges_enabled is True
    assert studio.payouts_enabled is False
    assert studio.details_submitted is False
