import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse

User = get_user_model()


def _login(api_client, email, password="password123"):
    return api_client.post(reverse("auth-login"), {"email": email, "password": password}, format="json")


@pytest.mark.django_db
@pytest.mark.parametrize(
    "role, is_musician, is_studio_owner",
    [
        (User.MUSICIAN, True, False),
        (User.STUDIO_OWNER, False, True),
    ],
)
def test_register_issues_tokens_for_each_public_role(api_client, role, is_musician, is_studio_owner):
    response = api_client.post(
        reverse("auth-register"),
        {"email": "Bassist@Example.com", "password": "password123", "role": role},
        format="json",
    )

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == role
    assert body["user"]["email"] == "bassist@example.com"
    assert body["access"] and body["refresh"]
    user = User.objects.get(email="bassist@example.com")
    assert user.username == "bassist@example.com"
    assert user.is_musician is is_musician
    assert user.is_studio_owner is is_studio_owner
    assert not user.is_platform_admin


@pytest.mark.django_db
def test_register_defaults_to_musician_with_display_name(api_client):
    response = api_client.post(
        reverse("auth-register"),
        {"email": "drummer@example.com", "password": "password123", "first_name": "Ringo"},
        format="json",
    )

    assert response.status_code == 201
    assert response.json()["user"]["role"] == User.MUSICIAN
    assert User.objects.get(email="drummer@example.com").display_name == "Ringo"


@pytest.mark.django_db
def test_register_cannot_self_assign_admin_role(api_client):
    response = api_client.post(
        reverse("auth-register"),
        {"email": "sneaky@example.com", "password": "password123", "role": User.ADMIN},
        format="json",
    )

    assert response.status_code == 400
    assert "role" in response.json()
    assert not User.objects.filter(email="sneaky@example.com").exists()


def test_register_rejects_taken_email_case_insensitively(api_client, owner):
    response = api_client.post(
        reverse("auth-register"),
        {"email": "OWNER@example.com", "password": "password123", "role": User.STUDIO_OWNER},
        format="json",
    )

    assert response.status_code == 400
    assert "email" in response.json()


def test_login_returns_role_for_studio_owner(api_client, owner):
    response = _login(api_client, owner.email)

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"access", "refresh", "user"}
    assert data["user"]["role"] == User.STUDIO_OWNER


def test_login_with_wrong_password_is_rejected(api_client, musician):
    response = _login(api_client, musician.email, password="not-the-password")

    assert response.status_code == 401


def test_refreshed_token_authenticates_me(api_client, musician):
    refresh = _login(api_client, musician.email).json()["refresh"]

    refreshed = api_client.post(reverse("auth-refresh"), {"refresh": refresh}, format="json")
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {refreshed.json()['access']}")
    response = api_client.get(reverse("auth-me"))

    assert refreshed.status_code == 200
    assert response.status_code == 200
    assert response.json()["display_name"] == "Mia Musician"


@pytest.mark.django_db
def test_me_requires_authentication(api_client):
    assert api_client.get(reverse("auth-me")).status_code == 401


def test_owner_updates_contact_email_but_not_role(api_client, owner):
    api_client.force_authenticate(user=owner)

    response = api_client.patch(
        reverse("auth-me"),
        {"email": "Bookings@Basement.test", "role": User.ADMIN},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["role"] == User.STUDIO_OWNER
    owner.refresh_from_db()
    assert owner.email == owner.username == "bookings@basement.test"
    assert owner.role == User.STUDIO_OWNER


def test_me_patch_rejects_email_of_another_account(api_client, musician, owner):
    api_client.force_authenticate(user=musician)

    response = api_client.patch(reverse("auth-me"), {"email": owner.email}, format="json")

    assert response.status_code == 400
    assert "email" in response.json()


@pytest.mark.django_db
def test_superuser_counts_as_platform_admin():
    admin = User.objects.create_superuser(username="root", email="root@example.com", password="password123")

    assert admin.is_platform_admin
    assert not admin.is_studio_owner
