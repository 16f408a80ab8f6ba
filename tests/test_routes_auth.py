from unittest.mock import MagicMock

import pytest

from clipboard.errors import EmailDeliveryError
from clipboard.routes.auth import routes as auth_routes
from clipboard.routes.email import routes as email_routes
from clipboard.services.clipboard_visibility import get_visible_users


@pytest.fixture
def email_service(monkeypatch):
    service = MagicMock()
    monkeypatch.setattr(auth_routes, "EmailService", lambda: service)
    monkeypatch.setattr(email_routes, "EmailService", lambda: service)
    return service


def test_magic_link_is_emailed(client, email_service):
    response = client.post("/api/auth/magic-link", json={"email": " Player@Example.com "})

    assert response.json == {"success": True}
    email, link = email_service.send_magic_link_email.call_args.args
    assert email == "player@example.com"
    assert "/auth/complete?token=" in link


def test_magic_link_requires_valid_email(client, email_service):
    assert client.post("/api/auth/magic-link", json={"email": "nope"}).status_code == 400
    email_service.send_magic_link_email.assert_not_called()


def test_magic_link_delivery_failure(client, email_service):
    email_service.send_magic_link_email.side_effect = EmailDeliveryError("rejected", status=422)

    response = client.post("/api/auth/magic-link", json={"email": "player@example.com"})

    assert response.status_code == 502


def test_first_sign_in_creates_profile(client, store, email_service):
    store.set("users/existing", {"email": "other@example.com"})
    token = auth_routes._serializer().dumps("new@example.com")

    response = client.get(f"/auth/complete?token={token}")

    assert response.status_code == 302
    assert response.location.endswith("/dashboard?welcome=1")
    user_id = auth_routes.user_id_for_email(store, "new@example.com")
    profile = store.get(f"users/{user_id}")
    assert profile["email"] == "new@example.com"
    assert profile["profileComplete"] is False
    assert "lastLogin" in profile
    email_service.send_welcome_email.assert_called_once_with("new@example.com")
    assert get_visible_users(store, "existing") == [user_id]

    assert client.get("/api/profile").json["user"]["email"] == "new@example.com"


def test_returning_user_keeps_profile(client, store, email_service):
    store.set("users/u1", {"email": "player@example.com", "displayName": "Jim"})
    token = auth_routes._serializer().dumps("player@example.com")

    response = client.get(f"/auth/complete?token={token}")

    assert response.location.endswith("/dashboard")
    assert store.get("users/u1")["displayName"] == "Jim"
    email_service.send_welcome_email.assert_not_called()


def test_welcome_email_failure_does_not_block_sign_in(client, store, email_service):
    email_service.send_welcome_email.side_effect = EmailDeliveryError("rejected")
    token = auth_routes._serializer().dumps("new@example.com")

    assert client.get(f"/auth/complete?token={token}").status_code == 302


def test_tampered_token_is_rejected(client):
    response = client.get("/auth/complete?token=not-a-token")

    assert response.status_code == 400
    assert response.json["error"] == "Invalid sign-in link"


def test_logout(client, login):
    login()

    assert client.post("/auth/logout").json == {"success": True}
    assert client.get("/api/profile").status_code == 401


# Email endpoints


def test_add_to_audience(client, login, email_service):
    login()
    email_service.add_to_audience.return_value = "exists"

    response = client.post("/api/email/add-to-audience", json={"email": "a@example.com"})

    assert response.json == {"success": True, "status": "exists"}


def test_weekly_reminder_is_admin_only(client, login):
    login()
    response = client.post("/api/email/weekly-reminder", json={"email": "a@example.com"})
    assert response.status_code == 403


def test_add_all_users_to_audience(client, login_admin, store, email_service):
    login_admin()
    email_service.add_users_to_audience.side_effect = lambda users: [
        {"email": data["email"], "success": data["email"] != "bad@example.com"}
        for _, data in users
        if data.get("email")
    ]
    store.set("users/bad", {"email": "bad@example.com"})

    body = client.post("/api/email/add-all-users-to-audience").json

    assert body["totalUsers"] == 2
    assert body["successCount"] == 1
    assert body["failureCount"] == 1
