"""
Signup, login, token handling and error envelopes.
"""
from unittest import mock

from app.core.config import settings
from app.core.rate_limit import limiter
from tests.conftest import PASSWORD

API = "/api/v1"


def test_signup_returns_token_and_user(client):
    response = client.post(
        f"{API}/auth/signup",
        json={"name": "Ada Lovelace", "email": "Ada@Example.com", "password": "secret-pass"}
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user_type"] == "student"
    assert data["user"]["email"] == "ada@example.com"
    assert data["user"]["username"] == "adalovelace"

    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Ada Lovelace"


def test_signup_duplicate_email_is_unprocessable(client, make_user):
    make_user(email="taken@example.com")
    response = client.post(
        f"{API}/auth/signup",
        json={"name": "Other", "email": "taken@example.com", "password": "secret-pass"}
    )

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_login_success_and_failures(client, make_user):
    user = make_user(email="login@example.com")

    response = client.post(f"{API}/auth/login", json={"email": "login@example.com", "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == user.id

    response = client.post(f"{API}/auth/login", json={"email": "login@example.com", "password": "wrong"})
    assert response.status_code == 422
    assert response.json()["message"] == "Invalid credentials."

    response = client.post(f"{API}/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_suspended_user_cannot_login(client, make_user):
    make_user(email="suspended@example.com", status="suspended")
    response = client.post(f"{API}/auth/login", json={"email": "suspended@example.com", "password": PASSWORD})
    assert response.status_code == 422


def test_invalid_token_is_unauthenticated(client):
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_deleted_account_token_stops_working(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    response = client.delete(f"{API}/users/me", headers=headers)
    assert response.status_code == 200

    response = client.get(f"{API}/auth/me", headers=headers)
    assert response.status_code == 401


def test_search_excludes_caller_and_deleted_users(client, make_user, auth_headers):
    caller = make_user("Sam Caller")
    make_user("Sam Active")
    make_user("Sam Gone", status="inactive")

    response = client.get(f"{API}/users/search", params={"q": "Sam"}, headers=auth_headers(caller))

    assert [u["name"] for u in response.json()["data"]] == ["Sam Active"]


def test_login_is_rate_limited(client, make_user):
    make_user(email="busy@example.com")
    limiter.enabled = True
    try:
        codes = [
            client.post(f"{API}/auth/login", json={"email": "busy@example.com", "password": "wrong"}).status_code
            for _ in range(11)
        ]
    finally:
        limiter.enabled = False
        limiter.reset()

    assert codes[:10] == [422] * 10
    assert codes[10] == 429


def test_health_and_root(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["status"] == "healthy"


def test_unknown_route_uses_error_envelope(client):
    response = client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    assert response.json()["status"] == "error"


def test_unhealthy_database_hides_error_outside_debug(client, monkeypatch):
    with mock.patch("app.main.SessionLocal") as session_factory:
        session_factory.return_value.execute.side_effect = RuntimeError("password=hunter2")

        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert "error" not in response.json()

        monkeypatch.setattr(settings, "DEBUG", True)
        response = client.get("/health")
        assert response.json()["error"] == "password=hunter2"


def test_signup_race_on_unique_email_is_unprocessable(client, make_user):
    make_user(email="race@example.com")

    # The uniqueness pre-check passes, as it would for a concurrent signup
    with mock.patch("app.services.auth_service.AuthService.get_user_by_email", return_value=None):
        response = client.post(
            f"{API}/auth/signup",
            json={"name": "Racer", "email": "race@example.com", "password": "secret-pass"}
        )

    assert response.status_code == 422
    assert "email" in response.json()["errors"]
