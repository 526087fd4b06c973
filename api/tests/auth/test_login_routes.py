"""Tests for the OAuth login endpoints."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from agora.auth.models import User
from agora.auth.oauth import OAuthClient
from agora.auth.router import handle_auth_error
from agora.auth.security import decode_access_token
from agora.auth.service import (
    AdminNotAuthorizedError,
    AuthError,
    LoginFailedError,
    UserInactiveError,
)


@pytest.fixture
def identity():
    """Profile document returned by the fake identity provider."""
    return {"sub": "42", "name": "Ana Lima", "email": "ana@example.com"}


@pytest.fixture
def login_client(app, settings, identity) -> TestClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/token":
            return httpx.Response(200, json={"access_token": "at-1"})
        return httpx.Response(200, json=identity)

    app.state.oauth_client = OAuthClient(
        settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    return TestClient(app, follow_redirects=False)


def start(client: TestClient, path: str) -> str:
    """Start a login and return the state the browser carries back."""
    response = client.get(path)
    assert response.status_code == 302
    return parse_qs(urlparse(response.headers["location"]).query)["state"][0]


class TestUserLogin:
    def test_start_redirects_to_provider(self, login_client, settings) -> None:
        response = login_client.get("/noo/login/google")

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/")
        assert settings.auth_state_cookie_name in response.cookies

    def test_unknown_provider_is_404(self, login_client) -> None:
        assert login_client.get("/noo/login/myspace").status_code == 404

    def test_unconfigured_provider_is_401(self, login_client) -> None:
        assert login_client.get("/noo/login/linkedin").status_code == 401

    def test_callback_creates_user_and_issues_token(
        self, login_client, settings, users
    ) -> None:
        state = start(login_client, "/noo/login/google")

        response = login_client.get(
            "/noo/login/google/oauth", params={"code": "c-1", "state": state}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "ana@example.com"
        payload = decode_access_token(data["access_token"], settings)
        assert payload["sub"] == data["user"]["id"]
        assert len(users.users) == 1

    def test_callback_reuses_existing_user(self, login_client, make_user) -> None:
        ana = make_user("Ana Lima", email="ana@example.com")
        state = start(login_client, "/noo/login/google")

        response = login_client.get(
            "/noo/login/google/oauth", params={"code": "c-1", "state": state}
        )

        assert response.json()["user"]["id"] == str(ana.id)

    def test_callback_clears_state_cookie(self, login_client, settings) -> None:
        state = start(login_client, "/noo/login/google")

        response = login_client.get(
            "/noo/login/google/oauth", params={"code": "c-1", "state": state}
        )

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{settings.auth_state_cookie_name}=")
        assert "Max-Age=0" in set_cookie

    def test_state_mismatch_is_401(self, login_client) -> None:
        start(login_client, "/noo/login/google")

        response = login_client.get(
            "/noo/login/google/oauth", params={"code": "c-1", "state": "forged"}
        )

        assert response.status_code == 401

    def test_provider_error_is_401(self, login_client) -> None:
        state = start(login_client, "/noo/login/google")

        response = login_client.get(
            "/noo/login/google/oauth",
            params={"error": "access_denied", "state": state},
        )

        assert response.status_code == 401

    def test_inactive_user_is_403(self, login_client, users) -> None:
        users.add(User(name="Ana", email="ana@example.com", is_active=False))
        state = start(login_client, "/noo/login/google")

        response = login_client.get(
            "/noo/login/google/oauth", params={"code": "c-1", "state": state}
        )

        assert response.status_code == 403


class TestAdminLogin:
    def test_start_hints_domain(self, login_client) -> None:
        response = login_client.get("/admin/login")

        assert response.status_code == 302
        assert "hd=agora.community" in response.headers["location"]

    def test_corporate_account_gets_admin_token(
        self, login_client, identity, settings
    ) -> None:
        identity["email"] = "ops@agora.community"
        state = start(login_client, "/admin/login")

        response = login_client.get(
            "/admin/login/oauth", params={"code": "c-1", "state": state}
        )

        assert response.status_code == 200
        payload = decode_access_token(response.json()["access_token"], settings)
        assert payload["role"] == "admin"

    def test_other_domain_is_403(self, login_client, users) -> None:
        state = start(login_client, "/admin/login")

        response = login_client.get(
            "/admin/login/oauth", params={"code": "c-1", "state": state}
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not a agora.community address."
        assert users.users == {}


class TestHandleAuthError:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (LoginFailedError(), 401),
            (UserInactiveError(), 403),
            (AdminNotAuthorizedError("agora.community"), 403),
            (AuthError("odd"), 400),
        ],
    )
    def test_status(self, error, expected) -> None:
        assert handle_auth_error(error).status_code == expected

    def test_known_error_types(self) -> None:
        assert {cls.__name__ for cls in AuthError.__subclasses__()} == {
            "AdminNotAuthorizedError",
            "LoginFailedError",
            "UserInactiveError",
        }
