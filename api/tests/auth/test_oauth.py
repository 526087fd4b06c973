"""Tests for OAuth provider registrations and the authorization-code client."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from agora.auth.oauth import (
    ADMIN_PROVIDER,
    OAuthClient,
    OAuthProfile,
    build_providers,
    map_facebook_profile,
    map_openid_profile,
    verify_admin_profile,
)
from agora.auth.service import AdminNotAuthorizedError, LoginFailedError


def profile(email: str) -> OAuthProfile:
    return OAuthProfile(
        provider=ADMIN_PROVIDER, provider_user_id="1", name="Staff", email=email
    )


class TestProfileMappers:
    def test_openid_profile(self) -> None:
        result = map_openid_profile(
            "google",
            {
                "sub": "123",
                "name": "Ana Lima",
                "email": "Ana@Example.com",
                "picture": "https://img/ana.png",
            },
        )
        assert result.provider_user_id == "123"
        assert result.email == "ana@example.com"
        assert result.avatar_url == "https://img/ana.png"

    def test_facebook_profile(self) -> None:
        result = map_facebook_profile(
            "facebook",
            {
                "id": "987",
                "name": "Bo",
                "email": "bo@example.com",
                "picture": {"data": {"url": "https://img/bo.png"}},
            },
        )
        assert result.provider_user_id == "987"
        assert result.avatar_url == "https://img/bo.png"

    def test_missing_email_fails_login(self) -> None:
        with pytest.raises(LoginFailedError):
            map_openid_profile("linkedin", {"sub": "1", "name": "No Mail"})


class TestAdminDomain:
    """Only the corporate domain may use the admin login."""

    def test_corporate_address_passes(self) -> None:
        staff = profile("ops@agora.community")
        assert verify_admin_profile(staff, "agora.community") is staff

    def test_domain_match_is_case_insensitive(self) -> None:
        verify_admin_profile(profile("ops@agora.community"), "Agora.Community")

    @pytest.mark.parametrize(
        "email",
        [
            "someone@gmail.com",
            "ops@evil-agora.community",
            "ops@agora.community.evil.com",
        ],
    )
    def test_other_addresses_rejected(self, email: str) -> None:
        with pytest.raises(AdminNotAuthorizedError) as exc:
            verify_admin_profile(profile(email), "agora.community")
        assert exc.value.code == "admin_not_authorized"


class TestProviders:
    def test_callback_urls(self, settings) -> None:
        providers = build_providers(settings)
        base = settings.base_url
        assert providers["google"].callback_url == f"{base}/noo/login/google/oauth"
        assert providers["linkedin"].callback_url == (
            f"{base}/noo/login/linkedin/oauth"
        )
        assert providers[ADMIN_PROVIDER].callback_url == f"{base}/admin/login/oauth"

    def test_admin_login_hints_domain(self, settings) -> None:
        admin = build_providers(settings)[ADMIN_PROVIDER]
        assert admin.authorize_params == {"hd": settings.admin_email_domain}

    def test_linkedin_not_configured(self, settings) -> None:
        assert build_providers(settings)["linkedin"].configured is False


@pytest.fixture
def provider_responses():
    """Routes for a fake identity provider."""
    return {
        "token": httpx.Response(200, json={"access_token": "at-1"}),
        "profile": httpx.Response(
            200,
            json={"sub": "42", "name": "Ana Lima", "email": "ana@example.com"},
        ),
    }


@pytest.fixture
def oauth_client(settings, provider_responses):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/token":
            return provider_responses["token"]
        return provider_responses["profile"]

    client = OAuthClient(
        settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    client.requests = requests
    return client


class TestOAuthClient:
    def test_unknown_provider(self, oauth_client) -> None:
        with pytest.raises(LoginFailedError):
            oauth_client.get_provider("myspace")

    def test_unconfigured_provider(self, oauth_client) -> None:
        with pytest.raises(LoginFailedError):
            oauth_client.get_provider("linkedin")

    def test_authorization_url(self, oauth_client) -> None:
        provider = oauth_client.get_provider(ADMIN_PROVIDER)
        url = urlparse(oauth_client.authorization_url(provider, "state-1"))
        params = parse_qs(url.query)

        assert params["client_id"] == ["admin-id"]
        assert params["state"] == ["state-1"]
        assert params["response_type"] == ["code"]
        assert params["hd"] == ["agora.community"]
        assert params["redirect_uri"] == [provider.callback_url]

    @pytest.mark.asyncio
    async def test_authenticate(self, oauth_client) -> None:
        provider = oauth_client.get_provider("google")

        result = await oauth_client.authenticate(provider, "code-1")

        assert result.email == "ana@example.com"
        assert result.provider == "google"
        token_request, profile_request = oauth_client.requests
        assert b"code=code-1" in token_request.content
        assert profile_request.headers["Authorization"] == "Bearer at-1"

    @pytest.mark.asyncio
    async def test_provider_error_fails_login(
        self, oauth_client, provider_responses
    ) -> None:
        provider_responses["token"] = httpx.Response(400, json={"error": "bad"})
        provider = oauth_client.get_provider("google")

        with pytest.raises(LoginFailedError):
            await oauth_client.authenticate(provider, "code-1")

    @pytest.mark.asyncio
    async def test_missing_access_token_fails_login(
        self, oauth_client, provider_responses
    ) -> None:
        provider_responses["token"] = httpx.Response(200, json={})
        provider = oauth_client.get_provider("google")

        with pytest.raises(LoginFailedError):
            await oauth_client.authenticate(provider, "code-1")
