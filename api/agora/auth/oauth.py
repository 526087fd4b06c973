"""OAuth2 identity federation.

Declarative provider registrations (Google, Facebook, LinkedIn and the
Google-backed admin login) plus an authorization-code client that turns a
provider callback into a normalized ``OAuthProfile``.

Callback URLs are built from the configured protocol and domain::

    {protocol}://{domain}/noo/login/{provider}/oauth
    {protocol}://{domain}/admin/login/oauth
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
import structlog

from agora.auth.service import AdminNotAuthorizedError, LoginFailedError


if TYPE_CHECKING:
    from agora.config.settings import Settings


logger = structlog.get_logger(__name__)

ADMIN_PROVIDER = "admin"


@dataclass(frozen=True)
class OAuthProfile:
    """Identity as reported by a provider, reduced to what we use."""

    provider: str
    provider_user_id: str
    name: str
    email: str
    avatar_url: str | None = None


ProfileMapper = Callable[[str, dict[str, Any]], OAuthProfile]


def _require_email(provider: str, payload: dict[str, Any]) -> str:
    email = payload.get("email")
    if not email:
        msg = f"{provider} did not share an email address"
        raise LoginFailedError(msg)
    return str(email).lower().strip()


def map_openid_profile(provider: str, payload: dict[str, Any]) -> OAuthProfile:
    """Google and LinkedIn both expose an OpenID Connect userinfo document."""
    return OAuthProfile(
        provider=provider,
        provider_user_id=str(payload.get("sub", "")),
        name=payload.get("name") or "",
        email=_require_email(provider, payload),
        avatar_url=payload.get("picture"),
    )


def map_facebook_profile(provider: str, payload: dict[str, Any]) -> OAuthProfile:
    """Graph API ``/me`` document."""
    picture = (payload.get("picture") or {}).get("data") or {}
    return OAuthProfile(
        provider=provider,
        provider_user_id=str(payload.get("id", "")),
        name=payload.get("name") or "",
        email=_require_email(provider, payload),
        avatar_url=picture.get("url"),
    )


@dataclass(frozen=True)
class OAuthProvider:
    """One provider registration."""

    name: str
    client_id: str | None
    client_secret: str | None
    authorize_url: str
    token_url: str
    profile_url: str
    callback_url: str
    scopes: tuple[str, ...]
    map_profile: ProfileMapper
    authorize_params: dict[str, str] = field(default_factory=dict)

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_PROFILE_URL = "https://openidconnect.googleapis.com/v1/userinfo"
FACEBOOK_AUTHORIZE_URL = "https://www.facebook.com/v19.0/dialog/oauth"
FACEBOOK_TOKEN_URL = "https://graph.facebook.com/v19.0/oauth/access_token"
FACEBOOK_PROFILE_URL = (
    "https://graph.facebook.com/v19.0/me?fields=id,name,email,picture"
)
LINKEDIN_AUTHORIZE_URL = "https://www.linkedin.com/oauth/v2/authorization"
LINKEDIN_TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
LINKEDIN_PROFILE_URL = "https://api.linkedin.com/v2/userinfo"


def login_callback_path(provider: str) -> str:
    if provider == ADMIN_PROVIDER:
        return "/admin/login/oauth"
    return f"/noo/login/{provider}/oauth"


def build_providers(settings: "Settings") -> dict[str, OAuthProvider]:
    """Provider registrations for the given configuration."""

    def url(path: str) -> str:
        return f"{settings.base_url}{path}"

    google_scopes = ("openid", "email", "profile")
    return {
        "google": OAuthProvider(
            name="google",
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            authorize_url=GOOGLE_AUTHORIZE_URL,
            token_url=GOOGLE_TOKEN_URL,
            profile_url=GOOGLE_PROFILE_URL,
            callback_url=url(login_callback_path("google")),
            scopes=google_scopes,
            map_profile=map_openid_profile,
        ),
        "facebook": OAuthProvider(
            name="facebook",
            client_id=settings.facebook_app_id,
            client_secret=settings.facebook_app_secret,
            authorize_url=FACEBOOK_AUTHORIZE_URL,
            token_url=FACEBOOK_TOKEN_URL,
            profile_url=FACEBOOK_PROFILE_URL,
            callback_url=url(login_callback_path("facebook")),
            scopes=("email", "public_profile"),
            map_profile=map_facebook_profile,
        ),
        "linkedin": OAuthProvider(
            name="linkedin",
            client_id=settings.linkedin_api_key,
            client_secret=settings.linkedin_api_secret,
            authorize_url=LINKEDIN_AUTHORIZE_URL,
            token_url=LINKEDIN_TOKEN_URL,
            profile_url=LINKEDIN_PROFILE_URL,
            callback_url=url(login_callback_path("linkedin")),
            scopes=("openid", "profile", "email"),
            map_profile=map_openid_profile,
        ),
        ADMIN_PROVIDER: OAuthProvider(
            name=ADMIN_PROVIDER,
            client_id=settings.admin_google_client_id,
            client_secret=settings.admin_google_client_secret,
            authorize_url=GOOGLE_AUTHORIZE_URL,
            token_url=GOOGLE_TOKEN_URL,
            profile_url=GOOGLE_PROFILE_URL,
            callback_url=url(login_callback_path(ADMIN_PROVIDER)),
            scopes=google_scopes,
            map_profile=map_openid_profile,
            authorize_params={"hd": settings.admin_email_domain},
        ),
    }


def verify_admin_profile(profile: OAuthProfile, domain: str) -> OAuthProfile:
    """Only addresses on the corporate domain may use the admin login.

    Raises:
        AdminNotAuthorizedError: For any other authenticated identity
    """
    if not profile.email.lower().endswith(f"@{domain.lower()}"):
        logger.info(
            "admin_login_rejected",
            provider=profile.provider,
            domain=domain,
        )
        raise AdminNotAuthorizedError(domain)
    return profile


class OAuthClient:
    """Authorization-code flow against the registered providers."""

    def __init__(
        self,
        settings: "Settings",
        http_client: httpx.AsyncClient | None = None,
        providers: dict[str, OAuthProvider] | None = None,
    ):
        self.settings = settings
        self.providers = providers or build_providers(settings)
        self._http = http_client or httpx.AsyncClient(timeout=settings.oauth_timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    def get_provider(self, name: str) -> OAuthProvider:
        """Look up a configured provider.

        Raises:
            LoginFailedError: Unknown or unconfigured provider
        """
        provider = self.providers.get(name)
        if provider is None or not provider.configured:
            msg = f"Login with {name} is not available"
            raise LoginFailedError(msg)
        return provider

    def authorization_url(self, provider: OAuthProvider, state: str) -> str:
        """URL the browser is redirected to for consent."""
        params = {
            "client_id": provider.client_id or "",
            "redirect_uri": provider.callback_url,
            "response_type": "code",
            "scope": " ".join(provider.scopes),
            "state": state,
            **provider.authorize_params,
        }
        return f"{provider.authorize_url}?{urlencode(params)}"

    async def authenticate(self, provider: OAuthProvider, code: str) -> OAuthProfile:
        """Exchange the callback ``code`` and fetch the user's profile.

        Raises:
            LoginFailedError: Provider refused the code or the profile
        """
        try:
            access_token = await self._exchange_code(provider, code)
            payload = await self._fetch_profile(provider, access_token)
        except httpx.HTTPError as e:
            logger.warning(
                "oauth_provider_error",
                provider=provider.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            msg = f"Login with {provider.name} failed"
            raise LoginFailedError(msg) from e

        profile = provider.map_profile(provider.name, payload)
        logger.info("oauth_profile_fetched", provider=provider.name)
        return profile

    async def _exchange_code(self, provider: OAuthProvider, code: str) -> str:
        response = await self._http.post(
            provider.token_url,
            data={
                "client_id": provider.client_id,
                "client_secret": provider.client_secret,
                "code": code,
                "redirect_uri": provider.callback_url,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        access_token = response.json().get("access_token")
        if not access_token:
            msg = f"{provider.name} returned no access token"
            raise LoginFailedError(msg)
        return access_token

    async def _fetch_profile(
        self, provider: OAuthProvider, access_token: str
    ) -> dict[str, Any]:
        response = await self._http.get(
            provider.profile_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )
        response.raise_for_status()
        return response.json()
