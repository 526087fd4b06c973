"""Login API endpoints.

Provides routes for:
- OAuth2 login with Google, Facebook and LinkedIn
- Admin login (Google, restricted to the corporate email domain)
"""

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse

from agora.auth.dependencies import OAuthClientDep, UserServiceDep
from agora.auth.oauth import ADMIN_PROVIDER, OAuthProfile, verify_admin_profile
from agora.auth.permissions import UserRole
from agora.auth.schemas import TokenResponse
from agora.auth.security import (
    create_access_token,
    generate_oauth_state,
    states_match,
)
from agora.auth.service import AuthError, LoginFailedError
from agora.core.dependencies import DatabaseDep, SettingsDep
from agora.core.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

USER_PROVIDERS = ("google", "facebook", "linkedin")


# ==============================================================================
# Error Handling
# ==============================================================================


def handle_auth_error(error: AuthError) -> HTTPException:
    """Convert AuthError to HTTPException."""
    status_map = {
        "login_failed": status.HTTP_401_UNAUTHORIZED,
        "admin_not_authorized": status.HTTP_403_FORBIDDEN,
        "user_inactive": status.HTTP_403_FORBIDDEN,
        "auth_error": status.HTTP_400_BAD_REQUEST,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )


# ==============================================================================
# Helpers
# ==============================================================================


def _start_login(
    provider_name: str, oauth: OAuthClientDep, settings: SettingsDep
) -> RedirectResponse:
    try:
        provider = oauth.get_provider(provider_name)
    except AuthError as e:
        raise handle_auth_error(e) from e

    state = generate_oauth_state()
    response = RedirectResponse(
        oauth.authorization_url(provider, state),
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        key=settings.auth_state_cookie_name,
        value=state,
        max_age=600,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )
    return response


async def _finish_login(
    request: Request,
    provider_name: str,
    oauth: OAuthClientDep,
    settings: SettingsDep,
) -> OAuthProfile:
    params = request.query_params
    if params.get("error"):
        msg = f"Login with {provider_name} was cancelled"
        raise LoginFailedError(msg)

    if not states_match(
        request.cookies.get(settings.auth_state_cookie_name), params.get("state")
    ):
        msg = "Login state mismatch"
        raise LoginFailedError(msg)

    code = params.get("code")
    if not code:
        msg = "Missing authorization code"
        raise LoginFailedError(msg)

    provider = oauth.get_provider(provider_name)
    return await oauth.authenticate(provider, code)


async def _issue_token(
    profile: OAuthProfile,
    role: UserRole,
    response: Response,
    db: DatabaseDep,
    users: UserServiceDep,
    settings: SettingsDep,
) -> TokenResponse:
    async with db.transaction() as trx:
        user = await users.find_or_create_from_profile(trx, profile, role=role)

    token = create_access_token(
        {"sub": str(user.id), "email": user.email, "role": user.role},
        settings,
    )
    response.delete_cookie(settings.auth_state_cookie_name)
    logger.info("user_logged_in", provider=profile.provider, user_id=str(user.id))
    return TokenResponse(
        access_token=token,
        expires_in=settings.auth_access_token_expire_minutes * 60,
        user=users.to_response(user),
    )


# ==============================================================================
# User login
# ==============================================================================


@router.get("/noo/login/{provider}", summary="Start OAuth login")
async def start_login(
    provider: str,
    oauth: OAuthClientDep,
    settings: SettingsDep,
) -> RedirectResponse:
    """Redirect the browser to the provider's consent page."""
    if provider not in USER_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown login provider: {provider}",
        )
    return _start_login(provider, oauth, settings)


@router.get(
    "/noo/login/{provider}/oauth",
    response_model=TokenResponse,
    summary="OAuth login callback",
)
async def finish_login(
    provider: str,
    request: Request,
    response: Response,
    oauth: OAuthClientDep,
    users: UserServiceDep,
    db: DatabaseDep,
    settings: SettingsDep,
) -> TokenResponse:
    """Exchange the provider callback for an access token."""
    if provider not in USER_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown login provider: {provider}",
        )
    try:
        profile = await _finish_login(request, provider, oauth, settings)
        return await _issue_token(
            profile, UserRole.USER, response, db, users, settings
        )
    except AuthError as e:
        logger.info("login_failed", provider=provider, reason=e.code)
        raise handle_auth_error(e) from e


# ==============================================================================
# Admin login
# ==============================================================================


@router.get("/admin/login", summary="Start admin login")
async def start_admin_login(
    oauth: OAuthClientDep,
    settings: SettingsDep,
) -> RedirectResponse:
    return _start_login(ADMIN_PROVIDER, oauth, settings)


@router.get(
    "/admin/login/oauth",
    response_model=TokenResponse,
    summary="Admin login callback",
)
async def finish_admin_login(
    request: Request,
    response: Response,
    oauth: OAuthClientDep,
    users: UserServiceDep,
    db: DatabaseDep,
    settings: SettingsDep,
) -> TokenResponse:
    """Admin callback: any identity outside the corporate domain gets 403."""
    try:
        profile = await _finish_login(request, ADMIN_PROVIDER, oauth, settings)
        verify_admin_profile(profile, settings.admin_email_domain)
        return await _issue_token(
            profile, UserRole.ADMIN, response, db, users, settings
        )
    except AuthError as e:
        logger.info("admin_login_failed", reason=e.code)
        raise handle_auth_error(e) from e
