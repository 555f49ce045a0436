from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from fastapi_sso.sso.google import GoogleSSO

from app.api.deps import get_user_service
from app.core.config import settings
from app.core.errors import APIError, ServerError
from app.schemas.auth import (
    GoogleLoginUrlResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.schemas.base import MessageResponse
from app.services.async_user import AsyncUserService

router = APIRouter()

# Initialize Google SSO
google_sso = GoogleSSO(
    client_id=settings.GOOGLE_CLIENT_ID,
    client_secret=settings.GOOGLE_CLIENT_SECRET,
    redirect_uri=settings.GOOGLE_CALLBACK_URL,
    allow_insecure_http=settings.ENVIRONMENT == "development",
)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    user_data: UserRegister,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    """Create an account with its profile, group list and follow document."""
    return await user_service.register_user(user_data)


@router.post("/login", response_model=UserResponse)
async def login(
    login_data: UserLogin,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    """Authenticate with email and password; issues a refresh token for the device."""
    return await user_service.login_user(login_data.email, login_data.password, login_data.device_id)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    token_data: RefreshTokenRequest,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    """Rotate the device's refresh token and issue a new access token."""
    return await user_service.refresh_tokens(token_data.refresh_token, token_data.device_id)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token_data: RefreshTokenRequest,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    await user_service.logout_user(token_data.refresh_token, token_data.device_id)
    return MessageResponse(message="Successfully logged out")


@router.get("/google/login", response_model=GoogleLoginUrlResponse)
async def google_login(device_id: str) -> Any:
    """
    Generates the Google OAuth authorization URL.

    The device id travels through Google as the ``state`` parameter so the
    callback can bind the refresh token to the right device.
    """
    if not device_id:
        raise APIError.bad_request("device_id is required")

    async with google_sso:
        redirect_response = await google_sso.get_login_redirect(
            redirect_uri=settings.GOOGLE_CALLBACK_URL,
            state=device_id,
            params={"prompt": "consent", "access_type": "offline"},
        )

    return GoogleLoginUrlResponse(
        authorization_url=str(redirect_response.headers.get("location", "")),
        state=device_id,
    )


@router.get("/google/callback")
async def google_callback(
    request: Request,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    """Completes Google sign-in and redirects to the frontend with tokens."""
    redirect_base = f"{settings.FRONTEND_URL}/auth/callback"
    device_id: Optional[str] = request.query_params.get("state")
    if not device_id:
        return RedirectResponse(url=f"{redirect_base}?{urlencode({'error': 'missing_device_id'})}", status_code=302)

    async with google_sso:
        google_user = await google_sso.verify_and_process(request)

    if not google_user:
        return RedirectResponse(
            url=f"{redirect_base}?{urlencode({'error': 'authentication_failed'})}", status_code=302
        )

    try:
        auth_response = await user_service.authenticate_with_google(google_user, device_id)
    except ServerError as e:
        return RedirectResponse(url=f"{redirect_base}?{urlencode({'error': e.message})}", status_code=302)

    query = urlencode(
        {
            "access_token": auth_response.access_token,
            "refresh_token": auth_response.refresh_token,
            "token_type": auth_response.token_type,
            "user_id": auth_response.user_id,
            "username": auth_response.username,
        }
    )
    return RedirectResponse(url=f"{redirect_base}?{query}", status_code=302)


@router.post("/password-reset/request", response_model=MessageResponse)
async def request_password_reset(
    reset_data: PasswordResetRequest,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    """Email a 6-digit reset code to a local account."""
    await user_service.request_password_reset(reset_data.email)
    return MessageResponse(message="Password reset code sent to your email")


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(
    reset_data: PasswordResetConfirm,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    await user_service.reset_password_with_code(reset_data.email, reset_data.reset_code, reset_data.new_password)
    return MessageResponse(message="Password reset successful")


@router.post("/expire-refresh-token", response_model=MessageResponse)
async def expire_refresh_token(
    token_data: RefreshTokenRequest,
    user_service: AsyncUserService = Depends(get_user_service),
) -> Any:
    """Force a refresh token to expire now. Used when testing the expiry path."""
    await user_service.expire_refresh_token(token_data.refresh_token, token_data.device_id)
    return MessageResponse(message="Refresh token expired")
