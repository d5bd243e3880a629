"""Authentication route handlers."""

import logging
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import get_current_user
from golfcompete.api.responses import ApiError, success_response
from golfcompete.api.routes import AUTH_RATE_LIMIT, limiter
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import (
    AuthResponse,
    LoginRequest,
    OAuthProviderValue,
    RegisterRequest,
    ResetPasswordConfirmRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
)
from golfcompete.services import (
    auth_service,
    email_service,
    oauth_service,
    settings_service,
    user_service,
)
from golfcompete.services.errors import ErrorCodes, ServiceError
from golfcompete.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()

INVALID_CREDENTIALS = ApiError(401, "Invalid email or password", ErrorCodes.AUTH_INVALID_CREDENTIALS)
RESET_REQUESTED_MESSAGE = "If an account exists with this email, a reset link has been sent."


def _auth_payload(user: dict) -> dict:
    token = auth_service.create_access_token({"user_id": user["id"], "email": user["email"]})
    return AuthResponse(user_id=user["id"], access_token=token).model_dump()


def _safe_next_path(next_path: Optional[str]) -> str:
    """Only same-site relative paths are allowed as post-login targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return "/"
    return next_path


@router.post("/api/auth/login")
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)
):
    """Login with email and password."""
    user = await user_service.get_user_by_email(session, payload.email, include_password_hash=True)
    if not user or not user.get("is_active", True):
        raise INVALID_CREDENTIALS
    if not auth_service.verify_password(payload.password, user.get("password_hash")):
        raise INVALID_CREDENTIALS

    try:
        data = _auth_payload(user)
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    await user_service.record_sign_in(session, user["id"])
    logger.info(f"User {user['id']} signed in")
    return success_response(data)


@router.post("/api/auth/register", status_code=201)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request, payload: RegisterRequest, session: AsyncSession = Depends(get_db_session)
):
    """Create an email/password account and sign it in."""
    try:
        auth_service.validate_password_strength(payload.password)
        user = await user_service.create_user(
            session,
            email=payload.email,
            password_hash=auth_service.hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            username=payload.username,
        )
        data = _auth_payload(user)
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    return success_response(data, status_code=201)


@router.post("/api/auth/reset-password")
@limiter.limit(AUTH_RATE_LIMIT)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Email a password reset link. The response is the same whether or not the
    account exists.
    """
    user = await user_service.get_user_by_email(session, payload.email)
    if user and user.get("is_active", True):
        try:
            token = auth_service.generate_reset_token()
            expires_at = utcnow() + timedelta(
                minutes=settings_service.get_password_reset_expiration_minutes()
            )
            await user_service.create_password_reset_token(session, user["id"], token, expires_at)
            reset_link = f"{settings_service.get_site_url()}/auth/reset-password?token={token}"
            sent = await email_service.send_password_reset_email(
                user["email"], reset_link, user.get("first_name")
            )
            if not sent:
                logger.error(f"Password reset email to user {user['id']} was not delivered")
        except Exception as e:
            logger.error(f"Error issuing password reset for user {user['id']}: {e}", exc_info=True)

    return success_response({"message": RESET_REQUESTED_MESSAGE})


@router.post("/api/auth/reset-password/confirm")
async def confirm_reset_password(
    payload: ResetPasswordConfirmRequest, session: AsyncSession = Depends(get_db_session)
):
    """Set a new password with a single-use reset token."""
    try:
        auth_service.validate_password_strength(payload.password)
    except ServiceError as e:
        raise ApiError.from_service_error(e)

    user_id = await user_service.consume_password_reset_token(session, payload.token)
    if user_id is None:
        raise ApiError(400, "Invalid or expired reset token", ErrorCodes.VALIDATION_ERROR)

    await user_service.update_user_password(
        session, user_id, auth_service.hash_password(payload.password)
    )
    logger.info(f"Password reset completed for user {user_id}")
    return success_response({"message": "Password updated"})


@router.post("/api/auth/update-password")
async def update_password(
    payload: UpdatePasswordRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        auth_service.validate_password_strength(payload.password)
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    await user_service.update_user_password(
        session, current_user["id"], auth_service.hash_password(payload.password)
    )
    return success_response({"message": "Password updated"})


@router.get("/api/auth/generate-oauth-url")
async def generate_oauth_url(provider: OAuthProviderValue, redirect_to: Optional[str] = None):
    """URL that starts sign-in with an OAuth provider."""
    redirect_to = redirect_to or f"{settings_service.get_site_url()}/auth/callback"
    try:
        url = oauth_service.build_authorize_url(provider, redirect_to)
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    return success_response({"url": url})


@router.get("/api/auth/callback")
async def oauth_callback(
    code: Optional[str] = None,
    next: Optional[str] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Finish OAuth sign-in: exchange the code, find or create the local user
    and redirect to the site with the access token in the URL fragment.
    """
    site_url = settings_service.get_site_url()
    error_url = f"{site_url}/auth/auth-code-error"
    if not code:
        return RedirectResponse(error_url, status_code=303)

    try:
        identity = await oauth_service.exchange_code_for_identity(code)
        user = await user_service.upsert_oauth_user(session, identity)
        if not user.get("is_active", True):
            logger.warning(f"OAuth sign-in refused for deactivated user {user['id']}")
            return RedirectResponse(error_url, status_code=303)
        data = _auth_payload(user)
        await user_service.record_sign_in(session, user["id"])
    except ServiceError as e:
        logger.warning(f"OAuth callback failed: {e.message}")
        return RedirectResponse(error_url, status_code=303)

    fragment = urlencode({"access_token": data["access_token"], "token_type": data["token_type"]})
    return RedirectResponse(f"{site_url}{_safe_next_path(next)}#{fragment}", status_code=303)


@router.get("/api/auth/session")
async def get_session(current_user: dict = Depends(get_current_user)):
    """The authenticated user behind the bearer token."""
    return success_response(current_user)
