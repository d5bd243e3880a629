"""
User route handlers.

Administrative endpoints under /api/users are gated by the service role (a
site-admin bearer token or the X-Service-Role-Key header). Self-service
endpoints under /api/user act on the caller.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import get_current_user, require_service_role
from golfcompete.api.responses import ApiError, no_content, respond, success_response, unwrap
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import (
    ProfileUpdate,
    UserAdminUpdate,
    UserCreate,
    UserStatusUpdate,
)
from golfcompete.services import auth_service, permission_service, user_service
from golfcompete.services.base_service import page_metadata
from golfcompete.services.errors import ServiceError
from golfcompete.services.event_service import EventDbService
from golfcompete.services.series_service import SeriesDbService

logger = logging.getLogger(__name__)
router = APIRouter()


def _user_or_404(user: Optional[dict]) -> dict:
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


@router.get("/api/users")
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    search: Optional[str] = None,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    """Page through users, newest first, optionally filtered by email or name."""
    users, total = await user_service.list_users(session, page, per_page, search)
    return success_response(users, metadata=page_metadata(page, per_page, total))


@router.post("/api/users", status_code=201)
async def create_user(
    payload: UserCreate,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    """Create an account. Without a password the user can only sign in via OAuth or reset."""
    try:
        password_hash = None
        if payload.password is not None:
            auth_service.validate_password_strength(payload.password)
            password_hash = auth_service.hash_password(payload.password)
        user = await user_service.create_user(
            session,
            email=payload.email,
            password_hash=password_hash,
            first_name=payload.first_name,
            last_name=payload.last_name,
            username=payload.username,
            is_admin=payload.is_admin,
        )
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    return success_response(user, status_code=201)


@router.get("/api/users/email/{email}")
async def get_user_by_email(
    email: str,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    return success_response(_user_or_404(await user_service.get_user_by_email(session, email)))


@router.get("/api/users/{user_id}")
async def get_user(
    user_id: str,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    return success_response(_user_or_404(await user_service.get_user_by_id(session, user_id)))


@router.put("/api/users/{user_id}")
async def update_user(
    user_id: str,
    payload: UserAdminUpdate,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        user = await user_service.update_user(
            session, user_id, payload.model_dump(exclude_unset=True), allow_admin_fields=True
        )
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    return success_response(_user_or_404(user))


@router.patch("/api/users/{user_id}/status")
async def update_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    """Activate or deactivate an account. Deactivated users cannot authenticate."""
    user = _user_or_404(await user_service.set_user_active(session, user_id, payload.is_active))
    logger.info(f"User {user_id} active={payload.is_active}")
    return success_response(user)


@router.delete("/api/users/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    admin: dict = Depends(require_service_role),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        deleted = await user_service.delete_user(session, user_id)
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return no_content()


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


@router.get("/api/users/{user_id}/invitations")
async def list_user_invitations(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Pending series and event invitations of a user. The user themself or a site admin."""
    if user_id != current_user["id"] and not permission_service.is_site_admin(current_user):
        raise HTTPException(status_code=403, detail="Not authorized to view these invitations")
    series = unwrap(
        await SeriesDbService(session).fetch_user_series_participations(user_id, status="invited")
    )
    events = unwrap(
        await EventDbService(session).fetch_user_event_participations(user_id, status="invited")
    )
    return success_response({"series": series, "events": events})


@router.get("/api/user/profile")
async def get_profile(current_user: dict = Depends(get_current_user)):
    return success_response(current_user)


@router.put("/api/user/profile")
async def update_profile(
    payload: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update the caller's name fields. Email and admin flags are not editable here."""
    try:
        user = await user_service.update_user(
            session, current_user["id"], payload.model_dump(exclude_unset=True)
        )
    except ServiceError as e:
        raise ApiError.from_service_error(e)
    return success_response(_user_or_404(user))


@router.get("/api/user/series")
async def list_my_series(
    status: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Series the caller participates in, with their membership."""
    service = SeriesDbService(session)
    return respond(await service.fetch_user_series_participations(current_user["id"], status))


@router.get("/api/user/events")
async def list_my_events(
    status: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    service = EventDbService(session)
    return respond(await service.fetch_user_event_participations(current_user["id"], status))
