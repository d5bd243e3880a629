"""
Authentication and authorization dependencies for FastAPI routes.
"""

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.responses import unwrap
from golfcompete.database.db import get_db_session
from golfcompete.services import auth_service, permission_service, settings_service, user_service
from golfcompete.services.event_service import EventDbService
from golfcompete.services.series_service import SeriesDbService

security = HTTPBearer(auto_error=False)


async def get_current_user(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        session: Database session
        credentials: HTTP Bearer token credentials

    Returns:
        User dictionary

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user
            no longer exists or is deactivated
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await user_service.get_user_by_id(session, user_id)
    if user is None or not user.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_user_optional(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """
    Optional dependency to get the current authenticated user.
    Returns None if no token is provided or token is invalid.
    """
    if credentials is None:
        return None

    try:
        return await get_current_user(session, credentials)
    except HTTPException:
        return None


async def require_user(user: dict = Depends(get_current_user)) -> dict:
    """Require any authenticated user."""
    return user


async def require_site_admin(user: dict = Depends(get_current_user)) -> dict:
    """Require a site admin (course data, user management)."""
    if not permission_service.is_site_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


async def require_service_role(
    x_service_role_key: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Gate for administrative user management.

    Accepts either an ``X-Service-Role-Key`` header matching SERVICE_ROLE_KEY
    or a bearer token belonging to a site admin.
    """
    if x_service_role_key is not None:
        expected = settings_service.get_setting("SERVICE_ROLE_KEY")
        if expected and secrets.compare_digest(x_service_role_key, expected):
            return {"id": None, "is_admin": True, "service_role": True}
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid service role key")

    user = await get_current_user(session, credentials)
    if not permission_service.is_site_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


async def get_series_membership(
    session: AsyncSession, series_id: str, user_id: str
) -> Optional[dict]:
    """The caller's {role, status} in a series, or None."""
    return unwrap(await SeriesDbService(session).get_user_series_role(series_id, user_id))


async def require_series_manager(session: AsyncSession, series_id: str, user: dict) -> dict:
    """
    Verify the user may manage a series (site admin, creator or series admin).

    Returns:
        The series dictionary.

    Raises:
        ApiError 404 if the series does not exist, HTTPException 403 if not authorized.
    """
    series = unwrap(await SeriesDbService(session).get_series(series_id))
    membership = None
    if not permission_service.is_site_admin(user) and not permission_service.is_creator(
        user, series
    ):
        membership = await get_series_membership(session, series_id, user["id"])
    if not permission_service.can_manage(user, series, membership):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Series admin access required"
        )
    return series


async def require_event_manager(session: AsyncSession, event_id: str, user: dict) -> dict:
    """
    Verify the user may manage an event: site admin, event creator, or a
    confirmed admin of the event's series.

    Returns:
        The event dictionary.

    Raises:
        ApiError 404 if the event does not exist, HTTPException 403 if not authorized.
    """
    event = unwrap(await EventDbService(session).get_event(event_id))
    membership = None
    if (
        event.get("series_id")
        and not permission_service.is_site_admin(user)
        and not permission_service.is_creator(user, event)
    ):
        membership = await get_series_membership(session, event["series_id"], user["id"])
    if not permission_service.can_manage(user, event, membership):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to manage this event"
        )
    return event
