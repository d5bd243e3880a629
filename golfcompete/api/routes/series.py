"""Series route handlers: series, participants and invitations."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import (
    get_current_user,
    get_series_membership,
    require_series_manager,
)
from golfcompete.api.responses import no_content, respond, success_response, unwrap
from golfcompete.api.routes import MAX_PAGE_SIZE, date_range
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import (
    InvitationResponse,
    SeriesCreate,
    SeriesParticipantCreate,
    SeriesParticipantUpdate,
    SeriesUpdate,
)
from golfcompete.services import permission_service
from golfcompete.services.base_service import QueryParams
from golfcompete.services.series_service import SeriesDbService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/series", status_code=201)
async def create_series(
    payload: SeriesCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a series. The caller becomes its confirmed admin participant.
    Requires authentication.
    """
    response = await SeriesDbService(session).create_series_with_admin(
        payload.model_dump(), current_user["id"]
    )
    return respond(response, status_code=201)


@router.get("/api/series")
async def list_series(
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(1, ge=1),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Literal["asc", "desc"] = Query("asc", alias="sortDir"),
    status: Optional[str] = None,
    start_date_after: Optional[datetime] = Query(None, alias="startDateAfter"),
    end_date_before: Optional[datetime] = Query(None, alias="endDateBefore"),
    search: Optional[str] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List series with paging, sorting, status/date filters and name search."""
    params = QueryParams(
        page=page,
        limit=limit,
        order_by=sort_by,
        order_direction=sort_dir,
        filters={
            "status": status,
            "start_date": date_range(after=start_date_after),
            "end_date": date_range(before=end_date_before),
        },
        search=search,
    )
    return respond(await SeriesDbService(session).fetch_series(params))


@router.post("/api/series/participants/{participant_id}/respond")
async def respond_to_series_invitation(
    participant_id: str,
    payload: InvitationResponse,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept or decline a series invitation. Only the invited user may respond."""
    response = await SeriesDbService(session).respond_to_invitation(
        participant_id, current_user["id"], payload.accept
    )
    return respond(response)


@router.get("/api/series/{series_id}")
async def get_series(
    series_id: str,
    include_participants: bool = False,
    session: AsyncSession = Depends(get_db_session),
):
    """Get a series, optionally with its participants."""
    service = SeriesDbService(session)
    if include_participants:
        return respond(await service.get_series_with_participants(series_id))
    return respond(await service.get_series(series_id))


@router.put("/api/series/{series_id}")
async def update_series(
    series_id: str,
    payload: SeriesUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a series. Site admins, the creator and series admins only."""
    await require_series_manager(session, series_id, current_user)
    response = await SeriesDbService(session).update_series(
        series_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/series/{series_id}", status_code=204)
async def delete_series(
    series_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a series, its participants and ordering; its events are detached."""
    await require_series_manager(session, series_id, current_user)
    return no_content(await SeriesDbService(session).delete_series(series_id))


@router.get("/api/series/{series_id}/access")
async def get_series_access(
    series_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """The caller's role in a series and whether they may manage it."""
    series = unwrap(await SeriesDbService(session).get_series(series_id))
    membership = await get_series_membership(session, series_id, current_user["id"])
    return success_response(
        {
            "is_site_admin": permission_service.is_site_admin(current_user),
            "role": membership["role"] if membership else None,
            "status": membership["status"] if membership else None,
            "can_manage": permission_service.can_manage(current_user, series, membership),
        }
    )


@router.get("/api/series/{series_id}/events")
async def list_series_events(series_id: str, session: AsyncSession = Depends(get_db_session)):
    """Events of a series in series order."""
    return respond(await SeriesDbService(session).list_series_events(series_id))


@router.get("/api/series/{series_id}/participants")
async def list_series_participants(
    series_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return respond(await SeriesDbService(session).fetch_participants(series_id))


@router.post("/api/series/{series_id}/participants", status_code=201)
async def invite_series_participant(
    series_id: str,
    payload: SeriesParticipantCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Invite a user to a series (status=invited).
    Series managers only; 409 if the user is already a participant.
    """
    await require_series_manager(session, series_id, current_user)
    response = await SeriesDbService(session).add_participant(
        {**payload.model_dump(), "series_id": series_id}
    )
    return respond(response, status_code=201)


async def _participant_in_series(session: AsyncSession, series_id: str, participant_id: str) -> dict:
    participant = unwrap(await SeriesDbService(session).get_participant(participant_id))
    if participant["series_id"] != series_id:
        raise HTTPException(status_code=404, detail="Series participant not found")
    return participant


@router.put("/api/series/{series_id}/participants/{participant_id}")
async def update_series_participant(
    series_id: str,
    participant_id: str,
    payload: SeriesParticipantUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Change a participant's role or status. Series managers only."""
    await require_series_manager(session, series_id, current_user)
    await _participant_in_series(session, series_id, participant_id)
    response = await SeriesDbService(session).update_participant(
        participant_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/series/{series_id}/participants/{participant_id}", status_code=204)
async def remove_series_participant(
    series_id: str,
    participant_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a participant. Series managers, or the participant withdrawing themself."""
    participant = await _participant_in_series(session, series_id, participant_id)
    if participant["user_id"] != current_user["id"]:
        await require_series_manager(session, series_id, current_user)
    return no_content(await SeriesDbService(session).remove_participant(participant_id))
