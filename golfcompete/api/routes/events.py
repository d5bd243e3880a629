"""Event route handlers: events, participants and invitations."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import (
    get_current_user,
    require_event_manager,
    require_series_manager,
)
from golfcompete.api.responses import no_content, respond, unwrap
from golfcompete.api.routes import MAX_PAGE_SIZE, date_range
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import (
    EventCreate,
    EventParticipantCreate,
    EventUpdate,
    InvitationResponse,
)
from golfcompete.services.base_service import QueryParams
from golfcompete.services.event_service import EventDbService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/events", status_code=201)
async def create_event(
    payload: EventCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create an event. Inside a series the caller must be able to manage the
    series; the event is appended to the series order and every active
    series participant is invited.
    """
    if payload.series_id:
        await require_series_manager(session, payload.series_id, current_user)
    response = await EventDbService(session).create_event(payload.model_dump(), current_user["id"])
    return respond(response, status_code=201)


@router.get("/api/events")
async def list_events(
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(1, ge=1),
    sort_by: str = Query("event_date", alias="sortBy"),
    sort_dir: Literal["asc", "desc"] = Query("asc", alias="sortDir"),
    status: Optional[str] = None,
    series_id: Optional[str] = Query(None, alias="seriesId"),
    course_id: Optional[str] = Query(None, alias="courseId"),
    start_date_after: Optional[datetime] = Query(None, alias="startDateAfter"),
    end_date_before: Optional[datetime] = Query(None, alias="endDateBefore"),
    search: Optional[str] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List events with paging, sorting and filters."""
    params = QueryParams(
        page=page,
        limit=limit,
        order_by=sort_by,
        order_direction=sort_dir,
        filters={
            "status": status,
            "series_id": series_id,
            "course_id": course_id,
            "event_date": date_range(after=start_date_after, before=end_date_before),
        },
        search=search,
    )
    return respond(await EventDbService(session).fetch_events(params))


@router.post("/api/events/participants/{participant_id}/respond")
async def respond_to_event_invitation(
    participant_id: str,
    payload: InvitationResponse,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept or decline an event invitation. Only the invited user may respond."""
    response = await EventDbService(session).respond_to_invitation(
        participant_id, current_user["id"], payload.accept
    )
    return respond(response)


@router.get("/api/events/{event_id}")
async def get_event(
    event_id: str,
    include_participants: bool = False,
    session: AsyncSession = Depends(get_db_session),
):
    service = EventDbService(session)
    if include_participants:
        return respond(await service.get_event_with_participants(event_id))
    return respond(await service.get_event(event_id))


@router.put("/api/events/{event_id}")
async def update_event(
    event_id: str,
    payload: EventUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update an event. Site admins, the creator and admins of its series only."""
    await require_event_manager(session, event_id, current_user)
    response = await EventDbService(session).update_event(
        event_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/events/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await require_event_manager(session, event_id, current_user)
    return no_content(await EventDbService(session).delete_event(event_id))


@router.get("/api/events/{event_id}/participants")
async def list_event_participants(
    event_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return respond(await EventDbService(session).fetch_participants(event_id))


@router.post("/api/events/{event_id}/participants", status_code=201)
async def add_event_participant(
    event_id: str,
    payload: EventParticipantCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Invite a user to an event. Event managers only; 409 on duplicates."""
    await require_event_manager(session, event_id, current_user)
    response = await EventDbService(session).add_participant(
        {**payload.model_dump(), "event_id": event_id}
    )
    return respond(response, status_code=201)


@router.delete("/api/events/{event_id}/participants/{participant_id}", status_code=204)
async def remove_event_participant(
    event_id: str,
    participant_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a participant. Event managers, or the participant withdrawing themself."""
    service = EventDbService(session)
    participant = unwrap(await service.get_participant(participant_id))
    if participant["event_id"] != event_id:
        raise HTTPException(status_code=404, detail="Event participant not found")
    if participant["user_id"] != current_user["id"]:
        await require_event_manager(session, event_id, current_user)
    return no_content(await service.remove_participant(participant_id))
