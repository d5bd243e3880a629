"""Note route handlers. Notes are private; another user's note reads as 404."""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import get_current_user
from golfcompete.api.responses import no_content, respond
from golfcompete.api.routes import MAX_PAGE_SIZE
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import NoteCreate, NoteResourceTypeValue, NoteUpdate
from golfcompete.services.base_service import QueryParams
from golfcompete.services.note_service import NoteDbService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/notes", status_code=201)
async def create_note(
    payload: NoteCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    response = await NoteDbService(session).create_note(payload.model_dump(), current_user["id"])
    return respond(response, status_code=201)


@router.get("/api/notes")
async def list_notes(
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(1, ge=1),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_dir: Literal["asc", "desc"] = Query("desc", alias="sortDir"),
    related_resource_id: Optional[str] = None,
    related_resource_type: Optional[NoteResourceTypeValue] = None,
    search: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """The caller's notes, newest first, optionally for one related resource."""
    params = QueryParams(
        page=page,
        limit=limit,
        order_by=sort_by,
        order_direction=sort_dir,
        filters={
            "related_resource_id": related_resource_id,
            "related_resource_type": related_resource_type,
        },
        search=search,
    )
    return respond(await NoteDbService(session).fetch_notes(current_user["id"], params))


@router.get("/api/notes/{note_id}")
async def get_note(
    note_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return respond(await NoteDbService(session).get_note(note_id, current_user["id"]))


@router.put("/api/notes/{note_id}")
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    response = await NoteDbService(session).update_note(
        note_id, current_user["id"], payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/notes/{note_id}", status_code=204)
async def delete_note(
    note_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return no_content(await NoteDbService(session).delete_note(note_id, current_user["id"]))
