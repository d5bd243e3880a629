"""Round and score route handlers. Rounds are private to their owner."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import get_current_user
from golfcompete.api.responses import no_content, respond, success_response, unwrap
from golfcompete.api.routes import MAX_PAGE_SIZE, date_range
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import (
    RoundComplete,
    RoundCreate,
    RoundUpdate,
    ScoreCreate,
    ScoreUpdate,
)
from golfcompete.services import permission_service
from golfcompete.services.base_service import QueryParams
from golfcompete.services.round_service import RoundDbService

logger = logging.getLogger(__name__)
router = APIRouter()


async def _owned_round(session: AsyncSession, round_id: str, user: dict) -> dict:
    """Load a round owned by the user (or any round for a site admin); others read as 404."""
    round_data = unwrap(await RoundDbService(session).get_round(round_id))
    if not permission_service.can_access_owned(user, round_data):
        raise HTTPException(status_code=404, detail="Round not found")
    return round_data


@router.get("/api/rounds")
async def list_rounds(
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(1, ge=1),
    sort_by: str = Query("round_date", alias="sortBy"),
    sort_dir: Literal["asc", "desc"] = Query("desc", alias="sortDir"),
    course_id: Optional[str] = Query(None, alias="courseId"),
    bag_id: Optional[str] = Query(None, alias="bagId"),
    date_after: Optional[datetime] = Query(None, alias="dateAfter"),
    date_before: Optional[datetime] = Query(None, alias="dateBefore"),
    has_score: Optional[bool] = Query(None, alias="hasScore"),
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List the caller's rounds."""
    params = QueryParams(
        page=page,
        limit=limit,
        order_by=sort_by,
        order_direction=sort_dir,
        filters={
            "user_id": current_user["id"],
            "course_id": course_id,
            "bag_id": bag_id,
            "round_date": date_range(after=date_after, before=date_before),
            "total_score": None if has_score is None else {"is_null": not has_score},
        },
    )
    return respond(await RoundDbService(session).fetch_rounds(params))


@router.post("/api/rounds", status_code=201)
async def create_round(
    payload: RoundCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Start a round for the caller; the default bag is used when bag_id is omitted."""
    response = await RoundDbService(session).create_round(
        payload.model_dump(exclude_none=True), current_user["id"]
    )
    return respond(response, status_code=201)


@router.get("/api/rounds/{round_id}")
async def get_round(
    round_id: str,
    include_scores: bool = False,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    round_data = await _owned_round(session, round_id, current_user)
    if include_scores:
        return respond(await RoundDbService(session).get_round_with_scores(round_id))
    return success_response(round_data)


@router.put("/api/rounds/{round_id}")
async def update_round(
    round_id: str,
    payload: RoundUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await _owned_round(session, round_id, current_user)
    response = await RoundDbService(session).update_round(
        round_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/rounds/{round_id}", status_code=204)
async def delete_round(
    round_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a round and its scores."""
    await _owned_round(session, round_id, current_user)
    return no_content(await RoundDbService(session).delete_round(round_id))


@router.post("/api/rounds/{round_id}/complete")
async def complete_round(
    round_id: str,
    payload: RoundComplete,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Finalize a round with its total score and refresh the handicap of the
    bag it was played with. A handicap failure does not fail the request.
    """
    await _owned_round(session, round_id, current_user)
    return respond(await RoundDbService(session).complete_round(round_id, payload.total_score))


@router.get("/api/rounds/{round_id}/scores")
async def list_scores(
    round_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Scores of a round ordered by hole number."""
    await _owned_round(session, round_id, current_user)
    return respond(await RoundDbService(session).fetch_scores(round_id))


@router.post("/api/rounds/{round_id}/scores", status_code=201)
async def add_score(
    round_id: str,
    payload: ScoreCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Record a hole score; 409 when the hole already has one."""
    await _owned_round(session, round_id, current_user)
    response = await RoundDbService(session).add_score(round_id, payload.model_dump())
    return respond(response, status_code=201)


@router.put("/api/rounds/{round_id}/scores/{score_id}")
async def update_score(
    round_id: str,
    score_id: str,
    payload: ScoreUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await _owned_round(session, round_id, current_user)
    response = await RoundDbService(session).update_score(
        round_id, score_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/rounds/{round_id}/scores/{score_id}", status_code=204)
async def delete_score(
    round_id: str,
    score_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await _owned_round(session, round_id, current_user)
    return no_content(await RoundDbService(session).remove_score(round_id, score_id))
