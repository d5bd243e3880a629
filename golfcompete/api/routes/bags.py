"""Bag and handicap route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import get_current_user
from golfcompete.api.responses import respond, unwrap
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import BagCreate
from golfcompete.services import permission_service
from golfcompete.services.bag_service import BagDbService
from golfcompete.services.handicap_service import HandicapService

logger = logging.getLogger(__name__)
router = APIRouter()


async def _check_bag_owner(session: AsyncSession, bag_id: Optional[str], user: dict) -> None:
    if not bag_id:
        return
    bag = unwrap(await BagDbService(session).get_bag(bag_id))
    if not permission_service.can_access_owned(user, bag):
        raise HTTPException(status_code=404, detail="Bag not found")


@router.get("/api/bags")
async def list_bags(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return respond(await BagDbService(session).fetch_user_bags(current_user["id"]))


@router.post("/api/bags", status_code=201)
async def create_bag(
    payload: BagCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a bag for the caller. A new default bag replaces the previous default."""
    response = await BagDbService(session).create_bag(payload.model_dump(), current_user["id"])
    return respond(response, status_code=201)


@router.get("/api/handicap")
async def get_handicap(
    bag_id: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Current handicap index of the caller computed from their most recent
    rounds, optionally limited to rounds played with one bag. Nothing is stored.
    """
    await _check_bag_owner(session, bag_id, current_user)
    return respond(await HandicapService(session).calculate_handicap(current_user["id"], bag_id))


@router.post("/api/handicap/recalculate")
async def recalculate_handicap(
    bag_id: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Recompute and store the caller's index on the bag (or on the user without one)."""
    await _check_bag_owner(session, bag_id, current_user)
    response = await HandicapService(session).calculate_and_update_handicap(
        current_user["id"], bag_id
    )
    return respond(response)
