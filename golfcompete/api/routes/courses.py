"""
Course route handlers. Reads are public; every mutation requires a site admin.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.api.auth_dependencies import require_site_admin
from golfcompete.api.responses import no_content, respond
from golfcompete.api.routes import MAX_PAGE_SIZE
from golfcompete.database.db import get_db_session
from golfcompete.models.schemas import (
    CourseCreate,
    CourseUpdate,
    HoleCreate,
    HolesBulkReplace,
    HoleUpdate,
    TeeCreate,
    TeesBulkReplace,
    TeeUpdate,
)
from golfcompete.services.base_service import QueryParams
from golfcompete.services.course_service import CourseDbService

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


@router.post("/api/courses", status_code=201)
async def create_course(
    payload: CourseCreate,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a course together with any tees and holes supplied."""
    data = payload.model_dump(exclude={"tees", "holes"})
    response = await CourseDbService(session).create_course(
        data,
        current_user["id"],
        tees=[tee.model_dump() for tee in payload.tees],
        holes=[hole.model_dump() for hole in payload.holes],
    )
    return respond(response, status_code=201)


@router.get("/api/courses")
async def list_courses(
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(1, ge=1),
    search: Optional[str] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List courses by name; search matches name, city and state."""
    params = QueryParams(page=page, limit=limit, order_by="name", order_direction="asc", search=search)
    return respond(await CourseDbService(session).fetch_courses(params))


@router.get("/api/courses/{course_id}")
async def get_course(course_id: str, session: AsyncSession = Depends(get_db_session)):
    """A course with its tees and holes."""
    return respond(await CourseDbService(session).get_course_with_details(course_id))


@router.put("/api/courses/{course_id}")
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    response = await CourseDbService(session).update_course(
        course_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/courses/{course_id}", status_code=204)
async def delete_course(
    course_id: str,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return no_content(await CourseDbService(session).delete_course(course_id))


# ---------------------------------------------------------------------------
# Holes
# ---------------------------------------------------------------------------


@router.get("/api/courses/{course_id}/holes")
async def list_holes(course_id: str, session: AsyncSession = Depends(get_db_session)):
    return respond(await CourseDbService(session).fetch_holes(course_id))


@router.post("/api/courses/{course_id}/holes/bulk")
async def replace_holes(
    course_id: str,
    payload: HolesBulkReplace,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Replace every hole of the course. An empty list removes them all."""
    response = await CourseDbService(session).replace_course_holes(
        course_id, [hole.model_dump() for hole in payload.holes]
    )
    return respond(response)


@router.post("/api/courses/{course_id}/holes", status_code=201)
async def add_hole(
    course_id: str,
    payload: HoleCreate,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Add one hole; 409 if the hole number already exists on the course."""
    response = await CourseDbService(session).add_hole(course_id, payload.model_dump())
    return respond(response, status_code=201)


@router.put("/api/courses/{course_id}/holes/{hole_id}")
async def update_hole(
    course_id: str,
    hole_id: str,
    payload: HoleUpdate,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    response = await CourseDbService(session).update_hole(
        course_id, hole_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/courses/{course_id}/holes/{hole_id}", status_code=204)
async def delete_hole(
    course_id: str,
    hole_id: str,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return no_content(await CourseDbService(session).remove_hole(course_id, hole_id))


# ---------------------------------------------------------------------------
# Tees
# ---------------------------------------------------------------------------


@router.get("/api/courses/{course_id}/tees")
async def list_tees(course_id: str, session: AsyncSession = Depends(get_db_session)):
    return respond(await CourseDbService(session).fetch_tees(course_id))


@router.post("/api/courses/{course_id}/tees/bulk")
async def replace_tees(
    course_id: str,
    payload: TeesBulkReplace,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    response = await CourseDbService(session).replace_course_tees(
        course_id, [tee.model_dump() for tee in payload.tees]
    )
    return respond(response)


@router.post("/api/courses/{course_id}/tees", status_code=201)
async def add_tee(
    course_id: str,
    payload: TeeCreate,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    response = await CourseDbService(session).add_tee(course_id, payload.model_dump())
    return respond(response, status_code=201)


@router.put("/api/courses/{course_id}/tees/{tee_id}")
async def update_tee(
    course_id: str,
    tee_id: str,
    payload: TeeUpdate,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    response = await CourseDbService(session).update_tee(
        course_id, tee_id, payload.model_dump(exclude_unset=True)
    )
    return respond(response)


@router.delete("/api/courses/{course_id}/tees/{tee_id}", status_code=204)
async def delete_tee(
    course_id: str,
    tee_id: str,
    current_user: dict = Depends(require_site_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return no_content(await CourseDbService(session).remove_tee(course_id, tee_id))
