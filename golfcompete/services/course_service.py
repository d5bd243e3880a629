"""
Course service: courses, tee sets and holes.

Courses are reference data; every mutation here is reached only through
site-admin guarded routes.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, update
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import Course, CourseTee, Event, Hole
from golfcompete.services.base_service import (
    BaseDbService,
    PaginatedResponse,
    QueryParams,
    ServiceResponse,
)
from golfcompete.services.errors import ServiceError, not_found
from golfcompete.services.serializers import serialize

logger = logging.getLogger(__name__)


class CourseDbService(BaseDbService):

    search_columns = ("name", "city", "state")

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    async def create_course(
        self,
        data: Dict[str, Any],
        user_id: Optional[str] = None,
        tees: Optional[List[Dict[str, Any]]] = None,
        holes: Optional[List[Dict[str, Any]]] = None,
    ) -> ServiceResponse:
        """Create a course with its initial tees and holes as one unit."""
        try:
            course = Course(**{**data, "created_by": user_id})
            self.session.add(course)
            await self.session.flush()

            tee_records = [CourseTee(**{**tee, "course_id": course.id}) for tee in tees or []]
            hole_records = [Hole(**{**hole, "course_id": course.id}) for hole in holes or []]
            self.session.add_all(tee_records + hole_records)
            await self.session.flush()
            await self.session.commit()

            result = serialize(course)
            result["tees"] = [serialize(t) for t in tee_records]
            result["holes"] = sorted(
                (serialize(h) for h in hole_records), key=lambda h: h["hole_number"]
            )
            logger.info(
                f"Created course {course.id} with {len(tee_records)} tees "
                f"and {len(hole_records)} holes"
            )
            return ServiceResponse.success(result)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "create course")

    async def get_course(self, course_id: str) -> ServiceResponse:
        return await self.fetch_by_id(Course, course_id)

    async def update_course(self, course_id: str, data: Dict[str, Any]) -> ServiceResponse:
        return await self.update_record(Course, course_id, data)

    async def delete_course(self, course_id: str) -> ServiceResponse:
        """Delete a course with its holes and tees; events keep running without a course."""
        try:
            course = await self.get_or_raise(Course, course_id, "Course")
            await self.session.execute(delete(Hole).where(Hole.course_id == course_id))
            await self.session.execute(delete(CourseTee).where(CourseTee.course_id == course_id))
            await self.session.execute(
                update(Event).where(Event.course_id == course_id).values(course_id=None)
            )
            await self.session.delete(course)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete course")

    async def fetch_courses(self, params: Optional[QueryParams] = None) -> PaginatedResponse:
        params = params or QueryParams(order_by="name")
        if not params.order_by:
            params.order_by = "name"
        return await self.fetch_records(Course, params)

    async def get_course_with_details(self, course_id: str) -> ServiceResponse:
        try:
            course = await self.get_or_raise(Course, course_id, "Course")
            data = serialize(course)
            data["holes"] = await self._holes_for(course_id)
            data["tees"] = await self._tees_for(course_id)
            return ServiceResponse.success(data)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "fetch course details")

    # ------------------------------------------------------------------
    # Holes
    # ------------------------------------------------------------------

    async def _holes_for(self, course_id: str) -> List[Dict]:
        result = await self.session.execute(
            select(Hole).where(Hole.course_id == course_id).order_by(Hole.hole_number)
        )
        return [serialize(h) for h in result.scalars().all()]

    async def _child(self, model, course_id: str, child_id: str, label: str):
        record = await self.session.get(model, child_id)
        if record is None or record.course_id != course_id:
            raise not_found(label)
        return record

    async def fetch_holes(self, course_id: str) -> ServiceResponse:
        try:
            await self.get_or_raise(Course, course_id, "Course")
            return ServiceResponse.success(await self._holes_for(course_id))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "list holes")

    async def add_hole(self, course_id: str, data: Dict[str, Any]) -> ServiceResponse:
        try:
            await self.get_or_raise(Course, course_id, "Course")
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "add hole")
        return await self.insert_record(Hole, {**data, "course_id": course_id})

    async def update_hole(
        self, course_id: str, hole_id: str, data: Dict[str, Any]
    ) -> ServiceResponse:
        try:
            await self._child(Hole, course_id, hole_id, "Hole")
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update hole")
        return await self.update_record(Hole, hole_id, data, extra_protected=("course_id",))

    async def remove_hole(self, course_id: str, hole_id: str) -> ServiceResponse:
        try:
            await self._child(Hole, course_id, hole_id, "Hole")
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete hole")
        return await self.delete_record(Hole, hole_id)

    async def replace_course_holes(
        self, course_id: str, holes: List[Dict[str, Any]]
    ) -> ServiceResponse:
        """
        Replace every hole of a course with ``holes``.

        Runs as one transaction. An empty list leaves the course with no holes.
        """
        try:
            await self.get_or_raise(Course, course_id, "Course")
            await self.session.execute(delete(Hole).where(Hole.course_id == course_id))
            await self.session.flush()
            records = [Hole(**{**hole, "course_id": course_id}) for hole in holes]
            self.session.add_all(records)
            await self.session.flush()
            await self.session.commit()
            logger.info(f"Replaced holes of course {course_id} ({len(records)} holes)")
            return ServiceResponse.success(
                sorted((serialize(h) for h in records), key=lambda h: h["hole_number"])
            )
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "replace holes")

    # ------------------------------------------------------------------
    # Tees
    # ------------------------------------------------------------------

    async def _tees_for(self, course_id: str) -> List[Dict]:
        result = await self.session.execute(
            select(CourseTee).where(CourseTee.course_id == course_id).order_by(CourseTee.name)
        )
        return [serialize(t) for t in result.scalars().all()]

    async def fetch_tees(self, course_id: str) -> ServiceResponse:
        try:
            await self.get_or_raise(Course, course_id, "Course")
            return ServiceResponse.success(await self._tees_for(course_id))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "list tees")

    async def add_tee(self, course_id: str, data: Dict[str, Any]) -> ServiceResponse:
        try:
            await self.get_or_raise(Course, course_id, "Course")
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "add tee")
        return await self.insert_record(CourseTee, {**data, "course_id": course_id})

    async def update_tee(
        self, course_id: str, tee_id: str, data: Dict[str, Any]
    ) -> ServiceResponse:
        try:
            await self._child(CourseTee, course_id, tee_id, "Tee")
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update tee")
        return await self.update_record(CourseTee, tee_id, data, extra_protected=("course_id",))

    async def remove_tee(self, course_id: str, tee_id: str) -> ServiceResponse:
        try:
            await self._child(CourseTee, course_id, tee_id, "Tee")
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete tee")
        return await self.delete_record(CourseTee, tee_id)

    async def replace_course_tees(
        self, course_id: str, tees: List[Dict[str, Any]]
    ) -> ServiceResponse:
        """Replace every tee set of a course in one transaction."""
        try:
            await self.get_or_raise(Course, course_id, "Course")
            await self.session.execute(delete(CourseTee).where(CourseTee.course_id == course_id))
            await self.session.flush()
            records = [CourseTee(**{**tee, "course_id": course_id}) for tee in tees]
            self.session.add_all(records)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success([serialize(t) for t in records])
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "replace tees")
