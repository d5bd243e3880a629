"""
Series service: series records, their participants and event ordering.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select, delete, update
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import (
    Event,
    ParticipantRole,
    ParticipantStatus,
    Series,
    SeriesEvent,
    SeriesParticipant,
)
from golfcompete.services.base_service import (
    BaseDbService,
    PaginatedResponse,
    QueryParams,
    ServiceResponse,
)
from golfcompete.services.errors import DatabaseError, ErrorCodes, ServiceError
from golfcompete.services.serializers import serialize
from golfcompete.utils.datetime_utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)


def validate_date_range(start_date, end_date) -> None:
    """Raise VALIDATION_ERROR when end_date falls before start_date."""
    if start_date is None or end_date is None:
        return
    if ensure_aware(end_date) < ensure_aware(start_date):
        raise ServiceError("End date must be on or after start date", ErrorCodes.VALIDATION_ERROR)


class SeriesDbService(BaseDbService):
    """Series records plus participant membership."""

    search_columns = ("name", "description")

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    async def create_series(self, data: Dict[str, Any]) -> ServiceResponse:
        try:
            validate_date_range(data.get("start_date"), data.get("end_date"))
        except ServiceError as e:
            return await self.fail(e, "create series")
        return await self.insert_record(Series, data)

    async def get_series(self, series_id: str) -> ServiceResponse:
        return await self.fetch_by_id(Series, series_id)

    async def update_series(self, series_id: str, data: Dict[str, Any]) -> ServiceResponse:
        try:
            series = await self.get_or_raise(Series, series_id, "Series")
            validate_date_range(
                data.get("start_date") or series.start_date,
                data.get("end_date") or series.end_date,
            )
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update series")
        return await self.update_record(Series, series_id, data)

    async def delete_series(self, series_id: str) -> ServiceResponse:
        """
        Delete a series with its participants and ordering rows.

        Events that belonged to the series are kept and detached.
        """
        try:
            series = await self.get_or_raise(Series, series_id, "Series")
            await self.session.execute(
                delete(SeriesParticipant).where(SeriesParticipant.series_id == series_id)
            )
            await self.session.execute(delete(SeriesEvent).where(SeriesEvent.series_id == series_id))
            await self.session.execute(
                update(Event).where(Event.series_id == series_id).values(series_id=None)
            )
            await self.session.delete(series)
            await self.session.flush()
            await self.session.commit()
            logger.info(f"Deleted series {series_id}")
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete series")

    async def fetch_series(self, params: Optional[QueryParams] = None) -> PaginatedResponse:
        return await self.fetch_records(Series, params)

    async def get_series_with_participants(self, series_id: str) -> ServiceResponse:
        try:
            series = await self.get_or_raise(Series, series_id, "Series")
            result = await self.session.execute(
                select(SeriesParticipant)
                .where(SeriesParticipant.series_id == series_id)
                .order_by(SeriesParticipant.created_at, SeriesParticipant.id)
            )
            data = serialize(series)
            data["participants"] = [serialize(p) for p in result.scalars().all()]
            return ServiceResponse.success(data)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "fetch series with participants")

    async def create_series_with_admin(
        self, data: Dict[str, Any], user_id: str
    ) -> ServiceResponse:
        """
        Create a series and enrol its creator as a confirmed admin.

        Both rows are written in one transaction: either the series and its
        admin participant exist afterwards, or neither does.
        """
        try:
            validate_date_range(data.get("start_date"), data.get("end_date"))
        except ServiceError as e:
            return await self.fail(e, "create series")

        try:
            series = Series(**{**data, "created_by": user_id})
            self.session.add(series)
            await self.session.flush()

            self.session.add(self.build_admin_participant(series.id, user_id))
            await self.session.flush()
            await self.session.commit()

            logger.info(f"Created series {series.id} with admin {user_id}")
            return ServiceResponse.success(serialize(series))
        except SQLAlchemyError as e:
            logger.error(f"Series creation rolled back for user {user_id}: {e}", exc_info=True)
            await self.session.rollback()
            return ServiceResponse.failure(
                DatabaseError("Failed to create series", ErrorCodes.DB_RPC_ERROR, e)
            )

    @staticmethod
    def build_admin_participant(series_id: str, user_id: str) -> SeriesParticipant:
        return SeriesParticipant(
            series_id=series_id,
            user_id=user_id,
            role=ParticipantRole.ADMIN.value,
            status=ParticipantStatus.CONFIRMED.value,
            joined_at=utcnow(),
        )

    async def list_series_events(self, series_id: str) -> ServiceResponse:
        """Events of a series ordered by their position in the series."""
        try:
            await self.get_or_raise(Series, series_id, "Series")
            result = await self.session.execute(
                select(Event, SeriesEvent.event_order)
                .join(SeriesEvent, SeriesEvent.event_id == Event.id)
                .where(SeriesEvent.series_id == series_id)
                .order_by(SeriesEvent.event_order)
            )
            events = []
            for event, event_order in result.all():
                item = serialize(event)
                item["event_order"] = event_order
                events.append(item)
            return ServiceResponse.success(events)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "list series events")

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    async def add_participant(self, data: Dict[str, Any]) -> ServiceResponse:
        payload = {
            "role": ParticipantRole.PARTICIPANT.value,
            "status": ParticipantStatus.INVITED.value,
            **data,
        }
        return await self.insert_record(SeriesParticipant, payload)

    async def get_participant(self, participant_id: str) -> ServiceResponse:
        return await self.fetch_by_id(SeriesParticipant, participant_id)

    async def update_participant(
        self, participant_id: str, data: Dict[str, Any]
    ) -> ServiceResponse:
        return await self.update_record(
            SeriesParticipant, participant_id, data, extra_protected=("series_id",)
        )

    async def remove_participant(self, participant_id: str) -> ServiceResponse:
        return await self.delete_record(SeriesParticipant, participant_id)

    async def fetch_participants(self, series_id: str) -> ServiceResponse:
        try:
            await self.get_or_raise(Series, series_id, "Series")
            result = await self.session.execute(
                select(SeriesParticipant)
                .where(SeriesParticipant.series_id == series_id)
                .order_by(SeriesParticipant.created_at, SeriesParticipant.id)
            )
            return ServiceResponse.success([serialize(p) for p in result.scalars().all()])
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "list series participants")

    async def get_user_series_role(self, series_id: str, user_id: str) -> ServiceResponse:
        """Membership of a user in a series as {role, status}, or None."""
        try:
            result = await self.session.execute(
                select(SeriesParticipant.role, SeriesParticipant.status).where(
                    SeriesParticipant.series_id == series_id,
                    SeriesParticipant.user_id == user_id,
                )
            )
            row = result.first()
            data = {"role": row.role, "status": row.status} if row else None
            return ServiceResponse.success(data)
        except SQLAlchemyError as e:
            return await self.fail(e, "fetch series role")

    async def fetch_user_series_participations(
        self, user_id: str, status: Optional[str] = None
    ) -> ServiceResponse:
        """A user's memberships, each with the series it belongs to."""
        try:
            query = (
                select(SeriesParticipant, Series)
                .join(Series, Series.id == SeriesParticipant.series_id)
                .where(SeriesParticipant.user_id == user_id)
                .order_by(Series.start_date.desc())
            )
            if status:
                query = query.where(SeriesParticipant.status == status)
            result = await self.session.execute(query)
            participations = []
            for participant, series in result.all():
                item = serialize(participant)
                item["series"] = serialize(series)
                participations.append(item)
            return ServiceResponse.success(participations)
        except SQLAlchemyError as e:
            return await self.fail(e, "list user series participations")

    async def respond_to_invitation(
        self, participant_id: str, user_id: str, accept: bool
    ) -> ServiceResponse:
        """Accept or decline a pending series invitation on behalf of the invitee."""
        try:
            participant = await self.get_or_raise(
                SeriesParticipant, participant_id, "Series participant"
            )
            if participant.user_id != user_id:
                raise ServiceError(
                    "Only the invited user can respond to this invitation", ErrorCodes.FORBIDDEN
                )
            if participant.status != ParticipantStatus.INVITED.value:
                raise ServiceError(
                    f"Invitation already {participant.status}", ErrorCodes.INVALID_STATE
                )

            if accept:
                participant.status = ParticipantStatus.CONFIRMED.value
                participant.joined_at = utcnow()
            else:
                participant.status = ParticipantStatus.DECLINED.value
                participant.joined_at = None
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(participant))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "respond to series invitation")
