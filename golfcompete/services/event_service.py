"""
Event service: event records, event participants and the event creation
workflow (series ordering plus invitation fan-out).
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import (
    ACTIVE_PARTICIPANT_STATUSES,
    Event,
    EventParticipant,
    InvitationStatus,
    Round,
    SeriesEvent,
    SeriesParticipant,
)
from golfcompete.services.base_service import (
    BaseDbService,
    PaginatedResponse,
    QueryParams,
    ServiceResponse,
)
from golfcompete.services.errors import ErrorCodes, ServiceError, not_found
from golfcompete.services.serializers import serialize
from golfcompete.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class EventDbService(BaseDbService):
    """Event records plus participant invitations."""

    search_columns = ("name", "description")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def create_event(self, data: Dict[str, Any], user_id: str) -> ServiceResponse:
        """
        Create an event; when it belongs to a series, append it to the
        series ordering and invite every active series participant.

        The whole sequence is one transaction. A failure at any step leaves
        no event row behind.
        """
        series_id = data.get("series_id")
        try:
            event = Event(**{**data, "created_by": user_id})
            self.session.add(event)
            await self.session.flush()

            result = serialize(event)
            if series_id:
                try:
                    event_order = await self.next_event_order(series_id)
                    self.session.add(
                        SeriesEvent(series_id=series_id, event_id=event.id, event_order=event_order)
                    )
                    await self.session.flush()
                except SQLAlchemyError:
                    logger.error(
                        f"Linking event {event.id} to series {series_id} failed; "
                        "rolling back event creation"
                    )
                    raise

                invitees = await self.active_series_member_ids(series_id)
                await self.invite_users(event.id, invitees)

                result["event_order"] = event_order
                result["invited_count"] = len(invitees)

            await self.session.commit()
            logger.info(f"Created event {event.id} (series={series_id})")
            return ServiceResponse.success(result)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "create event")

    async def next_event_order(self, series_id: str) -> int:
        result = await self.session.execute(
            select(func.max(SeriesEvent.event_order)).where(SeriesEvent.series_id == series_id)
        )
        current = result.scalar_one_or_none()
        return (current or 0) + 1

    async def active_series_member_ids(self, series_id: str) -> List[str]:
        result = await self.session.execute(
            select(SeriesParticipant.user_id).where(
                SeriesParticipant.series_id == series_id,
                SeriesParticipant.status.in_(ACTIVE_PARTICIPANT_STATUSES),
            )
        )
        return list(result.scalars().all())

    async def invite_users(self, event_id: str, user_ids: List[str]) -> None:
        """Stage one invited EventParticipant per user in a single batch."""
        if not user_ids:
            return
        now = utcnow()
        self.session.add_all(
            [
                EventParticipant(
                    event_id=event_id,
                    user_id=uid,
                    status=InvitationStatus.INVITED.value,
                    invitation_date=now,
                )
                for uid in user_ids
            ]
        )
        await self.session.flush()

    async def get_event(self, event_id: str) -> ServiceResponse:
        return await self.fetch_by_id(Event, event_id)

    async def update_event(self, event_id: str, data: Dict[str, Any]) -> ServiceResponse:
        return await self.update_record(Event, event_id, data, extra_protected=("series_id",))

    async def delete_event(self, event_id: str) -> ServiceResponse:
        """Delete an event with its participants and series ordering row."""
        try:
            event = await self.get_or_raise(Event, event_id, "Event")
            await self.session.execute(
                delete(EventParticipant).where(EventParticipant.event_id == event_id)
            )
            await self.session.execute(delete(SeriesEvent).where(SeriesEvent.event_id == event_id))
            await self.session.execute(
                update(Round).where(Round.event_id == event_id).values(event_id=None)
            )
            await self.session.delete(event)
            await self.session.flush()
            await self.session.commit()
            logger.info(f"Deleted event {event_id}")
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete event")

    async def fetch_events(self, params: Optional[QueryParams] = None) -> PaginatedResponse:
        return await self.fetch_records(Event, params)

    async def get_event_series_id(self, event_id: str) -> ServiceResponse:
        """The series an event belongs to (data is None for standalone events)."""
        try:
            result = await self.session.execute(select(Event.series_id).where(Event.id == event_id))
            row = result.first()
            if row is None:
                raise not_found("Event")
            return ServiceResponse.success(row.series_id)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "fetch event series")

    async def get_event_with_participants(self, event_id: str) -> ServiceResponse:
        try:
            event = await self.get_or_raise(Event, event_id, "Event")
            data = serialize(event)
            data["participants"] = await self._participants_for(event_id)
            return ServiceResponse.success(data)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "fetch event with participants")

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    async def _participants_for(self, event_id: str) -> List[Dict]:
        result = await self.session.execute(
            select(EventParticipant)
            .where(EventParticipant.event_id == event_id)
            .order_by(EventParticipant.created_at, EventParticipant.id)
        )
        return [serialize(p) for p in result.scalars().all()]

    async def add_participant(self, data: Dict[str, Any]) -> ServiceResponse:
        payload = {
            "status": InvitationStatus.INVITED.value,
            "invitation_date": utcnow(),
            **data,
        }
        return await self.insert_record(EventParticipant, payload)

    async def get_participant(self, participant_id: str) -> ServiceResponse:
        return await self.fetch_by_id(EventParticipant, participant_id)

    async def update_participant(
        self, participant_id: str, data: Dict[str, Any]
    ) -> ServiceResponse:
        return await self.update_record(
            EventParticipant, participant_id, data, extra_protected=("event_id",)
        )

    async def remove_participant(self, participant_id: str) -> ServiceResponse:
        return await self.delete_record(EventParticipant, participant_id)

    async def fetch_participants(self, event_id: str) -> ServiceResponse:
        try:
            await self.get_or_raise(Event, event_id, "Event")
            return ServiceResponse.success(await self._participants_for(event_id))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "list event participants")

    async def fetch_user_event_participations(
        self, user_id: str, status: Optional[str] = None
    ) -> ServiceResponse:
        """A user's event invitations, each with its event."""
        try:
            query = (
                select(EventParticipant, Event)
                .join(Event, Event.id == EventParticipant.event_id)
                .where(EventParticipant.user_id == user_id)
                .order_by(Event.event_date.desc())
            )
            if status:
                query = query.where(EventParticipant.status == status)
            result = await self.session.execute(query)
            participations = []
            for participant, event in result.all():
                item = serialize(participant)
                item["event"] = serialize(event)
                participations.append(item)
            return ServiceResponse.success(participations)
        except SQLAlchemyError as e:
            return await self.fail(e, "list user event participations")

    async def respond_to_invitation(
        self, participant_id: str, user_id: str, accept: bool
    ) -> ServiceResponse:
        """Accept or decline a pending event invitation on behalf of the invitee."""
        try:
            participant = await self.get_or_raise(
                EventParticipant, participant_id, "Event participant"
            )
            if participant.user_id != user_id:
                raise ServiceError(
                    "Only the invited user can respond to this invitation", ErrorCodes.FORBIDDEN
                )
            if participant.status != InvitationStatus.INVITED.value:
                raise ServiceError(
                    f"Invitation already {participant.status}", ErrorCodes.INVALID_STATE
                )

            participant.status = (
                InvitationStatus.CONFIRMED.value if accept else InvitationStatus.DECLINED.value
            )
            participant.response_date = utcnow()
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(participant))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "respond to event invitation")
