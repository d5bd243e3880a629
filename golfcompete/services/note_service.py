"""
Note service: personal notes. Every query is scoped to the owning user, so
another user's note behaves exactly like a missing one.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import UserNote
from golfcompete.services.base_service import (
    BaseDbService,
    PaginatedResponse,
    QueryParams,
    ServiceResponse,
)
from golfcompete.services.errors import ServiceError, not_found
from golfcompete.services.serializers import serialize
from golfcompete.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class NoteDbService(BaseDbService):

    search_columns = ("content",)

    async def _owned_note(self, note_id: str, user_id: str) -> UserNote:
        note = await self.session.get(UserNote, note_id)
        if note is None or note.user_id != user_id:
            raise not_found("Note")
        return note

    async def create_note(self, data: Dict[str, Any], user_id: str) -> ServiceResponse:
        return await self.insert_record(UserNote, {**data, "user_id": user_id})

    async def get_note(self, note_id: str, user_id: str) -> ServiceResponse:
        try:
            return ServiceResponse.success(serialize(await self._owned_note(note_id, user_id)))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "fetch note")

    async def update_note(
        self, note_id: str, user_id: str, data: Dict[str, Any]
    ) -> ServiceResponse:
        try:
            note = await self._owned_note(note_id, user_id)
            for key, value in self.clean_update(data).items():
                self.column(UserNote, key)
                setattr(note, key, value)
            note.updated_at = utcnow()
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(note))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update note")

    async def delete_note(self, note_id: str, user_id: str) -> ServiceResponse:
        try:
            note = await self._owned_note(note_id, user_id)
            await self.session.delete(note)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete note")

    async def fetch_notes(
        self, user_id: str, params: Optional[QueryParams] = None
    ) -> PaginatedResponse:
        params = params or QueryParams(order_by="created_at", order_direction="desc")
        params.filters = {**params.filters, "user_id": user_id}
        return await self.fetch_records(UserNote, params)
