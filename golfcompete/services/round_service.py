"""
Round service: rounds, hole-by-hole scores and round completion.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import Bag, CourseTee, Event, Round, RoundStatus, Score
from golfcompete.services.bag_service import BagDbService
from golfcompete.services.base_service import (
    BaseDbService,
    PaginatedResponse,
    QueryParams,
    ServiceResponse,
)
from golfcompete.services.errors import ErrorCodes, ServiceError, not_found
from golfcompete.services.handicap_service import HandicapService
from golfcompete.services.serializers import serialize
from golfcompete.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class RoundDbService(BaseDbService):
    """Rounds and their scores; total_score always mirrors the stored scores."""

    search_columns = ("notes",)

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    async def _check_references(self, user_id: str, course_id: str, data: Dict[str, Any]) -> None:
        """Reject bags owned by someone else, tees of another course and unknown events."""
        if data.get("bag_id"):
            bag = await self.session.get(Bag, data["bag_id"])
            if bag is None or bag.user_id != user_id:
                raise not_found("Bag")
        if data.get("course_tee_id"):
            tee = await self.get_or_raise(CourseTee, data["course_tee_id"], "Course tee")
            if tee.course_id != course_id:
                raise ServiceError(
                    "Tee does not belong to the round's course", ErrorCodes.VALIDATION_ERROR
                )
        if data.get("event_id"):
            await self.get_or_raise(Event, data["event_id"], "Event")

    async def create_round(self, data: Dict[str, Any], user_id: str) -> ServiceResponse:
        """Create a round for ``user_id``; the user's default bag is used when none is given."""
        try:
            payload = {**data, "user_id": user_id}
            await self._check_references(user_id, payload.get("course_id"), payload)
            if not payload.get("bag_id"):
                default_bag = await BagDbService(self.session).get_default_bag(user_id)
                if not default_bag.ok:
                    raise default_bag.error
                payload["bag_id"] = default_bag.data["id"] if default_bag.data else None
            if not payload.get("round_date"):
                payload["round_date"] = utcnow()
            payload.setdefault("status", RoundStatus.IN_PROGRESS.value)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "create round")
        return await self.insert_record(Round, payload)

    async def get_round(self, round_id: str) -> ServiceResponse:
        return await self.fetch_by_id(Round, round_id)

    async def update_round(self, round_id: str, data: Dict[str, Any]) -> ServiceResponse:
        try:
            record = await self.get_or_raise(Round, round_id, "Round")
            await self._check_references(record.user_id, record.course_id, data)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update round")
        return await self.update_record(Round, round_id, data)

    async def delete_round(self, round_id: str) -> ServiceResponse:
        """Delete a round together with its scores."""
        try:
            record = await self.get_or_raise(Round, round_id, "Round")
            await self.session.execute(delete(Score).where(Score.round_id == round_id))
            await self.session.delete(record)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete round")

    async def fetch_rounds(self, params: Optional[QueryParams] = None) -> PaginatedResponse:
        return await self.fetch_records(Round, params)

    async def get_round_with_scores(self, round_id: str) -> ServiceResponse:
        try:
            record = await self.get_or_raise(Round, round_id, "Round")
            data = serialize(record)
            data["scores"] = await self._scores_for(round_id)
            return ServiceResponse.success(data)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "fetch round with scores")

    async def complete_round(self, round_id: str, total_score: int) -> ServiceResponse:
        """
        Finalize a round, then refresh the handicap for the bag it was
        played with (or the user's overall handicap when no bag was used).

        The handicap refresh runs after the round is committed; its failure
        is logged and reported as ``handicap: None``.
        """
        try:
            record = await self.get_or_raise(Round, round_id, "Round")
            record.total_score = total_score
            record.status = RoundStatus.COMPLETED.value
            record.updated_at = utcnow()
            await self.session.flush()
            await self.session.commit()
            round_data = serialize(record)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "complete round")

        handicap = None
        try:
            handicap_response = await HandicapService(self.session).calculate_and_update_handicap(
                round_data["user_id"], round_data["bag_id"]
            )
            if handicap_response.ok:
                handicap = handicap_response.data
            else:
                logger.error(
                    f"Handicap update after round {round_id} failed: {handicap_response.error}"
                )
        except Exception as e:
            logger.error(f"Handicap update after round {round_id} failed: {e}", exc_info=True)

        return ServiceResponse.success({"round": round_data, "handicap": handicap})

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    async def _scores_for(self, round_id: str) -> List[Dict]:
        result = await self.session.execute(select(Score).where(Score.round_id == round_id))
        scores = [serialize(s) for s in result.scalars().all()]
        return sorted(scores, key=lambda s: s["hole_number"])

    async def _recalculate_total(self, round_id: str) -> Optional[int]:
        """Overwrite total_score with the sum of stored strokes (None when no scores)."""
        record = await self.get_or_raise(Round, round_id, "Round")
        result = await self.session.execute(select(Score.strokes).where(Score.round_id == round_id))
        strokes = list(result.scalars().all())
        record.total_score = sum(strokes) if strokes else None
        record.updated_at = utcnow()
        await self.session.flush()
        return record.total_score

    async def recalculate_total_score(self, round_id: str) -> ServiceResponse:
        try:
            total = await self._recalculate_total(round_id)
            await self.session.commit()
            return ServiceResponse.success({"round_id": round_id, "total_score": total})
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "recalculate round total")

    async def fetch_scores(self, round_id: str) -> ServiceResponse:
        try:
            await self.get_or_raise(Round, round_id, "Round")
            return ServiceResponse.success(await self._scores_for(round_id))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "list scores")

    async def add_score(self, round_id: str, data: Dict[str, Any]) -> ServiceResponse:
        """Record a hole score and refresh the round total in the same transaction."""
        try:
            await self.get_or_raise(Round, round_id, "Round")
            score = Score(**{**data, "round_id": round_id})
            self.session.add(score)
            await self.session.flush()
            await self._recalculate_total(round_id)
            await self.session.commit()
            return ServiceResponse.success(serialize(score))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "add score")

    async def _score_in_round(self, round_id: str, score_id: str) -> Score:
        score = await self.session.get(Score, score_id)
        if score is None or score.round_id != round_id:
            raise not_found("Score")
        return score

    async def update_score(
        self, round_id: str, score_id: str, data: Dict[str, Any]
    ) -> ServiceResponse:
        try:
            score = await self._score_in_round(round_id, score_id)
            for key, value in self.clean_update(data, ("round_id",)).items():
                self.column(Score, key)
                setattr(score, key, value)
            await self.session.flush()
            await self._recalculate_total(round_id)
            await self.session.commit()
            return ServiceResponse.success(serialize(score))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update score")

    async def remove_score(self, round_id: str, score_id: str) -> ServiceResponse:
        try:
            score = await self._score_in_round(round_id, score_id)
            await self.session.delete(score)
            await self.session.flush()
            await self._recalculate_total(round_id)
            await self.session.commit()
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "delete score")
