"""
Handicap calculation (World Handicap System style).

Differentials come from completed rounds that have a total score and a tee
with a men's course rating and slope. The index is computed from the 20
most recent differentials and stored on the bag used, or on the user's
profile for rounds played without a bag.
"""

import logging
import math
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import Bag, CourseTee, Round, RoundStatus, User
from golfcompete.services.bag_service import BagDbService
from golfcompete.services.base_service import BaseDbService, ServiceResponse
from golfcompete.services.errors import ServiceError, not_found
from golfcompete.utils.datetime_utils import to_iso, utcnow

logger = logging.getLogger(__name__)

STANDARD_SLOPE = 113
MAX_RECENT_ROUNDS = 20
HANDICAP_MULTIPLIER = 0.96
CALCULATION_METHOD = "WHS"


def round_half_up(value: float, digits: int = 1) -> float:
    """Round to ``digits`` places with halves rounded up (not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def calculate_differential(
    adjusted_gross_score: float,
    course_rating: float,
    slope_rating: float,
    pcc: float = 0.0,
) -> float:
    """
    Score differential for a single round.

    Formula: (adjusted gross score - course rating - PCC) x 113 / slope,
    rounded to one decimal place.
    """
    differential = (adjusted_gross_score - course_rating - pcc) * STANDARD_SLOPE / slope_rating
    return round_half_up(differential, 1)


def differentials_to_use(total_rounds: int) -> int:
    """How many of the best differentials count toward the index."""
    if total_rounds >= 20:
        return 8
    if total_rounds >= 5:
        return max(1, math.floor(total_rounds * 0.4))
    if total_rounds >= 3:
        return 1
    return 0


def calculate_handicap_index(differentials: List[Dict]) -> Dict:
    """
    Compute a handicap index from differential records.

    Each record needs ``differential`` and ``round_date``. Only the 20 most
    recent are considered; fewer than 3 rounds yield an index of 0.
    """
    recent = sorted(differentials, key=lambda d: d["round_date"] or "", reverse=True)
    recent = recent[:MAX_RECENT_ROUNDS]
    count = differentials_to_use(len(recent))

    if count == 0:
        return {
            "handicap_index": 0,
            "differentials_used": [],
            "total_rounds": len(recent),
            "calculation_method": CALCULATION_METHOD,
            "effective_date": to_iso(utcnow()),
        }

    best = sorted(recent, key=lambda d: d["differential"])[:count]
    average = sum(d["differential"] for d in best) / len(best)
    handicap_index = round_half_up(average * HANDICAP_MULTIPLIER, 1)

    return {
        "handicap_index": max(0, handicap_index),
        "differentials_used": best,
        "total_rounds": len(recent),
        "calculation_method": CALCULATION_METHOD,
        "effective_date": to_iso(utcnow()),
    }


class HandicapService(BaseDbService):
    """Reads round history and stores computed handicap indexes."""

    async def fetch_differentials(
        self, user_id: str, bag_id: Optional[str] = None, limit: int = MAX_RECENT_ROUNDS
    ) -> List[Dict]:
        query = (
            select(
                Round.id,
                Round.bag_id,
                Round.total_score,
                Round.round_date,
                CourseTee.men_rating,
                CourseTee.men_slope,
            )
            .join(CourseTee, CourseTee.id == Round.course_tee_id)
            .where(
                Round.user_id == user_id,
                Round.status == RoundStatus.COMPLETED.value,
                Round.total_score.isnot(None),
                CourseTee.men_rating.isnot(None),
                CourseTee.men_slope.isnot(None),
            )
            .order_by(Round.round_date.desc())
            .limit(limit)
        )
        if bag_id:
            query = query.where(Round.bag_id == bag_id)

        result = await self.session.execute(query)
        return [
            {
                "round_id": row.id,
                "bag_id": row.bag_id,
                "score": row.total_score,
                "course_rating": row.men_rating,
                "slope_rating": row.men_slope,
                "differential": calculate_differential(
                    row.total_score, row.men_rating, row.men_slope
                ),
                "round_date": to_iso(row.round_date),
            }
            for row in result.all()
        ]

    async def calculate_handicap(
        self, user_id: str, bag_id: Optional[str] = None
    ) -> ServiceResponse:
        """Compute (without storing) the caller's current index."""
        try:
            differentials = await self.fetch_differentials(user_id, bag_id)
            return ServiceResponse.success(calculate_handicap_index(differentials))
        except SQLAlchemyError as e:
            return await self.fail(e, "calculate handicap")

    async def calculate_and_update_handicap(
        self, user_id: str, bag_id: Optional[str] = None
    ) -> ServiceResponse:
        """Compute the index and store it on the bag, or on the user when no bag is given."""
        try:
            differentials = await self.fetch_differentials(user_id, bag_id)
            result = calculate_handicap_index(differentials)

            if bag_id:
                bag = await self.session.get(Bag, bag_id)
                if bag is None or bag.user_id != user_id:
                    raise not_found("Bag")
                stored = await BagDbService(self.session).update_handicap(
                    bag_id, result["handicap_index"]
                )
                if not stored.ok:
                    return stored
            else:
                user = await self.get_or_raise(User, user_id, "User")
                user.handicap_index = result["handicap_index"]
                await self.session.flush()
                await self.session.commit()

            logger.info(
                f"Handicap for user {user_id} (bag={bag_id}) updated to {result['handicap_index']}"
            )
            return ServiceResponse.success(result)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update handicap")
