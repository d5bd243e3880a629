"""
Bag service: a user's equipment setups.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import Bag
from golfcompete.services.base_service import BaseDbService, ServiceResponse
from golfcompete.services.errors import ServiceError
from golfcompete.services.serializers import serialize

logger = logging.getLogger(__name__)


class BagDbService(BaseDbService):

    async def fetch_user_bags(self, user_id: str) -> ServiceResponse:
        try:
            result = await self.session.execute(
                select(Bag).where(Bag.user_id == user_id).order_by(Bag.name)
            )
            return ServiceResponse.success([serialize(b) for b in result.scalars().all()])
        except SQLAlchemyError as e:
            return await self.fail(e, "list bags")

    async def create_bag(self, data: Dict[str, Any], user_id: str) -> ServiceResponse:
        """Create a bag; a new default bag clears the flag on the user's other bags."""
        try:
            if data.get("is_default"):
                await self.session.execute(
                    update(Bag).where(Bag.user_id == user_id).values(is_default=False)
                )
            bag = Bag(**{**data, "user_id": user_id})
            self.session.add(bag)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(bag))
        except SQLAlchemyError as e:
            return await self.fail(e, "create bag")

    async def get_bag(self, bag_id: str) -> ServiceResponse:
        return await self.fetch_by_id(Bag, bag_id)

    async def get_default_bag(self, user_id: str) -> ServiceResponse:
        try:
            result = await self.session.execute(
                select(Bag).where(Bag.user_id == user_id, Bag.is_default.is_(True)).limit(1)
            )
            bag = result.scalar_one_or_none()
            return ServiceResponse.success(serialize(bag) if bag else None)
        except SQLAlchemyError as e:
            return await self.fail(e, "fetch default bag")

    async def update_handicap(self, bag_id: str, handicap_index: Optional[float]) -> ServiceResponse:
        try:
            bag = await self.get_or_raise(Bag, bag_id, "Bag")
            bag.handicap_index = handicap_index
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(bag))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, "update bag handicap")
