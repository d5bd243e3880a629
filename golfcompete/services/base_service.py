"""
Base class for the domain record services.

Every service is built per request from the request's AsyncSession and
returns a ServiceResponse (or PaginatedResponse for lists). Persistence
exceptions are caught here and carried as DatabaseError values, so route
handlers only ever inspect ``response.error``.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.services.errors import (
    DatabaseError,
    ErrorCodes,
    ServiceError,
    not_found,
)
from golfcompete.services.serializers import serialize
from golfcompete.utils.datetime_utils import to_iso, utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Columns an update payload may never touch
PROTECTED_COLUMNS = frozenset({"id", "created_by", "user_id", "created_at", "updated_at"})


class ServiceResponse:
    """Result of a service call: either data or an error, never both."""

    def __init__(self, data: Any = None, error: Optional[ServiceError] = None):
        self.data = data
        self.error = error
        self.status = "error" if error is not None else "success"
        self.timestamp = to_iso(utcnow())

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResponse":
        return cls(data=data)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResponse":
        return cls(error=error)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, error={self.error!r})"


class PaginatedResponse(ServiceResponse):
    """ServiceResponse carrying a page of records plus paging metadata."""

    def __init__(
        self,
        data: Optional[List[Dict]] = None,
        error: Optional[ServiceError] = None,
        metadata: Optional[Dict] = None,
    ):
        super().__init__(data=data, error=error)
        self.metadata = metadata or {}

    @classmethod
    def failure(cls, error: ServiceError) -> "PaginatedResponse":
        return cls(error=error)


class QueryParams:
    """
    Listing options for ``fetch_records``.

    filters maps column name to a value (equality), a list (IN), or a dict
    with any of ``gte``, ``lte`` and ``is_null`` keys. None values are ignored.
    """

    def __init__(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        order_by: Optional[str] = None,
        order_direction: str = "asc",
        filters: Optional[Dict[str, Any]] = None,
        search: Optional[str] = None,
    ):
        self.page = max(1, page)
        self.limit = max(1, min(limit, MAX_PAGE_SIZE))
        self.order_by = order_by
        self.order_direction = order_direction.lower() if order_direction else "asc"
        self.filters = filters or {}
        self.search = search


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when an IntegrityError was caused by a unique constraint."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig).lower()


def page_metadata(page: int, limit: int, total: int) -> Dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "has_more": page * limit < total,
    }


class BaseDbService:
    """Generic CRUD over one AsyncSession."""

    # Text columns OR-ed together for the ``search`` query option
    search_columns: Sequence[str] = ()

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Error plumbing
    # ------------------------------------------------------------------

    def to_service_error(self, exc: Exception, action: str) -> ServiceError:
        if isinstance(exc, ServiceError):
            return exc
        if isinstance(exc, IntegrityError):
            unique = is_unique_violation(exc)
            message = (
                f"Failed to {action}: record already exists"
                if unique
                else f"Failed to {action}: constraint violation"
            )
            return DatabaseError(
                message, ErrorCodes.DB_CONSTRAINT_VIOLATION, exc, unique_violation=unique
            )
        return DatabaseError(f"Failed to {action}", ErrorCodes.DB_QUERY_ERROR, exc)

    async def fail(self, exc: Exception, action: str, response_class=ServiceResponse):
        """Roll back the unit of work and wrap ``exc`` as an error response."""
        error = self.to_service_error(exc, action)
        if isinstance(exc, SQLAlchemyError):
            logger.error(f"Database error during '{action}': {exc}", exc_info=True)
        else:
            logger.info(f"'{action}' rejected: {error.code} {error.message}")
        try:
            await self.session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback failed after '{action}': {rollback_error}")
        return response_class.failure(error)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def column(model, name: str):
        """Resolve a column attribute by name or raise VALIDATION_ERROR."""
        if name not in model.__table__.columns:
            raise ServiceError(
                f"Invalid column '{name}' for {model.__tablename__}", ErrorCodes.VALIDATION_ERROR
            )
        return getattr(model, name)

    async def get_or_raise(self, model, record_id: str, label: Optional[str] = None):
        record = await self.session.get(model, record_id)
        if record is None:
            raise not_found(label or model.__name__)
        return record

    @staticmethod
    def clean_update(data: Dict[str, Any], extra_protected: Iterable[str] = ()) -> Dict[str, Any]:
        protected = PROTECTED_COLUMNS.union(extra_protected)
        return {key: value for key, value in data.items() if key not in protected}

    def build_conditions(self, model, params: QueryParams) -> List:
        conditions = []
        for name, value in params.filters.items():
            if value is None:
                continue
            column = self.column(model, name)
            if isinstance(value, dict):
                if value.get("gte") is not None:
                    conditions.append(column >= value["gte"])
                if value.get("lte") is not None:
                    conditions.append(column <= value["lte"])
                if value.get("is_null") is True:
                    conditions.append(column.is_(None))
                elif value.get("is_null") is False:
                    conditions.append(column.isnot(None))
            elif isinstance(value, (list, tuple, set)):
                conditions.append(column.in_(list(value)))
            else:
                conditions.append(column == value)

        if params.search and params.search.strip() and self.search_columns:
            pattern = f"%{params.search.strip()}%"
            conditions.append(
                or_(*[self.column(model, name).ilike(pattern) for name in self.search_columns])
            )
        return conditions

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def insert_record(self, model, data: Dict[str, Any]) -> ServiceResponse:
        action = f"create {model.__tablename__} record"
        try:
            record = model(**data)
            self.session.add(record)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(record))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, action)

    async def fetch_by_id(self, model, record_id: str) -> ServiceResponse:
        try:
            record = await self.get_or_raise(model, record_id)
            return ServiceResponse.success(serialize(record))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, f"fetch {model.__tablename__} record")

    async def update_record(
        self, model, record_id: str, data: Dict[str, Any], extra_protected: Iterable[str] = ()
    ) -> ServiceResponse:
        try:
            record = await self.get_or_raise(model, record_id)
            for key, value in self.clean_update(data, extra_protected).items():
                self.column(model, key)
                setattr(record, key, value)
            if "updated_at" in model.__table__.columns:
                record.updated_at = utcnow()
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(serialize(record))
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, f"update {model.__tablename__} record")

    async def delete_record(self, model, record_id: str) -> ServiceResponse:
        try:
            record = await self.get_or_raise(model, record_id)
            await self.session.delete(record)
            await self.session.flush()
            await self.session.commit()
            return ServiceResponse.success(None)
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(e, f"delete {model.__tablename__} record")

    async def fetch_records(
        self, model, params: Optional[QueryParams] = None
    ) -> PaginatedResponse:
        params = params or QueryParams()
        try:
            conditions = self.build_conditions(model, params)

            count_query = select(func.count()).select_from(model)
            query = select(model)
            if conditions:
                count_query = count_query.where(*conditions)
                query = query.where(*conditions)

            if params.order_by:
                order_column = self.column(model, params.order_by)
                query = query.order_by(
                    order_column.desc() if params.order_direction == "desc" else order_column.asc()
                )
            elif "created_at" in model.__table__.columns:
                query = query.order_by(model.created_at.desc())
            query = query.order_by(model.id)

            total = (await self.session.execute(count_query)).scalar_one()
            offset = (params.page - 1) * params.limit
            result = await self.session.execute(query.offset(offset).limit(params.limit))
            records = [serialize(record) for record in result.scalars().all()]

            return PaginatedResponse(
                data=records, metadata=page_metadata(params.page, params.limit, total)
            )
        except (SQLAlchemyError, ServiceError) as e:
            return await self.fail(
                e, f"list {model.__tablename__} records", response_class=PaginatedResponse
            )
