"""
Tests for the series service: creation with an admin, participants and
invitation responses.
"""

from datetime import datetime, timedelta

import pytest
import pytz
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from golfcompete.database.models import Event, Series, SeriesEvent, SeriesParticipant
from golfcompete.services.base_service import QueryParams
from golfcompete.services.errors import ErrorCodes
from golfcompete.services.series_service import SeriesDbService


def _series_payload(**overrides):
    start = datetime(2026, 4, 1, tzinfo=pytz.UTC)
    data = {
        "name": "Spring Series",
        "description": "Four Saturdays",
        "start_date": start,
        "end_date": start + timedelta(days=60),
        "status": "draft",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_series_with_admin_enrols_creator(db_session, user_factory):
    user = await user_factory()
    service = SeriesDbService(db_session)

    response = await service.create_series_with_admin(_series_payload(), user["id"])

    assert response.ok
    assert response.data["created_by"] == user["id"]
    participants = (await service.fetch_participants(response.data["id"])).data
    assert len(participants) == 1
    assert participants[0]["user_id"] == user["id"]
    assert participants[0]["role"] == "admin"
    assert participants[0]["status"] == "confirmed"
    assert participants[0]["joined_at"] is not None


@pytest.mark.asyncio
async def test_create_series_with_admin_is_atomic(db_session, user_factory, monkeypatch):
    user = await user_factory()

    def failing_participant(series_id, user_id):
        raise SQLAlchemyError("participant insert failed")

    monkeypatch.setattr(
        SeriesDbService, "build_admin_participant", staticmethod(failing_participant)
    )

    response = await SeriesDbService(db_session).create_series_with_admin(
        _series_payload(), user["id"]
    )

    assert not response.ok
    assert response.error.code == ErrorCodes.DB_RPC_ERROR
    series_count = (await db_session.execute(select(func.count()).select_from(Series))).scalar_one()
    participant_count = (
        await db_session.execute(select(func.count()).select_from(SeriesParticipant))
    ).scalar_one()
    assert series_count == 0
    assert participant_count == 0


@pytest.mark.asyncio
async def test_create_series_rejects_end_before_start(db_session, user_factory):
    user = await user_factory()
    start = datetime(2026, 4, 1, tzinfo=pytz.UTC)

    response = await SeriesDbService(db_session).create_series_with_admin(
        _series_payload(start_date=start, end_date=start - timedelta(days=1)), user["id"]
    )

    assert not response.ok
    assert response.error.code == ErrorCodes.VALIDATION_ERROR


@pytest.mark.asyncio
async def test_update_series_checks_dates_against_stored_values(db_session, user_factory):
    user = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), user["id"])).data

    response = await service.update_series(
        series["id"], {"end_date": datetime(2026, 3, 1, tzinfo=pytz.UTC)}
    )
    assert response.error.code == ErrorCodes.VALIDATION_ERROR

    response = await service.update_series(series["id"], {"name": "Renamed Series"})
    assert response.ok
    assert response.data["name"] == "Renamed Series"


@pytest.mark.asyncio
async def test_update_series_ignores_protected_columns(db_session, user_factory):
    user = await user_factory()
    other = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), user["id"])).data

    response = await service.update_series(series["id"], {"created_by": other["id"]})

    assert response.ok
    assert response.data["created_by"] == user["id"]


@pytest.mark.asyncio
async def test_get_missing_series_is_not_found(db_session):
    response = await SeriesDbService(db_session).get_series("missing")
    assert response.error.code == ErrorCodes.DB_NOT_FOUND


@pytest.mark.asyncio
async def test_duplicate_participant_is_unique_violation(db_session, user_factory):
    admin = await user_factory()
    invitee = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), admin["id"])).data

    first = await service.add_participant({"series_id": series["id"], "user_id": invitee["id"]})
    second = await service.add_participant({"series_id": series["id"], "user_id": invitee["id"]})

    assert first.ok
    assert first.data["status"] == "invited"
    assert first.data["role"] == "participant"
    assert second.error.code == ErrorCodes.DB_CONSTRAINT_VIOLATION
    assert second.error.unique_violation


@pytest.mark.asyncio
async def test_accept_invitation_confirms_membership(db_session, user_factory):
    admin = await user_factory()
    invitee = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), admin["id"])).data
    invitation = (
        await service.add_participant({"series_id": series["id"], "user_id": invitee["id"]})
    ).data

    response = await service.respond_to_invitation(invitation["id"], invitee["id"], accept=True)

    assert response.ok
    assert response.data["status"] == "confirmed"
    assert response.data["joined_at"] is not None


@pytest.mark.asyncio
async def test_decline_invitation(db_session, user_factory):
    admin = await user_factory()
    invitee = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), admin["id"])).data
    invitation = (
        await service.add_participant({"series_id": series["id"], "user_id": invitee["id"]})
    ).data

    response = await service.respond_to_invitation(invitation["id"], invitee["id"], accept=False)

    assert response.data["status"] == "declined"
    assert response.data["joined_at"] is None


@pytest.mark.asyncio
async def test_second_response_is_invalid_state(db_session, user_factory):
    admin = await user_factory()
    invitee = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), admin["id"])).data
    invitation = (
        await service.add_participant({"series_id": series["id"], "user_id": invitee["id"]})
    ).data
    await service.respond_to_invitation(invitation["id"], invitee["id"], accept=True)

    response = await service.respond_to_invitation(invitation["id"], invitee["id"], accept=False)

    assert response.error.code == ErrorCodes.INVALID_STATE


@pytest.mark.asyncio
async def test_only_invitee_can_respond(db_session, user_factory):
    admin = await user_factory()
    invitee = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), admin["id"])).data
    invitation = (
        await service.add_participant({"series_id": series["id"], "user_id": invitee["id"]})
    ).data

    response = await service.respond_to_invitation(invitation["id"], admin["id"], accept=True)

    assert response.error.code == ErrorCodes.FORBIDDEN


@pytest.mark.asyncio
async def test_get_user_series_role(db_session, user_factory):
    admin = await user_factory()
    stranger = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), admin["id"])).data

    assert (await service.get_user_series_role(series["id"], admin["id"])).data == {
        "role": "admin",
        "status": "confirmed",
    }
    assert (await service.get_user_series_role(series["id"], stranger["id"])).data is None


@pytest.mark.asyncio
async def test_fetch_series_filters_and_paginates(db_session, user_factory):
    user = await user_factory()
    service = SeriesDbService(db_session)
    for i in range(3):
        await service.create_series_with_admin(
            _series_payload(name=f"Draft Series {i}"), user["id"]
        )
    await service.create_series_with_admin(
        _series_payload(name="Live Series", status="active"), user["id"]
    )

    page = await service.fetch_series(
        QueryParams(page=1, limit=2, order_by="name", filters={"status": "draft"})
    )
    assert page.ok
    assert [s["name"] for s in page.data] == ["Draft Series 0", "Draft Series 1"]
    assert page.metadata == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "total_pages": 2,
        "has_more": True,
    }

    searched = await service.fetch_series(QueryParams(search="live"))
    assert [s["name"] for s in searched.data] == ["Live Series"]


@pytest.mark.asyncio
async def test_fetch_series_rejects_unknown_sort_column(db_session):
    response = await SeriesDbService(db_session).fetch_series(QueryParams(order_by="bogus"))
    assert response.error.code == ErrorCodes.VALIDATION_ERROR


@pytest.mark.asyncio
async def test_delete_series_detaches_events(db_session, user_factory):
    user = await user_factory()
    service = SeriesDbService(db_session)
    series = (await service.create_series_with_admin(_series_payload(), user["id"])).data
    event = Event(
        name="Opening Day",
        event_date=datetime(2026, 4, 5, tzinfo=pytz.UTC),
        series_id=series["id"],
        created_by=user["id"],
    )
    db_session.add(event)
    await db_session.flush()
    db_session.add(SeriesEvent(series_id=series["id"], event_id=event.id, event_order=1))
    await db_session.commit()

    response = await service.delete_series(series["id"])

    assert response.ok
    await db_session.refresh(event)
    assert event.series_id is None
    remaining = (await db_session.execute(select(func.count()).select_from(SeriesEvent))).scalar_one()
    assert remaining == 0
    assert (await service.get_series(series["id"])).error.code == ErrorCodes.DB_NOT_FOUND
