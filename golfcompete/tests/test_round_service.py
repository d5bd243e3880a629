"""
Tests for rounds and scores: total score maintenance, default bags and
round completion.
"""

from datetime import datetime

import pytest
import pytz

from golfcompete.services.bag_service import BagDbService
from golfcompete.services.course_service import CourseDbService
from golfcompete.services.errors import ErrorCodes
from golfcompete.services.round_service import RoundDbService


async def _course_with_tee(session, user_id, rating=72.0, slope=113):
    response = await CourseDbService(session).create_course(
        {"name": "Pine Valley Muni", "city": "Springfield"},
        user_id,
        tees=[{"name": "Blue", "men_rating": rating, "men_slope": slope}],
    )
    course = response.data
    return course, course["tees"][0]


async def _start_round(session, user, **extra):
    course, tee = await _course_with_tee(session, user["id"])
    data = {"course_id": course["id"], "course_tee_id": tee["id"], **extra}
    return (await RoundDbService(session).create_round(data, user["id"])).data


@pytest.mark.asyncio
async def test_create_round_defaults(db_session, user_factory):
    user = await user_factory()

    round_data = await _start_round(db_session, user)

    assert round_data["user_id"] == user["id"]
    assert round_data["status"] == "in_progress"
    assert round_data["round_date"] is not None
    assert round_data["total_score"] is None
    assert round_data["bag_id"] is None


@pytest.mark.asyncio
async def test_create_round_uses_default_bag(db_session, user_factory):
    user = await user_factory()
    bags = BagDbService(db_session)
    await bags.create_bag({"name": "Travel bag", "is_default": False}, user["id"])
    default_bag = (await bags.create_bag({"name": "Gamer", "is_default": True}, user["id"])).data

    round_data = await _start_round(db_session, user)

    assert round_data["bag_id"] == default_bag["id"]


@pytest.mark.asyncio
async def test_new_default_bag_replaces_previous(db_session, user_factory):
    user = await user_factory()
    bags = BagDbService(db_session)
    first = (await bags.create_bag({"name": "Old", "is_default": True}, user["id"])).data
    second = (await bags.create_bag({"name": "New", "is_default": True}, user["id"])).data

    default_bag = (await bags.get_default_bag(user["id"])).data
    listed = {b["id"]: b["is_default"] for b in (await bags.fetch_user_bags(user["id"])).data}

    assert default_bag["id"] == second["id"]
    assert listed == {first["id"]: False, second["id"]: True}


@pytest.mark.asyncio
async def test_total_score_tracks_every_score_change(db_session, user_factory):
    user = await user_factory()
    round_data = await _start_round(db_session, user)
    service = RoundDbService(db_session)

    first = (await service.add_score(round_data["id"], {"hole_number": 1, "strokes": 4})).data
    await service.add_score(round_data["id"], {"hole_number": 2, "strokes": 5})
    await service.add_score(round_data["id"], {"hole_number": 3, "strokes": 3})
    assert (await service.get_round(round_data["id"])).data["total_score"] == 12

    await service.update_score(round_data["id"], first["id"], {"strokes": 6})
    assert (await service.get_round(round_data["id"])).data["total_score"] == 14

    await service.remove_score(round_data["id"], first["id"])
    assert (await service.get_round(round_data["id"])).data["total_score"] == 8


@pytest.mark.asyncio
async def test_removing_last_score_clears_total(db_session, user_factory):
    user = await user_factory()
    round_data = await _start_round(db_session, user)
    service = RoundDbService(db_session)
    score = (await service.add_score(round_data["id"], {"hole_number": 1, "strokes": 4})).data

    await service.remove_score(round_data["id"], score["id"])

    assert (await service.get_round(round_data["id"])).data["total_score"] is None


@pytest.mark.asyncio
async def test_duplicate_hole_score_is_conflict(db_session, user_factory):
    user = await user_factory()
    round_data = await _start_round(db_session, user)
    service = RoundDbService(db_session)
    await service.add_score(round_data["id"], {"hole_number": 7, "strokes": 4})

    response = await service.add_score(round_data["id"], {"hole_number": 7, "strokes": 5})

    assert response.error.code == ErrorCodes.DB_CONSTRAINT_VIOLATION
    assert response.error.unique_violation
    assert (await service.get_round(round_data["id"])).data["total_score"] == 4


@pytest.mark.asyncio
async def test_score_from_another_round_is_not_found(db_session, user_factory):
    user = await user_factory()
    service = RoundDbService(db_session)
    round_a = await _start_round(db_session, user)
    round_b = await _start_round(db_session, user)
    score = (await service.add_score(round_a["id"], {"hole_number": 1, "strokes": 4})).data

    response = await service.update_score(round_b["id"], score["id"], {"strokes": 3})

    assert response.error.code == ErrorCodes.DB_NOT_FOUND


@pytest.mark.asyncio
async def test_round_with_scores_sorted_by_hole(db_session, user_factory):
    user = await user_factory()
    round_data = await _start_round(db_session, user)
    service = RoundDbService(db_session)
    for hole in (3, 1, 2):
        await service.add_score(round_data["id"], {"hole_number": hole, "strokes": 4})

    data = (await service.get_round_with_scores(round_data["id"])).data

    assert [s["hole_number"] for s in data["scores"]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_complete_round_updates_bag_handicap(db_session, user_factory):
    user = await user_factory()
    bag = (
        await BagDbService(db_session).create_bag({"name": "Gamer", "is_default": True}, user["id"])
    ).data
    course, tee = await _course_with_tee(db_session, user["id"], rating=72.0, slope=113)
    service = RoundDbService(db_session)

    result = None
    for day, score in ((1, 90), (2, 85), (3, 88)):
        created = (
            await service.create_round(
                {
                    "course_id": course["id"],
                    "course_tee_id": tee["id"],
                    "round_date": datetime(2026, 6, day, tzinfo=pytz.UTC),
                },
                user["id"],
            )
        ).data
        result = (await service.complete_round(created["id"], score)).data

    assert result["round"]["status"] == "completed"
    assert result["round"]["total_score"] == 88
    # Three rounds: lowest differential (13.0) counts
    assert result["handicap"]["total_rounds"] == 3
    assert result["handicap"]["handicap_index"] == 12.5
    stored = (await BagDbService(db_session).get_bag(bag["id"])).data
    assert stored["handicap_index"] == 12.5


@pytest.mark.asyncio
async def test_complete_round_survives_handicap_failure(db_session, user_factory, monkeypatch):
    from golfcompete.services.handicap_service import HandicapService

    user = await user_factory()
    round_data = await _start_round(db_session, user)

    async def broken(self, user_id, bag_id=None):
        raise RuntimeError("handicap store unavailable")

    monkeypatch.setattr(HandicapService, "calculate_and_update_handicap", broken)

    response = await RoundDbService(db_session).complete_round(round_data["id"], 92)

    assert response.ok
    assert response.data["round"]["total_score"] == 92
    assert response.data["handicap"] is None


@pytest.mark.asyncio
async def test_recalculate_total_score_repairs_drift(db_session, user_factory):
    user = await user_factory()
    round_data = await _start_round(db_session, user)
    service = RoundDbService(db_session)
    await service.add_score(round_data["id"], {"hole_number": 1, "strokes": 4})
    await service.add_score(round_data["id"], {"hole_number": 2, "strokes": 6})
    await service.update_round(round_data["id"], {"total_score": 99})

    response = await service.recalculate_total_score(round_data["id"])

    assert response.data == {"round_id": round_data["id"], "total_score": 10}
    assert (await service.get_round(round_data["id"])).data["total_score"] == 10


@pytest.mark.asyncio
async def test_round_rejects_another_users_bag(db_session, user_factory):
    owner = await user_factory()
    intruder = await user_factory()
    bags = BagDbService(db_session)
    bag = (await bags.create_bag({"name": "Owner's blades"}, owner["id"])).data
    await bags.update_handicap(bag["id"], 12.3)
    course, tee = await _course_with_tee(db_session, intruder["id"])
    service = RoundDbService(db_session)

    created = await service.create_round(
        {"course_id": course["id"], "course_tee_id": tee["id"], "bag_id": bag["id"]},
        intruder["id"],
    )
    assert created.error.code == ErrorCodes.DB_NOT_FOUND
    assert (await service.fetch_rounds()).data == []

    own_round = await _start_round(db_session, intruder)
    updated = await service.update_round(own_round["id"], {"bag_id": bag["id"]})
    assert updated.error.code == ErrorCodes.DB_NOT_FOUND

    await service.complete_round(own_round["id"], 80)
    assert (await bags.get_bag(bag["id"])).data["handicap_index"] == 12.3


@pytest.mark.asyncio
async def test_round_rejects_tee_from_another_course(db_session, user_factory):
    user = await user_factory()
    course, _ = await _course_with_tee(db_session, user["id"])
    _, other_tee = await _course_with_tee(db_session, user["id"], rating=60.0, slope=90)
    service = RoundDbService(db_session)

    created = await service.create_round(
        {"course_id": course["id"], "course_tee_id": other_tee["id"]}, user["id"]
    )
    assert created.error.code == ErrorCodes.VALIDATION_ERROR

    round_data = await _start_round(db_session, user)
    updated = await service.update_round(round_data["id"], {"course_tee_id": other_tee["id"]})
    assert updated.error.code == ErrorCodes.VALIDATION_ERROR


@pytest.mark.asyncio
async def test_round_rejects_unknown_event(db_session, user_factory):
    user = await user_factory()
    course, tee = await _course_with_tee(db_session, user["id"])

    response = await RoundDbService(db_session).create_round(
        {"course_id": course["id"], "course_tee_id": tee["id"], "event_id": "no-such-event"},
        user["id"],
    )

    assert response.error.code == ErrorCodes.DB_NOT_FOUND
    assert response.error.message == "Event not found"
