"""
Tests for personal notes and their per-user scoping.
"""

import pytest

from golfcompete.services.base_service import QueryParams
from golfcompete.services.errors import ErrorCodes
from golfcompete.services.note_service import NoteDbService


@pytest.mark.asyncio
async def test_notes_are_scoped_to_owner(db_session, user_factory):
    owner = await user_factory()
    other = await user_factory()
    service = NoteDbService(db_session)
    note = (await service.create_note({"content": "Aim left on 7"}, owner["id"])).data
    await service.create_note({"content": "Someone else's note"}, other["id"])

    own = await service.fetch_notes(owner["id"])

    assert [n["id"] for n in own.data] == [note["id"]]
    assert own.metadata["total"] == 1
    assert (await service.get_note(note["id"], other["id"])).error.code == ErrorCodes.DB_NOT_FOUND


@pytest.mark.asyncio
async def test_other_users_cannot_change_or_delete(db_session, user_factory):
    owner = await user_factory()
    other = await user_factory()
    service = NoteDbService(db_session)
    note = (await service.create_note({"content": "Greens are fast"}, owner["id"])).data

    update = await service.update_note(note["id"], other["id"], {"content": "hijacked"})
    delete = await service.delete_note(note["id"], other["id"])

    assert update.error.code == ErrorCodes.DB_NOT_FOUND
    assert delete.error.code == ErrorCodes.DB_NOT_FOUND
    assert (await service.get_note(note["id"], owner["id"])).data["content"] == "Greens are fast"


@pytest.mark.asyncio
async def test_update_note_keeps_owner(db_session, user_factory):
    owner = await user_factory()
    other = await user_factory()
    service = NoteDbService(db_session)
    note = (await service.create_note({"content": "draft"}, owner["id"])).data

    response = await service.update_note(
        note["id"], owner["id"], {"content": "final", "user_id": other["id"]}
    )

    assert response.data["content"] == "final"
    assert response.data["user_id"] == owner["id"]


@pytest.mark.asyncio
async def test_fetch_notes_filters_by_related_resource(db_session, user_factory):
    owner = await user_factory()
    service = NoteDbService(db_session)
    await service.create_note(
        {"content": "Windy", "related_resource_id": "r1", "related_resource_type": "round"},
        owner["id"],
    )
    await service.create_note({"content": "Unrelated"}, owner["id"])

    response = await service.fetch_notes(
        owner["id"],
        QueryParams(filters={"related_resource_type": "round", "related_resource_id": "r1"}),
    )

    assert [n["content"] for n in response.data] == ["Windy"]


@pytest.mark.asyncio
async def test_delete_note(db_session, user_factory):
    owner = await user_factory()
    service = NoteDbService(db_session)
    note = (await service.create_note({"content": "temp"}, owner["id"])).data

    assert (await service.delete_note(note["id"], owner["id"])).ok
    assert (await service.get_note(note["id"], owner["id"])).error.code == ErrorCodes.DB_NOT_FOUND
