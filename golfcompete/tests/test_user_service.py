"""
Tests for account storage and password reset tokens.
"""

from datetime import timedelta

import pytest

from golfcompete.services import user_service
from golfcompete.services.errors import AuthError, DatabaseError, ErrorCodes
from golfcompete.utils.datetime_utils import utcnow


@pytest.mark.asyncio
async def test_create_user_normalizes_email(db_session):
    user = await user_service.create_user(
        db_session, email="  Pat.Golfer@Example.com ", password_hash=None, first_name="Pat"
    )

    assert user["email"] == "pat.golfer@example.com"
    assert user["display_name"] == "Pat"
    assert "password_hash" not in user
    found = await user_service.get_user_by_email(db_session, "PAT.GOLFER@example.com")
    assert found["id"] == user["id"]


@pytest.mark.asyncio
async def test_duplicate_email_rejected(db_session, user_factory):
    await user_factory(email="dup@example.com")

    with pytest.raises(AuthError) as exc_info:
        await user_factory(email="DUP@example.com")

    assert exc_info.value.code == ErrorCodes.AUTH_EMAIL_IN_USE


@pytest.mark.asyncio
async def test_duplicate_username_is_constraint_violation(db_session, user_factory):
    await user_factory(username="birdie")

    with pytest.raises(DatabaseError) as exc_info:
        await user_factory(username="birdie")

    assert exc_info.value.code == ErrorCodes.DB_CONSTRAINT_VIOLATION


@pytest.mark.asyncio
async def test_password_hash_only_on_request(db_session, user_factory):
    user = await user_factory()

    plain = await user_service.get_user_by_email(db_session, user["email"])
    with_hash = await user_service.get_user_by_email(
        db_session, user["email"], include_password_hash=True
    )

    assert "password_hash" not in plain
    assert with_hash["password_hash"].startswith("$2")


@pytest.mark.asyncio
async def test_profile_update_ignores_admin_fields(db_session, user_factory):
    user = await user_factory()

    updated = await user_service.update_user(
        db_session, user["id"], {"first_name": "Sam", "is_admin": True}
    )

    assert updated["first_name"] == "Sam"
    assert updated["is_admin"] is False

    promoted = await user_service.update_user(
        db_session, user["id"], {"is_admin": True}, allow_admin_fields=True
    )
    assert promoted["is_admin"] is True


@pytest.mark.asyncio
async def test_list_users_search(db_session, user_factory):
    await user_factory(email="alice@example.com", first_name="Alice")
    await user_factory(email="bob@example.com", first_name="Bob")

    users, total = await user_service.list_users(db_session, search="ali")

    assert total == 1
    assert users[0]["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_reset_token_is_single_use(db_session, user_factory):
    user = await user_factory()
    await user_service.create_password_reset_token(
        db_session, user["id"], "token-1", utcnow() + timedelta(hours=1)
    )

    assert await user_service.consume_password_reset_token(db_session, "token-1") == user["id"]
    assert await user_service.consume_password_reset_token(db_session, "token-1") is None
    assert await user_service.consume_password_reset_token(db_session, "unknown") is None


@pytest.mark.asyncio
async def test_expired_reset_token_rejected(db_session, user_factory):
    user = await user_factory()
    await user_service.create_password_reset_token(
        db_session, user["id"], "stale", utcnow() - timedelta(minutes=1)
    )

    assert await user_service.consume_password_reset_token(db_session, "stale") is None


@pytest.mark.asyncio
async def test_new_reset_token_invalidates_older_ones(db_session, user_factory):
    user = await user_factory()
    expires = utcnow() + timedelta(hours=1)
    await user_service.create_password_reset_token(db_session, user["id"], "first", expires)
    await user_service.create_password_reset_token(db_session, user["id"], "second", expires)

    assert await user_service.consume_password_reset_token(db_session, "first") is None
    assert await user_service.consume_password_reset_token(db_session, "second") == user["id"]


@pytest.mark.asyncio
async def test_delete_user(db_session, user_factory):
    user = await user_factory()

    assert await user_service.delete_user(db_session, user["id"]) is True
    assert await user_service.get_user_by_id(db_session, user["id"]) is None
    assert await user_service.delete_user(db_session, user["id"]) is False
