"""
End-to-end API tests against the test database.

Requests go through the real dependencies (JWT auth, sessions, services);
only get_db_session is rebound to the test engine.
"""

import pytest

SERIES_BODY = {
    "name": "Summer Match Play",
    "start_date": "2026-06-01T00:00:00Z",
    "end_date": "2026-08-31T00:00:00Z",
}


async def _create_series(client, headers):
    response = await client.post("/api/series", json=SERIES_BODY, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.asyncio
async def test_register_login_and_session(api_client):
    register = await api_client.post(
        "/api/auth/register",
        json={"email": "New.Golfer@Example.com", "password": "longenough", "first_name": "New"},
    )
    assert register.status_code == 201
    assert register.json()["data"]["token_type"] == "bearer"

    login = await api_client.post(
        "/api/auth/login", json={"email": "new.golfer@example.com", "password": "longenough"}
    )
    assert login.status_code == 200
    token = login.json()["data"]["access_token"]

    headers = {"Authorization": f"Bearer {token}"}
    session = await api_client.get("/api/auth/session", headers=headers)
    assert session.status_code == 200
    assert session.json()["data"]["email"] == "new.golfer@example.com"
    assert "password_hash" not in session.json()["data"]


@pytest.mark.asyncio
async def test_register_duplicate_and_weak_password(api_client, user_factory):
    await user_factory(email="taken@example.com")

    duplicate = await api_client.post(
        "/api/auth/register", json={"email": "taken@example.com", "password": "longenough"}
    )
    weak = await api_client.post(
        "/api/auth/register", json={"email": "fresh@example.com", "password": "123"}
    )

    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "AUTH_EMAIL_IN_USE"
    assert weak.status_code == 400
    assert weak.json()["code"] == "AUTH_WEAK_PASSWORD"


@pytest.mark.asyncio
async def test_login_wrong_password_matches_unknown_email(api_client, user_factory):
    await user_factory(email="member@example.com", password="correct-horse")

    wrong = await api_client.post(
        "/api/auth/login", json={"email": "member@example.com", "password": "battery-staple"}
    )
    unknown = await api_client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "battery-staple"}
    )

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["message"] == unknown.json()["message"]


@pytest.mark.asyncio
async def test_reset_password_same_response_for_any_email(api_client, user_factory):
    await user_factory(email="member@example.com")

    known = await api_client.post("/api/auth/reset-password", json={"email": "member@example.com"})
    unknown = await api_client.post("/api/auth/reset-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["data"] == unknown.json()["data"]


@pytest.mark.asyncio
async def test_reset_confirm_rejects_unknown_token(api_client):
    response = await api_client.post(
        "/api/auth/reset-password/confirm", json={"token": "nope", "password": "brand-new-pass"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_series_enrols_exactly_one_admin(api_client, user_factory, auth_headers):
    user = await user_factory()

    series = await _create_series(api_client, auth_headers(user))

    assert series["created_by"] == user["id"]
    detail = await api_client.get(
        f"/api/series/{series['id']}", params={"include_participants": "true"}
    )
    participants = detail.json()["data"]["participants"]
    assert len(participants) == 1
    assert participants[0]["user_id"] == user["id"]
    assert participants[0]["role"] == "admin"
    assert participants[0]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_series_access_reports_membership(api_client, user_factory, auth_headers):
    owner = await user_factory()
    stranger = await user_factory()
    series = await _create_series(api_client, auth_headers(owner))

    mine = await api_client.get(f"/api/series/{series['id']}/access", headers=auth_headers(owner))
    theirs = await api_client.get(
        f"/api/series/{series['id']}/access", headers=auth_headers(stranger)
    )

    assert mine.json()["data"]["can_manage"] is True
    assert theirs.json()["data"]["can_manage"] is False


@pytest.mark.asyncio
async def test_only_event_managers_can_update(api_client, user_factory, auth_headers):
    creator = await user_factory()
    outsider = await user_factory()
    created = await api_client.post(
        "/api/events",
        json={"name": "Twilight Nine", "event_date": "2026-06-12T18:00:00Z"},
        headers=auth_headers(creator),
    )
    assert created.status_code == 201
    event_id = created.json()["data"]["id"]

    denied = await api_client.put(
        f"/api/events/{event_id}", json={"name": "Hijacked"}, headers=auth_headers(outsider)
    )
    allowed = await api_client.put(
        f"/api/events/{event_id}", json={"name": "Twilight Nine II"}, headers=auth_headers(creator)
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["data"]["name"] == "Twilight Nine II"


@pytest.mark.asyncio
async def test_series_event_requires_series_manager(api_client, user_factory, auth_headers):
    owner = await user_factory()
    outsider = await user_factory()
    series = await _create_series(api_client, auth_headers(owner))
    body = {"name": "Round One", "event_date": "2026-06-07T08:00:00Z", "series_id": series["id"]}

    denied = await api_client.post("/api/events", json=body, headers=auth_headers(outsider))
    created = await api_client.post("/api/events", json=body, headers=auth_headers(owner))

    assert denied.status_code == 403
    assert created.status_code == 201
    assert created.json()["data"]["event_order"] == 1
    assert created.json()["data"]["invited_count"] == 1


@pytest.mark.asyncio
async def test_course_admin_flow_and_round_privacy(api_client, user_factory, auth_headers):
    admin = await user_factory(is_admin=True)
    golfer = await user_factory()
    other = await user_factory()

    denied = await api_client.post(
        "/api/courses", json={"name": "Sand Hills"}, headers=auth_headers(golfer)
    )
    assert denied.status_code == 403

    course = await api_client.post(
        "/api/courses",
        json={
            "name": "Sand Hills",
            "tees": [{"name": "Tips", "men_rating": 72.0, "men_slope": 113}],
            "holes": [{"hole_number": 1, "par": 4, "handicap_index": 5}],
        },
        headers=auth_headers(admin),
    )
    assert course.status_code == 201
    course_data = course.json()["data"]

    round_response = await api_client.post(
        "/api/rounds",
        json={"course_id": course_data["id"], "course_tee_id": course_data["tees"][0]["id"]},
        headers=auth_headers(golfer),
    )
    assert round_response.status_code == 201
    round_id = round_response.json()["data"]["id"]

    score = await api_client.post(
        f"/api/rounds/{round_id}/scores",
        json={"hole_number": 1, "strokes": 5},
        headers=auth_headers(golfer),
    )
    assert score.status_code == 201

    hidden = await api_client.get(f"/api/rounds/{round_id}", headers=auth_headers(other))
    assert hidden.status_code == 404

    own = await api_client.get(f"/api/rounds/{round_id}", headers=auth_headers(golfer))
    assert own.status_code == 200
    assert own.json()["data"]["total_score"] == 5


@pytest.mark.asyncio
async def test_notes_are_private(api_client, user_factory, auth_headers):
    owner = await user_factory()
    other = await user_factory()
    created = await api_client.post(
        "/api/notes", json={"content": "Lay up on 18"}, headers=auth_headers(owner)
    )
    note_id = created.json()["data"]["id"]

    hidden = await api_client.get(f"/api/notes/{note_id}", headers=auth_headers(other))
    assert hidden.status_code == 404
    listed = await api_client.get("/api/notes", headers=auth_headers(other))
    assert listed.json()["data"] == []


@pytest.mark.asyncio
async def test_round_with_another_users_bag_is_rejected(api_client, user_factory, auth_headers):
    admin = await user_factory(is_admin=True)
    owner = await user_factory()
    intruder = await user_factory()
    bag = await api_client.post(
        "/api/bags", json={"name": "Owner's blades"}, headers=auth_headers(owner)
    )
    bag_id = bag.json()["data"]["id"]
    course = await api_client.post(
        "/api/courses",
        json={
            "name": "Sand Hills",
            "tees": [{"name": "Tips", "men_rating": 72.0, "men_slope": 113}],
        },
        headers=auth_headers(admin),
    )
    course_data = course.json()["data"]
    body = {
        "course_id": course_data["id"],
        "course_tee_id": course_data["tees"][0]["id"],
        "bag_id": bag_id,
    }

    denied = await api_client.post("/api/rounds", json=body, headers=auth_headers(intruder))
    assert denied.status_code == 404

    own = await api_client.post(
        "/api/rounds", json={**body, "bag_id": None}, headers=auth_headers(intruder)
    )
    round_id = own.json()["data"]["id"]
    moved = await api_client.put(
        f"/api/rounds/{round_id}", json={"bag_id": bag_id}, headers=auth_headers(intruder)
    )
    assert moved.status_code == 404

    bags = await api_client.get("/api/bags", headers=auth_headers(owner))
    assert bags.json()["data"][0]["handicap_index"] is None
