"""
Unit tests for the HTTP layer: envelopes, status mapping and guards.

Services are monkeypatched, so no database work happens here.
"""

from fastapi.testclient import TestClient

from golfcompete.api.main import app
from golfcompete.services import auth_service, user_service
from golfcompete.services.base_service import PaginatedResponse, ServiceResponse
from golfcompete.services.course_service import CourseDbService
from golfcompete.services.errors import DatabaseError, ErrorCodes, not_found
from golfcompete.services.series_service import SeriesDbService

SERIES = {
    "id": "series-1",
    "name": "Spring Series",
    "status": "draft",
    "created_by": "user-1",
}

SERIES_BODY = {
    "name": "Spring Series",
    "start_date": "2026-04-01T00:00:00Z",
    "end_date": "2026-05-01T00:00:00Z",
}


def make_client_with_auth(monkeypatch, user_id="user-1", is_admin=False):
    """Helper to create authenticated test client."""

    def fake_verify_token(token):
        return {"user_id": user_id, "email": "test@example.com"}

    async def fake_get_user_by_id(session, uid):
        return {
            "id": user_id,
            "email": "test@example.com",
            "first_name": "Test",
            "last_name": "Golfer",
            "is_admin": is_admin,
            "is_active": True,
        }

    monkeypatch.setattr(auth_service, "verify_token", fake_verify_token, raising=True)
    monkeypatch.setattr(user_service, "get_user_by_id", fake_get_user_by_id, raising=True)

    return TestClient(app), {"Authorization": "Bearer dummy"}


def test_health_check():
    client = TestClient(app)
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["data"]["status"] == "ok"
    assert "timestamp" in body


def test_missing_token_is_unauthorized():
    client = TestClient(app)
    response = client.post("/api/series", json=SERIES_BODY)
    assert response.status_code == 401
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == ErrorCodes.UNAUTHORIZED
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_is_unauthorized(monkeypatch):
    monkeypatch.setattr(auth_service, "verify_token", lambda token: None)
    client = TestClient(app)
    response = client.get("/api/user/profile", headers={"Authorization": "Bearer expired"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authentication token"


def test_validation_error_envelope(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    response = client.post("/api/series", json={**SERIES_BODY, "name": "ab"}, headers=headers)
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == ErrorCodes.VALIDATION_ERROR
    assert any(err["loc"][-1] == "name" for err in body["details"])


def test_series_end_before_start_rejected(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    response = client.post(
        "/api/series",
        json={**SERIES_BODY, "start_date": "2026-05-01T00:00:00Z", "end_date": "2026-04-01"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == ErrorCodes.VALIDATION_ERROR


def test_create_series_uses_caller_as_admin(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id="user-7")
    captured = {}

    async def fake_create(self, data, user_id):
        captured["data"] = data
        captured["user_id"] = user_id
        return ServiceResponse.success({**SERIES, "created_by": user_id})

    monkeypatch.setattr(SeriesDbService, "create_series_with_admin", fake_create)

    response = client.post("/api/series", json=SERIES_BODY, headers=headers)

    assert response.status_code == 201
    assert response.json()["data"]["created_by"] == "user-7"
    assert captured["user_id"] == "user-7"
    assert captured["data"]["status"] == "draft"


def test_list_series_passes_paging_and_filters(monkeypatch):
    captured = {}

    async def fake_fetch(self, params):
        captured["params"] = params
        return PaginatedResponse(
            data=[SERIES],
            metadata={"page": 2, "limit": 5, "total": 6, "total_pages": 2, "has_more": False},
        )

    monkeypatch.setattr(SeriesDbService, "fetch_series", fake_fetch)
    client = TestClient(app)

    response = client.get(
        "/api/series", params={"page": 2, "limit": 5, "status": "active", "sortBy": "name"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["total"] == 6
    params = captured["params"]
    assert (params.page, params.limit, params.order_by) == (2, 5, "name")
    assert params.filters["status"] == "active"


def test_list_series_limit_is_capped():
    client = TestClient(app)
    response = client.get("/api/series", params={"limit": 500})
    assert response.status_code == 400


def test_service_not_found_maps_to_404(monkeypatch):
    async def fake_get(self, series_id):
        return ServiceResponse.failure(not_found("Series"))

    monkeypatch.setattr(SeriesDbService, "get_series", fake_get)
    client = TestClient(app)

    response = client.get("/api/series/missing")

    assert response.status_code == 404
    assert response.json()["code"] == ErrorCodes.DB_NOT_FOUND
    assert response.json()["message"] == "Series not found"


def test_unique_violation_maps_to_409(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)

    async def fake_get(self, series_id):
        return ServiceResponse.success(SERIES)

    async def fake_add(self, data):
        return ServiceResponse.failure(
            DatabaseError(
                "Failed to add participant: record already exists",
                ErrorCodes.DB_CONSTRAINT_VIOLATION,
                unique_violation=True,
            )
        )

    monkeypatch.setattr(SeriesDbService, "get_series", fake_get)
    monkeypatch.setattr(SeriesDbService, "add_participant", fake_add)

    response = client.post(
        "/api/series/series-1/participants", json={"user_id": "user-2"}, headers=headers
    )

    assert response.status_code == 409
    assert response.json()["code"] == ErrorCodes.DB_CONSTRAINT_VIOLATION


def test_non_manager_cannot_update_series(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id="user-9")

    async def fake_get(self, series_id):
        return ServiceResponse.success(SERIES)

    async def fake_role(self, series_id, user_id):
        return ServiceResponse.success({"role": "participant", "status": "confirmed"})

    monkeypatch.setattr(SeriesDbService, "get_series", fake_get)
    monkeypatch.setattr(SeriesDbService, "get_user_series_role", fake_role)

    response = client.put("/api/series/series-1", json={"name": "Taken over"}, headers=headers)

    assert response.status_code == 403
    assert response.json()["code"] == ErrorCodes.FORBIDDEN


def test_course_mutation_requires_site_admin(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, is_admin=False)
    response = client.post("/api/courses", json={"name": "Links"}, headers=headers)
    assert response.status_code == 403


def test_admin_creates_course_with_children(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id="admin-1", is_admin=True)
    captured = {}

    async def fake_create(self, data, user_id=None, tees=None, holes=None):
        captured.update(data=data, user_id=user_id, tees=tees, holes=holes)
        return ServiceResponse.success({"id": "course-1", **data, "tees": tees, "holes": holes})

    monkeypatch.setattr(CourseDbService, "create_course", fake_create)

    response = client.post(
        "/api/courses",
        json={
            "name": "Links",
            "tees": [{"name": "Blue", "men_rating": 71.2, "men_slope": 125}],
            "holes": [{"hole_number": 1, "par": 4, "handicap_index": 7}],
        },
        headers=headers,
    )

    assert response.status_code == 201
    assert captured["user_id"] == "admin-1"
    assert "tees" not in captured["data"]
    assert captured["tees"][0]["name"] == "Blue"
    assert captured["holes"][0]["par"] == 4


def test_duplicate_hole_numbers_rejected(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, is_admin=True)
    response = client.post(
        "/api/courses",
        json={
            "name": "Links",
            "holes": [
                {"hole_number": 1, "par": 4, "handicap_index": 1},
                {"hole_number": 1, "par": 3, "handicap_index": 2},
            ],
        },
        headers=headers,
    )
    assert response.status_code == 400


def test_login_with_unknown_email(monkeypatch):
    async def fake_get_user_by_email(session, email, include_password_hash=False):
        return None

    monkeypatch.setattr(user_service, "get_user_by_email", fake_get_user_by_email)
    client = TestClient(app)

    response = client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": "whatever"}
    )

    assert response.status_code == 401
    assert response.json()["code"] == ErrorCodes.AUTH_INVALID_CREDENTIALS


def test_reset_password_does_not_reveal_accounts(monkeypatch):
    async def fake_get_user_by_email(session, email, include_password_hash=False):
        return None

    monkeypatch.setattr(user_service, "get_user_by_email", fake_get_user_by_email)
    client = TestClient(app)

    response = client.post("/api/auth/reset-password", json={"email": "nobody@example.com"})

    assert response.status_code == 200
    assert "If an account exists" in response.json()["data"]["message"]


def test_oauth_url_rejects_unknown_provider():
    client = TestClient(app)
    response = client.get("/api/auth/generate-oauth-url", params={"provider": "myspace"})
    assert response.status_code == 400


def test_oauth_url_for_supported_provider(monkeypatch):
    monkeypatch.setenv("IDENTITY_BACKEND_URL", "https://id.example.com/")
    client = TestClient(app)

    response = client.get(
        "/api/auth/generate-oauth-url",
        params={"provider": "google", "redirect_to": "https://app.example.com/auth/callback"},
    )

    assert response.status_code == 200
    url = response.json()["data"]["url"]
    assert url.startswith("https://id.example.com/auth/v1/authorize?")
    assert "provider=google" in url


def test_oauth_callback_without_code_redirects_to_error():
    client = TestClient(app)
    response = client.get("/api/auth/callback", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"].endswith("/auth/auth-code-error")


def test_unhandled_error_envelope(monkeypatch):
    async def broken(self, series_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(SeriesDbService, "get_series", broken)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/series/series-1")

    assert response.status_code == 500
    assert response.json()["code"] == ErrorCodes.INTERNAL_SERVER_ERROR
