"""
Tests for public site content, health checks and portal sign-in.

Supabase Auth is replaced with a small fake exposing
``sign_in_with_password``, ``sign_up`` and ``sign_out``.

Usage:
    cd backend && pytest tests/test_site_and_auth.py -v
"""

from types import SimpleNamespace

import pytest

from conftest import generate_uuid


class FakeAuth:
    def __init__(self, users=None, confirm_on_signup=False):
        self.users = users or {}
        self.confirm_on_signup = confirm_on_signup
        self.signed_out = False

    def _auth_response(self, user_id, email, with_session=True):
        session = None
        if with_session:
            session = SimpleNamespace(access_token="access-" + user_id, refresh_token="refresh", expires_in=3600)
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email), session=session)

    def sign_in_with_password(self, credentials):
        user = self.users.get(credentials["email"])
        if not user or user["password"] != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        return self._auth_response(user["id"], credentials["email"])

    def sign_up(self, credentials):
        if credentials["email"] in self.users:
            raise RuntimeError("User already registered")
        user_id = generate_uuid()
        self.users[credentials["email"]] = {"id": user_id, "password": credentials["password"]}
        return self._auth_response(user_id, credentials["email"], with_session=self.confirm_on_signup)

    def sign_out(self):
        self.signed_out = True


@pytest.fixture
def fake_auth(app):
    from angels.deps import get_auth_client

    auth = FakeAuth()
    app.dependency_overrides[get_auth_client] = lambda: SimpleNamespace(auth=auth)
    return auth


def _register(fake_auth, fake_db, email, role=None):
    user_id = generate_uuid()
    fake_auth.users[email] = {"id": user_id, "password": "correct-horse"}
    if role:
        fake_db.tables.setdefault("user_profiles", []).append({"id": user_id, "role": role})
    return user_id


# ============================================================================
# SITE CONTENT
# ============================================================================

class TestSiteContent:

    def test_health(self, api):
        assert api.get("/").json()["status"] == "ok"
        body = api.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert "site_content" in body["capabilities"]
        assert body["services"]["realtime"] == "in_process"

    def test_navigation_and_footer(self, api):
        nav = api.get("/api/v1/site/navigation").json()
        assert nav["organization"] == "Kelly's Angels Inc."
        assert nav["call_to_action"]["label"] == "Apply Now"
        assert api.get("/api/v1/site/footer").status_code == 200

    def test_every_listed_page_resolves(self, api):
        pages = api.get("/api/v1/site/pages").json()["pages"]
        slugs = {p["slug"] for p in pages}
        assert {"home", "programs", "donate", "volunteer"} <= slugs
        for slug in slugs:
            page = api.get(f"/api/v1/site/pages/{slug}").json()
            assert page["slug"] == slug
            assert page["title"]

    def test_unknown_page(self, api):
        response = api.get("/api/v1/site/pages/careers")
        assert response.status_code == 404
        assert response.json()["detail"] == "Page not found"

    def test_security_headers(self, api):
        response = api.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"


# ============================================================================
# AUTH
# ============================================================================

class TestStaffLogin:

    def test_staff_gets_session(self, api, fake_db, fake_auth):
        user_id = _register(fake_auth, fake_db, "staff@kellysangels.org", role="admin")
        response = api.post(
            "/api/v1/auth/staff/login",
            json={"email": "Staff@KellysAngels.org ", "password": "correct-horse"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == user_id
        assert body["role"] == "admin"
        assert body["portal"] == "staff"
        assert body["access_token"] == "access-" + user_id

    def test_non_staff_account_forbidden_and_signed_out(self, api, fake_db, fake_auth):
        _register(fake_auth, fake_db, "vol@example.com", role=None)
        response = api.post(
            "/api/v1/auth/staff/login",
            json={"email": "vol@example.com", "password": "correct-horse"},
        )
        assert response.status_code == 403
        assert fake_auth.signed_out is True

    def test_wrong_password(self, api, fake_db, fake_auth):
        _register(fake_auth, fake_db, "staff@kellysangels.org", role="staff")
        response = api.post(
            "/api/v1/auth/staff/login",
            json={"email": "staff@kellysangels.org", "password": "nope"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_malformed_email(self, api, fake_auth):
        response = api.post("/api/v1/auth/staff/login", json={"email": "staff", "password": "x"})
        assert response.status_code == 422


class TestVolunteerAccounts:

    def test_signup_creates_profile(self, api, fake_db, fake_auth):
        response = api.post(
            "/api/v1/auth/volunteer/signup",
            json={
                "email": "new@example.com",
                "password": "longenough",
                "full_name": "New Volunteer",
                "interests": ["events"],
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert body["access_token"] is None
        assert "Check your email" in body["message"]

        profile = fake_db.tables["volunteer_profiles"][0]
        assert profile["user_id"] == body["user_id"]
        assert profile["hours_completed"] == 0
        assert profile["interests"] == ["events"]

    def test_signup_duplicate_email(self, api, fake_db, fake_auth):
        _register(fake_auth, fake_db, "taken@example.com")
        response = api.post(
            "/api/v1/auth/volunteer/signup",
            json={"email": "taken@example.com", "password": "longenough", "full_name": "Dup User"},
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail.startswith("Could not create account.")
        assert "User already registered" not in detail
        assert "volunteer_profiles" not in fake_db.tables

    def test_signup_short_password(self, api, fake_auth):
        response = api.post(
            "/api/v1/auth/volunteer/signup",
            json={"email": "a@example.com", "password": "short", "full_name": "Al Short"},
        )
        assert response.status_code == 422

    def test_volunteer_login(self, api, fake_db, fake_auth):
        _register(fake_auth, fake_db, "vol@example.com")
        response = api.post(
            "/api/v1/auth/volunteer/login",
            json={"email": "vol@example.com", "password": "correct-horse"},
        )
        assert response.status_code == 200
        assert response.json()["portal"] == "volunteer"

    def test_session_reports_portals(self, api, volunteer_profile, fake_db):
        user_id = volunteer_profile["user_id"]
        fake_db.tables.setdefault("user_profiles", []).append({"id": user_id, "role": "staff"})
        body = api.get("/api/v1/auth/session").json()
        assert body["user_id"] == user_id
        assert body["role"] == "staff"
        assert body["is_volunteer"] is True
