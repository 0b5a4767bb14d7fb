"""
Tests for the staff review dashboard.

Covers:
- Access control (non-staff callers get 403)
- Vote upsert: one row per (application, voter), status untouched
- Tally and the caller's own vote on the detail view
- Internal notes and board recommendations
- Status transitions
- Dashboard stats

Usage:
    cd backend && pytest tests/test_staff_dashboard.py -v
"""

import pytest

from conftest import generate_uuid, make_mock_application, make_user


@pytest.fixture
def pending_app(fake_db):
    row = make_mock_application(status="pending")
    fake_db.tables.setdefault("applications", []).append(row)
    return row


class TestStaffAccess:

    def test_non_staff_user_forbidden(self, api, login_as, pending_app):
        login_as(role=None)
        response = api.get("/api/v1/staff/applications")
        assert response.status_code == 403
        assert response.json()["detail"] == "Staff access required"

    def test_volunteer_role_forbidden(self, api, login_as, pending_app):
        login_as(role="volunteer")
        assert api.get("/api/v1/staff/applications").status_code == 403

    @pytest.mark.parametrize("role", ["staff", "admin", "owner"])
    def test_staff_roles_allowed(self, api, login_as, pending_app, role):
        login_as(role=role)
        assert api.get("/api/v1/staff/applications").status_code == 200


class TestListing:

    def test_newest_first(self, api, fake_db, login_as):
        fake_db.tables["applications"] = [
            make_mock_application(applicant_name="Older", created_at="2025-01-01T00:00:00+00:00"),
            make_mock_application(applicant_name="Newer", created_at="2025-06-01T00:00:00+00:00"),
        ]
        login_as("staff")
        names = [a["applicant_name"] for a in api.get("/api/v1/staff/applications").json()["applications"]]
        assert names == ["Newer", "Older"]

    def test_status_and_type_filters(self, api, fake_db, login_as):
        fake_db.tables["applications"] = [
            make_mock_application(status="pending", application_type="fun_grant"),
            make_mock_application(status="pending", application_type="angel_aid"),
            make_mock_application(status="denied", application_type="fun_grant"),
        ]
        login_as("staff")

        body = api.get(
            "/api/v1/staff/applications",
            params={"status": "pending", "application_type": "fun_grant"},
        ).json()
        assert body["total"] == 1

        body = api.get("/api/v1/staff/applications", params={"status": "all"}).json()
        assert body["total"] == 3

    def test_stats_count_board_approved_as_approved(self, api, fake_db, login_as):
        fake_db.tables["applications"] = [
            make_mock_application(status="pending"),
            make_mock_application(status="recommended"),
            make_mock_application(status="approved"),
            make_mock_application(status="board_approved"),
        ]
        login_as("staff")
        stats = api.get("/api/v1/staff/applications/stats").json()
        assert stats["total"] == 4
        assert stats["pending"] == 1
        assert stats["recommended"] == 1
        assert stats["approved"] == 2


# ============================================================================
# VOTING
# ============================================================================

class TestVoting:

    def test_revote_replaces_previous_vote(self, api, fake_db, login_as, pending_app):
        user = login_as("staff")
        url = f"/api/v1/staff/applications/{pending_app['id']}/votes"

        assert api.post(url, json={"vote": "approve"}).status_code == 200
        assert api.post(url, json={"vote": "deny", "comment": "Changed my mind"}).status_code == 200

        votes = fake_db.tables["votes"]
        assert len(votes) == 1
        assert votes[0]["voter_id"] == user["id"]
        assert votes[0]["vote"] == "deny"

    def test_vote_does_not_change_status(self, api, fake_db, login_as, pending_app):
        login_as("staff")
        api.post(f"/api/v1/staff/applications/{pending_app['id']}/votes", json={"vote": "approve"})
        assert fake_db.tables["applications"][0]["status"] == "pending"

    def test_vote_accepted_after_decision(self, api, fake_db, login_as):
        decided = make_mock_application(status="approved")
        fake_db.tables["applications"] = [decided]
        login_as("staff")
        response = api.post(
            f"/api/v1/staff/applications/{decided['id']}/votes", json={"vote": "discuss"}
        )
        assert response.status_code == 200
        assert fake_db.tables["applications"][0]["status"] == "approved"

    def test_invalid_vote_choice(self, api, login_as, pending_app):
        login_as("staff")
        response = api.post(
            f"/api/v1/staff/applications/{pending_app['id']}/votes", json={"vote": "maybe"}
        )
        assert response.status_code == 422

    def test_vote_on_missing_application(self, api, login_as):
        login_as("staff")
        response = api.post(f"/api/v1/staff/applications/{generate_uuid()}/votes", json={"vote": "approve"})
        assert response.status_code == 404

    def test_detail_tally_and_my_vote(self, api, fake_db, login_as, pending_app):
        me = login_as("staff")
        fake_db.tables["votes"] = [
            {"id": generate_uuid(), "application_id": pending_app["id"], "voter_id": me["id"], "vote": "approve"},
            {"id": generate_uuid(), "application_id": pending_app["id"], "voter_id": generate_uuid(), "vote": "approve"},
            {"id": generate_uuid(), "application_id": pending_app["id"], "voter_id": generate_uuid(), "vote": "deny"},
            {"id": generate_uuid(), "application_id": generate_uuid(), "voter_id": me["id"], "vote": "deny"},
        ]
        detail = api.get(f"/api/v1/staff/applications/{pending_app['id']}").json()

        assert detail["tally"] == {"approve": 2, "deny": 1, "discuss": 0, "total": 3}
        assert detail["my_vote"]["vote"] == "approve"
        assert detail["application"]["id"] == pending_app["id"]

    def test_detail_without_my_vote(self, api, login_as, pending_app):
        login_as("staff")
        detail = api.get(f"/api/v1/staff/applications/{pending_app['id']}").json()
        assert detail["my_vote"] is None
        assert detail["tally"]["total"] == 0

    def test_detail_missing_application(self, api, login_as):
        login_as("staff")
        assert api.get(f"/api/v1/staff/applications/{generate_uuid()}").status_code == 404


class TestTallyVotes:

    def test_counts_sum_to_total(self):
        from angels.services.application_service import tally_votes

        votes = [{"vote": v} for v in ("approve", "deny", "discuss", "discuss", "approve")]
        tally = tally_votes(votes)
        assert tally["approve"] + tally["deny"] + tally["discuss"] == tally["total"] == 5

    def test_empty(self):
        from angels.services.application_service import tally_votes

        assert tally_votes([]) == {"approve": 0, "deny": 0, "discuss": 0, "total": 0}


# ============================================================================
# NOTES AND RECOMMENDATIONS
# ============================================================================

class TestNotesAndRecommendations:

    def test_note_is_internal(self, api, fake_db, login_as, pending_app):
        user = login_as("staff")
        response = api.post(
            f"/api/v1/staff/applications/{pending_app['id']}/notes",
            json={"note": "Called the family; confirmed details."},
        )
        assert response.status_code == 201
        note = fake_db.tables["application_notes"][0]
        assert note["is_internal"] is True
        assert note["user_id"] == user["id"]

    def test_notes_listed_newest_first(self, api, fake_db, login_as, pending_app):
        login_as("staff")
        fake_db.tables["application_notes"] = [
            {"id": generate_uuid(), "application_id": pending_app["id"], "user_id": "a",
             "note": "first", "is_internal": True, "created_at": "2025-01-01T00:00:00+00:00"},
            {"id": generate_uuid(), "application_id": pending_app["id"], "user_id": "b",
             "note": "second", "is_internal": True, "created_at": "2025-02-01T00:00:00+00:00"},
        ]
        detail = api.get(f"/api/v1/staff/applications/{pending_app['id']}").json()
        assert [n["note"] for n in detail["notes"]] == ["second", "first"]

    def test_recommend_sets_status_and_summary(self, api, fake_db, login_as, pending_app):
        user = login_as("staff")
        response = api.post(
            f"/api/v1/staff/applications/{pending_app['id']}/recommend",
            json={"summary": "Strong case; family is in real need."},
        )
        assert response.status_code == 200
        row = fake_db.tables["applications"][0]
        assert row["status"] == "recommended"
        assert row["recommendation_summary"] == "Strong case; family is in real need."
        assert row["recommended_by"] == user["id"]
        assert row["recommended_at"]

    def test_recommend_requires_summary(self, api, login_as, pending_app):
        login_as("staff")
        response = api.post(
            f"/api/v1/staff/applications/{pending_app['id']}/recommend", json={"summary": "  "}
        )
        assert response.status_code in (400, 422)


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================

class TestStatusTransitions:

    def _patch(self, api, app_id, new_status):
        return api.patch(
            f"/api/v1/staff/applications/{app_id}/status", json={"new_status": new_status}
        )

    def test_allowed_transition(self, api, fake_db, login_as, pending_app):
        login_as("staff")
        response = self._patch(api, pending_app["id"], "under_review")
        assert response.status_code == 200
        assert fake_db.tables["applications"][0]["status"] == "under_review"

    def test_disallowed_transition(self, api, fake_db, login_as, pending_app):
        login_as("staff")
        response = self._patch(api, pending_app["id"], "board_approved")
        assert response.status_code == 400
        assert "Invalid status transition" in response.json()["detail"]
        assert fake_db.tables["applications"][0]["status"] == "pending"

    @pytest.mark.parametrize("terminal", ["approved", "denied", "board_approved"])
    def test_terminal_states_have_no_exit(self, api, fake_db, login_as, terminal):
        row = make_mock_application(status=terminal)
        fake_db.tables["applications"] = [row]
        login_as("staff")
        assert self._patch(api, row["id"], "under_review").status_code == 400

    def test_unknown_status_value(self, api, login_as, pending_app):
        login_as("staff")
        assert self._patch(api, pending_app["id"], "archived").status_code == 422

    def test_status_change_publishes_event(self, api, login_as, pending_app, monkeypatch):
        from angels.routers import staff as staff_router

        published = []
        monkeypatch.setattr(
            staff_router.change_feed,
            "publish",
            lambda action, application_id=None, **kw: published.append(action),
        )
        login_as("staff")
        self._patch(api, pending_app["id"], "under_review")
        assert published == ["status_changed"]


def _as_user(user):
    return lambda: user


def test_other_staff_vote_is_separate_row(api, fake_db, app, pending_app):
    """Two reviewers voting yields two rows."""
    from angels.deps import get_current_user

    for _ in range(2):
        user = make_user()
        fake_db.tables.setdefault("user_profiles", []).append({"id": user["id"], "role": "staff"})
        app.dependency_overrides[get_current_user] = _as_user(user)
        api.post(f"/api/v1/staff/applications/{pending_app['id']}/votes", json={"vote": "approve"})

    assert len(fake_db.tables["votes"]) == 2
