"""HTTP tests for the API surface."""

import pytest

from datetime import timedelta

from handy.domain.user.models import UserType
from handy.infrastructure.auth import create_token


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_unregistered_identity(self, client, auth):
        response = client.get("/api/auth/me", headers=auth("stranger"))
        assert response.status_code == 404

    def test_register_then_me(self, client, auth):
        headers = auth("new-volunteer")
        response = client.post("/api/auth/register", json={"type": "volunteer", "name": "Anan"}, headers=headers)
        assert response.status_code == 201
        assert response.json()["user"]["points"] == 0

        me = client.get("/api/auth/me", headers=headers).json()
        assert me["user"]["id"] == "new-volunteer"
        assert me["user"]["email"] == "new-volunteer@handy.test"
        assert isinstance(me["bonusGranted"], bool)

    def test_register_twice(self, client, auth, reporter):
        response = client.post("/api/auth/register", json={"type": "disabled"}, headers=auth(reporter.user_id))
        assert response.status_code == 400

    def test_register_invalid_type(self, client, auth):
        response = client.post("/api/auth/register", json={"type": "admin"}, headers=auth("someone"))
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid user type"

    def test_update_profile(self, client, auth, reporter):
        response = client.put("/api/auth/me", json={"tel": "0822222222"}, headers=auth(reporter.user_id))
        assert response.status_code == 200
        assert response.json()["user"]["tel"] == "0822222222"


class TestReportFlow:
    def test_full_sos_flow(self, client, auth, reporter, volunteer, notifier):
        created = client.post(
            "/api/reports",
            json={"type": "sos", "details": "Fell down", "location": "Siam", "latitude": 13.75, "longitude": 100.5},
            headers=auth(reporter.user_id),
        )
        assert created.status_code == 201
        report = created.json()["report"]
        assert report["status"] == "pending"
        assert report["priority"] == "high"
        assert notifier.new_reports[0]["report_id"] == report["id"]

        available = client.get("/api/reports/available-cases", headers=auth(volunteer.user_id)).json()
        assert [c["id"] for c in available["cases"]] == [report["id"]]

        accepted = client.post(f"/api/reports/{report['id']}/accept", headers=auth(volunteer.user_id))
        assert accepted.status_code == 200
        assert accepted.json()["report"]["assignedVolunteerId"] == volunteer.user_id

        detail = client.get(f"/api/reports/{report['id']}", headers=auth(volunteer.user_id)).json()["report"]
        assert detail["disabledUser"]["name"] == "Malee"

        completed = client.post(f"/api/reports/{report['id']}/complete", headers=auth(reporter.user_id))
        assert completed.status_code == 200
        assert completed.json()["pointsAwarded"] == 500
        assert completed.json()["report"]["status"] == "completed"

        my_cases = client.get("/api/reports/my-cases", headers=auth(volunteer.user_id)).json()["cases"]
        assert my_cases[0]["status"] == "completed"

    def test_second_accept_is_refused(self, client, auth, normal_report, volunteer, other_volunteer):
        assert client.post(f"/api/reports/{normal_report.id}/accept", headers=auth(volunteer.user_id)).status_code == 200
        response = client.post(f"/api/reports/{normal_report.id}/accept", headers=auth(other_volunteer.user_id))
        assert response.status_code == 400
        assert response.json()["error"] == "Report is not available"

    def test_missing_coordinates(self, client, auth, reporter):
        response = client.post("/api/reports", json={"type": "sos", "details": "Help"}, headers=auth(reporter.user_id))
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    @pytest.mark.parametrize("coordinates", [
        {"latitude": True, "longitude": 100.5},
        {"latitude": 13.75, "longitude": False},
        {"latitude": "north", "longitude": 100.5},
        {"latitude": None, "longitude": 100.5},
    ])
    def test_coordinates_must_be_numbers(self, client, auth, reporter, coordinates):
        response = client.post(
            "/api/reports", json={"type": "sos", "details": "Help", **coordinates}, headers=auth(reporter.user_id)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_numeric_string_coordinates_are_parsed(self, client, auth, reporter):
        response = client.post(
            "/api/reports",
            json={"type": "normal", "details": "Help", "latitude": "13.7", "longitude": "100.5"},
            headers=auth(reporter.user_id),
        )
        assert response.status_code == 201
        assert response.json()["report"]["latitude"] == 13.7

    def test_unknown_type(self, client, auth, reporter):
        response = client.post(
            "/api/reports",
            json={"type": "urgent", "details": "Help", "latitude": 1, "longitude": 2},
            headers=auth(reporter.user_id),
        )
        assert response.status_code == 400

    def test_volunteer_cannot_create(self, client, auth, volunteer):
        response = client.post(
            "/api/reports",
            json={"type": "sos", "details": "Help", "latitude": 1, "longitude": 2},
            headers=auth(volunteer.user_id),
        )
        assert response.status_code == 403

    def test_status_patch_cannot_complete(self, client, auth, normal_report, volunteer, reporter):
        client.post(f"/api/reports/{normal_report.id}/accept", headers=auth(volunteer.user_id))
        response = client.patch(
            f"/api/reports/{normal_report.id}/status", json={"status": "completed"}, headers=auth(volunteer.user_id)
        )
        assert response.status_code == 400

    def test_reporter_cancels(self, client, auth, normal_report, reporter):
        response = client.patch(
            f"/api/reports/{normal_report.id}/status", json={"status": "cancelled"}, headers=auth(reporter.user_id)
        )
        assert response.status_code == 200
        assert response.json()["report"]["status"] == "cancelled"

    def test_outsider_cannot_read(self, client, auth, normal_report, volunteer, make_user):
        client.post(f"/api/reports/{normal_report.id}/accept", headers=auth(volunteer.user_id))
        outsider = make_user("outsider", UserType.DISABLED)
        response = client.get(f"/api/reports/{normal_report.id}", headers=auth(outsider.user_id))
        assert response.status_code == 403

    def test_missing_report(self, client, auth, volunteer):
        response = client.post("/api/reports/nope/accept", headers=auth(volunteer.user_id))
        assert response.status_code == 404

    def test_my_reports_status_filter(self, client, auth, reporter, normal_report, sos_report):
        client.patch(f"/api/reports/{sos_report.id}/status", json={"status": "cancelled"}, headers=auth(reporter.user_id))
        response = client.get("/api/reports/my-reports?status=pending", headers=auth(reporter.user_id))
        assert [r["id"] for r in response.json()["reports"]] == [normal_report.id]


class TestRedeemApi:
    def test_redeem_and_overdraw(self, client, auth, volunteer, set_points):
        set_points(volunteer.user_id, 300)
        headers = auth(volunteer.user_id)

        created = client.post(
            "/api/redeem", json={"rewardName": "Coffee", "rewardDescription": "Hot", "pointsRequired": 200},
            headers=headers,
        )
        assert created.status_code == 201
        assert created.json()["redeem"]["status"] == "pending"

        refused = client.post("/api/redeem", json={"rewardName": "Coffee", "pointsRequired": 200}, headers=headers)
        assert refused.status_code == 400
        assert refused.json()["error"] == "Insufficient points"

        redeems = client.get("/api/redeem/my-redeems", headers=headers).json()["redeems"]
        assert len(redeems) == 1
        fetched = client.get(f"/api/redeem/{redeems[0]['id']}", headers=headers)
        assert fetched.json()["redeem"]["pointsRequired"] == 200

    @pytest.mark.parametrize("points", [True, "100", 2.5, 0, None])
    def test_points_must_be_positive_integer(self, client, auth, volunteer, set_points, points_of, points):
        set_points(volunteer.user_id, 300)
        response = client.post(
            "/api/redeem", json={"rewardName": "Coffee", "pointsRequired": points}, headers=auth(volunteer.user_id)
        )
        assert response.status_code == 400
        assert points_of(volunteer.user_id) == 300
        assert client.get("/api/redeem/my-redeems", headers=auth(volunteer.user_id)).json()["redeems"] == []

    def test_disabled_user_forbidden(self, client, auth, reporter):
        response = client.post("/api/redeem", json={"rewardName": "Tea", "pointsRequired": 1}, headers=auth(reporter.user_id))
        assert response.status_code == 403


class TestAdminApi:
    @pytest.fixture
    def redeem_id(self, client, auth, volunteer, set_points):
        set_points(volunteer.user_id, 100)
        response = client.post("/api/redeem", json={"rewardName": "Tea", "pointsRequired": 50},
                               headers=auth(volunteer.user_id))
        return response.json()["redeem"]["id"]

    def test_requires_admin_key(self, client, redeem_id):
        response = client.patch(f"/api/admin/redeem/{redeem_id}/status", json={"status": "approved"})
        assert response.status_code == 403
        response = client.patch(
            f"/api/admin/redeem/{redeem_id}/status", json={"status": "approved"}, headers={"X-Admin-Key": "wrong"}
        )
        assert response.status_code == 403

    def test_approve(self, client, redeem_id, admin_headers):
        response = client.patch(
            f"/api/admin/redeem/{redeem_id}/status", json={"status": "approved"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["redeem"]["status"] == "approved"

    def test_invalid_transition(self, client, redeem_id, admin_headers):
        headers = admin_headers
        client.patch(f"/api/admin/redeem/{redeem_id}/status", json={"status": "rejected"}, headers=headers)
        response = client.patch(f"/api/admin/redeem/{redeem_id}/status", json={"status": "approved"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid transition"


class TestPushTokenApi:
    def test_register_and_remove(self, client, auth, volunteer):
        headers = auth(volunteer.user_id)
        token = "ExponentPushToken[abc123]"
        response = client.post("/api/notifications/token", json={"token": token, "platform": "ios"}, headers=headers)
        assert response.status_code == 200

        removed = client.delete("/api/notifications/token", params={"token": token}, headers=headers)
        assert removed.json()["removed"] is True

    def test_invalid_token(self, client, auth, volunteer):
        response = client.post("/api/notifications/token", json={"token": "nope"}, headers=auth(volunteer.user_id))
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid push token"

    def test_missing_token(self, client, auth, volunteer):
        response = client.post("/api/notifications/token", json={}, headers=auth(volunteer.user_id))
        assert response.status_code == 400
        assert response.json()["error"] == "Token is required"


class TestHealth:
    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_health(self, client, path):
        body = client.get(path).json()
        assert body["status"] == "ok"


def test_token_for_other_audience_is_refused(client, monkeypatch, reporter):
    headers = {"Authorization": f"Bearer {create_token(reporter.user_id)}"}
    monkeypatch.setenv("HANDY_JWT_AUDIENCE", "handy-mobile")
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_expired_token_is_refused(client, reporter):
    expired = create_token(reporter.user_id, ttl=timedelta(seconds=-5))
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"
