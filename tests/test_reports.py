"""
CrimeWatch - Reports Test Suite

Role-scoped visibility, admin-only mutations, payload validation and
the end-to-end reporter/admin scenarios.
"""

from unittest.mock import patch

import pytest

from crimewatch.app import app
from crimewatch.gateway.rbac import RBACPolicy
from crimewatch.reports.models import Report, ReportStatus
from crimewatch.services.notifications import EmailNotifier
from tests.conftest import login_user, make_report


REPORT_BODY = {"title": "t", "description": "d", "category": "c", "location": "l"}


# =============================================================================
# CREATE
# =============================================================================

class TestCreateReport:

    def test_requires_session(self, client):
        response = client.post("/api/reports", json=REPORT_BODY)

        assert response.status_code == 401

    def test_create_forces_reporter_and_pending(self, client, test_reporter, test_admin, reporter_headers):
        response = client.post(
            "/api/reports",
            json={**REPORT_BODY, "reporterId": test_admin.id, "status": "closed"},
            headers=reporter_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["reporterId"] == test_reporter.id
        assert data["status"] == "pending"
        assert data["title"] == "t"
        assert "createdAt" in data

    def test_admin_can_create(self, client, test_admin, admin_headers):
        response = client.post("/api/reports", json=REPORT_BODY, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["reporterId"] == test_admin.id

    def test_validation_lists_every_field(self, client, reporter_headers, db_session):
        response = client.post(
            "/api/reports",
            json={"title": "", "description": "   "},
            headers=reporter_headers,
        )

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert fields == {"title", "description", "category", "location"}
        assert db_session.query(Report).count() == 0

    def test_notification_scheduled(self, client, reporter_headers, notifier):
        response = client.post("/api/reports", json=REPORT_BODY, headers=reporter_headers)

        assert len(notifier.reports) == 1
        report, reporter_name = notifier.reports[0]
        assert report.id == response.json()["id"]
        assert reporter_name == "reporter"

    def test_smtp_failure_does_not_fail_request(self, client, reporter_headers, db_session):
        app.state.notifier = EmailNotifier(
            "smtp.test", 587, "bot@test.com", "pw", admin_email="admin@test.com"
        )

        with patch("crimewatch.services.notifications.smtplib.SMTP", side_effect=OSError("refused")) as smtp:
            response = client.post("/api/reports", json=REPORT_BODY, headers=reporter_headers)

        assert response.status_code == 201
        assert smtp.called
        assert db_session.get(Report, response.json()["id"]) is not None


# =============================================================================
# LIST / GET
# =============================================================================

class TestReportVisibility:

    @pytest.fixture
    def reports(self, db_session, test_reporter, other_reporter):
        return {
            "mine": make_report(db_session, test_reporter.id, category="theft"),
            "mine_closed": make_report(db_session, test_reporter.id, category="vandalism", status=ReportStatus.CLOSED),
            "theirs": make_report(db_session, other_reporter.id, category="theft"),
        }

    def test_reporter_sees_only_own(self, client, reports, test_reporter, reporter_headers):
        response = client.get("/api/reports", headers=reporter_headers)

        assert response.status_code == 200
        data = response.json()
        assert {r["id"] for r in data} == {reports["mine"].id, reports["mine_closed"].id}
        assert all(r["reporterId"] == test_reporter.id for r in data)

    def test_reporter_filters_ignored(self, client, reports, reporter_headers):
        response = client.get("/api/reports", params={"category": "theft"}, headers=reporter_headers)

        assert len(response.json()) == 2

    def test_admin_sees_all(self, client, reports, admin_headers):
        response = client.get("/api/reports", headers=admin_headers)

        assert len(response.json()) == 3

    def test_admin_filters(self, client, reports, admin_headers):
        by_category = client.get("/api/reports", params={"category": "theft"}, headers=admin_headers)
        by_status = client.get("/api/reports", params={"status": "closed"}, headers=admin_headers)
        both = client.get(
            "/api/reports", params={"status": "pending", "category": "vandalism"}, headers=admin_headers
        )

        assert {r["id"] for r in by_category.json()} == {reports["mine"].id, reports["theirs"].id}
        assert [r["id"] for r in by_status.json()] == [reports["mine_closed"].id]
        assert both.json() == []

    def test_admin_invalid_status_filter(self, client, reports, admin_headers):
        response = client.get("/api/reports", params={"status": "archived"}, headers=admin_headers)

        assert response.status_code == 400

    def test_list_requires_session(self, client):
        assert client.get("/api/reports").status_code == 401

    def test_get_own_report(self, client, reports, reporter_headers):
        response = client.get(f"/api/reports/{reports['mine'].id}", headers=reporter_headers)

        assert response.status_code == 200
        assert response.json()["id"] == reports["mine"].id

    def test_get_other_users_report_forbidden(self, client, reports, reporter_headers):
        response = client.get(f"/api/reports/{reports['theirs'].id}", headers=reporter_headers)

        assert response.status_code == 403

    def test_admin_gets_any_report(self, client, reports, admin_headers):
        response = client.get(f"/api/reports/{reports['theirs'].id}", headers=admin_headers)

        assert response.status_code == 200

    def test_get_unknown_report(self, client, reporter_headers):
        assert client.get("/api/reports/9999", headers=reporter_headers).status_code == 404

    def test_get_requires_session(self, client, reports):
        assert client.get(f"/api/reports/{reports['mine'].id}").status_code == 401

    def test_reading_requires_read_own_permission(self, client, reports, reporter_headers, monkeypatch):
        monkeypatch.setitem(RBACPolicy()._policies, "reporter", {"reports:create"})

        listed = client.get("/api/reports", headers=reporter_headers)
        single = client.get(f"/api/reports/{reports['mine'].id}", headers=reporter_headers)

        assert listed.status_code == single.status_code == 403
        assert listed.json()["message"] == "Permission denied: reports:read_own"


# =============================================================================
# STATUS / DELETE
# =============================================================================

class TestReportMutations:

    @pytest.fixture
    def report(self, db_session, test_reporter):
        return make_report(db_session, test_reporter.id)

    def test_admin_updates_status(self, client, report, admin_headers):
        response = client.patch(
            f"/api/reports/{report.id}/status", json={"status": "reviewed"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "reviewed"

    def test_any_transition_allowed(self, client, report, admin_headers):
        for value in ("closed", "pending", "closed", "reviewed"):
            response = client.patch(
                f"/api/reports/{report.id}/status", json={"status": value}, headers=admin_headers
            )
            assert response.json()["status"] == value

    def test_invalid_status_rejected_without_change(self, client, report, admin_headers, db_session):
        response = client.patch(
            f"/api/reports/{report.id}/status", json={"status": "archived"}, headers=admin_headers
        )

        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Report, report.id).status == ReportStatus.PENDING

    def test_reporter_cannot_update_status(self, client, report, reporter_headers, db_session):
        response = client.patch(
            f"/api/reports/{report.id}/status", json={"status": "reviewed"}, headers=reporter_headers
        )

        assert response.status_code == 403
        db_session.expire_all()
        assert db_session.get(Report, report.id).status == ReportStatus.PENDING

    def test_update_requires_session(self, client, report):
        response = client.patch(f"/api/reports/{report.id}/status", json={"status": "reviewed"})

        assert response.status_code == 401

    def test_update_unknown_report(self, client, admin_headers):
        response = client.patch("/api/reports/9999/status", json={"status": "reviewed"}, headers=admin_headers)

        assert response.status_code == 404

    def test_admin_deletes(self, client, report, admin_headers, db_session):
        response = client.delete(f"/api/reports/{report.id}", headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Report, report.id) is None

    def test_reporter_cannot_delete(self, client, report, reporter_headers):
        assert client.delete(f"/api/reports/{report.id}", headers=reporter_headers).status_code == 403

    def test_delete_unknown_report(self, client, admin_headers):
        assert client.delete("/api/reports/9999", headers=admin_headers).status_code == 404


# =============================================================================
# END-TO-END SCENARIOS
# =============================================================================

class TestScenarios:

    def test_reporter_lifecycle(self, client):
        register = client.post(
            "/api/register",
            json={"username": "alice", "email": "alice@x.com", "password": "secret1", "role": "reporter"},
        )
        assert register.status_code == 201
        alice = register.json()
        client.cookies.clear()

        login = client.post("/api/login", json={"username": "alice", "password": "secret1"})
        assert login.status_code == 200

        created = client.post("/api/reports", json=REPORT_BODY)
        assert created.status_code == 201
        report = created.json()
        assert report["reporterId"] == alice["id"]
        assert report["status"] == "pending"

        listed = client.get("/api/reports")
        assert listed.status_code == 200
        assert [r["id"] for r in listed.json()] == [report["id"]]

        assert client.post("/api/logout").status_code == 200
        assert client.get("/api/user").status_code == 401

    def test_admin_triage(self, client, db_session, test_reporter, test_admin):
        report = make_report(db_session, test_reporter.id)
        assert report.id == 1
        admin = login_user(client, "admin", "AdminPass123")
        reporter = login_user(client, "reporter", "ReportPass123")

        denied = client.patch("/api/reports/1/status", json={"status": "closed"}, headers=reporter)
        assert denied.status_code == 403
        assert client.get("/api/reports/1", headers=reporter).json()["status"] == "pending"

        updated = client.patch("/api/reports/1/status", json={"status": "reviewed"}, headers=admin)
        assert updated.status_code == 200
        assert updated.json()["status"] == "reviewed"
