# Overview: Pytest coverage for registration requests and account approval.

import httpx
import pytest

from stocknexus.constants import Department, RegistrationStatus, Role
from stocknexus.models import RegistrationRequest, SecurityEvent, User, UserRole
from stocknexus.services import notification_service, registration_service


SIGNUP = {
    "email": "New.Staff@Lab.edu",
    "full_name": "New Staff",
    "department": Department.CHEMISTRY,
    "requested_role": Role.STAFF,
}


def _submit(client, payload=None):
    return client.post("/api/registrations", json=payload or SIGNUP)


class TestSubmit:

    def test_public_submission(self, client, db_session):
        resp = _submit(client)

        assert resp.status_code == 201
        request_row = resp.json["request"]
        assert request_row["email"] == "new.staff@lab.edu"
        assert request_row["status"] == RegistrationStatus.PENDING

    def test_duplicate_request_is_409(self, client, db_session):
        _submit(client)

        resp = _submit(client, dict(SIGNUP, email="new.staff@lab.edu"))

        assert resp.status_code == 409
        assert "already exists" in resp.json["error"]
        assert db_session.query(RegistrationRequest).count() == 1

    def test_concurrent_duplicate_is_409(self, client, db_session, monkeypatch):
        real_run = registration_service.run_in_transaction

        def _racing(func):
            # Another sign-up commits between the duplicate check and the insert
            db_session.add(RegistrationRequest(
                email="new.staff@lab.edu", full_name="Other", department=Department.IT,
                requested_role=Role.STAFF, status=RegistrationStatus.PENDING,
            ))
            db_session.commit()
            return real_run(func)

        monkeypatch.setattr(registration_service, "run_in_transaction", _racing)

        resp = _submit(client)

        assert resp.status_code == 409
        assert "already exists" in resp.json["error"]
        db_session.expire_all()
        assert db_session.query(RegistrationRequest).one().full_name == "Other"

    def test_existing_account_is_409(self, client, admin_user):
        resp = _submit(client, dict(SIGNUP, email=admin_user.email))

        assert resp.status_code == 409

    @pytest.mark.parametrize("field,value", [
        ("department", "Astronomy"),
        ("requested_role", "superuser"),
        ("email", "not-an-email"),
    ])
    def test_invalid_values(self, client, db_session, field, value):
        resp = _submit(client, dict(SIGNUP, **{field: value}))

        assert resp.status_code == 400

    def test_status_cannot_be_chosen(self, client, db_session):
        resp = _submit(client, dict(SIGNUP, status=RegistrationStatus.APPROVED))

        assert resp.status_code == 400


class TestReview:

    def test_only_admin_lists(self, client, hod_physics_headers, admin_headers):
        _submit(client)

        assert client.get("/api/registrations", headers=hod_physics_headers).json["requests"] == []
        assert len(client.get("/api/registrations", headers=admin_headers).json["requests"]) == 1

    def test_approve_creates_account_without_email_service(self, client, db_session, admin_user, admin_headers):
        request_id = _submit(client).json["request"]["id"]

        resp = client.post(f"/api/registrations/{request_id}/approve", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.json
        assert body["request"]["status"] == RegistrationStatus.APPROVED
        assert body["request"]["reviewed_by"] == admin_user.id
        assert body["email_sent"] is False
        assert "could not be sent" in body["email_message"]
        assert body["temporary_password"]

        user = db_session.query(User).filter_by(email="new.staff@lab.edu").one()
        assert user.must_change_password is True
        role = db_session.query(UserRole).filter_by(user_id=user.id).one()
        assert (role.role, role.department) == (Role.STAFF, Department.CHEMISTRY)
        assert db_session.query(SecurityEvent).filter_by(event_type="REGISTRATION_APPROVED").count() == 1

    def test_approved_user_can_log_in_with_temporary_password(self, client, admin_headers):
        request_id = _submit(client).json["request"]["id"]
        password = client.post(
            f"/api/registrations/{request_id}/approve", headers=admin_headers
        ).json["temporary_password"]

        resp = client.post("/api/auth/login", json={"email": SIGNUP["email"], "password": password})

        assert resp.status_code == 200
        assert resp.json["must_change_password"] is True
        assert resp.json["role"] == Role.STAFF

    def test_approval_email_sent_hides_password(self, client, app, admin_headers, monkeypatch):
        sent = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            sent["to"] = json["to"]
            sent["html"] = json["html"]
            return httpx.Response(200, json={"id": "email_123"}, request=httpx.Request("POST", url))

        monkeypatch.setitem(app.config, "RESEND_API_KEY", "re_test")
        monkeypatch.setattr(notification_service.httpx, "post", fake_post)

        request_id = _submit(client).json["request"]["id"]
        resp = client.post(f"/api/registrations/{request_id}/approve", headers=admin_headers)

        assert resp.json["email_sent"] is True
        assert "temporary_password" not in resp.json
        assert sent["to"] == ["new.staff@lab.edu"]
        assert "Temporary password" in sent["html"]

    def test_email_failure_does_not_undo_approval(self, client, db_session, app, admin_headers, monkeypatch):
        def failing_post(url, json=None, headers=None, timeout=None):
            return httpx.Response(500, text="boom", request=httpx.Request("POST", url))

        monkeypatch.setitem(app.config, "RESEND_API_KEY", "re_test")
        monkeypatch.setattr(notification_service.httpx, "post", failing_post)

        request_id = _submit(client).json["request"]["id"]
        resp = client.post(f"/api/registrations/{request_id}/approve", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["email_sent"] is False
        assert db_session.query(User).filter_by(email="new.staff@lab.edu").count() == 1

    def test_cannot_approve_twice(self, client, admin_headers):
        request_id = _submit(client).json["request"]["id"]
        client.post(f"/api/registrations/{request_id}/approve", headers=admin_headers)

        resp = client.post(f"/api/registrations/{request_id}/reject", headers=admin_headers)

        assert resp.status_code == 409
        assert resp.json["error"] == "Request has already been approved"

    def test_hod_cannot_approve(self, client, db_session, hod_physics_headers):
        request_id = _submit(client).json["request"]["id"]

        resp = client.post(f"/api/registrations/{request_id}/approve", headers=hod_physics_headers)

        assert resp.status_code == 404
        assert db_session.query(User).filter_by(email="new.staff@lab.edu").count() == 0


class TestDelete:

    def test_rejected_request_can_be_deleted(self, client, db_session, admin_headers):
        request_id = _submit(client).json["request"]["id"]
        reject = client.post(f"/api/registrations/{request_id}/reject", headers=admin_headers)
        assert reject.json["request"]["status"] == RegistrationStatus.REJECTED

        resp = client.delete(f"/api/registrations/{request_id}", headers=admin_headers)

        assert resp.status_code == 200
        assert db_session.query(RegistrationRequest).count() == 0

    def test_pending_request_cannot_be_deleted(self, client, db_session, admin_headers):
        request_id = _submit(client).json["request"]["id"]

        resp = client.delete(f"/api/registrations/{request_id}", headers=admin_headers)

        assert resp.status_code == 404
        assert db_session.query(RegistrationRequest).count() == 1

    def test_approved_request_cannot_be_deleted(self, client, db_session, admin_headers):
        request_id = _submit(client).json["request"]["id"]
        client.post(f"/api/registrations/{request_id}/approve", headers=admin_headers)

        resp = client.delete(f"/api/registrations/{request_id}", headers=admin_headers)

        assert resp.status_code == 404

    def test_rejected_email_can_reapply_after_delete(self, client, admin_headers):
        request_id = _submit(client).json["request"]["id"]
        client.post(f"/api/registrations/{request_id}/reject", headers=admin_headers)

        assert _submit(client).status_code == 409

        client.delete(f"/api/registrations/{request_id}", headers=admin_headers)

        assert _submit(client).status_code == 201
