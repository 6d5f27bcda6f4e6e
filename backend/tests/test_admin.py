# Overview: Pytest coverage for the admin console (users, roles, policies, audit).

import pytest

from stocknexus.constants import Department, Role
from stocknexus.models import SecurityEvent, UserRole
from stocknexus.services.session_service import create_session


class TestAdminGate:

    @pytest.mark.parametrize("path", ["/api/admin/users", "/api/admin/policies", "/api/admin/security-events"])
    def test_non_admin_forbidden(self, client, db_session, hod_physics_headers, path):
        resp = client.get(path, headers=hod_physics_headers)

        assert resp.status_code == 403
        assert db_session.query(SecurityEvent).filter_by(event_type="ROLE_DENIED").count() == 1


class TestUsers:

    def test_list_and_filter(self, client, admin_headers, hod_physics, hod_cse, no_role_user):
        everyone = client.get("/api/admin/users", headers=admin_headers).json
        physics = client.get(f"/api/admin/users?department={Department.PHYSICS}", headers=admin_headers).json

        assert everyone["count"] == 4
        assert [u["email"] for u in physics["users"]] == ["hod.physics@lab.edu"]

    def test_assign_role(self, client, db_session, admin_headers, staff_physics):
        resp = client.put(f"/api/admin/users/{staff_physics.id}/role", json={
            "role": Role.HOD, "department": Department.CHEMISTRY,
        }, headers=admin_headers)

        assert resp.status_code == 200
        db_session.expire_all()
        assignment = db_session.query(UserRole).filter_by(user_id=staff_physics.id).one()
        assert (assignment.role, assignment.department) == (Role.HOD, Department.CHEMISTRY)
        assert db_session.query(SecurityEvent).filter_by(event_type="ROLE_ASSIGNED").count() == 1

    def test_assign_role_to_user_without_one(self, client, db_session, admin_headers, no_role_user):
        resp = client.put(f"/api/admin/users/{no_role_user.id}/role", json={
            "role": Role.STAFF, "department": Department.IT,
        }, headers=admin_headers)

        assert resp.status_code == 200
        assert db_session.query(UserRole).filter_by(user_id=no_role_user.id).count() == 1

    @pytest.mark.parametrize("payload", [
        {"role": "superuser", "department": Department.IT},
        {"role": Role.STAFF, "department": "Astronomy"},
        {"role": Role.STAFF},
    ])
    def test_invalid_assignment(self, client, admin_headers, staff_physics, payload):
        resp = client.put(f"/api/admin/users/{staff_physics.id}/role", json=payload, headers=admin_headers)

        assert resp.status_code == 400

    def test_cannot_demote_self(self, client, admin_user, admin_headers):
        resp = client.put(f"/api/admin/users/{admin_user.id}/role", json={
            "role": Role.STAFF, "department": Department.IT,
        }, headers=admin_headers)

        assert resp.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        resp = client.put("/api/admin/users/99999/role", json={
            "role": Role.STAFF, "department": Department.IT,
        }, headers=admin_headers)

        assert resp.status_code == 404


class TestDeactivation:

    def test_deactivate_revokes_sessions(self, client, admin_headers, staff_physics):
        _, token = create_session(user_id=staff_physics.id)
        staff = {"Authorization": f"Bearer {token}"}

        resp = client.post(f"/api/admin/users/{staff_physics.id}/deactivate", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["sessions_revoked"] == 1
        assert client.get("/api/auth/me", headers=staff).status_code == 401

        listed = client.get("/api/admin/users", headers=admin_headers).json["users"]
        assert staff_physics.email not in [u["email"] for u in listed]

    def test_cannot_deactivate_self(self, client, admin_user, admin_headers):
        resp = client.post(f"/api/admin/users/{admin_user.id}/deactivate", headers=admin_headers)

        assert resp.status_code == 400

    def test_reactivate(self, client, admin_headers, staff_physics):
        client.post(f"/api/admin/users/{staff_physics.id}/deactivate", headers=admin_headers)

        resp = client.post(f"/api/admin/users/{staff_physics.id}/reactivate", headers=admin_headers)
        again = client.post(f"/api/admin/users/{staff_physics.id}/reactivate", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["user"]["is_active"] is True
        assert again.status_code == 400


class TestIntrospection:

    def test_policies_listing(self, client, admin_headers):
        tables = client.get("/api/admin/policies", headers=admin_headers).json["tables"]

        by_table = {t["table"]: t["policies"] for t in tables}
        assert "inventory_items" in by_table
        inventory = {p["operation"]: p["predicate"] for p in by_table["inventory_items"]}
        assert inventory["insert"] == "can_insert_inventory"

    def test_security_events_filtered(self, client, admin_headers, hod_physics_headers, make_item):
        item = make_item("GPU", Department.CSE, 4)
        client.delete(f"/api/inventory/{item.id}", headers=hod_physics_headers)

        resp = client.get("/api/admin/security-events?event_type=ACCESS_DENIED", headers=admin_headers)

        events = resp.json["events"]
        assert len(events) == 1
        assert events[0]["success"] is False
