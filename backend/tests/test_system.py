# Overview: Pytest coverage for health endpoints and CLI commands.

from stocknexus.constants import Department, Role
from stocknexus.models import Alert, SecurityEvent, User, UserRole
from stocknexus.time_utils import days_ago


class TestHealth:

    def test_degraded_without_admin(self, client, db_session):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"
        assert resp.json["checks"]["storage"]["status"] == "healthy"

    def test_healthy_with_admin(self, client, admin_headers):
        resp = client.get("/health")

        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["session_service"]["details"]["active_sessions"] == 1

    def test_version(self, client):
        assert client.get("/version").json["api_version"]


class TestCli:

    def test_create_admin(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create-admin",
            "--email", "Root@Lab.edu", "--name", "Root Admin",
            "--password", "Password123!", "--department", Department.PHYSICS,
        ])

        assert "PASS Created admin" in result.output
        user = db_session.query(User).filter_by(email="root@lab.edu").one()
        role = db_session.query(UserRole).filter_by(user_id=user.id).one()
        assert (role.role, role.department) == (Role.ADMIN, Department.PHYSICS)

    def test_create_admin_weak_password(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create-admin", "--email", "root@lab.edu", "--name", "Root", "--password", "weak",
        ])

        assert "FAIL Password validation failed" in result.output
        assert db_session.query(User).count() == 0

    def test_users_list(self, app, hod_physics):
        result = app.test_cli_runner().invoke(args=["users", "list", "--department", Department.PHYSICS])

        assert "hod.physics@lab.edu" in result.output

    def test_alerts_reconcile(self, app, db_session, make_item):
        make_item("Laser", Department.PHYSICS, 2)
        make_item("GPU", Department.CSE, 40)

        result = app.test_cli_runner().invoke(args=["alerts", "reconcile"])

        assert "Reconciled 2 groups: 1 alerts created" in result.output
        assert db_session.query(Alert).count() == 1

    def test_cleanup_security_events(self, app, db_session):
        db_session.add(SecurityEvent(event_type="LOGIN_FAILED", success=False, occurred_at=days_ago(120)))
        db_session.add(SecurityEvent(event_type="LOGIN_FAILED", success=False, occurred_at=days_ago(1)))
        db_session.commit()

        result = app.test_cli_runner().invoke(args=[
            "maintenance", "cleanup-security-events", "--retention-days", "90",
        ])

        assert "Deleted 1 security events" in result.output
        assert db_session.query(SecurityEvent).count() == 1
