"""
Pytest fixtures for StockNexus backend tests.

Provides the test app (temporary SQLite database and upload folder), a clean
database per test, one user per role/department the tests need, and helpers
for bearer-token headers.
"""

import pytest

from stocknexus import create_app
from stocknexus.constants import Department, Role
from stocknexus.extensions import db
from stocknexus.models import InventoryItem, User, UserRole
from stocknexus.services.auth_service import hash_password
from stocknexus.services.session_service import create_session


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    root = tmp_path_factory.mktemp("stocknexus")
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{root / 'test.sqlite3'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(root / 'uploads'),
        'RESEND_API_KEY': None,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash():
    """One bcrypt hash shared by every fixture user (cost 12 is slow)."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def make_user(db_session, password_hash):
    """Factory: make_user(email, role=None, department=None) -> User."""
    def _make(email, role=None, department=None, full_name=None):
        user = User(
            email=email,
            full_name=full_name or email.split("@")[0].replace(".", " ").title(),
            password_hash=password_hash,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()

        if role:
            db_session.add(UserRole(user_id=user.id, role=role, department=department))
            db_session.commit()

        return user

    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin@lab.edu", Role.ADMIN, Department.IT)


@pytest.fixture(scope='function')
def hod_physics(make_user):
    return make_user("hod.physics@lab.edu", Role.HOD, Department.PHYSICS)


@pytest.fixture(scope='function')
def hod_cse(make_user):
    return make_user("hod.cse@lab.edu", Role.HOD, Department.CSE)


@pytest.fixture(scope='function')
def staff_physics(make_user):
    return make_user("staff.physics@lab.edu", Role.STAFF, Department.PHYSICS)


@pytest.fixture(scope='function')
def no_role_user(make_user):
    """Authenticated account without a UserRole row."""
    return make_user("orphan@lab.edu")


@pytest.fixture(scope='function')
def make_item(db_session):
    """
    Factory: insert an InventoryItem row directly, bypassing the service
    layer (and therefore alert reconciliation).
    """
    def _make(name, department, quantity, **fields):
        item = InventoryItem(name=name, department=department, quantity=quantity, **fields)
        db_session.add(item)
        db_session.commit()
        return item

    return _make


def get_auth_token(user) -> str:
    """Helper to get a session token for a user without a bcrypt round trip."""
    _, token = create_session(user_id=user.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(get_auth_token(admin_user))


@pytest.fixture(scope='function')
def hod_physics_headers(hod_physics):
    return auth_headers(get_auth_token(hod_physics))


@pytest.fixture(scope='function')
def hod_cse_headers(hod_cse):
    return auth_headers(get_auth_token(hod_cse))


@pytest.fixture(scope='function')
def staff_headers(staff_physics):
    return auth_headers(get_auth_token(staff_physics))


@pytest.fixture(scope='function')
def no_role_headers(no_role_user):
    return auth_headers(get_auth_token(no_role_user))
