"""
Shared pytest fixtures for the University Service Desk test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - student / other_student / admin: pre-created User rows
    - auth_headers: bearer-token header builder for a user
    - make_request: ORM factory for requests in an arbitrary state
"""

import pytest

from servicedesk import create_app
from servicedesk.models import db as _db
from servicedesk.models.request import CREATED_COMMENT, ServiceRequest
from servicedesk.models.user import User
from servicedesk.services.token_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Actors ───────────────────────────────────────────────────────────────


def _user(name, email, role, student_number=None):
    user = User(name=name, email=email, role=role, student_number=student_number)
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture()
def student():
    return _user("Asha Verma", "asha@uni.test", "student", "S1001")


@pytest.fixture()
def other_student():
    return _user("Ben Okafor", "ben@uni.test", "student", "S1002")


@pytest.fixture()
def admin():
    return _user("Registrar Office", "registrar@uni.test", "admin")


@pytest.fixture()
def auth_headers():
    """Build an Authorization header for ``user`` (role defaults to the user's own)."""
    def _headers(user, role=None):
        token = generate_access_token(user.id, role or user.role)
        return {"Authorization": f"Bearer {token}"}
    return _headers


# ── Request factory ──────────────────────────────────────────────────────


@pytest.fixture()
def make_request():
    """Insert a request directly, bypassing the lifecycle rules.

    Lets tests start from any status, department or creation time.
    """
    def _make(owner, *, title="Hostel water leak", description="Leak in room 204",
              category="Hostel", priority="Medium", status="Pending",
              department="", created_at=None):
        req = ServiceRequest(
            student_id=owner.id,
            title=title,
            description=description,
            category=category,
            priority=priority,
            status=status,
            assigned_department=department,
        )
        if created_at is not None:
            req.created_at = created_at
        req.append_history(status, owner.id, CREATED_COMMENT)
        _db.session.add(req)
        _db.session.commit()
        return req
    return _make

