import itertools
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from campus_events.application.services.auth_service import create_user
from campus_events.config import Settings
from campus_events.domain.models.user import Role, User
from campus_events.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from campus_events.main import create_app

ADMIN_EMAIL = "admin@admin.com"
ADMIN_PASSWORD = "admin"
PASSWORD = "secret123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'campus_events.db'}",
        SECRET_KEY="test_secret",
        MAIL_ENABLED=False,
        SEED_ADMIN=True,
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        FRONTEND_URL="http://frontend.campus.edu",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan: tables and the admin seed
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sent_mail(app, mocker):
    """Mailer.send replaced by a mock; each call is one outgoing email."""
    return mocker.patch.object(app.state.mailer, "send", return_value="<msg@campus-events>")


@pytest.fixture
def db_session(app):
    """
    Short-lived sessions for arranging and inspecting data.
    SQLite write transactions hold the database lock, so never keep one
    open across a request.
    """

    @contextmanager
    def _session():
        session = app.state.db.session()
        try:
            yield session
            session.commit()
        finally:
            session.close()

    return _session


@pytest.fixture
def make_user(client, db_session):
    counter = itertools.count(1)

    def _make(email=None, name=None, password=PASSWORD, role=Role.USER, verified=True, blocked=False):
        n = next(counter)
        email = email or f"student{n}@campus.edu"
        with db_session() as s:
            user, _ = create_user(
                SQLAlchemyUserRepository(s),
                name=name or f"Student {n}",
                email=email,
                password=password,
                role=role,
                email_verified=verified,
            )
            user.is_blocked = blocked
            s.flush()
            return {"id": user.id, "email": user.email, "name": user.name, "password": password}

    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.json()
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login


@pytest.fixture
def admin_headers(login):
    return login(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def admin_id(client, db_session):
    with db_session() as s:
        return s.query(User).filter(User.email == ADMIN_EMAIL).one().id


@pytest.fixture
def make_event(client, login, make_user):
    """Create an event through the API; returns (event_json, creator, creator_headers)."""

    def _make(max_spots=10, creator=None, **fields):
        creator = creator or make_user()
        headers = login(creator["email"], creator["password"])
        payload = {
            "title": "Intro to Robotics",
            "description": "Hands-on workshop",
            "date": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
            "location": "Engineering Hall 101",
            "maxSpots": max_spots,
            **fields,
        }
        resp = client.post("/api/events", json=payload, headers=headers)
        assert resp.status_code == 201, resp.json()
        return resp.json(), creator, headers

    return _make
