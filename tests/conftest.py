"""
Pytest configuration and fixtures

Every test gets a fresh in-memory SQLite database and a temp upload folder.
The app context stays pushed for the whole test, so helpers can be called
directly and factories can commit rows before the client hits an endpoint.
"""
from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query
from werkzeug.security import generate_password_hash

from runclub import create_app
from runclub.extensions import db
from runclub.helpers.account import ensure_primary_admin
from runclub.helpers.time import PH_TZ
from runclub.models import Entry, Event, EventClosedDate, EventParticipant, User
from runclub.routes import register_blueprints

# Cheap hash so factories stay fast; real logins still verify it
TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = generate_password_hash(TEST_PASSWORD, method="pbkdf2:sha256:1000")


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "SECRET_KEY": "test-secret",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "DEFAULT_ADMIN_EMAIL": "admin",
            "DEFAULT_ADMIN_PASSWORD": "admin",
        }
    )
    register_blueprints(app)

    with app.app_context():
        db.create_all()
        ensure_primary_admin()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return User.query.filter_by(email="admin").first()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(email=None, gender="female", is_admin=False):
        counter["n"] += 1
        u = User(
            email=email or f"runner{counter['n']}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            gender=gender,
            is_admin=is_admin,
        )
        db.session.add(u)
        db.session.commit()
        return u

    return _make


@pytest.fixture
def make_event(app, admin):
    def _make(
        name="June Challenge",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        category="advanced",
        gender_restriction="both",
        km_goal=50,
        is_ended=False,
    ):
        e = Event(
            name=name,
            start_date=start_date,
            end_date=end_date,
            category=category,
            gender_restriction=gender_restriction,
            km_goal=km_goal,
            is_ended=is_ended,
            created_by=admin.id,
        )
        db.session.add(e)
        db.session.commit()
        return e

    return _make


@pytest.fixture
def make_entry(app):
    def _make(user, entry_date, km_run=0.0, hours=0.0, pace=None):
        e = Entry(user_id=user.id, entry_date=entry_date, km_run=km_run, hours=hours, pace=pace)
        db.session.add(e)
        db.session.commit()
        return e

    return _make


@pytest.fixture
def add_participant(app):
    def _add(event, user):
        p = EventParticipant(event_id=event.id, user_id=user.id)
        db.session.add(p)
        db.session.commit()
        return p

    return _add


@pytest.fixture
def add_closed_date(app, admin):
    def _add(event, day):
        row = EventClosedDate(event_id=event.id, closed_date=day, created_by=admin.id)
        db.session.add(row)
        db.session.commit()
        return row

    return _add


@pytest.fixture
def login(client):
    """Put `user` in the client's session without going through /api/login."""
    def _login(user):
        with client.session_transaction() as sess:
            sess["user_id"] = user.id
            sess["is_admin"] = bool(user.is_admin)
        return client

    return _login


@pytest.fixture
def freeze_ph(monkeypatch):
    """Pin the PH clock seen by the events routes to a given PH wall time."""
    def _freeze(year, month, day, hour=12, minute=0):
        fixed = datetime(year, month, day, hour, minute, tzinfo=PH_TZ)
        monkeypatch.setattr("runclub.routes.events.now_ph", lambda: fixed)
        return fixed

    return _freeze


@pytest.fixture
def break_store(app, monkeypatch):
    """Call to make every ORM SELECT from then on fail like a dropped connection."""
    def _break():
        def fail(self, *args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("server closed the connection"))

        monkeypatch.setattr(Query, "all", fail)
        monkeypatch.setattr(Query, "first", fail)

    return _break
