import pytest
from unittest.mock import MagicMock

from analogix import create_app
from analogix.cache import MemoryCache
from analogix.extensions import db, bcrypt
from analogix.models import User
from analogix.notifications import NotificationBus

# ----------------------------------------------------
#                  PYTEST FIXTURES
# ----------------------------------------------------


@pytest.fixture(scope="function")
def app():
    """
    Fixture to build the app for testing with a clean in-memory database
    and an in-memory local cache.
    """
    app = create_app("analogix.config.TestConfig")
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


@pytest.fixture(scope="function")
def auth_client(app, client):
    """
    Fixture that creates a user and provides a logged-in client
    by directly manipulating the session.
    """
    with app.app_context():
        hashed_password = bcrypt.generate_password_hash("password123").decode("utf-8")
        user = User(username="testuser", email="test@example.com", password=hashed_password)
        db.session.add(user)
        db.session.commit()
        user_id = user.id

    with client.session_transaction() as sess:
        sess["username"] = "testuser"
        sess["user_id"] = user_id

    yield {"client": client, "user_id": user_id}


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def bus():
    return NotificationBus()


@pytest.fixture
def offline_remote():
    """A remote tier whose every call fails."""
    from analogix.errors import RemoteUnavailable

    remote = MagicMock()
    for method in ("select", "insert", "update", "delete"):
        getattr(remote, method).side_effect = RemoteUnavailable("network down")
    return remote


SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//School//Timetable//EN
BEGIN:VEVENT
UID:maths-1@school
SUMMARY:Maths exam
DTSTART:20260310T090000
DTEND:20260310T110000
DESCRIPTION:Room 4
LOCATION:Hall
END:VEVENT
BEGIN:VEVENT
UID:trip-1@school
SUMMARY:Science excursion
DTSTART;VALUE=DATE:20260315
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def sample_ics():
    return SAMPLE_ICS
