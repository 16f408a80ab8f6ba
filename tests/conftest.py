from unittest.mock import MagicMock

import pytest

from clipboard import create_app
# Register Socket.IO handlers before any app exists (e.g. manage.py's module-level
# app) so every test app's server receives them
import clipboard.socketio_handlers  # noqa: E402,F401
from clipboard.services.espn_client import EspnClient
from tests.factories import FakeScheduler


@pytest.fixture
def app():
    app = create_app("testing")
    app.extensions["espn_client"] = MagicMock(spec=EspnClient)
    app.extensions["tmdb_client"] = MagicMock()

    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["document_store"]


@pytest.fixture
def espn(app):
    return app.extensions["espn_client"]


@pytest.fixture
def tmdb(app):
    return app.extensions["tmdb_client"]


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def login(client, store):
    """Create a profile and sign the test client in as that user"""

    def _login(user_id="user-1", email="player@example.com", **profile):
        store.set(f"users/{user_id}", {"email": email, **profile})
        with client.session_transaction() as session:
            session["_user_id"] = user_id
            session["_fresh"] = True
        return user_id

    return _login


@pytest.fixture
def login_admin(login):
    def _login_admin(user_id="admin-1"):
        return login(user_id, email="admin@example.com", displayName="Admin")

    return _login_admin
