"""
Pytest configuration and fixtures.
Each test gets its own SQLite file and upload folder under tmp_path.
"""

import os
import threading
import time
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

os.environ['FLASK_ENV'] = 'test'


class FakeUploader:
    """
    In-memory upload collaborator.

    Args:
        fail_on: Filenames whose upload raises
        delays: Filename -> seconds to sleep before storing
    """

    def __init__(self, fail_on=(), delays=None):
        self.fail_on = set(fail_on)
        self.delays = delays or {}
        self.stored = {}
        self.deleted = []
        self._lock = threading.Lock()

    def store(self, content, folder, filename):
        time.sleep(self.delays.get(filename, 0))
        if filename in self.fail_on:
            raise OSError(f'disk full while writing {filename}')
        url = f'/uploads/{folder}/{filename}'
        with self._lock:
            self.stored[url] = content
        return url

    def delete(self, url):
        with self._lock:
            self.deleted.append(url)
            self.stored.pop(url, None)


@pytest.fixture
def uploader():
    """Fake upload collaborator registered on the app."""
    return FakeUploader()


@pytest.fixture
def app(tmp_path, uploader):
    """Create test application with isolated database."""
    from app import create_app
    from database import init_db

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = str(tmp_path / 'campus_booking_test.db')
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    app.extensions['document_storage'] = uploader

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def app_context(app):
    """Active application context for model-level tests."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed Casablanca datetime."""
    moment = datetime(2024, 2, 1, 9, 30, tzinfo=ZoneInfo('Africa/Casablanca'))
    return lambda: moment


@pytest.fixture
def lifecycle(app_context, uploader, fixed_clock):
    """ReservationLifecycle over the test database and fake uploader."""
    from database import get_db
    from models.reservation import (
        DocumentAttacher, ReservationLifecycle, ReservationStore, ResourceLockRegistry
    )

    return ReservationLifecycle(
        ReservationStore(get_db()),
        DocumentAttacher(uploader),
        ResourceLockRegistry(),
        clock=fixed_clock,
        upload_timeout=2
    )


@pytest.fixture
def make_reservation(lifecycle):
    """Factory submitting a reservation with sensible defaults."""

    def _make(requester_id='u1', **overrides):
        payload = {
            'event_title': 'Research Day',
            'resource_id': 'B1',
            'resource_kind': 'building',
            'resource_name': 'Main Building',
            'start_date': '2024-05-01',
            'end_date': '2024-05-03',
        }
        payload.update(overrides)
        return lifecycle.create(requester_id, payload)

    return _make


@pytest.fixture
def users(app):
    """Create one user per role; returns username -> id."""
    from models.user import create_user

    with app.app_context():
        return {
            'alice': create_user('alice', 'alice@campus.local', 'password123', role='requester'),
            'bob': create_user('bob', 'bob@campus.local', 'password123', role='requester'),
            'rita': create_user('rita', 'rita@campus.local', 'password123', role='reviewer'),
        }


def login(client, username, password='password123'):
    """Log a test client in through the JSON login endpoint."""
    response = client.post('/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response


@pytest.fixture
def requester_client(app, users):
    """Test client logged in as a requester (alice)."""
    client = app.test_client()
    login(client, 'alice')
    return client


@pytest.fixture
def reviewer_client(app, users):
    """Test client logged in as a reviewer (rita)."""
    client = app.test_client()
    login(client, 'rita')
    return client
