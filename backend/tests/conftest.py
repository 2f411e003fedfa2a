import os
import sys
import pytest
from datetime import datetime, timedelta

# Ensure the backend root (containing the `app` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from app import create_app, db, socketio

TEST_PASSWORD = 'open-sesame'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    ACCESS_PASSWORD = TEST_PASSWORD
    ACCESS_PASSWORD_HASH = None
    CORS_ORIGINS = ['http://localhost:5173']
    CLEANUP_GRACE_HOURS = 24
    CLEANUP_INTERVAL_SEC = 0
    CLEANUP_BATCH_SIZE = 0
    LIVE_REFILTER_INTERVAL_SEC = 60
    LOG_LEVEL = 'DEBUG'


def listing_fields(start=None, **overrides):
    """Valid submission payload; ``start`` sets date/time from a datetime."""
    start = start or (datetime.now() + timedelta(days=2)).replace(hour=10, minute=0, second=0, microsecond=0)
    fields = {
        'name': 'Sarah Mitchell',
        'email': 'sarah@example.com',
        'location': 'Branford Bridge Club',
        'date': start.strftime('%Y-%m-%d'),
        'time': start.strftime('%H:%M'),
        'level': 'Advanced',
        'notes': 'Tuesday pairs',
    }
    fields.update(overrides)
    return fields


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import app.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def gate_client(flask_app):
    test_client = flask_app.test_client()
    res = test_client.post('/api/session', json={'password': TEST_PASSWORD})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def sio_client(flask_app, gate_client):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=gate_client,
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
