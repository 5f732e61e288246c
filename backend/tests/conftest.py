import os
import sys
import random
import pytest

# Ensure the backend root (containing the `empire` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from empire import create_app, socketio
from empire.broadcast import Notifier
from empire.services.games.session import Session


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SESSION_IDLE_TIMEOUT_SEC = 1800
    SWEEP_INTERVAL_SEC = 0
    MIN_PLAYERS = 2
    CODE_LENGTH = 6
    CODE_MAX_ATTEMPTS = 1000
    STRICT_REVEALS = False
    RANDOM_SEED = 1234
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def broadcast(self, code, event, payload):
        self.messages.append((code, event, payload))

    def events(self):
        return [event for _, event, _ in self.messages]

    def clear(self):
        self.messages.clear()


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def session(notifier, clock):
    return Session('ABCDEF', 'host-sid', rng=random.Random(42), notifier=notifier, clock=clock)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        c = socketio.test_client(flask_app, namespace='/ws')
        clients.append(c)
        return c

    yield _make
    for c in clients:
        if c.is_connected('/ws'):
            c.disconnect(namespace='/ws')
