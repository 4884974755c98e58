import os
import random
import sys

import pytest

# Ensure the project root (containing the `npat` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from npat import create_app, socketio
from npat.services.games.coordinator import RoundCoordinator
from npat.services.games.registry import SessionRegistry
from npat.services.games.timer import CountdownTimer


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = '/'
    MAX_PLAYERS = 10
    AVATAR_COUNT = 10
    POINTS_PER_CATEGORY = 10
    TIMER_TICK_SECONDS = 1
    TIMER_LIMIT = 61
    DISCARD_EMPTY_SESSIONS = True


class RecordingBroadcast:
    """Stands in for the Socket.IO broadcaster and keeps every event."""

    def __init__(self):
        self.events = []

    def __call__(self, code, event, payload=None):
        self.events.append((code, event, payload))

    def named(self, event):
        return [payload for _, name, payload in self.events if name == event]

    def names(self):
        return [name for _, name, _ in self.events]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def socket_client(flask_app):
    """Factory of connected Socket.IO test clients, all disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture()
def broadcast():
    return RecordingBroadcast()


@pytest.fixture()
def registry():
    return SessionRegistry(rng=random.Random(1234))


@pytest.fixture()
def timer(registry, broadcast):
    # No spawn: tests drive ticks by hand
    return CountdownTimer(registry, broadcast, tick_seconds=1, limit=61)


@pytest.fixture()
def coordinator(registry, timer, broadcast):
    return RoundCoordinator(registry, timer, broadcast, points_per_category=10)
