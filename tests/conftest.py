import os
import sys
import pytest

# Ensure the project root (containing the `imposter` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from imposter import create_app, socketio
from imposter.services.game import GameService


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    DISCUSS_TIMER_DEFAULT_SEC = 90
    VOTE_TIMER_DEFAULT_SEC = 25
    MIN_PLAYERS = 3
    TIMER_TICK_MS = 250
    TURN_TEXT_MAX_LEN = 40
    DM_TEXT_MAX_LEN = 200


class RecordingBroadcaster:
    """Collects (target, event, payload) tuples instead of emitting."""

    def __init__(self):
        self.sent = []

    def to_room(self, code, event, payload=None):
        self.sent.append((('room', code), event, payload))

    def to_player(self, sid, event, payload=None):
        self.sent.append((('player', sid), event, payload))

    def events(self, name, target=None):
        return [p for t, e, p in self.sent if e == name and (target is None or t == target)]

    def names(self):
        return [e for _, e, _ in self.sent]

    def clear(self):
        self.sent.clear()


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def game(broadcaster, clock):
    config = {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}
    return GameService(broadcaster, config=config, clock=clock, wall_clock=lambda: 1700000000.0)


@pytest.fixture()
def table(game, broadcaster):
    """Room ABCD with host H and players P1, P2, broadcaster cleared."""
    game.create_room('H', 'ABCD', 'Hana')
    game.join_room('P1', 'ABCD', 'Pia')
    game.join_room('P2', 'ABCD', 'Pele')
    broadcaster.clear()
    return game.registry.get('ABCD')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield make
    for test_client in clients:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass
