import os
import sys
import pytest

# Ensure the backend root (containing the `bukber` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bukber import create_app, registry, socketio
from config import Config


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    COUNTDOWN_DELAY_SEC = 0
    ROUND_DURATION_SEC = 600
    VENUE_LOOKUP_ENABLED = False
    SOCKETIO_NAMESPACE = '/'
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
    registry.reset()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()


def events(test_client, name=None):
    """Drain received packets, optionally keeping only ``name``."""
    received = test_client.get_received()
    if name is None:
        return received
    return [pkt for pkt in received if pkt['name'] == name]


def payload(packet):
    return packet['args'][0] if packet.get('args') else None


@pytest.fixture()
def room(connect):
    """A room with host Amir and guest Budi; both clients drained."""
    host = connect()
    host.emit('create_room', {'name': 'Amir', 'groupName': 'Bukber Kantor'})
    room_id = payload(events(host, 'login_success')[0])['roomId']
    guest = connect()
    guest.emit('join_room', {'name': 'Budi', 'roomId': room_id})
    host.get_received()
    guest.get_received()
    return room_id, host, guest
