"""
Pytest configuration and fixtures for chat room tests.
"""

import pytest
from fastapi.testclient import TestClient

from app import create_app
from room import ChatRoom

# Short enough to keep timer tests fast, long enough to act before it expires
TEST_TIMEOUT = 0.2


class FakeConnection:
    """Records everything the room sends to one connection."""

    def __init__(self, connection_id):
        self.connection_id = connection_id
        self.sent = []
        self.terminated = None

    def emit(self, event, data):
        self.sent.append((event, data))

    def terminate(self, code=1001, reason=""):
        self.terminated = (code, reason)

    def events(self, name):
        return [data for event, data in self.sent if event == name]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def make_connection():
    counter = {"n": 0}

    def factory():
        counter["n"] += 1
        return FakeConnection(f"conn{counter['n']}")

    return factory


@pytest.fixture
def room():
    chat_room = ChatRoom(kick_silent_seconds=TEST_TIMEOUT)
    yield chat_room
    chat_room.stop()


# Long enough that no one is kicked during an end-to-end test
E2E_TIMEOUT = 30.0


@pytest.fixture
def app():
    return create_app(kick_silent_seconds=E2E_TIMEOUT, app_env="development", static_dir=None)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
