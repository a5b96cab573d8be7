import random

import pytest
from fastapi.testclient import TestClient

from undercover.room import Room
from undercover.server import app, rooms


class FakeConnection:
    """Stands in for a live channel in room-level tests."""

    def __init__(self):
        self.session_id = None
        self.sent = []

    def send(self, payload):
        self.sent.append(payload)


def assert_invariants(room: Room):
    state = room.state
    assert (state.host_id is not None) == room.room_claimed
    assert (state.impostor_id is not None) == room.game_started
    assert (state.secret_word is not None) == room.game_started


@pytest.fixture()
def room():
    return Room("test", rng=random.Random(1234))


@pytest.fixture()
def connect(room):
    """Register a connected session and return its id."""

    def _connect(session_id):
        return room.hello(session_id, FakeConnection())

    return _connect


@pytest.fixture(autouse=True)
def clear_rooms():
    rooms.clear()
    yield
    rooms.clear()


@pytest.fixture()
def client():
    # one portal for every socket so all rooms share one event loop
    with TestClient(app) as test_client:
        yield test_client
