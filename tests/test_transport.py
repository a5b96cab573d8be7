import asyncio

from undercover.room import Room
from undercover.transport import OUTBOX_LIMIT, Connection, broadcast_snapshots


class RecordingSocket:
    def __init__(self):
        self.frames = []

    async def send_text(self, text):
        self.frames.append(text)


class DeadSocket:
    async def send_text(self, text):
        raise RuntimeError("socket is gone")


class StalledSocket:
    """Accepts the first frame and never finishes sending it."""

    def __init__(self):
        self.never = asyncio.Event()

    async def send_text(self, text):
        await self.never.wait()


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


def test_dead_channel_does_not_starve_healthy_peer():
    async def scenario():
        room = Room("r")
        healthy, dead = RecordingSocket(), DeadSocket()
        good_conn, dead_conn = Connection(healthy), Connection(dead)
        for pid, conn in (("good", good_conn), ("dead", dead_conn)):
            conn.session_id = room.hello(pid, conn)
            conn.start()

        for _ in range(5):
            broadcast_snapshots(room)
            await settle()

        good_conn.close()
        dead_conn.close()
        return healthy, dead_conn

    healthy, dead_conn = asyncio.run(scenario())

    assert len(healthy.frames) == 5
    assert dead_conn.broken is True
    assert dead_conn.outbox.empty()


def test_stalled_peer_keeps_only_newest_frames():
    async def scenario():
        room = Room("r")
        conn = Connection(StalledSocket())
        conn.session_id = room.hello("slow", conn)
        conn.start()
        await settle()

        for _ in range(10000):
            broadcast_snapshots(room)
        conn.send({"type": "state", "data": "newest"})

        queued = []
        while not conn.outbox.empty():
            queued.append(conn.outbox.get_nowait())
        conn.close()
        return queued

    queued = asyncio.run(scenario())

    assert len(queued) <= OUTBOX_LIMIT
    assert queued[-1] == {"type": "state", "data": "newest"}
