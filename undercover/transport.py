import asyncio
import json
import logging
from typing import Optional

from fastapi import WebSocket

from undercover.room import Room

logger = logging.getLogger("undercover.transport")

# frames held for a peer that is not reading; older ones are dropped first
OUTBOX_LIMIT = 32


async def send_json(ws: WebSocket, payload: dict):
    await ws.send_text(json.dumps(payload, ensure_ascii=False))


class Connection:
    """One client channel: a socket plus the session it speaks for.

    Outbound frames go through a queue drained by a per-connection task, so
    ``send`` never waits on the peer.
    """

    def __init__(self, ws: WebSocket):
        self.ws = ws
        self.session_id: Optional[str] = None
        self.outbox: "asyncio.Queue[dict]" = asyncio.Queue(maxsize=OUTBOX_LIMIT)
        self.broken = False
        self._sender: Optional[asyncio.Task] = None

    def start(self):
        self._sender = asyncio.create_task(self._drain())

    def close(self):
        if self._sender is not None:
            self._sender.cancel()
            self._sender = None

    def send(self, payload: dict):
        if self.broken:
            return
        if self.outbox.full():
            self.outbox.get_nowait()
        self.outbox.put_nowait(payload)

    async def _drain(self):
        while True:
            payload = await self.outbox.get()
            try:
                await send_json(self.ws, payload)
            except Exception as exc:
                # best effort; the socket's own close signal does the cleanup
                logger.debug("Dropping frames for %s: %s", self.session_id, exc)
                self.broken = True
                return


def send_state(room: Room, pid: str, conn: Connection):
    conn.send({"type": "state", "data": room.snapshot_for(pid)})


def send_error(conn: Connection, message: str):
    conn.send({"type": "error", "data": {"message": message}})


def broadcast_snapshots(room: Room):
    # 각 플레이어별로 개인화 스냅샷 전송
    for pid, conn in list(room.connections.items()):
        send_state(room, pid, conn)
