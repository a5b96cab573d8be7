# server.py
import json
import logging
from typing import Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from undercover.config import Config
from undercover.models import CommandRejected
from undercover.room import Room
from undercover.transport import Connection, broadcast_snapshots, send_error, send_state

logger = logging.getLogger("undercover.server")

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

rooms: Dict[str, Room] = {}

COMMANDS = {
    "claimHost": Room.claim_host,
    "join": Room.join,
    "startGame": Room.start_game,
    "endGame": Room.end_game,
    "leave": Room.leave,
}


def get_or_create_room(name: str) -> Room:
    if name not in rooms:
        rooms[name] = Room(name)
    return rooms[name]


def parse_message(raw: str) -> Optional[dict]:
    try:
        msg = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(msg, dict) or not isinstance(msg.get("type"), str):
        return None
    return msg


def requested_session_id(msg: dict) -> Optional[str]:
    data = msg.get("data")
    if not isinstance(data, dict):
        return None
    session_id = data.get("sessionId")
    if isinstance(session_id, str) and session_id:
        return session_id
    return None


async def handle_message(room: Room, conn: Connection, msg: dict):
    mtype = msg["type"]

    async with room.state.mutex:
        if mtype == "hello":
            if conn.session_id is not None:
                return
            conn.session_id = room.hello(requested_session_id(msg), conn)
            conn.send({"type": "welcome", "data": {"sessionId": conn.session_id}})
            send_state(room, conn.session_id, conn)
            return

        # nothing but hello is accepted on an anonymous channel, and a channel
        # superseded by a newer one for the same session goes inert
        if conn.session_id is None or room.connections.get(conn.session_id) is not conn:
            return

        command = COMMANDS.get(mtype)
        if command is None:
            logger.debug("Discarding unknown message type %r", mtype)
            return

        try:
            changed = command(room, conn.session_id)
        except CommandRejected as exc:
            logger.debug("%s: %s rejected for %s: %s", room.state.name, mtype, conn.session_id, exc)
            send_error(conn, str(exc))
            return

        if changed:
            broadcast_snapshots(room)


async def handle_disconnect(room: Room, conn: Connection):
    if conn.session_id is None:
        return
    async with room.state.mutex:
        if room.disconnect(conn.session_id, conn):
            broadcast_snapshots(room)


@app.get("/")
async def root():
    return PlainTextResponse("OK")


@app.websocket("/ws")
async def ws_endpoint(ws: WebSocket, room: Optional[str] = None):
    await ws.accept()
    current = get_or_create_room(room or Config.DEFAULT_ROOM)
    conn = Connection(ws)
    conn.start()

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                continue
            msg = parse_message(raw)
            if msg is None:
                continue
            await handle_message(current, conn, msg)
    except WebSocketDisconnect:
        pass
    finally:
        await handle_disconnect(current, conn)
        conn.close()
