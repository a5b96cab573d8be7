"""
Reconnecting room client.

Keeps one WebSocket open to the room server, re-sending ``hello`` with the
same durable session id after every (re)connection so the server can match
the returning client to its existing seat.
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from undercover.config import Config
from undercover.models import Status

logger = logging.getLogger("undercover.client")

CONNECTING = "connecting"
OPEN = "open"
RECONNECTING = "reconnecting"
CLOSED = "closed"
FAILED = "failed"

RoomListener = Callable[[Dict[str, Any]], None]


def backoff_delay(attempt: int, base_delay: float = 0.25, max_delay: float = 4.0) -> float:
    """Delay before retry number ``attempt`` (1-based): doubles up to ``max_delay``."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


class RoomClient:
    def __init__(
        self,
        url: str,
        session_id: str,
        base_delay: float = 0.25,
        max_delay: float = 4.0,
        max_attempts: Optional[int] = None,
        connect=ws_connect,
    ):
        self.url = url
        self.session_id = session_id
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_attempts = max_attempts
        self._connect = connect

        self.status = CLOSED
        self.state: Dict[str, Any] = {
            "status": Status.IDLE.value,
            "players": 0,
            "maxPlayers": Config.MAX_PLAYERS,
        }
        self.attempts = 0
        self._listeners: List[RoomListener] = []
        self._ws = None
        self._stopping = False

    # ---- subscriptions ----

    def on(self, listener: RoomListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: Dict[str, Any]):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Room listener failed on %s event", event.get("type"))

    def _set_status(self, status: str):
        if status != self.status:
            self.status = status
            self._emit({"type": "status", "status": status})

    # ---- connection loop ----

    async def run(self):
        self._stopping = False
        self._set_status(CONNECTING)
        while not self._stopping:
            try:
                async with self._connect(self.url) as ws:
                    self._ws = ws
                    self.attempts = 0
                    self._set_status(OPEN)
                    await self._send({"type": "hello", "data": {"sessionId": self.session_id}})
                    async for raw in ws:
                        self._handle_raw(raw)
            except (WebSocketException, OSError, asyncio.TimeoutError) as exc:
                logger.debug("Connection to %s lost: %s", self.url, exc)
            finally:
                self._ws = None

            if self._stopping:
                break

            self.attempts += 1
            if self.max_attempts is not None and self.attempts > self.max_attempts:
                logger.warning("Giving up on %s after %d attempts", self.url, self.max_attempts)
                self._set_status(FAILED)
                return
            self._set_status(RECONNECTING)
            await asyncio.sleep(backoff_delay(self.attempts, self.base_delay, self.max_delay))

        self._set_status(CLOSED)

    def stop(self):
        """Stop reconnecting; the loop ends once the current socket closes."""
        self._stopping = True

    async def close(self):
        self.stop()
        if self._ws is not None:
            await self._ws.close()

    # ---- inbound ----

    def _handle_raw(self, raw):
        try:
            msg = json.loads(raw)
        except ValueError:
            return
        if not isinstance(msg, dict):
            return

        mtype = msg.get("type")
        data = msg.get("data")
        if mtype == "state" and isinstance(data, dict):
            self.state = dict(data)
            self._emit({"type": "state", "data": dict(self.state)})
        elif mtype == "error" and isinstance(data, dict):
            self._emit({"type": "error", "message": data.get("message", "")})
        elif mtype == "welcome" and isinstance(data, dict) and data.get("sessionId"):
            self.session_id = data["sessionId"]

    # ---- outbound ----

    async def _send(self, payload: dict):
        if self._ws is None:
            logger.warning("Cannot send %s: not connected", payload.get("type"))
            return
        try:
            await self._ws.send(json.dumps(payload))
        except (WebSocketException, OSError) as exc:
            logger.debug("Failed to send %s: %s", payload.get("type"), exc)

    async def claim_host(self):
        await self._send({"type": "claimHost"})

    async def join(self):
        await self._send({"type": "join"})

    async def start_game(self):
        await self._send({"type": "startGame"})

    async def end_game(self):
        await self._send({"type": "endGame"})

    async def leave(self):
        await self._send({"type": "leave"})
