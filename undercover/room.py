import logging
import random
import uuid
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

import undercover.models as models
from undercover.config import Config
from undercover.models import CommandRejected, Role, Status

if TYPE_CHECKING:
    from undercover.transport import Connection

logger = logging.getLogger("undercover.room")


def new_session_id() -> str:
    return str(uuid.uuid4())


class Room:
    """Authoritative session state for one named room.

    Every transition is synchronous and expects the caller to hold
    ``state.mutex``. Guard failures raise ``CommandRejected``; the methods
    that may or may not change anything return whether a broadcast is due.
    """

    def __init__(
        self,
        name: str,
        max_players: int = Config.MAX_PLAYERS,
        min_players: int = Config.MIN_PLAYERS,
        words: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.state = models.RoomState(name=name)
        self.connections: Dict[str, "Connection"] = {}  # session_id -> live connection
        self.max_players = max_players
        self.min_players = min_players
        self.words = tuple(words or Config.WORDS)
        self.rng = rng or random.Random()

    # ---- derived ----

    @property
    def room_claimed(self) -> bool:
        return self.state.phase is not Status.IDLE

    @property
    def game_started(self) -> bool:
        return self.state.phase is Status.IN_GAME

    @property
    def room_size(self) -> int:
        # disconnected participants keep their status but free their slot
        return sum(
            1 for pid, status in self.state.statuses.items()
            if status is not Status.IDLE and pid in self.connections
        )

    def status_of(self, pid: str) -> Status:
        return self.state.statuses.get(pid, Status.IDLE)

    def lobby_players(self) -> List[str]:
        return [pid for pid, status in self.state.statuses.items() if status is Status.LOBBY]

    # ---- connection lifecycle ----

    def hello(self, session_id: Optional[str], connection: "Connection") -> str:
        pid = session_id or new_session_id()
        previous = self.connections.get(pid)
        if previous is not None and previous is not connection:
            logger.info("%s: %s reconnected on a new channel", self.state.name, pid)
        self.connections[pid] = connection
        self.state.statuses.setdefault(pid, Status.IDLE)
        return pid

    def disconnect(self, pid: str, connection: "Connection") -> bool:
        if self.connections.get(pid) is not connection:
            # superseded by a newer channel for the same session
            return False
        del self.connections[pid]
        logger.info("%s: %s disconnected", self.state.name, pid)
        return self.leave(pid)

    # ---- transitions ----

    def claim_host(self, pid: str) -> bool:
        if self.state.phase is not Status.IDLE:
            raise CommandRejected("Room already claimed")
        self.state.phase = Status.LOBBY
        self.state.host_id = pid
        self.state.statuses[pid] = Status.LOBBY
        logger.info("%s: %s claimed host", self.state.name, pid)
        return True

    def join(self, pid: str) -> bool:
        if self.state.phase is Status.LOBBY and self.room_size < self.max_players:
            self.state.statuses[pid] = Status.LOBBY
            logger.info("%s: %s joined (%d/%d)", self.state.name, pid, self.room_size, self.max_players)
            return True
        if self.state.phase is Status.IDLE:
            raise CommandRejected("No room to join")
        if self.room_size >= self.max_players:
            raise CommandRejected("Room is full")
        raise CommandRejected("Game already started")

    def start_game(self, pid: str) -> bool:
        if self.state.host_id != pid:
            raise CommandRejected("Only host can start")
        if self.state.phase is Status.IN_GAME:
            raise CommandRejected("Game already started")
        if self.room_size < self.min_players:
            raise CommandRejected(f"Need at least {self.min_players} players")

        players = self.lobby_players()
        self.state.phase = Status.IN_GAME
        self.state.secret_word = self.rng.choice(self.words)
        self.state.impostor_id = self.rng.choice(players)
        for player in players:
            self.state.statuses[player] = Status.IN_GAME
        logger.info("%s: game started with %d players", self.state.name, len(players))
        return True

    def end_game(self, pid: str) -> bool:
        if self.state.phase is not Status.IN_GAME:
            raise CommandRejected("No game in progress")
        logger.info("%s: %s ended the game", self.state.name, pid)
        self.reset()
        return True

    def leave(self, pid: str) -> bool:
        if pid == self.state.host_id:
            logger.info("%s: host %s left", self.state.name, pid)
            self.reset()
            return True
        if self.state.phase is Status.IN_GAME:
            logger.info("%s: %s left mid-game", self.state.name, pid)
            self.reset()
            return True
        if self.state.phase is Status.LOBBY:
            self.state.statuses[pid] = Status.IDLE
            if self.room_size == 0:
                self.reset()
            return True
        return False

    def reset(self):
        self.state.phase = Status.IDLE
        self.state.host_id = None
        self.state.impostor_id = None
        self.state.secret_word = None
        for pid in self.state.statuses:
            self.state.statuses[pid] = Status.IDLE
        logger.info("%s: room reset", self.state.name)

    # ---- views ----

    def public_view(self):
        return {
            "players": self.room_size,
            "maxPlayers": self.max_players,
            "gameStarted": self.game_started,
        }

    def snapshot_for(self, pid: str):
        status = self.status_of(pid)
        you = {}
        if self.state.host_id == pid:
            you["isHost"] = True
        if status is Status.IN_GAME:
            if self.state.impostor_id == pid:
                you["role"] = Role.IMPOSTOR.value
            else:
                you["role"] = Role.CITIZEN.value
                you["word"] = self.state.secret_word

        base = {"status": status.value}
        base.update(self.public_view())
        base["you"] = you
        return base
