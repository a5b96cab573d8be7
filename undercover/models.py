import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class Status(str, Enum):
    """Lifecycle stage, used both for the room phase and for each participant."""

    IDLE = "Idle"
    LOBBY = "Lobby"
    IN_GAME = "InGame"


class Role(str, Enum):
    CITIZEN = "citizen"
    IMPOSTOR = "impostor"


class CommandRejected(Exception):
    """A command failed its guard. The room state is left untouched."""


@dataclass
class RoomState:
    name: str
    phase: Status = Status.IDLE
    host_id: Optional[str] = None
    impostor_id: Optional[str] = None
    secret_word: Optional[str] = None
    # session_id -> own status; entries are reset to Idle, never removed
    statuses: Dict[str, Status] = field(default_factory=dict)
    # room-level mutex for serializing "state-changing" operations
    mutex: asyncio.Lock = field(default_factory=asyncio.Lock)
