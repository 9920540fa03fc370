"""Per-caller connection state and badge status."""
import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..protocol.channels import Port

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """State of one caller's persistent connection."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass
class RelaySession:
    """A caller connected over a persistent port."""
    caller_id: str
    port: Optional[Port] = None
    state: ConnectionState = ConnectionState.DISCONNECTED
    connected_at: Optional[datetime] = None
    requests_handled: int = 0

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def attach(self, port: Port) -> None:
        self.port = port
        self.state = ConnectionState.CONNECTED
        self.connected_at = datetime.now(timezone.utc)

    def detach(self) -> None:
        self.port = None
        self.state = ConnectionState.DISCONNECTED


class SessionRegistry:
    """Sessions keyed by caller id."""

    def __init__(self) -> None:
        self._sessions: dict[str, RelaySession] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def open(self, port: Port) -> RelaySession:
        with self._lock:
            caller_id = f"{port.name}-{next(self._ids)}"
            session = RelaySession(caller_id=caller_id)
            session.attach(port)
            self._sessions[caller_id] = session
        logger.info(f"Session {caller_id} connected")
        return session

    def close(self, caller_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(caller_id, None)
            if session is not None:
                session.detach()
        logger.info(f"Session {caller_id} disconnected")

    def get(self, caller_id: str) -> Optional[RelaySession]:
        with self._lock:
            return self._sessions.get(caller_id)

    def connected(self) -> list[RelaySession]:
        with self._lock:
            return [s for s in self._sessions.values() if s.is_connected]


class BadgeColor(str, Enum):
    CONNECTED = "#22c55e"
    WARNING = "#eab308"
    ERROR = "#ef4444"
    NEUTRAL = "#3b82f6"


@dataclass(frozen=True)
class BadgeStatus:
    """Short status text and color mirroring the last outcome."""
    text: str = ""
    color: BadgeColor = BadgeColor.NEUTRAL

    @classmethod
    def connected(cls, text: str = "") -> "BadgeStatus":
        return cls(text=text, color=BadgeColor.CONNECTED)

    @classmethod
    def warning(cls) -> "BadgeStatus":
        return cls(text="!", color=BadgeColor.WARNING)

    @classmethod
    def error(cls) -> "BadgeStatus":
        return cls(text="!", color=BadgeColor.ERROR)
