"""Mutable runtime state shared by the bridge components."""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

NO_SESSION = 0
FATAL_SESSION = -1


class SessionPhase(Enum):
    """Handshake progress of the console session."""

    DISCONNECTED = "disconnected"                    # No usable console connection
    AWAITING_SERVER_READY = "awaiting_server_ready"  # Socket open, console not ready yet
    AWAITING_LOGIN = "awaiting_login"                # Session requested or login sent
    LOGGED_IN = "logged_in"                          # Login confirmed by the console


@dataclass
class ConnectionState:
    """
    Console connection state.

    Created once at startup and passed explicitly to the components that
    need it. Only touched from the event loop thread.
    """

    is_connected: bool = False
    is_reconnecting: bool = False
    reconnect_attempts: int = 0
    session: int = NO_SESSION
    pending_request_count: int = 0
    phase: SessionPhase = SessionPhase.DISCONNECTED

    def mark_disconnected(self) -> None:
        self.is_connected = False
        self.phase = SessionPhase.DISCONNECTED


class LedMatrix:
    """LED codes last sent to (or queued for) the controller, one per index."""

    def __init__(self, size: int = 128):
        self._values = [0] * size

    def __len__(self) -> int:
        return len(self._values)

    def get(self, index: int) -> int:
        return self._values[index]

    def set(self, index: int, value: int) -> bool:
        """
        Store an LED code.

        Returns:
            True if the stored value changed
        """
        if self._values[index] == value:
            return False
        self._values[index] = value
        return True

    def clear(self) -> None:
        self._values = [0] * len(self._values)

    def items(self) -> Iterator[tuple[int, int]]:
        return iter(enumerate(list(self._values)))
