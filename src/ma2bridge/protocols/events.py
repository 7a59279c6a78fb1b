"""Events delivered by the transports.

Each transport reports through a single handler that receives one of the
event types below, so every consumer dispatches over a closed set:

- Device events: controller input (note on/off, control change, errors)
- Remote events: console connection lifecycle and raw frames
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NoteOn:
    """Note on with a non-zero velocity (button pressed)."""
    note: int
    velocity: int
    channel: int = 0


@dataclass(frozen=True)
class NoteOff:
    """Note off, or note on with velocity 0 (button released)."""
    note: int
    velocity: int = 0
    channel: int = 0


@dataclass(frozen=True)
class ControlChange:
    """Control change (fader moved)."""
    control: int
    value: int
    channel: int = 0


@dataclass(frozen=True)
class DeviceError:
    """Error reported by the MIDI layer."""
    message: str


DeviceEvent = Union[NoteOn, NoteOff, ControlChange, DeviceError]


@dataclass(frozen=True)
class RemoteOpened:
    """Console socket opened."""


@dataclass(frozen=True)
class RemoteClosed:
    """Console socket closed (or could not be opened)."""
    reason: str = ""


@dataclass(frozen=True)
class RemoteError:
    """Console socket error."""
    message: str


@dataclass(frozen=True)
class RemoteMessage:
    """Raw frame received from the console (text or binary)."""
    data: str | bytes


RemoteEvent = Union[RemoteOpened, RemoteClosed, RemoteError, RemoteMessage]
