"""Event types and capability protocols shared across the bridge."""

from .events import (
    ControlChange,
    DeviceError,
    DeviceEvent,
    NoteOff,
    NoteOn,
    RemoteClosed,
    RemoteError,
    RemoteEvent,
    RemoteMessage,
    RemoteOpened,
)
from .interfaces import Cancellable, DeviceTransport, RemoteTransport, Scheduler, SessionCallbacks

__all__ = [
    # Device events
    "ControlChange",
    "DeviceError",
    "DeviceEvent",
    "NoteOff",
    "NoteOn",
    # Remote events
    "RemoteClosed",
    "RemoteError",
    "RemoteEvent",
    "RemoteMessage",
    "RemoteOpened",
    # Capabilities
    "Cancellable",
    "DeviceTransport",
    "RemoteTransport",
    "Scheduler",
    "SessionCallbacks",
]
