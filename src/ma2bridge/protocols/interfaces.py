"""Capability protocols consumed by the bridge core.

The core never talks to mido, websockets or threads directly; it receives
objects implementing these protocols, so tests can substitute fakes.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .events import DeviceEvent, RemoteEvent


@runtime_checkable
class Cancellable(Protocol):
    """Handle for a scheduled timer."""

    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    """
    Single-threaded work queue with timers.

    Handlers run one at a time on the loop thread. Timers never run their
    callback synchronously; they post it to the queue when they fire.
    """

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue fn(*args) for the loop thread. Safe from any thread."""
        ...

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> Cancellable:
        """Queue fn(*args) after delay seconds."""
        ...

    def call_every(self, interval: float, fn: Callable[[], Any]) -> Cancellable:
        """Queue fn() every interval seconds until cancelled."""
        ...

    def stop(self) -> None:
        """Stop the loop after the current handler."""
        ...


@runtime_checkable
class DeviceTransport(Protocol):
    """MIDI controller input and output."""

    def connect(self) -> bool:
        """Open the controller ports, closing any previous ones first."""
        ...

    def close(self) -> None:
        """Close the controller ports. Safe to call when already closed."""
        ...

    def set_handler(self, handler: Callable[[DeviceEvent], None] | None) -> None:
        """Register the single handler for controller events."""
        ...

    def send_note_on(self, note: int, velocity: int, channel: int = 0) -> None:
        ...

    def send_note_off(self, note: int, velocity: int = 0, channel: int = 0) -> None:
        ...

    @property
    def is_connected(self) -> bool:
        ...


@runtime_checkable
class RemoteTransport(Protocol):
    """Persistent message connection to the console."""

    def connect(self) -> None:
        """Start opening the connection; the outcome arrives as a RemoteEvent."""
        ...

    def send(self, message: dict[str, Any]) -> bool:
        """Serialize and send if open. Returns False (and drops) otherwise."""
        ...

    def close(self) -> None:
        """Close the connection. Safe to call when already closed."""
        ...

    def set_handler(self, handler: Callable[[RemoteEvent], None] | None) -> None:
        """Register the single handler for connection events."""
        ...

    @property
    def is_open(self) -> bool:
        ...


@runtime_checkable
class SessionCallbacks(Protocol):
    """Side effects the session state machine asks its owner to perform."""

    def start_poller(self) -> None:
        """Start the keep-alive poller unless it is already running."""
        ...

    def schedule_led_refresh(self) -> None:
        """Refresh controller LEDs after a short delay."""
        ...

    def schedule_reconnection(self) -> None:
        """Start a reconnection cycle (no-op while one is pending)."""
        ...
