"""Bridge orchestration: wiring, event routing, poller and teardown."""

import logging
from typing import Optional

from ma2bridge.core.history import MidiHistory
from ma2bridge.core.reconnect import ReconnectionSupervisor
from ma2bridge.core.session import SessionOutcome, SessionStateMachine
from ma2bridge.core.translator import EventTranslator
from ma2bridge.exceptions import BridgeError, FatalSessionError
from ma2bridge.models import FATAL_SESSION, BridgeConfig, ConnectionState
from ma2bridge.protocols import (
    Cancellable,
    DeviceEvent,
    DeviceTransport,
    RemoteClosed,
    RemoteError,
    RemoteEvent,
    RemoteMessage,
    RemoteOpened,
    RemoteTransport,
    Scheduler,
)
from ma2bridge.remote import messages, parse_inbound

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Owns the bridge components and routes every event between them.

    Implements SessionCallbacks for the session state machine.

    Transport handlers (on_device_event, on_remote_event) may be called
    from MIDI or websocket threads; they only post to the scheduler.
    Everything else runs on the scheduler's loop thread.

    Responsibilities:
    - Startup ordering (controller first, console after a delay)
    - Inbound message routing (handshake, session rules, LED updates)
    - Keep-alive poller once logged in
    - Reconnection and LED refresh scheduling
    - Teardown on signal or fatal session error

    NOT responsible for:
    - Logging setup, signal handlers, process exit (CLI)
    - Wire formats (remote.messages)
    """

    def __init__(
        self,
        config: BridgeConfig,
        device: DeviceTransport,
        remote: RemoteTransport,
        scheduler: Scheduler,
        history: Optional[MidiHistory] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            config: Bridge configuration
            device: Controller transport
            remote: Console transport
            scheduler: Event loop that runs all handlers
            history: Controller event history. If None and config.debug is set,
                     one is created with config.max_midi_history entries.
        """
        self.config = config
        self.state = ConnectionState()

        self._device = device
        self._remote = remote
        self._scheduler = scheduler

        if history is None and config.debug:
            history = MidiHistory(config.max_midi_history)
        self.history = history

        self.session = SessionStateMachine(config, self.state, remote, self)
        self.translator = EventTranslator(config, self.state, device, remote)
        self.supervisor = ReconnectionSupervisor(
            config, self.state, device, remote, scheduler, device_handler=self.on_device_event
        )

        self._poller: Optional[Cancellable] = None
        self.halted = False
        self.exit_code: Optional[int] = None
        self.failure: Optional[BridgeError] = None

    # =================================================================
    # Lifecycle
    # =================================================================

    def start(self) -> None:
        """Open the controller, clear its LEDs and schedule the console connection."""
        logger.info("Starting APC mini MA2 bridge...")

        logger.info(f"Connecting to MIDI device {self.config.midi_in_device}")
        if not self._device.connect():
            logger.error("MIDI device not available, continuing without it")
        self._device.set_handler(self.on_device_event)
        self._remote.set_handler(self.on_remote_event)

        self.translator.clear_all_leds()

        delay = self.config.startup_delay_ms / 1000
        logger.info(f"Connecting to console in {delay:.1f}s")
        self._scheduler.call_later(delay, self._connect_remote)

    def _connect_remote(self) -> None:
        if self.halted:
            return
        self._remote.connect()

    def shutdown(self, exit_code: int = 0) -> None:
        """
        Tear everything down and stop the loop.

        Safe to call more than once; only the first call has any effect.
        """
        if self.halted:
            return

        logger.info("Shutting down...")
        self.translator.clear_all_leds()
        self._device.close()
        self._remote.close()

        if self._poller is not None:
            self._poller.cancel()
            self._poller = None
        self.supervisor.stop()

        self.halted = True
        self.exit_code = exit_code

        if self.history is not None:
            self.history.dump()

        self._scheduler.stop()
        logger.info(f"Bridge stopped (exit code {exit_code})")

    # =================================================================
    # Transport handlers (any thread)
    # =================================================================

    def on_device_event(self, event: DeviceEvent) -> None:
        self._scheduler.post(self.handle_device_event, event)

    def on_remote_event(self, event: RemoteEvent) -> None:
        self._scheduler.post(self.handle_remote_event, event)

    # =================================================================
    # Event routing (loop thread)
    # =================================================================

    def handle_device_event(self, event: DeviceEvent) -> None:
        if self.halted:
            return
        if self.history is not None:
            self.history.record(event)
        self.translator.handle_device_event(event)

    def handle_remote_event(self, event: RemoteEvent) -> None:
        if self.halted:
            return

        if isinstance(event, RemoteOpened):
            self.session.on_transport_open()
        elif isinstance(event, RemoteMessage):
            self.handle_message(event.data)
        elif isinstance(event, RemoteError):
            logger.error(f"WebSocket error: {event.message}")
            self._connection_lost()
        elif isinstance(event, RemoteClosed):
            self._connection_lost()
        else:
            logger.warning(f"Unhandled console event: {event!r}")

    def _connection_lost(self) -> None:
        self.session.on_transport_closed()
        self.schedule_reconnection()

    def handle_message(self, data: str | bytes) -> None:
        """Route one inbound console frame."""
        msg = parse_inbound(data)
        if msg is None:
            return

        # A refused session ends the bridge whatever the login phase
        if msg.session == FATAL_SESSION:
            self.session.refuse()
            self._fail_session()
            return

        if self.session.handle_handshake(msg):
            return

        if not self.state.is_connected:
            logger.warning("Received message while not connected, ignoring")
            return

        self.translator.request_data_if_due()

        if self.session.handle_session(msg) is SessionOutcome.RECONNECT:
            # The rest of the frame still counts; LED writes wait for the next login
            logger.debug("Session lost, routing the remaining message fields")

        if msg.text:
            logger.info(f"Console: {msg.text}")

        if msg.is_playbacks:
            self.translator.handle_playbacks(msg)

    def _fail_session(self) -> None:
        self.failure = FatalSessionError(self.config.username)
        self.shutdown(1)

    # =================================================================
    # SessionCallbacks
    # =================================================================

    def start_poller(self) -> None:
        if self._poller is not None:
            return
        interval = self.config.poll_interval_ms / 1000
        self._poller = self._scheduler.call_every(interval, self._tick)
        logger.debug(f"Keep-alive poller started ({self.config.poll_interval_ms}ms)")

    def schedule_led_refresh(self) -> None:
        self._scheduler.call_later(self.config.led_refresh_delay_ms / 1000, self._refresh_leds)

    def schedule_reconnection(self) -> None:
        self.supervisor.schedule_reconnection()

    def _tick(self) -> None:
        if self.halted or not self._remote.is_open:
            return
        self._remote.send(messages.session_echo(self.state.session))

    def _refresh_leds(self) -> None:
        if self.halted or not self.state.is_connected:
            return
        logger.info("Refreshing LED states...")
        self.translator.request_data()
        self.translator.refresh_leds()

    @property
    def poller_running(self) -> bool:
        return self._poller is not None
