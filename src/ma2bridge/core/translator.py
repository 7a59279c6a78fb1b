"""Translation between controller events and console requests."""

import logging
from typing import Optional

from ma2bridge.models import BridgeConfig, ConnectionState, LedMatrix
from ma2bridge.protocols import (
    ControlChange,
    DeviceError,
    DeviceEvent,
    DeviceTransport,
    NoteOff,
    NoteOn,
    RemoteTransport,
)
from ma2bridge.remote import messages
from ma2bridge.remote.messages import InboundMessage, PlaybackItem

logger = logging.getLogger(__name__)


class EventTranslator:
    """
    Maps controller input to console requests and console state to LEDs.

    Outbound:
    - Small button press -> playbacks_userInput button press
    - Executor button press -> logged only
    - Page select press -> switch console page, refresh data
    - Fader move -> fader curve -> playbacks_userInput fader value
    - Note off -> logged only (the console models presses, not held keys)

    Inbound:
    - playbacks responses count toward the data refresh threshold and
      update the LED matrix (sub-type 3: buttons, sub-type 2: faders)
    """

    def __init__(
        self,
        config: BridgeConfig,
        state: ConnectionState,
        device: DeviceTransport,
        remote: RemoteTransport,
    ):
        self._config = config
        self._state = state
        self._device = device
        self._remote = remote
        self._leds = LedMatrix(config.layout.total_leds)
        self.page_index = 0

    @property
    def leds(self) -> LedMatrix:
        return self._leds

    # Controller -> console

    def handle_device_event(self, event: DeviceEvent) -> None:
        """Dispatch one controller event."""
        if isinstance(event, NoteOn):
            self._handle_note_on(event)
        elif isinstance(event, NoteOff):
            logger.debug(f"MIDI noteoff: {event.note}")
        elif isinstance(event, ControlChange):
            self._handle_control_change(event)
        elif isinstance(event, DeviceError):
            logger.error(f"MIDI error: {event.message}")
        else:
            logger.warning(f"Unhandled controller event: {event!r}")

    def _handle_note_on(self, event: NoteOn) -> None:
        note = event.note
        logger.debug(f"MIDI noteon: {note}")

        layout = self._config.layout
        if note in layout.small_buttons:
            self.press_button(note)
        elif note in layout.executor_buttons:
            self.press_executor_button(note)
        elif note in layout.page_select:
            self.select_page(layout.page_select.offset(note))

    def _handle_control_change(self, event: ControlChange) -> None:
        logger.debug(f"MIDI CC: controller={event.control}, value={event.value}")
        if event.control in self._config.layout.faders:
            self.move_fader(event.control, event.value)

    def press_button(self, note: int) -> Optional[dict]:
        """
        Send a button press for a small-button note.

        Returns:
            The request sent, or None if not logged in
        """
        exec_index = self._config.executor_for_button(note)
        if not self._state.is_connected:
            logger.debug(f"Not logged in, dropping press of executor {exec_index}")
            return None

        request = messages.button_press_request(exec_index, self.page_index, self._state.session)
        self._remote.send(request)
        return request

    def press_executor_button(self, note: int) -> None:
        # No console request is defined for these buttons yet.
        logger.info(f"Executor button pressed: {note}")

    def select_page(self, page: int) -> None:
        """Switch the console page addressed by button and fader requests."""
        if self._config.page_select_mode != 0:
            logger.debug(f"Page select disabled, ignoring page {page + 1}")
            return

        self.page_index = page
        logger.info(f"Page {page + 1} selected")

        page_buttons = self._config.layout.page_select
        for offset in range(page_buttons.size):
            velocity = self._config.led_on_velocity if offset == page else self._config.led_off_velocity
            self._set_led(page_buttons.start + offset, velocity)

        if self._state.is_connected:
            self.request_data()

    def move_fader(self, control: int, raw_value: int) -> Optional[dict]:
        """
        Send a fader value, normalized through the fader curve.

        Returns:
            The request sent, or None if not logged in
        """
        value = self._config.fader_curve.normalize(raw_value)
        exec_index = self._config.executor_for_fader(control)
        logger.debug(f"Fader {control} moved to {value}")

        if not self._state.is_connected:
            return None

        request = messages.fader_request(exec_index, self.page_index, value, self._state.session)
        self._remote.send(request)
        return request

    # Console -> controller

    def handle_playbacks(self, msg: InboundMessage) -> None:
        """Process a playbacks response."""
        self._state.pending_request_count += 1

        if msg.response_sub_type == messages.SUBTYPE_BUTTON_LEDS:
            logger.debug("Processing button LEDs")
            layout = self._config.layout
            self._apply_items(layout.small_buttons.start, layout.small_buttons.size, msg.playback_items())
        elif msg.response_sub_type == messages.SUBTYPE_FADER_LEDS:
            logger.debug("Processing fader LEDs")
            layout = self._config.layout
            self._apply_items(layout.fader_led_offset, layout.faders.size, msg.playback_items())

    def _apply_items(self, first_index: int, count: int, items: list[PlaybackItem]) -> None:
        for offset, item in enumerate(items[:count]):
            velocity = self._config.led_on_velocity if item.is_run else self._config.led_off_velocity
            self._set_led(first_index + offset, velocity)

    def _set_led(self, index: int, velocity: int) -> None:
        if index >= len(self._leds):
            return
        # While disconnected only the matrix changes; refresh_leds sends it later
        if self._leds.set(index, velocity) and self._state.is_connected:
            self._device.send_note_on(index, velocity, self._config.led_channel)

    def clear_all_leds(self) -> None:
        """Turn every LED off, whatever the matrix says."""
        for index in range(len(self._leds)):
            self._device.send_note_on(index, 0, 0)
        self._leds.clear()
        logger.debug(f"Cleared {len(self._leds)} LEDs")

    def refresh_leds(self) -> None:
        """Re-send the whole LED matrix (after the controller was reconnected)."""
        for index, velocity in self._leds.items():
            self._device.send_note_on(index, velocity, self._config.led_channel)
        logger.info("Refreshed LED states")

    # Request gating

    def request_data_if_due(self) -> bool:
        """
        Run a data request cycle once enough playbacks responses arrived.

        Returns:
            True if a cycle was sent
        """
        if self._state.pending_request_count < self._config.request_threshold:
            return False
        self.request_data()
        return True

    def request_data(self) -> None:
        """Announce the session and ask for executor state."""
        session = self._state.session
        self._remote.send(messages.session_echo(session))
        self._remote.send(messages.data_request(session, self._config.data_max_requests))
        self._state.pending_request_count = 0
