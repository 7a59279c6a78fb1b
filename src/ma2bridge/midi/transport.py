"""MIDI controller transport combining input and output ports."""

import logging
from collections.abc import Callable
from typing import Optional

import mido

from ma2bridge.protocols import DeviceError, DeviceEvent

from .input_manager import MidiInputManager
from .output_manager import MidiOutputManager

logger = logging.getLogger(__name__)


class MidiDeviceTransport:
    """
    Controller transport over mido.

    Provides the DeviceTransport capability: connect/close of the input and
    output ports, note on/off output for LEDs, and a single event handler.
    """

    def __init__(self, input_name: str, output_name: str):
        """
        Initialize the transport.

        Args:
            input_name: Configured input port name
            output_name: Configured output port name
        """
        self._input = MidiInputManager(input_name)
        self._output = MidiOutputManager(output_name)
        self._handler: Optional[Callable[[DeviceEvent], None]] = None

    def set_handler(self, handler: Optional[Callable[[DeviceEvent], None]]) -> None:
        """
        Register the handler for controller events.

        Handler is executed in mido's internal I/O thread - keep it fast!
        """
        self._handler = handler
        self._input.on_event(handler)

    def connect(self) -> bool:
        """
        Open input and output, closing any previous connection first.

        Returns:
            True if both ports are open
        """
        self.close()
        input_ok = self._input.open()
        output_ok = self._output.open()

        if input_ok and output_ok:
            logger.info("MIDI devices connected successfully")
            return True

        logger.error("Failed to connect to MIDI devices")
        return False

    def close(self) -> None:
        """Close both ports. Safe to call when already closed."""
        self._input.close()
        self._output.close()

    def send_note_on(self, note: int, velocity: int, channel: int = 0) -> None:
        self._send(mido.Message('note_on', note=note, velocity=velocity, channel=channel))

    def send_note_off(self, note: int, velocity: int = 0, channel: int = 0) -> None:
        self._send(mido.Message('note_off', note=note, velocity=velocity, channel=channel))

    def _send(self, message: mido.Message) -> None:
        if not self._output.is_connected:
            return
        if not self._output.send(message) and self._handler is not None:
            self._handler(DeviceError(message=f"failed to send {message.type} {message.note}"))

    @property
    def is_connected(self) -> bool:
        """Check if both input and output ports are open."""
        return self._input.is_connected and self._output.is_connected

    @property
    def current_input_port(self) -> Optional[str]:
        return self._input.current_port

    @property
    def current_output_port(self) -> Optional[str]:
        return self._output.current_port

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
