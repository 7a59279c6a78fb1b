"""MIDI input port handling."""

import logging
import threading
from collections.abc import Callable
from typing import Optional

import mido

from ma2bridge.protocols import ControlChange, DeviceError, DeviceEvent, NoteOff, NoteOn

from .ports import find_port

logger = logging.getLogger(__name__)


def parse_midi_message(msg: mido.Message) -> Optional[DeviceEvent]:
    """
    Convert a mido message into a controller event.

    Note on with velocity 0 is reported as note off. Message types the
    bridge does not use (clock, sysex, ...) return None.
    """
    if msg.type == 'note_on':
        if msg.velocity > 0:
            return NoteOn(note=msg.note, velocity=msg.velocity, channel=msg.channel)
        return NoteOff(note=msg.note, velocity=0, channel=msg.channel)
    if msg.type == 'note_off':
        return NoteOff(note=msg.note, velocity=msg.velocity, channel=msg.channel)
    if msg.type == 'control_change':
        return ControlChange(control=msg.control, value=msg.value, channel=msg.channel)
    return None


class MidiInputManager:
    """
    Controller input port.

    Opens the configured input with a mido callback and reports parsed
    events to a single registered handler.
    """

    def __init__(self, device_name: str):
        """
        Initialize MIDI input manager.

        Args:
            device_name: Configured input port name (exact or substring)
        """
        self._device_name = device_name
        self._port: Optional[mido.ports.BaseInput] = None
        self._port_lock = threading.Lock()
        self._handler: Optional[Callable[[DeviceEvent], None]] = None

    def on_event(self, handler: Optional[Callable[[DeviceEvent], None]]) -> None:
        """
        Register the handler for controller events.

        Handler is executed in mido's internal I/O thread - keep it fast!
        """
        self._handler = handler

    def open(self) -> bool:
        """
        Open the input port, closing any previous one.

        Returns:
            True if the port is open
        """
        self.close()

        port_name = find_port(mido.get_input_names(), self._device_name)
        if port_name is None:
            logger.error(f"No MIDI input matching '{self._device_name}'")
            return False

        with self._port_lock:
            try:
                self._port = mido.open_input(port_name, callback=self._midi_callback)
            except Exception as e:
                logger.error(f"Failed to connect to {port_name}: {e}")
                self._port = None
                return False

        logger.info(f"Connected to MIDI input: {port_name}")
        return True

    def close(self) -> None:
        """Close the port. Safe to call when already closed."""
        with self._port_lock:
            if self._port is None:
                return
            try:
                self._port.close()
            except (OSError, IOError) as e:
                logger.warning(f"Error closing existing MIDI input: {e}")
            self._port = None

    @property
    def is_connected(self) -> bool:
        with self._port_lock:
            return self._port is not None

    @property
    def current_port(self) -> Optional[str]:
        with self._port_lock:
            return self._port.name if self._port else None

    def _midi_callback(self, msg: mido.Message) -> None:
        """MIDI message callback - called from mido's internal I/O thread."""
        handler = self._handler
        if handler is None:
            return
        try:
            event = parse_midi_message(msg)
            if event is not None:
                handler(event)
        except Exception as e:
            logger.error(f"Error in MIDI input callback: {e}")
            try:
                handler(DeviceError(message=str(e)))
            except Exception:
                logger.exception("Error reporting MIDI input failure")
