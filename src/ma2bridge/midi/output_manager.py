"""MIDI output port handling."""

import logging
import threading
from typing import Optional

import mido

from .ports import find_port

logger = logging.getLogger(__name__)


class MidiOutputManager:
    """Controller output port (LED feedback)."""

    def __init__(self, device_name: str):
        """
        Initialize MIDI output manager.

        Args:
            device_name: Configured output port name (exact or substring)
        """
        self._device_name = device_name
        self._port: Optional[mido.ports.BaseOutput] = None
        self._port_lock = threading.Lock()

    def open(self) -> bool:
        """
        Open the output port, closing any previous one.

        Returns:
            True if the port is open
        """
        self.close()

        port_name = find_port(mido.get_output_names(), self._device_name)
        if port_name is None:
            logger.error(f"No MIDI output matching '{self._device_name}'")
            return False

        with self._port_lock:
            try:
                self._port = mido.open_output(port_name)
            except Exception as e:
                logger.error(f"Failed to connect to {port_name}: {e}")
                self._port = None
                return False

        logger.info(f"Connected to MIDI output: {port_name}")
        return True

    def close(self) -> None:
        """Close the port. Safe to call when already closed."""
        with self._port_lock:
            if self._port is None:
                return
            try:
                self._port.close()
            except (OSError, IOError) as e:
                logger.warning(f"Error closing existing MIDI output: {e}")
            self._port = None

    def send(self, message: mido.Message) -> bool:
        """
        Send MIDI message to device.

        Returns:
            True if sent successfully, False if not connected
        """
        with self._port_lock:
            if self._port:
                try:
                    self._port.send(message)
                    return True
                except (OSError, IOError, ValueError) as e:
                    logger.error(f"Error sending MIDI message: {e}")
                    return False
            return False

    @property
    def is_connected(self) -> bool:
        with self._port_lock:
            return self._port is not None

    @property
    def current_port(self) -> Optional[str]:
        with self._port_lock:
            return self._port.name if self._port else None
