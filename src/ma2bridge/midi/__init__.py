"""MIDI controller input/output."""

from .input_manager import MidiInputManager, parse_midi_message
from .output_manager import MidiOutputManager
from .ports import find_port, list_ports
from .transport import MidiDeviceTransport

__all__ = [
    "MidiDeviceTransport",
    "MidiInputManager",
    "MidiOutputManager",
    "find_port",
    "list_ports",
    "parse_midi_message",
]
