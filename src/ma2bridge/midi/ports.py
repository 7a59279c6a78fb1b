"""MIDI port discovery."""

import logging
from typing import Optional

import mido

logger = logging.getLogger(__name__)


def find_port(available_ports: list[str], wanted: str) -> Optional[str]:
    """
    Pick the port matching a configured device name.

    An exact name wins; otherwise the first port containing the name
    (ports are often suffixed with client/port numbers, e.g. "APC mini:0 20:0").
    """
    if wanted in available_ports:
        return wanted

    matching_ports = [p for p in available_ports if wanted in p]
    if not matching_ports:
        return None
    return matching_ports[0]


def list_ports() -> dict[str, list[str]]:
    """
    List all available MIDI ports.

    Returns:
        Dictionary with 'input' and 'output' lists of port names
    """
    return {
        'input': mido.get_input_names(),
        'output': mido.get_output_names()
    }
