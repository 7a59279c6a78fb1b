"""CLI commands for ma2bridge."""

from .config import config
from .leds import leds_group
from .midi import midi_group

__all__ = ["config", "leds_group", "midi_group"]
