"""LED utility commands."""

import logging

import click

from ma2bridge.exceptions import DeviceConnectionError
from ma2bridge.midi import MidiDeviceTransport

from .common import fail, load_config

logger = logging.getLogger(__name__)


@click.group(name="leds")
def leds_group():
    """Controller LED commands."""
    pass


@leds_group.command(name="clear")
@click.pass_context
def clear_leds(ctx):
    """Turn off every LED on the configured controller."""
    config = load_config(ctx)
    device = MidiDeviceTransport(config.midi_in_device, config.midi_out_device)

    try:
        if not device.connect():
            raise DeviceConnectionError(config.midi_in_device, config.midi_out_device)

        for note in range(config.layout.total_leds):
            device.send_note_on(note, 0, 0)
    except DeviceConnectionError as e:
        logger.error(e.technical_message)
        fail(e)
    finally:
        device.close()

    click.echo(f"Cleared {config.layout.total_leds} LEDs on {config.midi_out_device}")
