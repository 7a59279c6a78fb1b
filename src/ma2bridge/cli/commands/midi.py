"""MIDI command implementations."""

import click

from ma2bridge.midi import find_port, list_ports

from .common import load_config


@click.group(name="midi")
def midi_group():
    """MIDI device commands."""
    pass


@midi_group.command(name="list")
@click.pass_context
def list_midi(ctx):
    """List available MIDI ports and mark the configured controller."""
    ports = list_ports()
    config = load_config(ctx)

    selected_input = find_port(ports["input"], config.midi_in_device)
    selected_output = find_port(ports["output"], config.midi_out_device)

    click.echo("MIDI Input Ports:\n")
    if not ports["input"]:
        click.echo("  No MIDI input ports found.")
    else:
        for i, port in enumerate(ports["input"]):
            marker = "  <- configured" if port == selected_input else ""
            click.echo(f"  [{i}] {port}{marker}")

    click.echo("\nMIDI Output Ports:\n")
    if not ports["output"]:
        click.echo("  No MIDI output ports found.")
    else:
        for i, port in enumerate(ports["output"]):
            marker = "  <- configured" if port == selected_output else ""
            click.echo(f"  [{i}] {port}{marker}")
