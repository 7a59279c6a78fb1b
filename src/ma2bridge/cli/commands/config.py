"""
Config commands.

Commands:
    - config show            # Effective configuration (file + environment)
    - config init [--force]  # Write a default config file
"""

import json

import click

from ma2bridge.exceptions import BridgeError
from ma2bridge.models import BridgeConfig
from ma2bridge.models.config import DEFAULT_CONFIG_PATH

from .common import config_path_from, fail, load_config

MASK = "********"


@click.group(name="config")
def config():
    """Configure the bridge."""
    pass


@config.command(name="show")
@click.pass_context
def show_config(ctx):
    """Show the effective configuration (password masked)."""
    path = config_path_from(ctx) or DEFAULT_CONFIG_PATH
    config_obj = load_config(ctx)

    if path.exists():
        click.echo(f"Config file: {path}")
    else:
        click.echo(f"Config file: {path} (not found, using defaults)")

    overrides = BridgeConfig.env_overrides()
    if overrides:
        click.echo(f"Environment overrides: {', '.join(sorted(overrides))}")

    data = config_obj.model_dump(mode="json")
    data["password"] = MASK
    click.echo(json.dumps(data, indent=2))


@config.command(name="init")
@click.option('--force', is_flag=True, help='Overwrite an existing config file')
@click.pass_context
def init_config(ctx, force: bool):
    """Write a config file with default settings."""
    path = config_path_from(ctx) or DEFAULT_CONFIG_PATH

    if path.exists() and not force:
        click.echo(f"Config file already exists: {path}", err=True)
        click.echo("Use --force to overwrite it (a .bak copy is kept).", err=True)
        raise SystemExit(1)

    try:
        BridgeConfig().save(path)
    except (OSError, BridgeError) as e:
        fail(e)

    click.echo(f"Wrote default config to {path}")
