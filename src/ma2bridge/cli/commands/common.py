"""Helpers shared by the utility commands."""

import sys
from pathlib import Path
from typing import NoReturn, Optional

import click

from ma2bridge.exceptions import BridgeError, exit_code_for, format_error_for_display
from ma2bridge.models import BridgeConfig


def config_path_from(ctx: click.Context) -> Optional[Path]:
    """The --config path given to the root command, if any."""
    root = ctx.find_root()
    return (root.obj or {}).get("config_path")


def fail(error: Exception) -> NoReturn:
    """Print an error with its recovery hint and exit with its status."""
    user_message, recovery_hint = format_error_for_display(error)
    click.echo(f"ERROR: {user_message}", err=True)
    if recovery_hint:
        click.echo(recovery_hint, err=True)
    sys.exit(exit_code_for(error))


def load_config(ctx: click.Context) -> BridgeConfig:
    """Load the effective config, exiting with a readable error if it is invalid."""
    try:
        return BridgeConfig.load(config_path_from(ctx))
    except BridgeError as e:
        fail(e)
