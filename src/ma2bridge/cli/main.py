"""Main CLI entry point."""

import logging
import logging.handlers
import signal
import sys
from pathlib import Path
from typing import Optional

import click

from ma2bridge import __version__

from .commands import config, leds_group, midi_group

logger = logging.getLogger(__name__)

LOG_DIR = Path.home() / ".ma2bridge" / "logs"


def _log_path(debug: bool, log_file: Optional[Path]) -> Path:
    if log_file:
        return log_file
    if debug:
        # Debug mode: log to current directory
        return Path.cwd() / "ma2bridge-debug.log"
    return LOG_DIR / "ma2bridge.log"


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], log_level: str) -> Path:
    """
    Configure logging for the bridge.

    Args:
        verbose: Verbosity count (0 = WARNING, 1 = INFO, 2+ = DEBUG)
        debug: If True, enable debug mode with file logging in the current directory
        log_file: Custom log file path (optional)
        log_level: Log level when a custom log file is given (DEBUG/INFO/WARNING/ERROR)

    Returns:
        Path of the log file
    """
    # Determine log level based on flags
    if debug:
        level = logging.DEBUG
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Override with explicit log level if provided
    if log_file:
        level = getattr(logging, log_level.upper())

    log_path = _log_path(debug, log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Create rotating file handler (keeps last 5 files, max 10MB each)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # The bridge is headless, so log to stderr as well
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(level)}, file={log_path}")
    return log_path


def run_bridge(config_obj) -> int:
    """
    Build the transports and run the bridge until it shuts down.

    Returns:
        Process exit code

    Raises:
        FatalSessionError: If the console refused the session
    """
    from ma2bridge.core import Dispatcher, EventLoop
    from ma2bridge.midi import MidiDeviceTransport
    from ma2bridge.remote import WebSocketTransport

    loop = EventLoop()
    device = MidiDeviceTransport(config_obj.midi_in_device, config_obj.midi_out_device)
    remote = WebSocketTransport(config_obj.remote_url)
    dispatcher = Dispatcher(config_obj, device, remote, loop)

    def handle_sigterm(signum, frame):
        logger.info("Received SIGTERM, shutting down")
        loop.post(dispatcher.shutdown, 0)

    signal.signal(signal.SIGTERM, handle_sigterm)

    dispatcher.start()
    try:
        loop.run()
    except KeyboardInterrupt:
        logger.info("Bridge interrupted by user")
        click.echo("\nShutting down...", err=True)
        dispatcher.shutdown(0)

    if dispatcher.failure is not None:
        raise dispatcher.failure
    return dispatcher.exit_code or 0


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__, prog_name="ma2bridge")
@click.option(
    '--config',
    '-c',
    'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Config file (default: ~/.ma2bridge/config.json)'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase verbosity (-v: INFO, -vv: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, MIDI history, logs to ./ma2bridge-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Custom log file path'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='INFO',
    help='Log level for file logging (default: INFO)'
)
def cli(
    ctx,
    config_path: Optional[Path],
    verbose: int,
    debug: bool,
    log_file: Optional[Path],
    log_level: str
):
    """
    APC mini bridge for the grandMA2 Web Remote.

    Runs the bridge when no command is given. Settings come from the config
    file, overridden by environment variables (WS_URL, MIDI_IN_DEVICE,
    MA2_PASSWORD, ...).

    \b
    Examples:
      # Run the bridge
      ma2bridge

      # Run against another console
      WS_URL=192.168.0.10 ma2bridge -v

      # Enable debug logging and MIDI history
      ma2bridge --debug

      # List MIDI devices
      ma2bridge midi list

      # Turn off all controller LEDs
      ma2bridge leds clear
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    # If a subcommand was invoked, don't run the bridge
    if ctx.invoked_subcommand is not None:
        return

    from ma2bridge.models import BridgeConfig

    log_path = setup_logging(verbose, debug, log_file, log_level)
    logger.info("Starting ma2bridge")

    try:
        config_obj = BridgeConfig.load(config_path)
        if debug and not config_obj.debug:
            config_obj = config_obj.model_copy(update={"debug": True})

        exit_code = run_bridge(config_obj)

    except click.Abort:
        raise
    except Exception as e:
        from ma2bridge.exceptions import exit_code_for, format_error_for_display

        logger.exception("Error running bridge")

        # Format error message (handles both custom and standard exceptions)
        user_message, recovery_hint = format_error_for_display(e)

        click.echo("\n" + "="*70, err=True)
        click.echo(f"ERROR: {user_message}", err=True)
        click.echo("="*70, err=True)

        if recovery_hint:
            click.echo(f"\n{recovery_hint}", err=True)

        click.echo(f"\nFor details, check the log file: {log_path}", err=True)
        click.echo("For logging options, run: ma2bridge --help", err=True)
        sys.exit(exit_code_for(e))

    if exit_code != 0:
        logger.error(f"Bridge exited with error code: {exit_code}")
    sys.exit(exit_code)


# Register utility commands
cli.add_command(midi_group)
cli.add_command(leds_group)
cli.add_command(config)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
