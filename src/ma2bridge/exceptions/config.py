"""Errors loading or saving the bridge configuration.

Config errors exit with status 2 so scripts can tell a bad setup apart
from a console or controller failure.
"""

from typing import Any, Optional

from .base import EXIT_CONFIG, BridgeError, Component

# Extra hints for the settings users most often get wrong, by field prefix
FIELD_HINTS = {
    "wing": "WING_CONFIGURATION must be 1, 2 or 3 and have a layout in 'wings'",
    "midi": "Run 'ma2bridge midi list' to see valid MIDI devices",
    "fader_curve": "The fader curve needs 128 non-decreasing values between 0 and 1",
    "page_select_mode": "PAGE_SELECT_MODE is 0 (page buttons switch pages) or 1 (ignored)",
    "led_channel": "MIDI channels are numbered 0-15",
}


class ConfigurationError(BridgeError):
    """The configuration cannot be loaded or saved."""

    component = Component.CONFIG
    exit_code = EXIT_CONFIG


class ConfigFileInvalidError(ConfigurationError):
    """The config file is not a JSON object."""

    def __init__(self, file_path: str, parse_error: str):
        hint = f"Fix or regenerate {file_path} (ma2bridge config init --force)"
        if "trailing comma" in parse_error.lower():
            hint = f"Remove the comma after the last entry in {file_path}"

        super().__init__(
            user_message=f"Config file {file_path} is not valid JSON",
            technical_message=f"JSON parse error in {file_path}: {parse_error}",
            recovery_hint=hint,
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """A setting from the config file or the environment is out of range."""

    def __init__(self, field: str, value: Any, error_msg: str, file_path: Optional[str] = None):
        source = f"config file {file_path}" if file_path else "environment"
        hint = f"Update '{field}' in the {source}"
        for prefix, extra in FIELD_HINTS.items():
            if field.lower().startswith(prefix):
                hint += f"\n{extra}"
                break

        super().__init__(
            user_message=f"Invalid configuration value for '{field}': {error_msg}",
            technical_message=f"Config validation failed for {field}={value!r}: {error_msg}",
            recovery_hint=hint,
        )
        self.field = field
        self.value = value
        self.file_path = file_path
