"""
Centralized error handling utilities.

| Scenario | Use This |
|----------|----------|
| Config file syntax error | `ConfigFileInvalidError` |
| Config value invalid | `ConfigValidationError` (via `wrap_pydantic_error`) |
| Console refused the session | `FatalSessionError` |
| Showing any error to the user | `format_error_for_display` |
| Choosing the process exit status | `exit_code_for` |
"""

from typing import Optional

from pydantic import ValidationError

from .base import EXIT_FAILURE, BridgeError
from .config import ConfigFileInvalidError, ConfigValidationError


def wrap_pydantic_error(error: Exception, file_path: Optional[str] = None) -> BridgeError:
    """
    Convert Pydantic validation errors to bridge exceptions.

    Args:
        error: The Pydantic ValidationError
        file_path: Path to the config file that failed validation, if any

    Returns:
        A ConfigurationError with appropriate type and message
    """
    error_msg = str(error)

    if "Invalid JSON" in error_msg or "json_invalid" in error_msg:
        if "Invalid JSON:" in error_msg:
            parse_error = error_msg.split("Invalid JSON:")[1].split("[type=")[0].strip()
        else:
            parse_error = error_msg
        return ConfigFileInvalidError(file_path or "<environment>", parse_error)

    if isinstance(error, ValidationError):
        errors = error.errors()
        if len(errors) == 1:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get('loc', ())) or "config"
            return ConfigValidationError(
                field=field,
                value=first_error.get('input', None),
                error_msg=first_error.get('msg', 'validation failed'),
                file_path=file_path
            )
        if errors:
            error_lines = []
            for err in errors:
                field = ".".join(str(loc) for loc in err.get('loc', ())) or "config"
                error_lines.append(f"  - {field}: {err.get('msg', 'validation failed')}")

            return ConfigValidationError(
                field="multiple fields",
                value=None,
                error_msg=f"{len(errors)} validation errors:\n" + "\n".join(error_lines),
                file_path=file_path
            )

    return ConfigValidationError(
        field="unknown",
        value=None,
        error_msg=error_msg,
        file_path=file_path
    )


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """
    Format an exception for user display.

    Returns:
        Tuple of (user_message, recovery_hint or None)
    """
    if isinstance(error, BridgeError):
        return error.headline, error.recovery_hint

    error_type = type(error).__name__
    return f"{error_type}: {error}", None


def exit_code_for(error: Exception) -> int:
    """Process exit status for an error that ends a command."""
    if isinstance(error, BridgeError):
        return error.exit_code
    return EXIT_FAILURE
