"""Base error for conditions that stop the bridge or a utility command.

Every BridgeError names the part of the setup at fault, so the CLI can
tell the user where to look, and carries the exit status the process
ends with. Protocol hiccups the bridge recovers from on its own are
never raised.
"""

from enum import Enum
from typing import Optional

EXIT_FAILURE = 1
EXIT_CONFIG = 2


class Component(Enum):
    """Part of the bridge setup an error points at."""

    CONTROLLER = "MIDI controller"
    CONSOLE = "console"
    CONFIG = "configuration"


class BridgeError(Exception):
    """
    Base exception for all ma2bridge errors.

    Subclasses set `component` and `exit_code` as class attributes.

    Attributes:
        user_message: One line for the terminal
        technical_message: Line for the log file (defaults to user_message)
        recovery_hint: What the user can change to fix it, if known
    """

    component: Component = Component.CONSOLE
    exit_code: int = EXIT_FAILURE

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.recovery_hint = recovery_hint

    def __str__(self) -> str:
        return self.user_message

    @property
    def headline(self) -> str:
        """User message prefixed with the component, e.g. "[console] ..."."""
        return f"[{self.component.value}] {self.user_message}"
