"""Console session and device exceptions."""

from .base import BridgeError, Component


class FatalSessionError(BridgeError):
    """The console rejected the session outright (session -1)."""

    component = Component.CONSOLE

    def __init__(self, username: str):
        super().__init__(
            user_message="The console refused the Web Remote session",
            technical_message=f"Received session -1 for user '{username}'",
            recovery_hint=(
                "Turn on Web Remote on the console and set the Web Remote password "
                "to the one configured in MA2_PASSWORD"
            ),
        )
        self.username = username


class DeviceConnectionError(BridgeError):
    """The MIDI controller could not be opened."""

    component = Component.CONTROLLER

    def __init__(self, input_name: str, output_name: str):
        super().__init__(
            user_message=f"Could not open MIDI controller '{input_name}'",
            technical_message=f"Failed to open MIDI input '{input_name}' / output '{output_name}'",
            recovery_hint="Run 'ma2bridge midi list' to see valid MIDI devices",
        )
        self.input_name = input_name
        self.output_name = output_name
