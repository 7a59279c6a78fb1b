"""Console session state machine: handshake, login and session tokens."""

import logging
from enum import Enum

from ma2bridge.models import FATAL_SESSION, NO_SESSION, BridgeConfig, ConnectionState, SessionPhase
from ma2bridge.protocols import RemoteTransport, SessionCallbacks
from ma2bridge.remote import messages
from ma2bridge.remote.messages import InboundMessage

logger = logging.getLogger(__name__)


class SessionOutcome(Enum):
    """Result of applying a message's session field."""

    CONTINUE = "continue"    # Keep processing the message
    RECONNECT = "reconnect"  # Session lost; reconnection scheduled
    FATAL = "fatal"          # Console refused the session; shut down


class SessionStateMachine:
    """
    Drives the Web Remote handshake and tracks the session token.

    Phases: DISCONNECTED -> AWAITING_SERVER_READY -> AWAITING_LOGIN -> LOGGED_IN,
    falling back to DISCONNECTED on connection limit, session loss or socket
    close. Side effects that belong to other components (poller, LED refresh,
    reconnection) go through SessionCallbacks; the fatal case is returned
    as SessionOutcome.FATAL rather than acted on here.
    """

    def __init__(
        self,
        config: BridgeConfig,
        state: ConnectionState,
        remote: RemoteTransport,
        callbacks: SessionCallbacks,
    ):
        self._config = config
        self._state = state
        self._remote = remote
        self._callbacks = callbacks

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    def on_transport_open(self) -> None:
        """Socket is open; the console announces itself with "server ready"."""
        self._state.phase = SessionPhase.AWAITING_SERVER_READY
        logger.debug("Waiting for console to report ready")

    def on_transport_closed(self) -> None:
        if self._state.is_connected:
            logger.warning("Console connection lost")
        self._state.mark_disconnected()

    def handle_handshake(self, msg: InboundMessage) -> bool:
        """
        Handle login and connection establishment messages.

        Returns:
            True if the message was consumed by the handshake
        """
        if msg.is_server_ready:
            if self._state.is_reconnecting:
                logger.info("Server ready received while reconnecting, ignoring")
            else:
                self._handle_server_ready()
            return True

        if msg.force_login is True and not self._state.is_connected:
            if self._state.is_reconnecting:
                logger.info("Login request received while reconnecting, ignoring")
            else:
                self._handle_force_login(msg)
            return True

        if msg.is_login_response and msg.result is True:
            self._handle_login_success()
            return True

        if msg.is_login_response and msg.result is False:
            self._handle_login_error()
            return True

        if msg.connection_limit_reached:
            self._handle_connection_limit()
            return True

        return False

    def handle_session(self, msg: InboundMessage) -> SessionOutcome:
        """Apply the session field of a message received while logged in."""
        if msg.session is None:
            return SessionOutcome.CONTINUE

        if msg.session == NO_SESSION:
            self._handle_session_error()
            return SessionOutcome.RECONNECT

        if msg.session == FATAL_SESSION:
            self.refuse()
            return SessionOutcome.FATAL

        if msg.session < 0:
            logger.warning(f"Ignoring unexpected session value {msg.session}")
            return SessionOutcome.CONTINUE

        if msg.session != self._state.session:
            logger.info(f"Session changed {self._state.session} -> {msg.session}")
            self._state.session = msg.session
        return SessionOutcome.CONTINUE

    def refuse(self) -> None:
        """The console answered with session -1, in any phase."""
        logger.error(
            "Console refused the session. Please turn on Web Remote, and set the "
            "Web Remote password to the configured MA2_PASSWORD"
        )
        self._state.mark_disconnected()

    def _handle_server_ready(self) -> None:
        logger.info("SERVER READY")
        self._remote.send(messages.session_echo(NO_SESSION))
        self._state.phase = SessionPhase.AWAITING_LOGIN

    def _handle_force_login(self, msg: InboundMessage) -> None:
        logger.info("LOGIN ...")
        if msg.session is not None and msg.session >= NO_SESSION:
            self._state.session = msg.session
        elif msg.session is not None:
            logger.warning(f"Not adopting session {msg.session} from login request")
        self._remote.send(
            messages.login_request(
                username=self._config.username,
                password=self._config.password,
                session=self._state.session,
                max_requests=self._config.login_max_requests,
            )
        )
        self._state.phase = SessionPhase.AWAITING_LOGIN

    def _handle_login_success(self) -> None:
        self._state.is_connected = True
        self._state.phase = SessionPhase.LOGGED_IN
        logger.info("...LOGGED")
        logger.info(f"SESSION {self._state.session}")

        self._callbacks.start_poller()

        if self._state.reconnect_attempts > 0:
            logger.info("Reconnection successful, refreshing LED states...")
            self._callbacks.schedule_led_refresh()
            self._state.reconnect_attempts = 0

    def _handle_login_error(self) -> None:
        logger.error("...LOGIN ERROR")
        logger.error(f"SESSION {self._state.session}")

    def _handle_connection_limit(self) -> None:
        logger.error("Connection limit reached - too many simultaneous connections")
        logger.error("Please close other MA2 Web Remote connections and try again")
        self._state.mark_disconnected()
        self._callbacks.schedule_reconnection()

    def _handle_session_error(self) -> None:
        logger.error("CONNECTION ERROR - attempting to reconnect")
        self._state.mark_disconnected()
        self._callbacks.schedule_reconnection()
        self._remote.send(messages.session_echo(self._state.session))
