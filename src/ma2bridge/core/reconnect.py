"""Reconnection with exponential backoff."""

import logging
from collections.abc import Callable

from ma2bridge.models import BridgeConfig, ConnectionState
from ma2bridge.protocols import DeviceEvent, DeviceTransport, RemoteTransport, Scheduler

logger = logging.getLogger(__name__)


def backoff_delay_ms(attempt: int, base_ms: int, max_ms: int) -> int:
    """
    Delay before reconnection attempt number `attempt` (1-based).

    Example:
        >>> [backoff_delay_ms(n, 1000, 30000) for n in range(1, 7)]
        [1000, 2000, 4000, 8000, 16000, 30000]
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    # Exponent bounded so huge attempt counts don't build huge ints.
    return min(base_ms * 2 ** min(attempt - 1, 32), max_ms)


class ReconnectionSupervisor:
    """
    Rebuilds both transports after the console connection is lost.

    Only one cycle is pending at a time. When its timer fires and the
    bridge is still disconnected, the MIDI device is rebuilt (and its
    handler rebound) before the console socket is reopened, so controller
    input is live again by the time the console can accept requests.
    """

    def __init__(
        self,
        config: BridgeConfig,
        state: ConnectionState,
        device: DeviceTransport,
        remote: RemoteTransport,
        scheduler: Scheduler,
        device_handler: Callable[[DeviceEvent], None],
    ):
        self._config = config
        self._state = state
        self._device = device
        self._remote = remote
        self._scheduler = scheduler
        self._device_handler = device_handler
        self._stopped = False

    def schedule_reconnection(self) -> bool:
        """
        Schedule a reconnection attempt.

        Returns:
            True if a new attempt was scheduled, False if one is already pending
            or the supervisor has been stopped
        """
        if self._stopped or self._state.is_reconnecting:
            return False

        self._state.is_reconnecting = True
        self._state.reconnect_attempts += 1
        attempt = self._state.reconnect_attempts
        delay = backoff_delay_ms(
            attempt, self._config.reconnect_base_delay_ms, self._config.reconnect_max_delay_ms
        )

        logger.warning(
            f"Scheduling reconnection attempt {attempt}/{self._config.max_reconnect_attempts} in {delay}ms"
        )
        if attempt > self._config.max_reconnect_attempts:
            logger.warning(f"Still unable to reach the console after {attempt - 1} attempts, retrying")

        self._scheduler.call_later(delay / 1000, self._attempt)
        return True

    def stop(self) -> None:
        """Make pending attempts no-ops (used at shutdown)."""
        self._stopped = True

    def _attempt(self) -> None:
        if self._stopped:
            return

        try:
            if self._state.is_connected:
                logger.info("Already reconnected, skipping attempt")
                return

            logger.info("Attempting to reconnect...")

            logger.info("Reconnecting MIDI devices...")
            if not self._device.connect():
                logger.error("MIDI devices unavailable, console reconnect continues without them")
            self._device.set_handler(self._device_handler)

            logger.info("Reconnecting WebSocket...")
            self._remote.connect()

            # A fresh socket always goes through the full handshake.
            self._state.is_connected = False
        finally:
            self._state.is_reconnecting = False
