"""WebSocket connection to the console Web Remote."""

import json
import logging
import threading
from collections.abc import Callable
from typing import Any, Optional

from websockets.exceptions import ConnectionClosed, ConnectionClosedError, InvalidHandshake, InvalidURI
from websockets.protocol import State
from websockets.sync.client import ClientConnection, connect

from ma2bridge.protocols import RemoteClosed, RemoteError, RemoteEvent, RemoteMessage, RemoteOpened

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """
    Console connection over the websockets synchronous client.

    Each connect() starts a reader thread that opens the socket and reports
    everything (open, frames, errors, close) through the registered handler.
    The handler runs on the reader thread - keep it fast, post to the loop.

    A connection that was closed through close() or replaced by a newer
    connect() reports nothing further.
    """

    def __init__(self, url: str, open_timeout: float = 5.0):
        """
        Initialize the transport.

        Args:
            url: ws:// URL of the console
            open_timeout: Seconds allowed for the opening handshake
        """
        self._url = url
        self._open_timeout = open_timeout
        self._handler: Optional[Callable[[RemoteEvent], None]] = None
        self._ws: Optional[ClientConnection] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return self._url

    def set_handler(self, handler: Optional[Callable[[RemoteEvent], None]]) -> None:
        """Register the handler for connection events."""
        self._handler = handler

    def connect(self) -> None:
        """Open a new connection in the background, replacing any current one."""
        self.close()
        with self._lock:
            self._generation += 1
            generation = self._generation

        logger.info(f"Connecting to console at {self._url}")
        thread = threading.Thread(
            target=self._run, args=(generation,), name=f"ws-reader-{generation}", daemon=True
        )
        thread.start()

    def close(self) -> None:
        """Close the current connection. Safe to call when already closed."""
        with self._lock:
            self._generation += 1
            ws, self._ws = self._ws, None

        if ws is not None:
            try:
                ws.close()
            except (OSError, RuntimeError) as e:
                logger.warning(f"Error closing console connection: {e}")
            logger.info("Console connection closed")

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._ws is not None and self._ws.protocol.state is State.OPEN

    def send(self, message: dict[str, Any]) -> bool:
        """
        Serialize and send a message.

        Returns:
            True if sent, False if the connection is not open (message dropped)
        """
        with self._lock:
            ws = self._ws
        if ws is None or ws.protocol.state is not State.OPEN:
            logger.debug(f"Console not connected, dropping {message.get('requestType', 'message')}")
            return False

        try:
            ws.send(json.dumps(message))
            return True
        except ConnectionClosed as e:
            logger.warning(f"Console connection closed while sending: {e}")
            return False

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _emit(self, generation: int, event: RemoteEvent) -> None:
        if not self._is_current(generation) or self._handler is None:
            return
        try:
            self._handler(event)
        except Exception as e:
            logger.error(f"Error in console event handler: {e}")

    def _run(self, generation: int) -> None:
        """Reader thread: open, pump frames, report close."""
        try:
            ws = connect(self._url, open_timeout=self._open_timeout)
        except (OSError, TimeoutError, InvalidURI, InvalidHandshake) as e:
            logger.error(f"Connection Error: {e}")
            self._emit(generation, RemoteError(message=str(e)))
            self._emit(generation, RemoteClosed(reason="connect failed"))
            return

        with self._lock:
            if generation != self._generation:
                stale = True
            else:
                stale = False
                self._ws = ws
        if stale:
            ws.close()
            return

        logger.info("WebSocket Client Connected")
        self._emit(generation, RemoteOpened())

        reason = ""
        try:
            for frame in ws:
                self._emit(generation, RemoteMessage(data=frame))
        except ConnectionClosedError as e:
            reason = str(e)
            self._emit(generation, RemoteError(message=reason))
        finally:
            with self._lock:
                if self._ws is ws:
                    self._ws = None

        if self._is_current(generation):
            logger.warning("Client Closed")
            self._emit(generation, RemoteClosed(reason=reason))
