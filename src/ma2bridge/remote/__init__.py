"""Console (grandMA2 Web Remote) protocol and connection."""

from .messages import InboundMessage, hash_password, parse_inbound
from .transport import WebSocketTransport

__all__ = ["InboundMessage", "WebSocketTransport", "hash_password", "parse_inbound"]
