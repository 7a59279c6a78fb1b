"""ma2bridge: APC mini controller bridge for the grandMA2 Web Remote."""

__version__ = "0.1.0"

from .core import Dispatcher, EventLoop
from .models import BridgeConfig

__all__ = [
    "BridgeConfig",
    "Dispatcher",
    "EventLoop",
]
