"""Bridge core: event loop, session handling, translation and dispatch."""

from .dispatcher import Dispatcher
from .event_loop import EventLoop
from .history import MidiHistory
from .reconnect import ReconnectionSupervisor, backoff_delay_ms
from .session import SessionOutcome, SessionStateMachine
from .translator import EventTranslator

__all__ = [
    "Dispatcher",
    "EventLoop",
    "EventTranslator",
    "MidiHistory",
    "ReconnectionSupervisor",
    "SessionOutcome",
    "SessionStateMachine",
    "backoff_delay_ms",
]
