"""Data models for the bridge."""

from .config import BridgeConfig, ControllerLayout, FaderCurve, NoteRange, WingLayout
from .state import FATAL_SESSION, NO_SESSION, ConnectionState, LedMatrix, SessionPhase

__all__ = [
    # Config
    "BridgeConfig",
    "ControllerLayout",
    "FaderCurve",
    "NoteRange",
    "WingLayout",
    # State
    "ConnectionState",
    "FATAL_SESSION",
    "LedMatrix",
    "NO_SESSION",
    "SessionPhase",
]
