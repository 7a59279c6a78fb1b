"""Generic utilities for ma2bridge."""

from .persistence import PydanticPersistence

__all__ = ["PydanticPersistence"]
