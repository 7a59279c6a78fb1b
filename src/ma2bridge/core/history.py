"""Bounded history of controller events for debugging."""

import logging
import time
from collections import deque
from dataclasses import dataclass

from ma2bridge.protocols import DeviceEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: float
    event: DeviceEvent

    def __str__(self) -> str:
        clock = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        return f"[{clock}.{int(self.timestamp * 1000) % 1000:03d}] {self.event}"


class MidiHistory:
    """Keeps the most recent controller events (oldest dropped first)."""

    def __init__(self, max_entries: int = 50):
        self._entries: deque[HistoryEntry] = deque(maxlen=max_entries)

    def record(self, event: DeviceEvent) -> None:
        self._entries.append(HistoryEntry(timestamp=time.time(), event=event))

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def dump(self) -> None:
        """Write the history to the debug log."""
        logger.debug(f"Last {len(self._entries)} controller events:")
        for entry in self._entries:
            logger.debug(f"  {entry}")
