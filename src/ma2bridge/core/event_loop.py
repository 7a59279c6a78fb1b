"""Single-threaded event loop for the bridge.

MIDI callbacks, the websocket reader and timers all run on their own
threads; none of them touch bridge state. They post work here, and the
loop runs it one handler at a time on the thread that called run().
"""

import logging
import threading
from collections.abc import Callable
from queue import Empty, Queue
from typing import Any

logger = logging.getLogger(__name__)

_STOP = object()


class TimerHandle:
    """One-shot timer that posts its callback to the loop when it fires."""

    def __init__(self, loop: "EventLoop", delay: float, fn: Callable[..., Any], args: tuple):
        self._timer = threading.Timer(delay, loop.post, args=(fn, *args))
        self._timer.daemon = True

    def start(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.cancel()

    @property
    def active(self) -> bool:
        return not self._timer.finished.is_set()


class PeriodicHandle:
    """Repeating timer that posts its callback to the loop every interval."""

    def __init__(self, loop: "EventLoop", interval: float, fn: Callable[[], Any]):
        self._loop = loop
        self._interval = interval
        self._fn = fn
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="periodic-timer", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stopped.set()

    @property
    def active(self) -> bool:
        return not self._stopped.is_set()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._loop.post(self._fn)


class EventLoop:
    """
    Queue-backed event loop implementing the Scheduler protocol.

    Handlers never run re-entrantly: a handler that posts or schedules work
    only enqueues it, and the work runs after the handler returns.
    """

    def __init__(self, poll_timeout: float = 0.5):
        """
        Initialize the loop.

        Args:
            poll_timeout: How long run() blocks on the queue before re-checking
                          for stop (keeps Ctrl+C responsive)
        """
        self._queue: Queue = Queue()
        self._poll_timeout = poll_timeout
        self._running = False
        self._timers: list[TimerHandle | PeriodicHandle] = []
        self._timers_lock = threading.Lock()

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue fn(*args). Safe to call from any thread."""
        self._queue.put((fn, args))

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        """Queue fn(*args) after delay seconds."""
        handle = TimerHandle(self, max(delay, 0.0), fn, args)
        self._track(handle)
        handle.start()
        return handle

    def call_every(self, interval: float, fn: Callable[[], Any]) -> PeriodicHandle:
        """Queue fn() every interval seconds until the handle is cancelled."""
        handle = PeriodicHandle(self, interval, fn)
        self._track(handle)
        handle.start()
        return handle

    def run(self) -> None:
        """Run handlers until stop() is called."""
        self._running = True
        logger.debug("Event loop started")
        while self._running:
            try:
                item = self._queue.get(timeout=self._poll_timeout)
            except Empty:
                continue
            if item is _STOP:
                break
            self._dispatch(item)
        self._running = False
        self._cancel_timers()
        logger.debug("Event loop stopped")

    def run_pending(self) -> int:
        """
        Run everything currently queued without blocking.

        Returns:
            Number of handlers run
        """
        count = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except Empty:
                return count
            if item is _STOP:
                self._running = False
                continue
            self._dispatch(item)
            count += 1

    def stop(self) -> None:
        """Stop the loop once the current handler returns. Safe from any thread."""
        self._running = False
        self._queue.put(_STOP)

    @property
    def is_running(self) -> bool:
        return self._running

    def _dispatch(self, item: tuple[Callable[..., Any], tuple]) -> None:
        fn, args = item
        try:
            fn(*args)
        except Exception:
            logger.exception(f"Error in event handler {getattr(fn, '__qualname__', fn)}")

    def _track(self, handle: TimerHandle | PeriodicHandle) -> None:
        with self._timers_lock:
            self._timers = [h for h in self._timers if h.active]
            self._timers.append(handle)

    def _cancel_timers(self) -> None:
        with self._timers_lock:
            timers, self._timers = self._timers, []
        for handle in timers:
            handle.cancel()
