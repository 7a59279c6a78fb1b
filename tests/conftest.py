"""Pytest fixtures and fake transports for tests."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from ma2bridge.models import BridgeConfig, ConnectionState


class FakeTimer:
    """Timer handle recorded by FakeScheduler; runs only when a test fires it."""

    def __init__(self, delay, fn, args=(), repeating=False):
        self.delay = delay
        self.fn = fn
        self.args = args
        self.repeating = repeating
        self.cancelled = False
        self.fired = 0

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        if self.cancelled:
            return False
        return self.repeating or self.fired == 0

    def fire(self):
        self.fired += 1
        self.fn(*self.args)


class FakeScheduler:
    """Scheduler that never runs anything on its own."""

    def __init__(self):
        self.posted = []
        self.timers = []
        self.stopped = False

    def post(self, fn, *args):
        self.posted.append((fn, args))

    def call_later(self, delay, fn, *args):
        timer = FakeTimer(delay, fn, args)
        self.timers.append(timer)
        return timer

    def call_every(self, interval, fn):
        timer = FakeTimer(interval, fn, repeating=True)
        self.timers.append(timer)
        return timer

    def stop(self):
        self.stopped = True

    @property
    def pending(self):
        """Active one-shot timers, oldest first."""
        return [t for t in self.timers if not t.repeating and t.active]

    @property
    def periodic(self):
        return [t for t in self.timers if t.repeating and t.active]

    def run_posted(self):
        """Run posted work (including work posted meanwhile) until none is left."""
        count = 0
        while self.posted:
            fn, args = self.posted.pop(0)
            fn(*args)
            count += 1
        return count

    def fire_next(self):
        """Fire the oldest pending one-shot timer."""
        timer = self.pending[0]
        timer.fire()
        return timer

    def tick(self, times=1):
        """Fire every active periodic timer `times` times."""
        for _ in range(times):
            for timer in self.periodic:
                timer.fire()


class FakeDeviceTransport:
    """Controller transport that records LED output."""

    def __init__(self, calls=None, connect_result=True):
        self.calls = calls if calls is not None else []
        self.connect_result = connect_result
        self.handler = None
        self.sent = []
        self._connected = False

    def connect(self):
        self.calls.append("device.connect")
        self._connected = self.connect_result
        return self.connect_result

    def close(self):
        self.calls.append("device.close")
        self._connected = False

    def set_handler(self, handler):
        self.calls.append("device.set_handler")
        self.handler = handler

    def send_note_on(self, note, velocity, channel=0):
        self.sent.append(("note_on", note, velocity, channel))

    def send_note_off(self, note, velocity=0, channel=0):
        self.sent.append(("note_off", note, velocity, channel))

    @property
    def is_connected(self):
        return self._connected

    def emit(self, event):
        self.handler(event)


class FakeRemoteTransport:
    """Console transport that records outbound messages."""

    def __init__(self, calls=None, is_open=True):
        self.calls = calls if calls is not None else []
        self.handler = None
        self.sent = []
        self.dropped = []
        self.open = is_open

    def connect(self):
        self.calls.append("remote.connect")

    def send(self, message):
        if not self.open:
            self.dropped.append(message)
            return False
        self.sent.append(message)
        return True

    def close(self):
        self.calls.append("remote.close")
        self.open = False

    def set_handler(self, handler):
        self.handler = handler

    @property
    def is_open(self):
        return self.open

    def emit(self, event):
        self.handler(event)


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config():
    """Default configuration with short, recognizable timings."""
    return BridgeConfig(
        startup_delay_ms=2000,
        poll_interval_ms=100,
        led_refresh_delay_ms=1000,
    )


@pytest.fixture
def state():
    return ConnectionState()


@pytest.fixture
def calls():
    """Ordered log of connect/close calls shared by the fake transports."""
    return []


@pytest.fixture
def device(calls):
    return FakeDeviceTransport(calls)


@pytest.fixture
def remote(calls):
    return FakeRemoteTransport(calls)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def offline_device(calls):
    """Controller transport whose ports never open."""
    return FakeDeviceTransport(calls, connect_result=False)
