"""Tests for reconnection backoff and ordering."""

import pytest

from ma2bridge.core import ReconnectionSupervisor, backoff_delay_ms


@pytest.fixture
def handler():
    return lambda event: None


@pytest.fixture
def supervisor(config, state, device, remote, scheduler, handler):
    return ReconnectionSupervisor(config, state, device, remote, scheduler, device_handler=handler)


@pytest.mark.unit
class TestBackoffDelay:
    """Test the exponential backoff schedule."""

    def test_sequence(self):
        delays = [backoff_delay_ms(n, 1000, 30000) for n in range(1, 8)]
        assert delays == [1000, 2000, 4000, 8000, 16000, 30000, 30000]

    def test_capped_for_large_attempts(self):
        assert backoff_delay_ms(1000, 1000, 30000) == 30000

    def test_invalid_attempt(self):
        with pytest.raises(ValueError):
            backoff_delay_ms(0, 1000, 30000)


@pytest.mark.unit
class TestReconnectionSupervisor:
    """Test scheduling and rebuilding of the transports."""

    def test_schedule_sets_state_and_timer(self, supervisor, state, scheduler):
        assert supervisor.schedule_reconnection() is True

        assert state.is_reconnecting is True
        assert state.reconnect_attempts == 1
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == 1.0

    def test_schedule_is_idempotent_while_pending(self, supervisor, state, scheduler):
        supervisor.schedule_reconnection()

        assert supervisor.schedule_reconnection() is False
        assert supervisor.schedule_reconnection() is False

        assert state.reconnect_attempts == 1
        assert len(scheduler.timers) == 1

    def test_delays_grow_across_cycles(self, supervisor, scheduler):
        for _ in range(6):
            supervisor.schedule_reconnection()
            scheduler.fire_next()

        assert [t.delay for t in scheduler.timers] == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0]

    def test_attempt_rebuilds_device_before_remote(self, supervisor, scheduler, calls, device, handler):
        supervisor.schedule_reconnection()
        scheduler.fire_next()

        assert calls == ["device.connect", "device.set_handler", "remote.connect"]
        assert device.handler is handler

    def test_attempt_clears_reconnecting(self, supervisor, state, scheduler):
        supervisor.schedule_reconnection()
        scheduler.fire_next()

        assert state.is_reconnecting is False
        assert state.is_connected is False
        # Attempt count is kept until a login succeeds
        assert state.reconnect_attempts == 1

    def test_remote_reconnects_even_without_device(self, config, state, remote, scheduler, calls, handler,
                                                   offline_device):
        supervisor = ReconnectionSupervisor(config, state, offline_device, remote, scheduler, handler)

        supervisor.schedule_reconnection()
        scheduler.fire_next()

        assert calls[-1] == "remote.connect"

    def test_attempt_skipped_when_already_connected(self, supervisor, state, scheduler, calls):
        supervisor.schedule_reconnection()
        state.is_connected = True

        scheduler.fire_next()

        assert calls == []
        assert state.is_reconnecting is False

    def test_stop_makes_pending_attempt_harmless(self, supervisor, scheduler, calls):
        supervisor.schedule_reconnection()
        supervisor.stop()

        scheduler.fire_next()

        assert calls == []
        assert supervisor.schedule_reconnection() is False

    def test_attempts_continue_past_maximum(self, supervisor, state, scheduler, config):
        for _ in range(config.max_reconnect_attempts + 2):
            assert supervisor.schedule_reconnection() is True
            scheduler.fire_next()

        assert state.reconnect_attempts == config.max_reconnect_attempts + 2
