"""Tests for the console session state machine."""

from unittest.mock import Mock

import pytest

from ma2bridge.core import SessionOutcome, SessionStateMachine
from ma2bridge.models import SessionPhase
from ma2bridge.remote import InboundMessage, hash_password


def msg(**data):
    return InboundMessage.model_validate(data)


@pytest.fixture
def callbacks():
    return Mock()


@pytest.fixture
def machine(config, state, remote, callbacks):
    return SessionStateMachine(config, state, remote, callbacks)


@pytest.mark.unit
class TestHandshake:
    """Test server ready / login / connection limit handling."""

    def test_transport_open_awaits_server_ready(self, machine):
        machine.on_transport_open()
        assert machine.phase is SessionPhase.AWAITING_SERVER_READY

    def test_server_ready_requests_session(self, machine, remote):
        assert machine.handle_handshake(msg(status="server ready")) is True
        assert remote.sent == [{"session": 0}]
        assert machine.phase is SessionPhase.AWAITING_LOGIN

    def test_server_ready_ignored_while_reconnecting(self, machine, state, remote):
        state.is_reconnecting = True
        assert machine.handle_handshake(msg(status="server ready")) is True
        assert remote.sent == []

    def test_force_login_sends_credentials(self, machine, state, remote, config):
        assert machine.handle_handshake(msg(forceLogin=True, session=42)) is True

        assert state.session == 42
        assert remote.sent == [{
            "requestType": "login",
            "username": config.username,
            "password": hash_password(config.password),
            "session": 42,
            "maxRequests": config.login_max_requests,
        }]

    def test_force_login_keeps_session_when_negative(self, machine, state, remote):
        machine.handle_handshake(msg(forceLogin=True, session=-3))

        assert state.session == 0
        assert remote.sent[0]["session"] == 0

    def test_force_login_ignored_when_logged_in(self, machine, state, remote):
        state.is_connected = True
        assert machine.handle_handshake(msg(forceLogin=True, session=42)) is False
        assert remote.sent == []

    def test_login_success(self, machine, state, callbacks):
        assert machine.handle_handshake(msg(responseType="login", result=True)) is True

        assert state.is_connected is True
        assert machine.phase is SessionPhase.LOGGED_IN
        callbacks.start_poller.assert_called_once()
        callbacks.schedule_led_refresh.assert_not_called()

    def test_login_after_reconnect_refreshes_leds(self, machine, state, callbacks):
        state.reconnect_attempts = 3

        machine.handle_handshake(msg(responseType="login", result=True))

        callbacks.schedule_led_refresh.assert_called_once()
        assert state.reconnect_attempts == 0

    def test_login_failure_only_logs(self, machine, state, callbacks, remote):
        assert machine.handle_handshake(msg(responseType="login", result=False)) is True

        assert state.is_connected is False
        assert remote.sent == []
        callbacks.schedule_reconnection.assert_not_called()
        callbacks.start_poller.assert_not_called()

    def test_connection_limit_schedules_reconnection(self, machine, state, callbacks):
        state.is_connected = True
        assert machine.handle_handshake(msg(connections_limit_reached=True)) is True

        assert state.is_connected is False
        assert machine.phase is SessionPhase.DISCONNECTED
        callbacks.schedule_reconnection.assert_called_once()

    def test_other_messages_not_consumed(self, machine):
        assert machine.handle_handshake(msg(session=5, responseType="playbacks")) is False

    def test_full_handshake_sequence(self, machine, state, remote, callbacks):
        machine.on_transport_open()
        machine.handle_handshake(msg(status="server ready"))
        machine.handle_handshake(msg(forceLogin=True, session=42))
        machine.handle_handshake(msg(responseType="login", result=True))

        assert [m.get("requestType") for m in remote.sent] == [None, "login"]
        assert remote.sent[1]["session"] == 42
        assert state.is_connected
        callbacks.start_poller.assert_called_once()


@pytest.mark.unit
class TestSessionRules:
    """Test the session field of messages received while logged in."""

    @pytest.fixture(autouse=True)
    def logged_in(self, state):
        state.is_connected = True
        state.session = 42

    def test_no_session_field(self, machine, state):
        assert machine.handle_session(msg(text="hello")) is SessionOutcome.CONTINUE
        assert state.session == 42

    def test_session_rotation_adopted(self, machine, state):
        assert machine.handle_session(msg(session=43)) is SessionOutcome.CONTINUE
        assert state.session == 43

    def test_session_zero_reconnects_and_echoes(self, machine, state, remote, callbacks):
        assert machine.handle_session(msg(session=0)) is SessionOutcome.RECONNECT

        assert state.is_connected is False
        callbacks.schedule_reconnection.assert_called_once()
        assert remote.sent == [{"session": 42}]

    def test_session_minus_one_is_fatal(self, machine, state, callbacks):
        assert machine.handle_session(msg(session=-1)) is SessionOutcome.FATAL

        assert state.is_connected is False
        callbacks.schedule_reconnection.assert_not_called()

    def test_other_negative_session_ignored(self, machine, state):
        assert machine.handle_session(msg(session=-5)) is SessionOutcome.CONTINUE
        assert state.session == 42
        assert state.is_connected is True

    def test_transport_closed(self, machine, state):
        machine.on_transport_closed()
        assert state.is_connected is False
        assert machine.phase is SessionPhase.DISCONNECTED
