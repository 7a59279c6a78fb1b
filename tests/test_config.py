"""Tests for configuration models, environment overrides and persistence."""

import json

import pytest
from pydantic import ValidationError

from ma2bridge.exceptions import (
    EXIT_CONFIG,
    EXIT_FAILURE,
    BridgeError,
    Component,
    ConfigFileInvalidError,
    ConfigValidationError,
    DeviceConnectionError,
    FatalSessionError,
    exit_code_for,
    format_error_for_display,
)
from ma2bridge.models import BridgeConfig, ControllerLayout, FaderCurve, NoteRange
from ma2bridge.utils import PydanticPersistence


@pytest.mark.unit
class TestNoteRange:
    """Test inclusive note ranges."""

    def test_membership(self):
        notes = NoteRange(start=16, end=47)
        assert 16 in notes
        assert 47 in notes
        assert 15 not in notes
        assert 48 not in notes
        assert notes.size == 32
        assert notes.offset(20) == 4

    def test_reversed_range_rejected(self):
        with pytest.raises(ValidationError):
            NoteRange(start=10, end=5)

    def test_overlaps(self):
        assert NoteRange(start=0, end=10).overlaps(NoteRange(start=10, end=20))
        assert not NoteRange(start=0, end=9).overlaps(NoteRange(start=10, end=20))


@pytest.mark.unit
class TestControllerLayout:
    """Test the controller layout defaults and validation."""

    def test_defaults(self):
        layout = ControllerLayout()
        assert (layout.small_buttons.start, layout.small_buttons.end) == (16, 47)
        assert (layout.executor_buttons.start, layout.executor_buttons.end) == (56, 87)
        assert (layout.faders.start, layout.faders.end) == (48, 55)
        assert (layout.page_select.start, layout.page_select.end) == (89, 95)
        assert layout.total_leds == 128
        assert layout.fader_led_offset == 48

    def test_overlapping_note_ranges_rejected(self):
        with pytest.raises(ValidationError, match="overlap"):
            ControllerLayout(small_buttons=NoteRange(start=50, end=60))


@pytest.mark.unit
class TestFaderCurve:
    """Test fader value normalization."""

    def test_linear_default(self):
        curve = FaderCurve()
        assert curve.normalize(0) == 0.0
        assert curve.normalize(127) == 1.0
        assert 0.49 < curve.normalize(64) < 0.51

    def test_out_of_range_clamped(self):
        curve = FaderCurve()
        assert curve.normalize(-5) == 0.0
        assert curve.normalize(300) == 1.0

    def test_from_points(self):
        curve = FaderCurve.from_points({0: 0.0, 64: 0.8, 127: 1.0})
        assert curve.normalize(32) == 0.4
        assert curve.normalize(64) == 0.8
        assert curve.normalize(127) == 1.0

    def test_from_points_extends_ends(self):
        curve = FaderCurve.from_points({10: 0.1, 100: 0.9})
        assert curve.normalize(0) == 0.1
        assert curve.normalize(127) == 0.9

    def test_must_be_total(self):
        with pytest.raises(ValidationError):
            FaderCurve(values=(0.0, 1.0))

    def test_must_be_monotonic(self):
        with pytest.raises(ValidationError):
            FaderCurve(values=(0.5,) + (0.4,) * 127)

    def test_must_stay_in_unit_range(self):
        with pytest.raises(ValidationError):
            FaderCurve(values=(0.0,) * 127 + (1.5,))


@pytest.mark.unit
class TestBridgeConfig:
    """Test the bridge configuration model."""

    def test_defaults(self):
        config = BridgeConfig()
        assert config.remote_url == "ws://localhost/"
        assert config.wing == 1
        assert config.led_on_velocity == 21
        assert config.led_channel == 6
        assert config.request_threshold == 10
        assert config.debug is False

    def test_url_passthrough(self):
        assert BridgeConfig(ws_url="ws://10.0.0.5:8080/").remote_url == "ws://10.0.0.5:8080/"

    def test_bare_host_url(self):
        assert BridgeConfig(ws_url="10.0.0.5").remote_url == "ws://10.0.0.5/"

    def test_executor_mapping(self):
        config = BridgeConfig()
        assert config.executor_for_button(16) == 1
        assert config.executor_for_button(47) == 32
        assert config.executor_for_fader(48) == 1
        assert config.executor_for_fader(55) == 8

    def test_frozen(self):
        config = BridgeConfig()
        with pytest.raises(ValidationError):
            config.ws_url = "elsewhere"

    def test_wing_without_layout_rejected(self):
        wings = {1: {"buttons": list(range(1, 33)), "faders": list(range(1, 9))}}
        with pytest.raises(ValidationError, match="wing 2"):
            BridgeConfig(wing=2, wings=wings)

    def test_wing_layout_size_checked(self):
        wings = {1: {"buttons": [1, 2, 3], "faders": list(range(1, 9))}}
        with pytest.raises(ValidationError, match="buttons"):
            BridgeConfig(wings=wings)

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("TRUE", True),
        ("false", False),
        ("1", False),
        ("yes", False),
    ])
    def test_debug_flag_from_string(self, value, expected):
        assert BridgeConfig(debug=value).debug is expected


@pytest.mark.unit
class TestEnvironmentOverrides:
    """Test environment variable overrides."""

    def test_env_overrides(self):
        environ = {"WS_URL": "10.0.0.1", "MA2_PASSWORD": "", "HOME": "/root"}
        assert BridgeConfig.env_overrides(environ) == {"ws_url": "10.0.0.1"}

    def test_load_from_environment(self, temp_dir):
        environ = {
            "WS_URL": "10.0.0.1",
            "MIDI_IN_DEVICE": "APC MINI",
            "WING_CONFIGURATION": "2",
            "MA2_USERNAME": "operator",
            "MA2_PASSWORD": "secret",
            "PAGE_SELECT_MODE": "1",
            "INTERVAL_DELAY": "250",
            "REQUEST_THRESHOLD": "5",
            "INITIALIZATION_DELAY": "500",
            "DEBUG_MODE": "true",
            "MAX_MIDI_HISTORY": "20",
        }

        config = BridgeConfig.load(temp_dir / "missing.json", environ=environ)

        assert config.remote_url == "ws://10.0.0.1/"
        assert config.midi_in_device == "APC MINI"
        assert config.wing == 2
        assert config.username == "operator"
        assert config.password == "secret"
        assert config.page_select_mode == 1
        assert config.poll_interval_ms == 250
        assert config.request_threshold == 5
        assert config.startup_delay_ms == 500
        assert config.debug is True
        assert config.max_midi_history == 20

    def test_invalid_env_value_fails(self, temp_dir):
        with pytest.raises(ConfigValidationError) as exc_info:
            BridgeConfig.load(temp_dir / "missing.json", environ={"WING_CONFIGURATION": "7"})
        assert exc_info.value.field == "wing"

    def test_env_overrides_file(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"ws_url": "from-file", "username": "file-user"}))

        config = BridgeConfig.load(path, environ={"WS_URL": "from-env"})

        assert config.ws_url == "from-env"
        assert config.username == "file-user"


@pytest.mark.unit
class TestConfigPersistence:
    """Test JSON load/save of the configuration."""

    def test_save_and_load(self, temp_dir):
        path = temp_dir / "config.json"
        original = BridgeConfig(ws_url="10.0.0.9", wing=3, fader_curve=FaderCurve.from_points({0: 0.0, 127: 1.0}))

        original.save(path)
        loaded = BridgeConfig.load(path, environ={})

        assert loaded == original

    def test_save_keeps_backup(self, temp_dir):
        path = temp_dir / "config.json"
        BridgeConfig(username="first").save(path)
        BridgeConfig(username="second").save(path)

        backup = json.loads((temp_dir / "config.json.bak").read_text())
        assert backup["username"] == "first"
        assert not (temp_dir / "config.json.tmp").exists()

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text('{"ws_url": "x",}')

        with pytest.raises(ConfigFileInvalidError):
            BridgeConfig.load(path, environ={})

    def test_empty_file(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text("  \n")

        with pytest.raises(ConfigFileInvalidError):
            PydanticPersistence.read_json_object(path)

    def test_non_object_file(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ConfigFileInvalidError):
            PydanticPersistence.read_json_object(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            PydanticPersistence.read_json_object(temp_dir / "nope.json")

    def test_invalid_value_in_file(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"led_channel": 99}))

        with pytest.raises(ConfigValidationError) as exc_info:
            BridgeConfig.load(path, environ={})
        assert exc_info.value.field == "led_channel"
        assert str(path) in exc_info.value.recovery_hint


@pytest.mark.unit
class TestErrorDisplay:
    """Test formatting of errors for the CLI."""

    def test_bridge_error(self):
        message, hint = format_error_for_display(FatalSessionError("apcmini"))
        assert "refused" in message
        assert "MA2_PASSWORD" in hint

    def test_plain_exception(self):
        message, hint = format_error_for_display(RuntimeError("boom"))
        assert message == "RuntimeError: boom"
        assert hint is None

    def test_message_names_component(self):
        message, _ = format_error_for_display(DeviceConnectionError("APC mini", "APC mini"))
        assert message == "[MIDI controller] Could not open MIDI controller 'APC mini'"

    def test_technical_message_defaults_to_user_message(self):
        error = BridgeError("Something failed", recovery_hint="Try again")
        assert error.technical_message == "Something failed"
        assert error.component is Component.CONSOLE

    def test_exit_codes(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text('{"ws_url": "x",}')
        with pytest.raises(ConfigFileInvalidError) as exc_info:
            BridgeConfig.load(path, environ={})

        assert exit_code_for(exc_info.value) == EXIT_CONFIG
        assert exit_code_for(FatalSessionError("apcmini")) == EXIT_FAILURE
        assert exit_code_for(RuntimeError("boom")) == EXIT_FAILURE
