"""Bridge configuration models."""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ma2bridge.exceptions import wrap_pydantic_error
from ma2bridge.utils.persistence import PydanticPersistence

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".ma2bridge" / "config.json"

# Environment variable -> config field
ENV_KEYS = {
    "WS_URL": "ws_url",
    "MIDI_IN_DEVICE": "midi_in_device",
    "MIDI_OUT_DEVICE": "midi_out_device",
    "WING_CONFIGURATION": "wing",
    "MA2_USERNAME": "username",
    "MA2_PASSWORD": "password",
    "PAGE_SELECT_MODE": "page_select_mode",
    "INTERVAL_DELAY": "poll_interval_ms",
    "REQUEST_THRESHOLD": "request_threshold",
    "INITIALIZATION_DELAY": "startup_delay_ms",
    "DEBUG_MODE": "debug",
    "MAX_MIDI_HISTORY": "max_midi_history",
}

FADER_STEPS = 128


class NoteRange(BaseModel):
    """Inclusive range of MIDI note or controller numbers."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0, le=127)
    end: int = Field(ge=0, le=127)

    @model_validator(mode="after")
    def check_order(self) -> "NoteRange":
        if self.end < self.start:
            raise ValueError(f"range end {self.end} is before start {self.start}")
        return self

    def __contains__(self, number: object) -> bool:
        return isinstance(number, int) and self.start <= number <= self.end

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def offset(self, number: int) -> int:
        """Position of number within the range (0-based)."""
        return number - self.start

    def overlaps(self, other: "NoteRange") -> bool:
        return self.start <= other.end and other.start <= self.end


class ControllerLayout(BaseModel):
    """Physical layout of the APC mini style controller."""

    model_config = ConfigDict(frozen=True)

    small_buttons: NoteRange = Field(
        default=NoteRange(start=16, end=47),
        description="Grid buttons that press console executor buttons",
    )
    executor_buttons: NoteRange = Field(
        default=NoteRange(start=56, end=87),
        description="Dedicated executor buttons",
    )
    faders: NoteRange = Field(
        default=NoteRange(start=48, end=55),
        description="Control change numbers sent by the faders",
    )
    page_select: NoteRange = Field(
        default=NoteRange(start=89, end=95),
        description="Buttons that select the console page",
    )
    total_leds: int = Field(default=128, ge=1, le=128, description="Number of addressable LEDs")
    fader_led_offset: int = Field(
        default=48, ge=0, le=127, description="First LED index of the fader status row"
    )

    @model_validator(mode="after")
    def check_button_ranges(self) -> "ControllerLayout":
        # Faders are CC numbers, so only the note ranges must be disjoint.
        note_ranges = {
            "small_buttons": self.small_buttons,
            "executor_buttons": self.executor_buttons,
            "page_select": self.page_select,
        }
        names = list(note_ranges)
        for i, first in enumerate(names):
            for second in names[i + 1:]:
                if note_ranges[first].overlaps(note_ranges[second]):
                    raise ValueError(f"{first} and {second} ranges overlap")
        return self


class WingLayout(BaseModel):
    """Executor indices addressed by one wing variant."""

    model_config = ConfigDict(frozen=True)

    buttons: tuple[int, ...] = Field(description="Executor index for each small button, in note order")
    faders: tuple[int, ...] = Field(description="Executor index for each fader, in controller order")


def _default_wings() -> dict[int, WingLayout]:
    buttons = tuple(range(1, 33))
    faders = tuple(range(1, 9))
    return {wing: WingLayout(buttons=buttons, faders=faders) for wing in (1, 2, 3)}


class FaderCurve(BaseModel):
    """
    Mapping from a raw 7-bit fader value to a normalized console value.

    The curve is total (one entry per raw value 0-127) and monotonic
    non-decreasing, with every entry in [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    values: tuple[float, ...] = Field(
        default_factory=lambda: tuple(round(v / (FADER_STEPS - 1), 4) for v in range(FADER_STEPS))
    )

    @field_validator("values")
    @classmethod
    def validate_values(cls, values: tuple[float, ...]) -> tuple[float, ...]:
        if len(values) != FADER_STEPS:
            raise ValueError(f"expected {FADER_STEPS} entries, got {len(values)}")
        for raw, value in enumerate(values):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"entry {raw} is {value}, outside [0, 1]")
            if raw and value < values[raw - 1]:
                raise ValueError(f"entry {raw} ({value}) is lower than entry {raw - 1}")
        return values

    @classmethod
    def from_points(cls, points: Mapping[int, float]) -> "FaderCurve":
        """
        Build a total curve from anchor points using linear interpolation.

        Raw values before the first anchor take the first anchor's value;
        values after the last anchor take the last anchor's value.

        Example:
            >>> FaderCurve.from_points({0: 0.0, 64: 0.8, 127: 1.0}).normalize(32)
            0.4
        """
        if not points:
            raise ValueError("at least one anchor point is required")

        anchors = sorted(points.items())
        values = []
        for raw in range(FADER_STEPS):
            if raw <= anchors[0][0]:
                values.append(float(anchors[0][1]))
                continue
            if raw >= anchors[-1][0]:
                values.append(float(anchors[-1][1]))
                continue
            for (x0, y0), (x1, y1) in zip(anchors, anchors[1:]):
                if x0 <= raw <= x1:
                    values.append(round(y0 + (y1 - y0) * (raw - x0) / (x1 - x0), 4))
                    break
        return cls(values=tuple(values))

    def normalize(self, raw: int) -> float:
        """Map a raw controller value; values outside 0-127 are clamped."""
        return self.values[min(max(raw, 0), FADER_STEPS - 1)]


class BridgeConfig(BaseModel):
    """Bridge configuration and settings."""

    model_config = ConfigDict(frozen=True)

    # Console connection
    ws_url: str = Field(default="localhost", description="Console Web Remote host or ws:// URL")
    username: str = Field(default="apcmini", description="Web Remote user name")
    password: str = Field(default="remote", description="Web Remote password (plaintext)")

    # MIDI devices
    midi_in_device: str = Field(default="APC mini", description="MIDI input port name (substring match)")
    midi_out_device: str = Field(default="APC mini", description="MIDI output port name (substring match)")

    # Layout
    wing: int = Field(default=1, ge=1, le=3, description="Wing layout variant")
    page_select_mode: int = Field(
        default=0, ge=0, le=1, description="0 = page buttons select the console page, 1 = ignored"
    )
    layout: ControllerLayout = Field(default_factory=ControllerLayout)
    wings: dict[int, WingLayout] = Field(default_factory=_default_wings)
    fader_curve: FaderCurve = Field(default_factory=FaderCurve)

    # LED output
    led_on_velocity: int = Field(default=21, ge=0, le=127, description="LED code for a running executor")
    led_off_velocity: int = Field(default=0, ge=0, le=127, description="LED code for an idle executor")
    led_channel: int = Field(default=6, ge=0, le=15, description="MIDI channel for LED updates")

    # Timing
    poll_interval_ms: int = Field(default=100, gt=0, description="Keep-alive interval once logged in")
    startup_delay_ms: int = Field(default=2000, ge=0, description="Delay between MIDI setup and console connect")
    led_refresh_delay_ms: int = Field(default=1000, ge=0, description="Delay before LED refresh after reconnect")
    reconnect_base_delay_ms: int = Field(default=1000, gt=0, description="First reconnection delay")
    reconnect_max_delay_ms: int = Field(default=30000, gt=0, description="Reconnection delay ceiling")
    max_reconnect_attempts: int = Field(
        default=5, ge=1, description="Reported in logs only; reconnection never gives up"
    )

    # Request gating
    request_threshold: int = Field(default=10, gt=0, description="Playback responses before a data refresh")
    login_max_requests: int = Field(default=10, ge=0, description="maxRequests quota sent with login")
    data_max_requests: int = Field(default=1, ge=0, description="maxRequests quota sent with getdata")

    # Debugging
    debug: bool = Field(default=False, description="Record controller event history")
    max_midi_history: int = Field(default=50, ge=1, description="Controller events kept in the history")

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug_flag(cls, value: Any) -> Any:
        # Only the literal string "true" enables debug from the environment.
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return value

    @model_validator(mode="after")
    def check_wings(self) -> "BridgeConfig":
        if self.wing not in self.wings:
            raise ValueError(f"wing {self.wing} has no layout in 'wings'")
        for number, layout in self.wings.items():
            if len(layout.buttons) != self.layout.small_buttons.size:
                raise ValueError(
                    f"wing {number} maps {len(layout.buttons)} buttons, "
                    f"expected {self.layout.small_buttons.size}"
                )
            if len(layout.faders) != self.layout.faders.size:
                raise ValueError(
                    f"wing {number} maps {len(layout.faders)} faders, "
                    f"expected {self.layout.faders.size}"
                )
        return self

    @property
    def remote_url(self) -> str:
        """WebSocket URL of the console; a bare host becomes ws://host/."""
        if "://" in self.ws_url:
            return self.ws_url
        return f"ws://{self.ws_url}/"

    @property
    def wing_layout(self) -> WingLayout:
        return self.wings[self.wing]

    def executor_for_button(self, note: int) -> int:
        """Executor index for a small button note. Caller checks the range first."""
        return self.wing_layout.buttons[self.layout.small_buttons.offset(note)]

    def executor_for_fader(self, control: int) -> int:
        """Executor index for a fader controller. Caller checks the range first."""
        return self.wing_layout.faders[self.layout.faders.offset(control)]

    @staticmethod
    def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
        """Collect config overrides from environment variables."""
        environ = os.environ if environ is None else environ
        return {field: environ[key] for key, field in ENV_KEYS.items() if environ.get(key, "") != ""}

    @classmethod
    def load(cls, path: Path | None = None, environ: Mapping[str, str] | None = None) -> "BridgeConfig":
        """
        Load config from file (if present) and apply environment overrides.

        Args:
            path: Path to config file. If None, uses ~/.ma2bridge/config.json.
            environ: Environment mapping. If None, uses os.environ.

        Raises:
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        overrides = cls.env_overrides(environ)
        if path.exists():
            config = PydanticPersistence.load_json(path, cls, overrides=overrides)
            logger.info(f"Loaded configuration from {path}")
            return config

        try:
            return cls.model_validate(overrides)
        except ValidationError as e:
            raise wrap_pydantic_error(e) from e

    def save(self, path: Path | None = None) -> None:
        """Save config to file."""
        PydanticPersistence.save_json(self, path or DEFAULT_CONFIG_PATH)
