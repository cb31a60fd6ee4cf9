"""Typed data models for SC control settings and actionmaps.xml options."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


# ── Format constants ─────────────────────────────────────────────────────

CONTROLS_FILE_VERSION = "1.0"
CONTROLS_FILE_SUFFIX = ".sccontrols"

CURVE_MODES: set[str] = {"exponent", "curve"}

DEVICE_KEYBOARD = "keyboard"
DEVICE_GAMEPAD = "gamepad"
DEVICE_JOYSTICK = "joystick"

DEVICE_TYPES: tuple[str, ...] = (DEVICE_KEYBOARD, DEVICE_GAMEPAD, DEVICE_JOYSTICK)

# Keyboard and gamepad are implicitly singular in actionmaps.xml.
SINGLE_INSTANCE_ID = "1"


def utc_timestamp() -> str:
    """Return the current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


# ── Settings model (.sccontrols) ─────────────────────────────────────────

@dataclass
class CurvePoint:
    """One point of a response curve."""
    input: float
    output: float


@dataclass
class CurveData:
    """Ordered response-curve points.  Order is significant."""
    points: list[CurvePoint] = field(default_factory=list)


@dataclass
class ControlOptionSettings:
    """Tunable state of one control option (e.g. ``flight_move_pitch``).

    Only *invert* is ever written to actionmaps.xml.  *curve_mode*,
    *exponent* and *curve* are kept and saved to ``.sccontrols`` files, but
    the game does not keep them when they are written to its own file.
    """
    invert: bool | None = None
    curve_mode: str | None = None
    exponent: float | None = None
    curve: CurveData | None = None

    def is_empty(self) -> bool:
        return (
            self.invert is None
            and self.curve_mode is None
            and self.exponent is None
            and self.curve is None
        )

    def validate(self) -> None:
        if self.curve_mode is not None and self.curve_mode not in CURVE_MODES:
            raise ValueError(f"Unknown curve mode {self.curve_mode!r}")


@dataclass
class DeviceInstanceSettings:
    """Settings for one device instance, keyed by control-option name."""
    product: str | None = None
    options: dict[str, ControlOptionSettings] = field(default_factory=dict)


@dataclass
class DeviceSettings:
    keyboard: DeviceInstanceSettings | None = None
    gamepad: DeviceInstanceSettings | None = None
    # Joystick instance id (as assigned by the game, e.g. "1", "2") -> settings
    joystick: dict[str, DeviceInstanceSettings] | None = None

    def instances(self) -> list[tuple[str, str, DeviceInstanceSettings]]:
        """Return ``(device_type, instance, settings)`` for every device present."""
        result: list[tuple[str, str, DeviceInstanceSettings]] = []
        if self.keyboard is not None:
            result.append((DEVICE_KEYBOARD, SINGLE_INSTANCE_ID, self.keyboard))
        if self.gamepad is not None:
            result.append((DEVICE_GAMEPAD, SINGLE_INSTANCE_ID, self.gamepad))
        for instance, settings in (self.joystick or {}).items():
            result.append((DEVICE_JOYSTICK, instance, settings))
        return result


@dataclass
class ControlsFile:
    """Complete ``.sccontrols`` document."""
    version: str = CONTROLS_FILE_VERSION
    profile_name: str = ""
    last_modified: str | None = None
    devices: DeviceSettings = field(default_factory=DeviceSettings)

    @classmethod
    def new(cls, profile_name: str) -> ControlsFile:
        """Create an empty controls file stamped with the current time."""
        return cls(
            version=CONTROLS_FILE_VERSION,
            profile_name=profile_name,
            last_modified=utc_timestamp(),
            devices=DeviceSettings(),
        )

    def touch(self) -> None:
        """Update *last_modified* to now."""
        self.last_modified = utc_timestamp()


# ── actionmaps.xml model ─────────────────────────────────────────────────
# Values are kept as the raw attribute strings so that the game's own
# number formatting survives a read/write cycle.

@dataclass
class ActionmapsCurvePoint:
    in_val: str
    out_val: str


@dataclass
class ActionmapsControlOption:
    """A control-option element inside ``<options>``.

    *attributes* is an ordered list of ``(key, value)`` pairs, kept in
    document (or construction) order.
    """
    name: str
    attributes: list[tuple[str, str]] = field(default_factory=list)
    curve_points: list[ActionmapsCurvePoint] = field(default_factory=list)

    def get(self, key: str, default: str | None = None) -> str | None:
        for k, v in self.attributes:
            if k == key:
                return v
        return default

    def is_empty(self) -> bool:
        return not self.attributes and not self.curve_points


@dataclass
class ActionmapsDeviceOptions:
    """One ``<options type=".." instance=".." Product="..">`` element."""
    device_type: str
    instance: str
    product: str = ""
    options: list[ActionmapsControlOption] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.device_type, self.instance)


@dataclass
class ApplyControlsResult:
    """Outcome of writing a controls file into actionmaps.xml."""
    success: bool
    backup_path: str | None = None
    message: str = ""
