"""``.sccontrols`` JSON serialization and deserialization.

The file is a pretty-printed JSON object::

    {
      "version": "1.0",
      "profile_name": "My Profile",
      "last_modified": "2026-01-01T12:00:00+00:00",
      "devices": {
        "joystick": {
          "1": {
            "product": "VKB Gladiator NXT",
            "options": {
              "flight_move_pitch": {"invert": true, "curve_mode": "exponent", "exponent": 1.5}
            }
          }
        }
      }
    }

Unset fields are omitted rather than written as ``null`` so saved files stay
small and diff cleanly.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ._fileio import atomic_write_text
from .models import (
    CURVE_MODES,
    ControlOptionSettings,
    ControlsFile,
    CurveData,
    CurvePoint,
    DeviceInstanceSettings,
    DeviceSettings,
)


class FormatError(ValueError):
    """Raised when a controls file is not valid JSON or breaks the schema."""


# ── Helpers ──────────────────────────────────────────────────────────────

def _require(obj: dict[str, Any], key: str, where: str) -> Any:
    if key not in obj:
        raise FormatError(f"Failed to parse controls file: missing field `{key}` in {where}")
    return obj[key]


def _expect_dict(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise FormatError(
            f"Failed to parse controls file: {where} must be an object, "
            f"got {type(value).__name__}"
        )
    return value


def _expect_str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise FormatError(
            f"Failed to parse controls file: {where} must be a string, "
            f"got {type(value).__name__}"
        )
    return value


def _expect_number(value: Any, where: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormatError(
            f"Failed to parse controls file: {where} must be a number, "
            f"got {type(value).__name__}"
        )
    return float(value)


def _optional(obj: dict[str, Any], key: str) -> Any:
    """Return ``obj[key]``, treating an explicit ``null`` as absent."""
    return obj.get(key)


# ── Deserialization ──────────────────────────────────────────────────────

def parse_controls(text: str | bytes) -> ControlsFile:
    """Parse ``.sccontrols`` JSON text into a :class:`ControlsFile`.

    Raises :class:`FormatError` on malformed JSON or schema violations.
    """
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FormatError(f"Failed to parse controls file: {exc}") from exc

    root = _expect_dict(raw, "document")
    version = _expect_str(_require(root, "version", "document"), "`version`")
    profile_name = _expect_str(
        _require(root, "profile_name", "document"), "`profile_name`"
    )
    last_modified = _optional(root, "last_modified")
    if last_modified is not None:
        last_modified = _expect_str(last_modified, "`last_modified`")

    devices = _parse_devices(
        _expect_dict(_require(root, "devices", "document"), "`devices`")
    )

    return ControlsFile(
        version=version,
        profile_name=profile_name,
        last_modified=last_modified,
        devices=devices,
    )


def _parse_devices(node: dict[str, Any]) -> DeviceSettings:
    keyboard = _optional(node, "keyboard")
    gamepad = _optional(node, "gamepad")
    joystick = _optional(node, "joystick")

    instances: dict[str, DeviceInstanceSettings] | None = None
    if joystick is not None:
        instances = {
            str(instance): _parse_instance(entry, f"joystick `{instance}`")
            for instance, entry in _expect_dict(joystick, "`joystick`").items()
        }

    return DeviceSettings(
        keyboard=_parse_instance(keyboard, "keyboard") if keyboard is not None else None,
        gamepad=_parse_instance(gamepad, "gamepad") if gamepad is not None else None,
        joystick=instances,
    )


def _parse_instance(value: Any, where: str) -> DeviceInstanceSettings:
    node = _expect_dict(value, where)
    product = _optional(node, "product")
    if product is not None:
        product = _expect_str(product, f"{where} product")

    options_node = _expect_dict(_require(node, "options", where), f"{where} options")
    options = {
        name: _parse_option(opt, f"option `{name}`")
        for name, opt in options_node.items()
    }
    return DeviceInstanceSettings(product=product, options=options)


def _parse_option(value: Any, where: str) -> ControlOptionSettings:
    node = _expect_dict(value, where)

    invert = _optional(node, "invert")
    if invert is not None and not isinstance(invert, bool):
        raise FormatError(
            f"Failed to parse controls file: {where} `invert` must be a boolean"
        )

    # Older builds wrote the frontend spelling
    curve_mode = _optional(node, "curve_mode")
    if curve_mode is None:
        curve_mode = _optional(node, "curveMode")
    if curve_mode is not None:
        curve_mode = _expect_str(curve_mode, f"{where} `curve_mode`")
        if curve_mode not in CURVE_MODES:
            raise FormatError(
                f"Failed to parse controls file: {where} has unknown "
                f"curve mode {curve_mode!r}"
            )

    exponent = _optional(node, "exponent")
    if exponent is not None:
        exponent = _expect_number(exponent, f"{where} `exponent`")

    curve = _optional(node, "curve")
    if curve is not None:
        curve = _parse_curve(curve, f"{where} curve")

    return ControlOptionSettings(
        invert=invert,
        curve_mode=curve_mode,
        exponent=exponent,
        curve=curve,
    )


def _parse_curve(value: Any, where: str) -> CurveData:
    node = _expect_dict(value, where)
    raw_points = node.get("points") or []
    if not isinstance(raw_points, list):
        raise FormatError(f"Failed to parse controls file: {where} points must be a list")
    points: list[CurvePoint] = []
    for i, pt in enumerate(raw_points):
        pt_where = f"{where} point {i}"
        pt_node = _expect_dict(pt, pt_where)
        points.append(CurvePoint(
            input=_expect_number(_require(pt_node, "in", pt_where), f"{pt_where} `in`"),
            output=_expect_number(_require(pt_node, "out", pt_where), f"{pt_where} `out`"),
        ))
    return CurveData(points=points)


# ── Serialization ────────────────────────────────────────────────────────

def controls_to_dict(controls: ControlsFile) -> dict[str, Any]:
    """Return the JSON-ready dict for *controls* with unset fields omitted."""
    data: dict[str, Any] = {
        "version": controls.version,
        "profile_name": controls.profile_name,
    }
    if controls.last_modified is not None:
        data["last_modified"] = controls.last_modified

    devices: dict[str, Any] = {}
    if controls.devices.keyboard is not None:
        devices["keyboard"] = _instance_to_dict(controls.devices.keyboard)
    if controls.devices.gamepad is not None:
        devices["gamepad"] = _instance_to_dict(controls.devices.gamepad)
    if controls.devices.joystick is not None:
        devices["joystick"] = {
            instance: _instance_to_dict(settings)
            for instance, settings in controls.devices.joystick.items()
        }
    data["devices"] = devices
    return data


def _instance_to_dict(settings: DeviceInstanceSettings) -> dict[str, Any]:
    node: dict[str, Any] = {}
    if settings.product is not None:
        node["product"] = settings.product
    node["options"] = {
        name: _option_to_dict(opt) for name, opt in settings.options.items()
    }
    return node


def _option_to_dict(opt: ControlOptionSettings) -> dict[str, Any]:
    node: dict[str, Any] = {}
    if opt.invert is not None:
        node["invert"] = opt.invert
    if opt.curve_mode is not None:
        node["curve_mode"] = opt.curve_mode
    if opt.exponent is not None:
        node["exponent"] = opt.exponent
    if opt.curve is not None:
        node["curve"] = {
            "points": [{"in": p.input, "out": p.output} for p in opt.curve.points]
        }
    return node


def controls_to_json(controls: ControlsFile) -> str:
    """Serialize *controls* to pretty-printed ``.sccontrols`` JSON."""
    return json.dumps(controls_to_dict(controls), indent=2, ensure_ascii=False)


# ── File wrappers ────────────────────────────────────────────────────────

def read_controls_file(path: str | Path) -> ControlsFile:
    """Read and parse the ``.sccontrols`` file at *path*."""
    return parse_controls(Path(path).read_bytes())


def write_controls_file(controls: ControlsFile, path: str | Path) -> Path:
    """Write *controls* to *path* atomically and return the resolved :class:`Path`."""
    return atomic_write_text(path, controls_to_json(controls) + "\n")
