"""Convert between UI payloads and :class:`ControlsFile` objects.

The UI sends and receives plain dicts shaped like the saved file, except
that each device maps option names straight to field bags and the curve
mode is spelled ``curveMode``::

    {
        "profile_name": "My Profile",
        "devices": {
            "keyboard": {"flight_move_pitch": {"invert": True}},
            "joystick": {"1": {"flight_move_yaw": {"curveMode": "exponent", "exponent": 2.0}}},
        },
    }

Options with no field set, and devices left with no options, are dropped.
All four option fields pass through unchanged in both directions.
"""

from __future__ import annotations

import logging
from typing import Any

from .models import (
    CURVE_MODES,
    ControlOptionSettings,
    ControlsFile,
    CurveData,
    CurvePoint,
    DeviceInstanceSettings,
)

log = logging.getLogger(__name__)


# ── UI -> model ──────────────────────────────────────────────────────────

def controls_from_frontend(
    payload: dict[str, Any],
    *,
    products: dict[str, str] | None = None,
) -> ControlsFile:
    """Build a fresh :class:`ControlsFile` from a UI save payload.

    *products* optionally maps joystick instance ids to product labels
    (see :func:`sccontrols.input_devices.detect_joystick_products`).
    Raises :class:`ValueError` when a field has the wrong type.
    """
    payload = _expect_dict(payload, "Payload")
    profile_name = str(payload.get("profile_name") or "")
    devices_in = _expect_dict(payload.get("devices") or {}, "devices")
    controls = ControlsFile.new(profile_name)

    keyboard = _convert_instance(devices_in.get("keyboard"))
    if keyboard is not None:
        controls.devices.keyboard = keyboard

    gamepad = _convert_instance(devices_in.get("gamepad"))
    if gamepad is not None:
        controls.devices.gamepad = gamepad

    joystick_in = _expect_dict(devices_in.get("joystick") or {}, "joystick")
    instances: dict[str, DeviceInstanceSettings] = {}
    for instance, opts in joystick_in.items():
        key = str(instance)
        settings = _convert_instance(opts, product=(products or {}).get(key))
        if settings is not None:
            instances[key] = settings
    if instances:
        controls.devices.joystick = instances

    return controls


def _expect_dict(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{where} must be an object, got {type(value).__name__}")
    return value


def _expect_number(value: Any, where: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{where} must be a number, got {type(value).__name__}")
    return float(value)


def _convert_instance(
    opts: Any,
    *,
    product: str | None = None,
) -> DeviceInstanceSettings | None:
    if not opts:
        return None
    options: dict[str, ControlOptionSettings] = {}
    for name, fields in _expect_dict(opts, "Device options").items():
        settings = _convert_option(name, _expect_dict(fields or {}, f"Option {name!r}"))
        if settings.is_empty():
            log.debug("Dropping empty option %r", name)
            continue
        options[name] = settings
    if not options:
        return None
    return DeviceInstanceSettings(product=product, options=options)


def _convert_option(name: str, fields: dict[str, Any]) -> ControlOptionSettings:
    invert = fields.get("invert")
    if invert is not None and not isinstance(invert, bool):
        raise ValueError(f"Option {name!r}: invert must be a boolean, got {invert!r}")

    curve_mode = fields.get("curveMode")
    if curve_mode is not None and curve_mode not in CURVE_MODES:
        raise ValueError(f"Option {name!r}: unknown curveMode {curve_mode!r}")

    exponent = fields.get("exponent")
    if exponent is not None:
        exponent = _expect_number(exponent, f"Option {name!r}: exponent")

    curve = fields.get("curve")
    if curve is not None:
        points = _expect_dict(curve, f"Option {name!r}: curve").get("points") or []
        if not isinstance(points, list):
            raise ValueError(f"Option {name!r}: curve points must be a list")
        curve = CurveData(points=[
            _convert_point(point, f"Option {name!r}: curve point {i}")
            for i, point in enumerate(points)
        ])

    return ControlOptionSettings(
        invert=invert,
        curve_mode=curve_mode,
        exponent=exponent,
        curve=curve,
    )


def _convert_point(point: Any, where: str) -> CurvePoint:
    point = _expect_dict(point, where)
    if "in" not in point or "out" not in point:
        raise ValueError(f"{where} needs both `in` and `out`")
    return CurvePoint(
        input=_expect_number(point["in"], f"{where} `in`"),
        output=_expect_number(point["out"], f"{where} `out`"),
    )


# ── model -> UI ──────────────────────────────────────────────────────────

def controls_to_frontend(controls: ControlsFile) -> dict[str, Any]:
    """Expand *controls* into the shape the UI loads.

    Unset option fields and absent devices are left out entirely so the UI
    can tell "unset" apart from "explicitly off".
    """
    devices: dict[str, Any] = {}
    if controls.devices.keyboard is not None:
        devices["keyboard"] = _instance_to_frontend(controls.devices.keyboard)
    if controls.devices.gamepad is not None:
        devices["gamepad"] = _instance_to_frontend(controls.devices.gamepad)
    if controls.devices.joystick is not None:
        devices["joystick"] = {
            instance: _instance_to_frontend(settings)
            for instance, settings in controls.devices.joystick.items()
        }

    result: dict[str, Any] = {
        "version": controls.version,
        "profile_name": controls.profile_name,
    }
    if controls.last_modified is not None:
        result["last_modified"] = controls.last_modified
    result["devices"] = devices
    return result


def _instance_to_frontend(settings: DeviceInstanceSettings) -> dict[str, dict[str, Any]]:
    return {name: _option_to_frontend(opt) for name, opt in settings.options.items()}


def _option_to_frontend(opt: ControlOptionSettings) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if opt.invert is not None:
        out["invert"] = opt.invert
    if opt.curve_mode is not None:
        out["curveMode"] = opt.curve_mode
    if opt.exponent is not None:
        out["exponent"] = opt.exponent
    if opt.curve is not None:
        out["curve"] = {
            "points": [{"in": p.input, "out": p.output} for p in opt.curve.points]
        }
    return out
