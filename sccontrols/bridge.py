"""Convert between :class:`ControlsFile` settings and actionmaps.xml options.

Only ``invert`` is written to the game file.  Star Citizen does not keep
curve or exponent settings written into actionmaps.xml across restarts, so
``curve_mode``, ``exponent`` and ``curve`` stop at
:func:`_transferable_attributes`.  They are still read back when importing
from the game so that nothing the player set in-game is lost.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Iterable

from .models import (
    DEVICE_TYPES,
    DEVICE_JOYSTICK,
    ActionmapsControlOption,
    ActionmapsDeviceOptions,
    ControlOptionSettings,
    ControlsFile,
    CurveData,
    CurvePoint,
    DeviceInstanceSettings,
)
from .xml_io import generate_options_xml, quote_attr, unquote_attr

log = logging.getLogger(__name__)


# ── ControlsFile -> actionmaps ───────────────────────────────────────────

def _transferable_attributes(settings: ControlOptionSettings) -> list[tuple[str, str]]:
    """Return the attributes of *settings* that the game actually honours."""
    attributes: list[tuple[str, str]] = []
    if settings.invert is not None:
        attributes.append(("invert", "1" if settings.invert else "0"))
    return attributes


def _options_to_actionmaps(
    options: dict[str, ControlOptionSettings],
) -> list[ActionmapsControlOption]:
    result: list[ActionmapsControlOption] = []
    for name, settings in options.items():
        opt = ActionmapsControlOption(
            name=name,
            attributes=_transferable_attributes(settings),
        )
        if opt.is_empty():
            log.debug("Option %r has no transferable settings", name)
            continue
        result.append(opt)
    return result


def controls_to_actionmaps(controls: ControlsFile) -> list[ActionmapsDeviceOptions]:
    """Build the ``<options>`` blocks to write for *controls*.

    One block per keyboard, gamepad and joystick instance that has at least
    one transferable option.  Order: keyboard, gamepad, then joysticks in
    the order stored.
    """
    result: list[ActionmapsDeviceOptions] = []
    for device_type, instance, settings in controls.devices.instances():
        options = _options_to_actionmaps(settings.options)
        if not options:
            continue
        result.append(ActionmapsDeviceOptions(
            device_type=device_type,
            instance=quote_attr(instance),
            product=quote_attr(settings.product or ""),
            options=options,
        ))
    return result


# ── actionmaps -> ControlsFile ───────────────────────────────────────────

def _parse_float(value: str, what: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        log.debug("Ignoring unparseable %s %r", what, value)
        return None


def _option_from_actionmaps(opt: ActionmapsControlOption) -> ControlOptionSettings:
    settings = ControlOptionSettings()

    # Values in the actionmaps model are still XML-escaped
    invert = opt.get("invert")
    if invert is not None:
        settings.invert = unquote_attr(invert) == "1"

    exponent = opt.get("exponent")
    if exponent is not None:
        settings.exponent = _parse_float(unquote_attr(exponent), "exponent")
        if settings.exponent is not None and not opt.curve_points:
            settings.curve_mode = "exponent"

    points: list[CurvePoint] = []
    for pt in opt.curve_points:
        x = _parse_float(unquote_attr(pt.in_val), "curve input")
        y = _parse_float(unquote_attr(pt.out_val), "curve output")
        if x is None or y is None:
            continue
        points.append(CurvePoint(input=x, output=y))
    if points:
        settings.curve_mode = "curve"
        settings.curve = CurveData(points=points)

    return settings


def actionmaps_to_controls(
    devices: Iterable[ActionmapsDeviceOptions],
    profile_name: str = "",
) -> ControlsFile:
    """Build a fresh :class:`ControlsFile` from parsed actionmaps.xml options.

    Options with nothing recognisable, and devices left empty, are dropped.
    """
    controls = ControlsFile.new(profile_name)
    for device in devices:
        if device.device_type not in DEVICE_TYPES:
            log.debug("Skipping unknown device type %r", device.device_type)
            continue

        options: dict[str, ControlOptionSettings] = {}
        for opt in device.options:
            settings = _option_from_actionmaps(opt)
            if not settings.is_empty():
                options[opt.name] = settings
        if not options:
            continue

        instance = DeviceInstanceSettings(
            product=unquote_attr(device.product) or None, options=options,
        )
        if device.device_type == DEVICE_JOYSTICK:
            if controls.devices.joystick is None:
                controls.devices.joystick = {}
            controls.devices.joystick[unquote_attr(device.instance) or "1"] = instance
        else:
            setattr(controls.devices, device.device_type, instance)

    return controls


# ── Merging into an existing file ────────────────────────────────────────

def _merge_option(
    existing: ActionmapsControlOption,
    update: ActionmapsControlOption,
) -> ActionmapsControlOption:
    attributes = list(existing.attributes)
    for key, value in update.attributes:
        for i, (k, _) in enumerate(attributes):
            if k == key:
                attributes[i] = (key, value)
                break
        else:
            attributes.append((key, value))
    curve_points = update.curve_points or existing.curve_points
    return ActionmapsControlOption(
        name=existing.name,
        attributes=attributes,
        curve_points=copy.deepcopy(curve_points),
    )


def merge_device_options(
    existing: Iterable[ActionmapsDeviceOptions],
    updates: Iterable[ActionmapsDeviceOptions],
) -> list[ActionmapsDeviceOptions]:
    """Overlay *updates* onto the options already present in the game file.

    Attributes the settings model does not track (deadzones, curves the game
    wrote itself, ...) are kept.  Devices and options that only appear in
    *updates* are appended.  Neither input is modified.
    """
    merged = [copy.deepcopy(d) for d in existing]
    by_key = {d.key: d for d in merged}

    for update in updates:
        target = by_key.get(update.key)
        if target is None:
            target = copy.deepcopy(update)
            merged.append(target)
            by_key[target.key] = target
            continue

        if not target.product:
            target.product = update.product
        positions = {opt.name: i for i, opt in enumerate(target.options)}
        for opt in update.options:
            idx = positions.get(opt.name)
            if idx is None:
                positions[opt.name] = len(target.options)
                target.options.append(copy.deepcopy(opt))
            else:
                target.options[idx] = _merge_option(target.options[idx], opt)

    return merged


# ── Splicing into the document text ──────────────────────────────────────

# One alternation so that comments and CDATA are consumed whole and an
# <options> inside them is never taken for a real block.  Attribute values
# may contain ">".
_DOCUMENT_TOKEN_RE = re.compile(
    r"(?P<ignored><!--.*?-->|<!\[CDATA\[.*?\]\]>)"
    r"|<options\b(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*?)(?:/>|>.*?</options\s*>)"
    r"|(?P<profiles_end></ActionProfiles\s*>)",
    re.DOTALL,
)
_ATTR_RE = re.compile(r"""(\w+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def _block_key(attrs: str) -> tuple[str, str]:
    values = {m.group(1): m.group(2) if m.group(2) is not None else m.group(3)
              for m in _ATTR_RE.finditer(attrs)}
    return (values.get("type", ""), values.get("instance", ""))


def splice_options_xml(
    document: str,
    devices: Iterable[ActionmapsDeviceOptions],
) -> str:
    """Write *devices* into the full actionmaps.xml *document* text.

    Existing ``<options>`` blocks with the same type and instance are
    replaced in place; the rest of the document is left byte-for-byte
    untouched.  New devices go after the last ``<options>`` block, or just
    before ``</ActionProfiles>`` when the document has none.  Generated
    blocks use the document's line endings.

    Blocks inside comments and CDATA sections are ignored.

    Raises :class:`ValueError` if there is nowhere to insert a new block.
    """
    pending = {d.key: d for d in devices}
    if not pending:
        return document

    newline = "\r\n" if "\r\n" in document else "\n"

    def _render(device: ActionmapsDeviceOptions) -> str:
        return generate_options_xml(device).replace("\n", newline)

    def _replace(match: re.Match) -> str:
        if match.group("attrs") is None:
            return match.group(0)
        device = pending.pop(_block_key(match.group("attrs")), None)
        if device is None:
            return match.group(0)
        return _render(device).strip()

    text = _DOCUMENT_TOKEN_RE.sub(_replace, document)
    if not pending:
        return text

    new_blocks = "".join(_render(d) for d in pending.values())
    last_block = profiles_end = None
    for match in _DOCUMENT_TOKEN_RE.finditer(text):
        if match.group("attrs") is not None:
            last_block = match
        elif match.group("profiles_end") is not None and profiles_end is None:
            profiles_end = match

    if last_block is not None:
        pos = last_block.end()
        return text[:pos] + newline + new_blocks.rstrip("\r\n") + text[pos:]

    if profiles_end is None:
        raise ValueError(
            "actionmaps.xml has no <options> block or </ActionProfiles> tag to insert into"
        )
    line_start = text.rfind("\n", 0, profiles_end.start()) + 1
    return text[:line_start] + new_blocks + text[line_start:]
