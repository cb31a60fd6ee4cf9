"""Reading and writing the ``<options>`` blocks of Star Citizen's actionmaps.xml.

Only control-option data is extracted; everything else in the document
(action maps, key bindings, modifiers) is skipped.  The relevant subset
looks like this::

    <options type="joystick" instance="1" Product="VKB Gladiator NXT">
      <flight_move_pitch invert="1">
        <nonlinearity_curve>
          <point in="0" out="0"/>
          <point in="100" out="50"/>
        </nonlinearity_curve>
      </flight_move_pitch>
    </options>

The writer reproduces the game's own indentation exactly rather than
pretty-printing, since the game is the only consumer of the output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Union
from xml.etree import ElementTree as ET
from xml.sax.saxutils import escape, unescape

from .models import (
    ActionmapsControlOption,
    ActionmapsCurvePoint,
    ActionmapsDeviceOptions,
)


class XmlSyntaxError(ValueError):
    """Raised when actionmaps.xml text is not well-formed XML.

    *position* is the ``(line, column)`` reported by the XML lexer, when
    available.
    """

    def __init__(self, message: str, position: tuple[int, int] | None = None):
        super().__init__(message)
        self.position = position


_OPTIONS_TAG = "options"
_CURVE_TAG = "nonlinearity_curve"
_POINT_TAG = "point"

_FEED_CHUNK = 64 * 1024

# XML declaration, comments and DOCTYPE that must stay ahead of the root
_PROLOG_RE = re.compile(
    r"(?:\s*(?:<\?xml[^>]*\?>|<!--.*?-->|<!DOCTYPE[^\[>]*(?:\[.*?\])?\s*>))*",
    re.DOTALL,
)

# Synthetic wrapper so that fragments holding several sibling <options>
# elements parse as one document.
_FRAGMENT_ROOT = "sccontrols-fragment"


# ── Scan state ───────────────────────────────────────────────────────────
# The scanner is always in exactly one of these states.  Each state carries
# only the objects that exist in it, so e.g. "inside a curve with no open
# option" cannot be expressed.

@dataclass
class _Outside:
    pass


@dataclass
class _InDevice:
    device: ActionmapsDeviceOptions


@dataclass
class _InOption:
    device: ActionmapsDeviceOptions
    option: ActionmapsControlOption


@dataclass
class _InCurve:
    device: ActionmapsDeviceOptions
    option: ActionmapsControlOption


_State = Union[_Outside, _InDevice, _InOption, _InCurve]


# ── Deserialization ──────────────────────────────────────────────────────

def quote_attr(value: str) -> str:
    """Escape a logical attribute value into the raw form kept in the model."""
    return escape(value, {'"': "&quot;"})


def unquote_attr(raw: str) -> str:
    """Inverse of :func:`quote_attr`."""
    return unescape(raw, {"&quot;": '"', "&apos;": "'"})


def _prepare(source: str | bytes) -> str:
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise XmlSyntaxError(f"XML parse error: input is not valid UTF-8 ({exc})") from exc
    text = source.lstrip("\ufeff")
    head_end = _PROLOG_RE.match(text).end()
    return (
        text[:head_end]
        + f"<{_FRAGMENT_ROOT}>"
        + text[head_end:]
        + f"</{_FRAGMENT_ROOT}>"
    )


def _iter_events(text: str) -> Iterable[tuple[str, ET.Element]]:
    parser = ET.XMLPullParser(events=("start", "end"))
    try:
        for offset in range(0, len(text), _FEED_CHUNK):
            parser.feed(text[offset:offset + _FEED_CHUNK])
            yield from parser.read_events()
        parser.close()
        yield from parser.read_events()
    except ET.ParseError as exc:
        raise XmlSyntaxError(
            f"XML parse error: {exc}", getattr(exc, "position", None)
        ) from exc


def _raw_get(elem: ET.Element, key: str) -> str:
    return quote_attr(elem.get(key, ""))


def _device_from(elem: ET.Element) -> ActionmapsDeviceOptions:
    return ActionmapsDeviceOptions(
        device_type=_raw_get(elem, "type"),
        instance=_raw_get(elem, "instance"),
        product=_raw_get(elem, "Product"),
    )


def parse_actionmaps_options(source: str | bytes) -> list[ActionmapsDeviceOptions]:
    """Extract every ``<options>`` block from actionmaps.xml text.

    Returns the devices in document order (possibly an empty list).  Raises
    :class:`XmlSyntaxError` on malformed XML or bytes that are not UTF-8.
    Missing ``type``, ``instance`` or ``Product`` attributes come back as
    empty strings.  Attribute values are kept XML-escaped (``A &amp; B``),
    so they can go straight back into :func:`generate_options_xml`.
    """
    devices: list[ActionmapsDeviceOptions] = []
    state: _State = _Outside()
    # Depth of elements being skipped because they mean nothing here
    skip = 0

    for event, elem in _iter_events(_prepare(source)):
        if skip:
            skip += 1 if event == "start" else -1
            continue

        if event == "start":
            if isinstance(state, _Outside):
                if elem.tag == _OPTIONS_TAG:
                    state = _InDevice(_device_from(elem))
            elif isinstance(state, _InDevice):
                option = ActionmapsControlOption(
                    name=elem.tag,
                    attributes=[(k, quote_attr(v)) for k, v in elem.attrib.items()],
                )
                state = _InOption(state.device, option)
            elif isinstance(state, _InOption):
                if elem.tag == _CURVE_TAG:
                    state = _InCurve(state.device, state.option)
                else:
                    skip = 1
            else:
                if elem.tag == _POINT_TAG:
                    state.option.curve_points.append(ActionmapsCurvePoint(
                        in_val=_raw_get(elem, "in"),
                        out_val=_raw_get(elem, "out"),
                    ))
                # Points never have children; skip until their end event
                skip = 1
            continue

        # event == "end"
        if isinstance(state, _InCurve):
            state = _InOption(state.device, state.option)
        elif isinstance(state, _InOption):
            state.device.options.append(state.option)
            state = _InDevice(state.device)
        elif isinstance(state, _InDevice):
            devices.append(state.device)
            state = _Outside()
        else:
            # Document wrapper or an element outside any device
            elem.clear()

    return devices


# ── Serialization ────────────────────────────────────────────────────────

def _options_open_tag(device: ActionmapsDeviceOptions) -> str:
    tag = f'  <options type="{device.device_type}" instance="{device.instance}"'
    if device.product:
        tag += f' Product="{device.product}"'
    return tag


def generate_options_xml(device: ActionmapsDeviceOptions) -> str:
    """Render one ``<options>`` element in the game's own layout.

    Attribute values are written verbatim; the caller must supply values
    that are already XML-safe (see :func:`quote_attr`).
    """
    if not device.options:
        return _options_open_tag(device) + "/>\n"

    lines = [_options_open_tag(device) + ">\n"]
    for opt in device.options:
        head = f"   <{opt.name}" + "".join(
            f' {key}="{value}"' for key, value in opt.attributes
        )
        if not opt.curve_points:
            lines.append(head + "/>\n")
            continue
        lines.append(head + ">\n")
        lines.append("    <nonlinearity_curve>\n")
        for point in opt.curve_points:
            lines.append(f'     <point in="{point.in_val}" out="{point.out_val}"/>\n')
        lines.append("    </nonlinearity_curve>\n")
        lines.append(f"   </{opt.name}>\n")
    lines.append("  </options>\n")
    return "".join(lines)


def generate_all_options_xml(devices: Iterable[ActionmapsDeviceOptions]) -> str:
    """Render several ``<options>`` elements back to back."""
    return "".join(generate_options_xml(device) for device in devices)
