"""Star Citizen control-option settings: ``.sccontrols`` files and actionmaps.xml.

Programmatic API for saving, loading, importing and applying per-device
control options (axis inversion, response curves).

Quick start::

    from sccontrols import (
        controls_from_frontend,
        controls_to_actionmaps,
        generate_options_xml,
        parse_actionmaps_options,
    )

    controls = controls_from_frontend({
        "profile_name": "My Profile",
        "devices": {"joystick": {"1": {"flight_move_pitch": {"invert": True}}}},
    })
    for device in controls_to_actionmaps(controls):
        print(generate_options_xml(device))
"""

from __future__ import annotations

from .models import (
    CONTROLS_FILE_VERSION,
    CURVE_MODES,
    ActionmapsControlOption,
    ActionmapsCurvePoint,
    ActionmapsDeviceOptions,
    ApplyControlsResult,
    ControlOptionSettings,
    ControlsFile,
    CurveData,
    CurvePoint,
    DeviceInstanceSettings,
    DeviceSettings,
)
from .json_io import (
    FormatError,
    controls_to_json,
    parse_controls,
    read_controls_file,
    write_controls_file,
)
from .frontend import controls_from_frontend, controls_to_frontend
from .xml_io import (
    XmlSyntaxError,
    generate_all_options_xml,
    generate_options_xml,
    parse_actionmaps_options,
)
from .bridge import (
    actionmaps_to_controls,
    controls_to_actionmaps,
    merge_device_options,
    splice_options_xml,
)
from .curves import CURVE_PRESETS, evaluate_curve, evaluate_exponent, preset_curve
from .repository import (
    apply_controls_to_actionmaps,
    backup_actionmaps,
    find_actionmaps_path,
    import_controls_from_actionmaps,
    load_controls,
    save_controls,
    scan_installations,
)

__all__ = [
    # Models
    "CONTROLS_FILE_VERSION",
    "CURVE_MODES",
    "ControlsFile",
    "DeviceSettings",
    "DeviceInstanceSettings",
    "ControlOptionSettings",
    "CurveData",
    "CurvePoint",
    "ActionmapsDeviceOptions",
    "ActionmapsControlOption",
    "ActionmapsCurvePoint",
    "ApplyControlsResult",
    # Errors
    "FormatError",
    "XmlSyntaxError",
    # .sccontrols JSON
    "parse_controls",
    "controls_to_json",
    "read_controls_file",
    "write_controls_file",
    # Frontend
    "controls_from_frontend",
    "controls_to_frontend",
    # actionmaps.xml
    "parse_actionmaps_options",
    "generate_options_xml",
    "generate_all_options_xml",
    # Bridge
    "controls_to_actionmaps",
    "actionmaps_to_controls",
    "merge_device_options",
    "splice_options_xml",
    # Curves
    "CURVE_PRESETS",
    "preset_curve",
    "evaluate_curve",
    "evaluate_exponent",
    # Files
    "scan_installations",
    "find_actionmaps_path",
    "backup_actionmaps",
    "load_controls",
    "save_controls",
    "import_controls_from_actionmaps",
    "apply_controls_to_actionmaps",
]
