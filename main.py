# Copyright (C) 2025-2026 SC Controls Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

import argparse
import json
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

_ROOT = Path(__file__).resolve().parent
_CACHE_DIR = _ROOT / "cache"
_CRASH_LOG = _CACHE_DIR / "latest.log"


def _install_crash_logger() -> None:
    """Replace the default exception hook so unhandled errors are written
    to ``cache/latest.log`` before the process terminates."""
    _original_hook = sys.excepthook

    def _crash_hook(exc_type, exc_value, exc_tb):
        try:
            _CACHE_DIR.mkdir(parents=True, exist_ok=True)
            tb_text = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
            header = (
                f"SC Controls crash log\n"
                f"=====================\n"
                f"Timestamp : {timestamp}\n"
                f"Python    : {sys.version}\n"
                f"Platform  : {sys.platform}\n"
                f"Exception : {exc_type.__name__}: {exc_value}\n"
                f"\n"
            )
            _CRASH_LOG.write_text(header + tb_text, encoding="utf-8")
        except OSError:
            pass
        _original_hook(exc_type, exc_value, exc_tb)

    sys.excepthook = _crash_hook


def _apply_debug_logging(verbose: bool = False) -> None:
    """Configure Python logging based on the user's debug settings."""
    import logging
    from sccontrols.config import AppConfig

    cfg = AppConfig.load()
    if cfg.debug_logging or verbose:
        level = logging.DEBUG if verbose else getattr(logging, cfg.debug_log_level, logging.WARNING)
        log_file = _CACHE_DIR / "sccontrols_debug.log"
        _CACHE_DIR.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[
                logging.FileHandler(str(log_file), encoding="utf-8"),
                logging.StreamHandler(sys.stderr),
            ],
            force=True,
        )
    else:
        logging.basicConfig(level=logging.WARNING, force=True)


# -- Commands ----------------------------------------------------------------

def _cmd_inspect(args) -> int:
    from sccontrols import generate_all_options_xml, parse_actionmaps_options

    devices = parse_actionmaps_options(Path(args.actionmaps).read_bytes())
    if not devices:
        print("No <options> blocks found.")
        return 0
    sys.stdout.write(generate_all_options_xml(devices))
    return 0


def _cmd_import(args) -> int:
    from sccontrols import import_controls_from_actionmaps, save_controls

    controls = import_controls_from_actionmaps(args.actionmaps, args.profile_name)
    out = save_controls(controls, args.output)
    print(f"Imported control settings to {out}")
    return 0


def _cmd_apply(args) -> int:
    from sccontrols import apply_controls_to_actionmaps, load_controls
    from sccontrols.config import AppConfig

    cfg = AppConfig.load()
    controls = load_controls(args.controls)
    result = apply_controls_to_actionmaps(
        args.actionmaps, controls, backup=cfg.create_backups and not args.no_backup,
    )
    print(result.message)
    if result.backup_path:
        print(f"Backup: {result.backup_path}")
    if result.success:
        cfg.remember_controls_file(args.controls)
        cfg.save()
    return 0 if result.success else 1


def _cmd_show(args) -> int:
    from sccontrols import controls_to_frontend, load_controls

    controls = load_controls(args.controls)
    print(json.dumps(controls_to_frontend(controls), indent=2, ensure_ascii=False))
    return 0


def _cmd_devices(args) -> int:
    from sccontrols.input_devices import list_joysticks

    joysticks = list_joysticks()
    if not joysticks:
        print("No joysticks detected.")
        return 0
    for joy in joysticks:
        print(f"js{joy.instance}: {joy.name} ({joy.num_axes} axes, {joy.num_buttons} buttons)")
    return 0


def _cmd_save(args) -> int:
    from sccontrols import controls_from_frontend, save_controls
    from sccontrols.input_devices import detect_joystick_products

    payload = json.loads(Path(args.payload).read_text(encoding="utf-8"))
    products = None if args.no_detect else detect_joystick_products()
    controls = controls_from_frontend(payload, products=products)
    out = save_controls(controls, args.output)
    print(f"Saved control settings to {out}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sccontrols",
        description="Save, import and apply Star Citizen control options.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("inspect", help="print the <options> blocks of an actionmaps.xml")
    p.add_argument("actionmaps")
    p.set_defaults(func=_cmd_inspect)

    p = sub.add_parser("import", help="import actionmaps.xml options into a .sccontrols file")
    p.add_argument("actionmaps")
    p.add_argument("output")
    p.add_argument("--profile-name", default=None)
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("apply", help="write a .sccontrols file into actionmaps.xml")
    p.add_argument("controls")
    p.add_argument("actionmaps")
    p.add_argument("--no-backup", action="store_true")
    p.set_defaults(func=_cmd_apply)

    p = sub.add_parser("save", help="save a UI settings payload (JSON) as a .sccontrols file")
    p.add_argument("payload")
    p.add_argument("output")
    p.add_argument("--no-detect", action="store_true", help="don't label joysticks with detected product names")
    p.set_defaults(func=_cmd_save)

    p = sub.add_parser("devices", help="list connected joysticks and their instance ids")
    p.set_defaults(func=_cmd_devices)

    p = sub.add_parser("show", help="print a .sccontrols file in the UI's JSON shape")
    p.add_argument("controls")
    p.set_defaults(func=_cmd_show)

    return parser


def main(argv=None):
    _install_crash_logger()
    args = _build_parser().parse_args(argv)
    _apply_debug_logging(args.verbose)

    # FormatError, XmlSyntaxError and bad UI payloads are all ValueErrors
    try:
        code = args.func(args)
    except (ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
