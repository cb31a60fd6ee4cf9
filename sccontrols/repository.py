"""File-system access for ``.sccontrols`` files and Star Citizen's actionmaps.xml.

A Star Citizen installation directory (e.g. ``.../StarCitizen/LIVE``) keeps
the active bindings at::

    <install>/user/client/0/Profiles/default/actionmaps.xml

Writes to actionmaps.xml always go through a timestamped backup and an
atomic temp-file-and-rename, so the game never reads a half-written file.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from ._fileio import atomic_write_text
from .bridge import (
    actionmaps_to_controls,
    controls_to_actionmaps,
    merge_device_options,
    splice_options_xml,
)
from .json_io import read_controls_file, write_controls_file
from .models import ApplyControlsResult, ControlsFile
from .xml_io import XmlSyntaxError, parse_actionmaps_options

log = logging.getLogger(__name__)


# ── Installation lookup ──────────────────────────────────────────────────

INSTALL_CHANNELS: tuple[str, ...] = ("LIVE", "PTU", "EPTU", "TECH-PREVIEW", "HOTFIX")

_ACTIONMAPS_RELATIVE: tuple[Path, ...] = (
    Path("user") / "client" / "0" / "Profiles" / "default" / "actionmaps.xml",
    Path("USER") / "Client" / "0" / "Profiles" / "default" / "actionmaps.xml",
)


def scan_installations(base_dir: str | Path) -> list[Path]:
    """Return the release-channel directories found under *base_dir*.

    *base_dir* is the ``StarCitizen`` folder holding ``LIVE``, ``PTU``, ...
    If *base_dir* is itself a channel directory it is returned alone.
    """
    base = Path(base_dir)
    if not base.is_dir():
        return []
    if base.name.upper() in INSTALL_CHANNELS:
        return [base]
    found = [base / ch for ch in INSTALL_CHANNELS if (base / ch).is_dir()]
    log.debug("Found %d installation(s) under %s", len(found), base)
    return found


def find_actionmaps_path(install_dir: str | Path) -> Path | None:
    """Return the actionmaps.xml of *install_dir*, or ``None`` if the game
    has not written one yet."""
    base = Path(install_dir)
    for rel in _ACTIONMAPS_RELATIVE:
        candidate = base / rel
        if candidate.is_file():
            return candidate
    return None


def backup_actionmaps(actionmaps_path: str | Path) -> Path:
    """Copy *actionmaps_path* to a timestamped ``.bak`` beside it."""
    src = Path(actionmaps_path)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    dest = src.with_name(f"{src.name}.{stamp}.bak")
    counter = 1
    while dest.exists():
        dest = src.with_name(f"{src.name}.{stamp}-{counter}.bak")
        counter += 1
    shutil.copy2(src, dest)
    log.info("Backed up %s to %s", src, dest)
    return dest


# ── .sccontrols files ────────────────────────────────────────────────────

def load_controls(path: str | Path) -> ControlsFile:
    """Load a ``.sccontrols`` file.

    Raises :class:`FileNotFoundError` if it doesn't exist and
    :class:`~sccontrols.json_io.FormatError` if it is invalid.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Controls file not found at {p}")
    return read_controls_file(p)


def save_controls(controls: ControlsFile, path: str | Path) -> Path:
    """Stamp *controls* with the current time and write it to *path*."""
    controls.touch()
    dest = write_controls_file(controls, path)
    log.info("Saved controls %r to %s", controls.profile_name, dest)
    return dest


# ── actionmaps.xml ───────────────────────────────────────────────────────

def _read_actionmaps(path: Path) -> str:
    """Return the document text with its line endings and BOM untouched."""
    try:
        with open(path, encoding="utf-8", newline="") as fh:
            return fh.read()
    except UnicodeDecodeError as exc:
        raise XmlSyntaxError(f"XML parse error: {path} is not valid UTF-8 ({exc})") from exc


def import_controls_from_actionmaps(
    actionmaps_path: str | Path,
    profile_name: str | None = None,
) -> ControlsFile:
    """Read the current control options out of *actionmaps_path*.

    Raises :class:`XmlSyntaxError` on malformed XML or a file that is not
    UTF-8.
    """
    p = Path(actionmaps_path)
    devices = parse_actionmaps_options(_read_actionmaps(p))
    if profile_name is None:
        profile_name = _install_name(p)
    return actionmaps_to_controls(devices, profile_name=profile_name)


def apply_controls_to_actionmaps(
    actionmaps_path: str | Path,
    controls: ControlsFile,
    *,
    backup: bool = True,
) -> ApplyControlsResult:
    """Write the transferable settings of *controls* into *actionmaps_path*.

    Existing option attributes that the settings model doesn't track are
    kept.  On any failure the file is left untouched and the returned
    result carries the error message.
    """
    p = Path(actionmaps_path)
    updates = controls_to_actionmaps(controls)
    if not updates:
        return ApplyControlsResult(
            success=False,
            message="No settings to apply: only inversion settings are written to the game.",
        )

    try:
        original = _read_actionmaps(p)
        existing = parse_actionmaps_options(original)
        existing_keys = {d.key for d in existing}
        touched = {u.key for u in updates}
        # Blocks for untouched devices are left as the game wrote them
        merged = [d for d in merge_device_options(existing, updates) if d.key in touched]
        new_text = splice_options_xml(original, merged)
        backup_path = backup_actionmaps(p) if backup else None
        atomic_write_text(p, new_text, prefix=".tmp_actionmaps_")
    except (OSError, XmlSyntaxError, ValueError) as exc:
        log.warning("Failed to apply controls to %s: %s", p, exc)
        return ApplyControlsResult(success=False, message=f"Failed to apply controls: {exc}")

    added = sum(1 for u in updates if u.key not in existing_keys)
    log.info(
        "Applied %d device block(s) to %s (%d new)", len(updates), p, added,
    )
    return ApplyControlsResult(
        success=True,
        backup_path=str(backup_path) if backup_path is not None else None,
        message=(
            f"Applied settings for {len(updates)} device(s) to {_install_name(p)}. "
            "Restart Star Citizen for the changes to take effect."
        ),
    )


def _install_name(actionmaps_path: Path) -> str:
    """Best-effort channel name (``LIVE``, ``PTU``...) for *actionmaps_path*."""
    for parent in actionmaps_path.parents:
        if parent.name.upper() in INSTALL_CHANNELS:
            return parent.name
    return "Star Citizen"
