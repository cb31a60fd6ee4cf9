# Copyright (C) 2025-2026 SC Controls Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""
Persistent application configuration for SC Controls.

Settings are stored as a JSON file in the OS-appropriate config directory
(``%APPDATA%/SCControls`` on Windows).  This is separate from the
``.sccontrols`` files, which hold the player's control settings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QStandardPaths

log = logging.getLogger(__name__)


# -- Defaults --------------------------------------------------------------

_APP_DIR_NAME = "SCControls"
_CONFIG_FILE  = "settings.json"

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


def _config_dir() -> Path:
    """Return (and create) the per-user config directory."""
    if not QCoreApplication.applicationName():
        QCoreApplication.setApplicationName(_APP_DIR_NAME)
    base = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.AppConfigLocation,
    )
    path = Path(base)
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass
class AppConfig:
    """User-facing application settings.  Serialises to / from JSON."""

    # Star Citizen
    sc_install_dir: str = ""              # the StarCitizen folder (holds LIVE, PTU...)
    create_backups: bool = True           # back up actionmaps.xml before applying

    # Controls files
    last_controls_file: str = ""
    default_profile_name: str = "SC Joy Mapper"

    # Debug
    debug_logging: bool = False
    debug_log_level: str = "WARNING"     # DEBUG / INFO / WARNING / ERROR

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        """Load from disk, returning defaults if the file is missing or bad.

        Unknown keys in the JSON (left over from older versions) are
        ignored so that adding or removing fields never causes a crash.
        """
        path = path or _config_dir() / _CONFIG_FILE
        if not path.exists():
            return cls()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            log.warning("Could not read %s; using default settings", path, exc_info=True)
            return cls()
        if not isinstance(raw, dict):
            log.warning("Ignoring malformed settings file %s", path)
            return cls()
        known = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in raw.items() if k in known})
        if cfg.debug_log_level not in LOG_LEVELS:
            cfg.debug_log_level = "WARNING"
        return cfg

    def save(self, path: Path | None = None) -> None:
        """Write current settings to disk."""
        path = path or _config_dir() / _CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(asdict(self), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def remember_controls_file(self, path: str | Path) -> None:
        self.last_controls_file = str(Path(path).resolve())
