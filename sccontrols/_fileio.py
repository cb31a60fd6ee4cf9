"""Atomic text-file writes shared by the repository and the JSON codec."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: str | Path, text: str, *, prefix: str = ".tmp_") -> Path:
    """Write *text* to *path* via temp-file-and-rename.

    Readers (including the game) never see a half-written file.  Returns
    the destination :class:`Path`.
    """
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp = tempfile.mkstemp(
        suffix=dest.suffix or ".tmp", dir=str(dest.parent), prefix=prefix
    )
    try:
        os.close(fd)
        # newline="" keeps the caller's line endings untouched on Windows
        with open(tmp, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        Path(tmp).replace(dest)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    return dest
