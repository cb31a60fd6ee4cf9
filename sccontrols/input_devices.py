# Copyright (C) 2025-2026 SC Controls Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""
Joystick detection for labelling device instances.

Uses pygame's joystick subsystem to read the product names of connected
sticks.  Star Citizen numbers joystick instances from 1 in the order the
system enumerates them, which is the order pygame reports as well.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass
class JoystickInfo:
    """Describes a connected joystick."""
    index: int
    name: str
    num_axes: int
    num_buttons: int

    @property
    def instance(self) -> str:
        """Star Citizen's 1-based instance id for this stick."""
        return str(self.index + 1)


def list_joysticks() -> list[JoystickInfo]:
    """Return the connected joysticks, or an empty list if pygame can't
    initialise its joystick subsystem."""
    import pygame

    prev = os.environ.get("SDL_VIDEODRIVER")
    os.environ["SDL_VIDEODRIVER"] = "dummy"
    try:
        pygame.joystick.init()
        result: list[JoystickInfo] = []
        for i in range(pygame.joystick.get_count()):
            joy = pygame.joystick.Joystick(i)
            joy.init()
            result.append(JoystickInfo(
                index=i,
                name=joy.get_name(),
                num_axes=joy.get_numaxes(),
                num_buttons=joy.get_numbuttons(),
            ))
        return result
    except pygame.error:
        log.debug("Joystick enumeration failed", exc_info=True)
        return []
    finally:
        pygame.joystick.quit()
        if prev is not None:
            os.environ["SDL_VIDEODRIVER"] = prev
        else:
            os.environ.pop("SDL_VIDEODRIVER", None)


def detect_joystick_products() -> dict[str, str]:
    """Map joystick instance ids (``"1"``, ``"2"``...) to product names."""
    return {joy.instance: joy.name for joy in list_joysticks()}
