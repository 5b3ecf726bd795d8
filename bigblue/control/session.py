"""
Per-direction press state.

A direction sends START on its press edge and STOP on its release edge, each
at most once per press. A press while the spiral runs only stops the spiral;
the direction is not considered pressed, so its release sends nothing.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from bigblue.control.context import LinkContext
from bigblue.control.haptics import HapticFeedback
from bigblue.control.spiral import SpiralController
from bigblue.logging_utils import log_event
from bigblue.wireless.comm import Direction, DirectionCommand, Edge


class DirectionSession:
    def __init__(self,
                 link: LinkContext,
                 spiral: SpiralController,
                 haptics: Optional[HapticFeedback] = None) -> None:
        self._link = link
        self._spiral = spiral
        self._haptics = haptics or HapticFeedback()
        self._pressed: Dict[Direction, bool] = {d: False for d in Direction}

    def is_pressed(self, direction: Direction) -> bool:
        return self._pressed[direction]

    def pressed_directions(self) -> List[Direction]:
        return [d for d, pressed in self._pressed.items() if pressed]

    def press(self, direction: Direction) -> bool:
        """Handle a press edge. Returns True if a START went out."""
        if not self._link.connected:
            log_event("DEBUG", "Session", "Press ignored while not connected", direction=direction.value)
            return False
        if self._pressed[direction]:
            return False
        if self._spiral.active:
            self._spiral.preempt()
            return False

        if not self._link.dispatch(DirectionCommand(direction, Edge.START)):
            return False
        self._pressed[direction] = True
        self._haptics.fire()
        return True

    def release(self, direction: Direction) -> bool:
        """Handle a release edge. Returns True if a STOP went out."""
        if not self._pressed[direction]:
            return False
        self._pressed[direction] = False
        if self._spiral.active:
            log_event("DEBUG", "Session", "Release swallowed while spiral active", direction=direction.value)
            return False

        if not self._link.dispatch(DirectionCommand(direction, Edge.STOP)):
            return False
        self._haptics.fire()
        return True

    def reset(self) -> None:
        """Forget all presses without sending anything."""
        for direction in self._pressed:
            self._pressed[direction] = False
