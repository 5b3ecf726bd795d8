"""
Spiral search pattern.

Once started, the controller drives an expanding square spiral by itself:
one pulse per leg, legs cycling NORTH, EAST, SOUTH, WEST, each leg longer than
the last by a fixed growth factor. Speed divides the real-time length of every
pulse without changing the shape. Manual drive always wins: any direction
press stops the spiral before anything else is sent.

Timing runs on one-shot timers on the Qt event loop. Each tick checks the
active flag before sending, so a stop takes effect at the next tick boundary
at the latest and usually immediately (the pending timer is cancelled).
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional

from bigblue.config import SPIRAL_GROWTH, SPIRAL_MAX_LEG_MS, SPIRAL_STEP_MS
from bigblue.control.context import LinkContext
from bigblue.control.scheduling import QtScheduler
from bigblue.logging_utils import log_event
from bigblue.wireless.comm import (
    MAX_SPEED,
    MIN_SPEED,
    Direction,
    DirectionCommand,
    Edge,
    SpiralCommand,
)
from bigblue.wireless.errors import InvalidStateTransition


LEG_ORDER = (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)


class SpiralPattern:
    """Leg geometry: which way each leg goes and how long it lasts."""

    def __init__(self,
                 step_ms: float = SPIRAL_STEP_MS,
                 growth: float = SPIRAL_GROWTH,
                 max_leg_ms: float = SPIRAL_MAX_LEG_MS) -> None:
        self.step_ms = step_ms
        self.growth = growth
        self.max_leg_ms = max(step_ms, max_leg_ms)
        if growth > 1.0:
            self._last_growing_leg = math.log(self.max_leg_ms / step_ms, growth)
        else:
            self._last_growing_leg = math.inf

    def direction(self, leg: int) -> Direction:
        return LEG_ORDER[leg % len(LEG_ORDER)]

    def leg_length_ms(self, leg: int) -> float:
        """Logical length of ``leg``, independent of speed."""
        if leg >= self._last_growing_leg:
            return float(self.max_leg_ms)
        return self.step_ms * self.growth ** leg

    def pulse_ms(self, leg: int, speed: int) -> int:
        """Real-time length of ``leg`` at ``speed``."""
        return max(1, round(self.leg_length_ms(leg) / speed))


class SpiralController:
    def __init__(self,
                 link: LinkContext,
                 scheduler: Optional[QtScheduler] = None,
                 pattern: Optional[SpiralPattern] = None) -> None:
        self._link = link
        self._scheduler = scheduler or QtScheduler()
        self.pattern = pattern or SpiralPattern()
        self._listeners: List[Callable[[bool, int], None]] = []
        self._timer = None

        self.active = False
        self.speed = MIN_SPEED
        self.leg = 0
        self.pulses = 0
        self.open_direction: Optional[Direction] = None

    def add_listener(self, callback: Callable[[bool, int], None]) -> None:
        """``callback(active, speed)`` runs after every change of either."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self.active, self.speed)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _arm(self, delay_ms: int) -> None:
        self._cancel_timer()
        self._timer = self._scheduler.call_later(delay_ms, self._on_tick)

    def _deactivate(self) -> None:
        self.active = False
        self.open_direction = None
        self._cancel_timer()

    def start(self) -> bool:
        if not self._link.connected:
            raise InvalidStateTransition("Spiral search needs a connected link")
        if self.active:
            return False

        self.leg = 0
        self.pulses = 0
        self.open_direction = None
        if not self._link.dispatch(SpiralCommand.start(self.speed)):
            return False

        self.active = True
        log_event("INFO", "Spiral", "Started", speed=self.speed)
        self._arm(0)
        self._notify()
        return True

    def stop(self) -> bool:
        if not self.active:
            return False
        # Inactive before sending so a link loss during the send cannot re-enter
        self._deactivate()
        self._link.dispatch(SpiralCommand.stop())
        log_event("INFO", "Spiral", "Stopped", pulses=self.pulses)
        self._notify()
        return True

    def preempt(self) -> bool:
        """Stop in favour of manual drive."""
        if not self.active:
            return False
        log_event("INFO", "Spiral", "Preempted by manual drive")
        return self.stop()

    def toggle(self) -> bool:
        """Start if stopped, stop if running. Returns the new active flag."""
        if self.active:
            self.stop()
        else:
            self.start()
        return self.active

    def force_inactive(self) -> None:
        """Drop to inactive without sending anything (link already gone)."""
        if not self.active:
            return
        self._deactivate()
        log_event("INFO", "Spiral", "Stopped, link unavailable", pulses=self.pulses)
        self._notify()

    def cycle_speed(self) -> int:
        self.speed = MIN_SPEED if self.speed >= MAX_SPEED else self.speed + 1
        if self.active:
            self._link.dispatch(SpiralCommand.set_speed(self.speed))
        log_event("DEBUG", "Spiral", "Speed changed", speed=self.speed, active=self.active)
        self._notify()
        return self.speed

    def _on_tick(self) -> None:
        self._timer = None
        if not self.active:
            return

        sent = False
        if self.open_direction is not None:
            sent = self._link.dispatch(DirectionCommand(self.open_direction, Edge.STOP))
            if not self.active:
                return
            self.open_direction = None
            self.leg += 1

        direction = self.pattern.direction(self.leg)
        if self._link.dispatch(DirectionCommand(direction, Edge.START)):
            self.open_direction = direction
            self.pulses += 1
            sent = True
        if not self.active:
            return
        if not sent:
            # Handle went stale while still CONNECTED; nothing left to drive
            log_event("WARNING", "Spiral", "Link dropped every command this tick", leg=self.leg)
            self.force_inactive()
            return
        self._arm(self.pattern.pulse_ms(self.leg, self.speed))
