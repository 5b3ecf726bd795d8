from __future__ import annotations

from typing import Callable, Optional

from bigblue.logging_utils import log_event


class HapticFeedback:
    """
    Fire-and-forget operator feedback.

    ``pulse`` is whatever the shell provides, called as
    ``pulse(duration_ms, intensity)``. A failing pulse is logged and never
    reaches the command path.
    """

    def __init__(self,
                 pulse: Optional[Callable[[int, float], None]] = None,
                 duration_ms: int = 50,
                 intensity: float = 1.0) -> None:
        self._pulse = pulse
        self.duration_ms = duration_ms
        self.intensity = intensity

    def fire(self) -> None:
        if self._pulse is None or self.duration_ms <= 0:
            return
        try:
            self._pulse(self.duration_ms, self.intensity)
        except Exception as e:
            log_event("WARNING", "Haptics", "Pulse failed", error=e)
