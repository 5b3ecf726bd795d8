from __future__ import annotations

from typing import Callable, Optional

from PyQt5.QtCore import QTimer


class QtScheduler:
    """
    One reusable single-shot QTimer on the Qt event loop.

    Holds at most one pending call: arming again replaces it. ``call_later``
    returns the scheduler itself, whose ``stop()`` cancels the pending call.
    """

    def __init__(self) -> None:
        self._callback: Optional[Callable[[], None]] = None
        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> "QtScheduler":
        self._callback = callback
        self._timer.start(max(0, int(delay_ms)))
        return self

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()
