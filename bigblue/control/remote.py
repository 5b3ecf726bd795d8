"""
Core of the hand controller, as seen by the UI shell.

``RemoteCore`` builds the connection manager, the direction session and the
spiral controller around one shared ``LinkContext`` and exposes the handful
of entry points the buttons call, plus the flags the UI renders.
"""

from __future__ import annotations

from typing import Callable, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from bigblue.config import RemoteConfig
from bigblue.control.context import ConnectionState
from bigblue.control.haptics import HapticFeedback
from bigblue.control.session import DirectionSession
from bigblue.control.spiral import SpiralController, SpiralPattern
from bigblue.logging_utils import log_event
from bigblue.wireless.comm import Direction
from bigblue.wireless.errors import InvalidStateTransition
from bigblue.wireless.link import LinkTransport, PairedPeerDirectory, RadioAdapter
from bigblue.wireless.manager import ConnectionManager


def build_transport(config: RemoteConfig, adapter: Optional[RadioAdapter] = None) -> LinkTransport:
    return LinkTransport(
        PairedPeerDirectory(config.peers),
        adapter=adapter or RadioAdapter(),
        baud_rate=config.baud_rate,
        read_timeout_s=config.read_timeout_s,
        write_timeout_s=config.write_timeout_s,
    )


class RemoteCore(QObject):
    state_changed = pyqtSignal(object)
    spiral_changed = pyqtSignal(bool, int)
    error_occurred = pyqtSignal(str)

    def __init__(self,
                 config: Optional[RemoteConfig] = None,
                 transport: Optional[LinkTransport] = None,
                 haptic_pulse: Optional[Callable[[int, float], None]] = None,
                 launcher=None,
                 scheduler_factory=None,
                 parent: Optional[QObject] = None) -> None:
        """
        Args:
            config: Link, spiral and feedback settings (defaults if omitted)
            transport: Link transport; built from ``config`` when omitted
            haptic_pulse: Called as ``pulse(duration_ms, intensity)`` per operator command
            launcher: Connect-attempt launcher for the manager (background thread by default)
            scheduler_factory: Makes the timers for the spiral and the connect watchdog
        """
        super().__init__(parent)
        self.config = config or RemoteConfig()
        transport = transport or build_transport(self.config)
        make_scheduler = scheduler_factory or (lambda: None)

        self.manager = ConnectionManager(
            transport,
            self.config.peer_name,
            connect_timeout_s=self.config.connect_timeout_s,
            launcher=launcher,
            scheduler=make_scheduler(),
            parent=self,
        )
        self.link = self.manager.context
        self.haptics = HapticFeedback(haptic_pulse, self.config.haptic_pulse_ms,
                                      self.config.haptic_intensity)
        self.spiral = SpiralController(
            self.link,
            scheduler=make_scheduler(),
            pattern=SpiralPattern(self.config.spiral_step_ms, self.config.spiral_growth,
                                  self.config.spiral_max_leg_ms),
        )
        self.session = DirectionSession(self.link, self.spiral, self.haptics)

        self.spiral.add_listener(self.spiral_changed.emit)
        self.manager.state_changed.connect(self._on_state_changed)
        self.manager.error_occurred.connect(self.error_occurred.emit)

    # Flags for the UI

    @property
    def state(self) -> ConnectionState:
        return self.manager.state

    @property
    def controls_enabled(self) -> bool:
        return self.manager.connected

    @property
    def spiral_active(self) -> bool:
        return self.spiral.active

    @property
    def spiral_speed(self) -> int:
        return self.spiral.speed

    # Entry points

    def on_direction_press_start(self, direction: Direction) -> None:
        self.session.press(direction)

    def on_direction_press_end(self, direction: Direction) -> None:
        self.session.release(direction)

    def on_spiral_toggle(self) -> None:
        was_active = self.spiral.active
        try:
            now_active = self.spiral.toggle()
        except InvalidStateTransition as e:
            log_event("DEBUG", "Remote", "Spiral toggle rejected", reason=e)
            return
        if now_active != was_active:
            self.haptics.fire()

    def on_speed_cycle(self) -> int:
        speed = self.spiral.cycle_speed()
        if self.spiral.active:
            self.haptics.fire()
        return speed

    def on_connect_toggle(self) -> None:
        self.manager.toggle()

    def shutdown(self) -> None:
        """Teardown: spiral off, link closed, workers joined."""
        self.spiral.stop()
        self.manager.shutdown()

    def _on_state_changed(self, state: ConnectionState) -> None:
        if state is ConnectionState.DISCONNECTED:
            self.spiral.force_inactive()
            self.session.reset()
        self.state_changed.emit(state)
