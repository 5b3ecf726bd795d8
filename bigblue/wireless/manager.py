"""
Connection lifecycle for the rover link.

The manager owns the ``LinkContext`` and is the only writer of its state.
Opening the port blocks, so each connect attempt runs on its own ``QThread``;
the worker reports back through queued signals and the manager applies the
result on the GUI thread. A watchdog timer bounds every attempt.

Key responsibilities:
- Drive DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED
- Turn connect and transport failures into one-line operator messages
- Release the port handle exactly once, from any state, including teardown
"""

from __future__ import annotations

from functools import partial
from typing import Callable, Optional, Set

from PyQt5.QtCore import QObject, Qt, QThread, pyqtSignal

from bigblue.control.context import ConnectionState, LinkContext
from bigblue.control.scheduling import QtScheduler
from bigblue.logging_utils import log_event
from bigblue.wireless.errors import LinkError, TransportError, describe_failure
from bigblue.wireless.link import LinkHandle, LinkTransport


TIMEOUT_MESSAGE = "Connection timed out"

ConnectedCallback = Callable[[int, LinkHandle], None]
FailedCallback = Callable[[int, str], None]


def run_connect_attempt(transport: LinkTransport,
                        peer_name: str,
                        attempt: int,
                        on_connected: ConnectedCallback,
                        on_failed: FailedCallback) -> None:
    """Open the link and report the outcome of ``attempt`` through the callbacks."""
    try:
        handle = transport.connect(peer_name)
    except LinkError as e:
        log_event("ERROR", "Manager", "Connection failed", peer=peer_name, error=e)
        on_failed(attempt, describe_failure(e))
        return
    on_connected(attempt, handle)


class ConnectWorker(QThread):
    """Runs one blocking connect attempt off the GUI thread."""

    connected = pyqtSignal(int, object)
    failed = pyqtSignal(int, str)

    def __init__(self, transport: LinkTransport, peer_name: str, attempt: int) -> None:
        super().__init__()
        self._transport = transport
        self._peer_name = peer_name
        self._attempt = attempt

    def run(self):
        run_connect_attempt(self._transport, self._peer_name, self._attempt,
                            self.connected.emit, self.failed.emit)


class ConnectionManager(QObject):
    """
    Owns connection state for the remote.

    ``launcher(peer_name, attempt, on_connected, on_failed)`` starts a connect
    attempt; by default it spawns a ``ConnectWorker``. Results for an attempt
    that was cancelled, timed out or superseded are discarded, and a handle
    that arrives late is closed.
    """

    state_changed = pyqtSignal(object)
    error_occurred = pyqtSignal(str)

    def __init__(self,
                 transport: LinkTransport,
                 peer_name: str,
                 connect_timeout_s: float = 10.0,
                 launcher: Optional[Callable[..., None]] = None,
                 scheduler=None,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.context = LinkContext(transport, on_link_lost=self._on_link_lost)
        self.peer_name = peer_name
        self.connect_timeout_s = connect_timeout_s
        self._launcher = launcher or self._launch_worker
        self._watchdog = scheduler or QtScheduler()
        self._watchdog_handle = None
        self._attempt = 0
        self._workers: Set[ConnectWorker] = set()

    @property
    def state(self) -> ConnectionState:
        return self.context.state

    @property
    def connected(self) -> bool:
        return self.context.connected

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.context.state:
            return
        self.context.state = state
        log_event("INFO", "Manager", "State changed", state=state.value)
        self.state_changed.emit(state)

    def _cancel_watchdog(self) -> None:
        if self._watchdog_handle is not None:
            self._watchdog_handle.stop()
            self._watchdog_handle = None

    def request_connect(self) -> bool:
        """Start a connect attempt. Ignored unless DISCONNECTED."""
        if self.state is not ConnectionState.DISCONNECTED:
            log_event("DEBUG", "Manager", "Connect ignored", state=self.state.value)
            return False

        self._attempt += 1
        attempt = self._attempt
        log_event("INFO", "Manager", "Connecting", peer=self.peer_name, attempt=attempt)
        self._set_state(ConnectionState.CONNECTING)
        self._watchdog_handle = self._watchdog.call_later(
            int(self.connect_timeout_s * 1000), partial(self._on_connect_timeout, attempt))
        self._launcher(self.peer_name, attempt, self._on_connected, self._on_connect_failed)
        return True

    def request_disconnect(self) -> None:
        """End in DISCONNECTED from any state; the handle is closed exactly once."""
        self._cancel_watchdog()
        if self.state is ConnectionState.CONNECTING:
            # A late result for this attempt is now stale
            self._attempt += 1
        handle, self.context.handle = self.context.handle, None
        self._set_state(ConnectionState.DISCONNECTED)
        if handle is not None:
            self.context.transport.disconnect(handle)

    def toggle(self) -> None:
        if self.state is ConnectionState.DISCONNECTED:
            self.request_connect()
        else:
            self.request_disconnect()

    def shutdown(self, wait_ms: int = 2000) -> None:
        """Teardown: disconnect and wait (bounded) for in-flight connect workers."""
        self.request_disconnect()
        for worker in list(self._workers):
            if worker.isRunning() and not worker.wait(wait_ms):
                log_event("WARNING", "Manager", "Connect worker still running at shutdown")
        self._workers.clear()

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._attempt and self.state is ConnectionState.CONNECTING

    def _on_connected(self, attempt: int, handle: LinkHandle) -> None:
        if not self._is_current(attempt):
            log_event("INFO", "Manager", "Discarding stale connection", attempt=attempt)
            self.context.transport.disconnect(handle)
            return
        self._cancel_watchdog()
        self.context.handle = handle
        self._set_state(ConnectionState.CONNECTED)

    def _on_connect_failed(self, attempt: int, reason: str) -> None:
        if not self._is_current(attempt):
            return
        self._cancel_watchdog()
        self._set_state(ConnectionState.DISCONNECTED)
        self.error_occurred.emit(reason)

    def _on_connect_timeout(self, attempt: int) -> None:
        self._watchdog_handle = None
        if not self._is_current(attempt):
            return
        log_event("ERROR", "Manager", "Connect attempt timed out", peer=self.peer_name,
                  timeout_s=self.connect_timeout_s)
        self._attempt += 1
        self._set_state(ConnectionState.DISCONNECTED)
        self.error_occurred.emit(TIMEOUT_MESSAGE)

    def _on_link_lost(self, error: TransportError) -> None:
        if self.state is not ConnectionState.CONNECTED:
            return
        self.request_disconnect()
        self.error_occurred.emit(describe_failure(error, during_session=True))

    def _launch_worker(self, peer_name: str, attempt: int,
                       on_connected: ConnectedCallback, on_failed: FailedCallback) -> None:
        worker = ConnectWorker(self.context.transport, peer_name, attempt)
        worker.connected.connect(on_connected, Qt.QueuedConnection)
        worker.failed.connect(on_failed, Qt.QueuedConnection)
        worker.finished.connect(partial(self._workers.discard, worker), Qt.QueuedConnection)
        self._workers.add(worker)
        worker.start()
