"""
Tests that run on a real Qt event loop: connect attempts on a worker thread
handed back through queued signals, and the one-shot timers behind the
spiral ticks and the connect watchdog.
"""

import time
import unittest

from PyQt5.QtCore import QCoreApplication
from PyQt5.QtTest import QTest

from bigblue.config import RemoteConfig
from bigblue.control.context import ConnectionState
from bigblue.control.remote import RemoteCore
from bigblue.control.scheduling import QtScheduler
from bigblue.wireless.manager import ConnectionManager

from fakes import PEER, loop_transport


_app = None


def setUpModule():
    global _app
    _app = QCoreApplication.instance() or QCoreApplication(["bigblue-tests"])


def wait_until(condition, timeout_ms=2000):
    deadline = time.monotonic() + timeout_ms / 1000
    while not condition():
        if time.monotonic() > deadline:
            return False
        QTest.qWait(10)
    return True


class TestQtScheduler(unittest.TestCase):
    def test_callback_can_rearm(self):
        scheduler = QtScheduler()
        fired = []

        def tick():
            fired.append(len(fired))
            if len(fired) < 3:
                scheduler.call_later(10, tick)

        scheduler.call_later(0, tick)
        self.assertTrue(wait_until(lambda: len(fired) == 3))
        QTest.qWait(50)
        self.assertEqual(fired, [0, 1, 2])

    def test_stop_cancels_pending_call(self):
        scheduler = QtScheduler()
        fired = []
        self.assertIs(scheduler.call_later(20, lambda: fired.append("late")), scheduler)
        scheduler.stop()
        QTest.qWait(80)
        self.assertEqual(fired, [])

    def test_arming_again_replaces_pending_call(self):
        scheduler = QtScheduler()
        fired = []
        scheduler.call_later(20, lambda: fired.append("first"))
        scheduler.call_later(20, lambda: fired.append("second"))
        self.assertTrue(wait_until(lambda: fired))
        QTest.qWait(50)
        self.assertEqual(fired, ["second"])


class TestConnectWorker(unittest.TestCase):
    def make_manager(self, transport, connect_timeout_s=5.0, launcher=None):
        manager = ConnectionManager(transport, PEER, connect_timeout_s=connect_timeout_s,
                                    launcher=launcher)
        states, errors = [], []
        manager.state_changed.connect(states.append)
        manager.error_occurred.connect(errors.append)
        self.addCleanup(manager.shutdown)
        return manager, states, errors

    def test_connect_result_arrives_on_event_loop(self):
        transport = loop_transport()
        manager, states, errors = self.make_manager(transport)

        self.assertTrue(manager.request_connect())
        self.assertIs(manager.state, ConnectionState.CONNECTING)

        self.assertTrue(wait_until(lambda: manager.connected))
        self.assertTrue(wait_until(lambda: not manager._workers))
        self.assertEqual(states, [ConnectionState.CONNECTING, ConnectionState.CONNECTED])
        self.assertEqual(errors, [])
        self.assertTrue(transport.is_connected(manager.context.handle))

    def test_failure_arrives_on_event_loop(self):
        manager, states, errors = self.make_manager(loop_transport(peers={}))

        manager.request_connect()

        self.assertTrue(wait_until(lambda: errors))
        self.assertTrue(wait_until(lambda: not manager._workers))
        self.assertEqual(errors, [f"{PEER} not found. Please pair first."])
        self.assertEqual(states, [ConnectionState.CONNECTING, ConnectionState.DISCONNECTED])

    def test_watchdog_fires_on_event_loop(self):
        manager, states, errors = self.make_manager(
            loop_transport(), connect_timeout_s=0.05, launcher=lambda *args: None)

        manager.request_connect()

        self.assertTrue(wait_until(lambda: errors))
        self.assertEqual(errors, ["Connection timed out"])
        self.assertIs(manager.state, ConnectionState.DISCONNECTED)


class TestRemoteCoreOnEventLoop(unittest.TestCase):
    def setUp(self):
        self.transport = loop_transport()
        self.core = RemoteCore(RemoteConfig(), transport=self.transport)

    def tearDown(self):
        self.core.shutdown()

    def test_spiral_runs_on_real_timers(self):
        self.core.on_connect_toggle()
        self.assertTrue(wait_until(lambda: self.core.controls_enabled))

        self.core.on_spiral_toggle()
        self.assertTrue(wait_until(lambda: b"EAST,START\n" in self.transport.wire()))
        self.core.on_spiral_toggle()

        wire = self.transport.wire()
        self.assertTrue(wire.startswith(b"SPIRAL,START,1\nNORTH,START\nNORTH,STOP\nEAST,START\n"))
        self.assertTrue(wire.endswith(b"SPIRAL,STOP\n"))
        self.assertFalse(self.core.spiral_active)

        # The pending tick was cancelled with the stop
        QTest.qWait(300)
        self.assertEqual(self.transport.wire(), wire)
        self.assertEqual(self.core.manager._workers, set())


if __name__ == "__main__":
    unittest.main()
