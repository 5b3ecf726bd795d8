"""Test doubles shared by the test modules."""

from functools import partial

import serial

from bigblue.config import RemoteConfig
from bigblue.control.remote import RemoteCore
from bigblue.wireless.link import LinkTransport, PairedPeerDirectory, RadioAdapter
from bigblue.wireless.manager import run_connect_attempt


PEER = "ESP32_Direction_Control"


class ManualScheduler:
    """Stands in for QtScheduler; pending calls run only when the test fires them."""

    def __init__(self):
        self.pending = None
        self.delays = []

    def call_later(self, delay_ms, callback):
        self.pending = callback
        self.delays.append(delay_ms)
        return self

    def stop(self):
        self.pending = None

    def fire(self):
        callback, self.pending = self.pending, None
        callback()


class RecordingTransport(LinkTransport):
    """Real transport that also records every payload the port accepted."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sent = []
        self.close_calls = 0

    def send(self, handle, data):
        super().send(handle, data)
        self.sent.append(data)

    def disconnect(self, handle):
        if handle is not None and not handle.closed:
            self.close_calls += 1
        super().disconnect(handle)

    def wire(self):
        return b"".join(self.sent)


class FailingPort:
    """Looks open, fails every write."""

    is_open = True

    def __init__(self, exc=None):
        self.exc = exc or serial.SerialException("device reports readiness to read but returned no data")
        self.closed = False

    def write(self, data):
        raise self.exc

    def flush(self):
        pass

    def close(self):
        self.closed = True
        self.is_open = False


class FakePortInfo:
    def __init__(self, device, description="n/a", product=None, name=None):
        self.device = device
        self.description = description
        self.product = product
        self.name = name if name is not None else device.rsplit("/", 1)[-1]


def loop_transport(adapter=None, peers=None):
    directory = PairedPeerDirectory({PEER: "loop://"} if peers is None else peers, scan=False)
    return RecordingTransport(directory, adapter=adapter or RadioAdapter(),
                              read_timeout_s=0, write_timeout_s=1.0)


def sync_launcher(transport):
    """Connect on the calling thread so tests see the result immediately."""
    return partial(run_connect_attempt, transport)


def make_core(transport=None, haptic_pulse=None, config=None):
    transport = transport or loop_transport()
    core = RemoteCore(
        config or RemoteConfig(),
        transport=transport,
        haptic_pulse=haptic_pulse,
        launcher=sync_launcher(transport),
        scheduler_factory=ManualScheduler,
    )
    return core, transport
