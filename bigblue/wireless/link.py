"""
Serial-over-radio link to the paired rover.

The rover's radio (Bluetooth SPP, or a LoRa UART bridge) shows up on this
machine as a serial port once it has been paired. ``LinkTransport`` finds that
port by the peer's name, opens it with pyserial and writes raw command bytes.

Key responsibilities:
- Resolve a paired peer name to a serial port or pyserial URL
- Check the radio adapter and port permissions before opening
- Open, write to and close the port, mapping pyserial errors onto LinkError
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional

import serial
import serial.tools.list_ports

from bigblue.logging_utils import log_event
from bigblue.wireless.errors import (
    AdapterUnavailable,
    NotConnected,
    PeerNotFound,
    PermissionDenied,
    TransportError,
)


_PORT_NAME_PREFIXES = ("tty.", "cu.")


@dataclass(frozen=True)
class Peer:
    name: str
    port: str


def _is_url(port: str) -> bool:
    return "://" in port


def _port_aliases(info) -> Iterable[str]:
    """Names a listed serial port may be known by."""
    for value in (info.description, info.product):
        if value:
            yield value
    base = info.name or os.path.basename(info.device)
    for prefix in _PORT_NAME_PREFIXES:
        if base.startswith(prefix):
            base = base[len(prefix):]
            break
    yield base


class PairedPeerDirectory:
    """
    Looks up already-paired peers by exact name.

    Explicit entries (from configuration) win; otherwise the serial ports the
    OS currently lists are matched on description, product or device name.
    """

    def __init__(self,
                 known: Optional[Mapping[str, str]] = None,
                 scan: bool = True,
                 list_ports: Callable[[], Iterable] = serial.tools.list_ports.comports) -> None:
        self._known: Dict[str, str] = dict(known or {})
        self._scan = scan
        self._list_ports = list_ports

    def find_paired_peer(self, name: str) -> Optional[Peer]:
        if name in self._known:
            return Peer(name, self._known[name])
        if not self._scan:
            return None
        for info in self._list_ports():
            if name in _port_aliases(info):
                return Peer(name, info.device)
        return None


class RadioAdapter:
    """
    Local radio state. The OS owns the real enable flow; this object only
    reports the state it was given and records enable requests.
    """

    def __init__(self, present: bool = True, enabled: bool = True) -> None:
        self.present = present
        self.enabled = enabled
        self.enable_requests = 0

    def is_adapter_enabled(self) -> bool:
        return self.present and self.enabled

    def request_enable(self) -> None:
        self.enable_requests += 1
        log_event("INFO", "Link", "Radio adapter is off; enable it and connect again")


class PortPermissions:
    """Capability check: can this process open the given port?"""

    def has_capability(self, port: str) -> bool:
        if _is_url(port) or not os.path.exists(port):
            # URLs are not files; a missing device fails at open with a real error
            return True
        return os.access(port, os.R_OK | os.W_OK)


class LinkHandle:
    """An open connection to one peer."""

    def __init__(self, peer: Peer, port: serial.SerialBase) -> None:
        self.peer = peer
        self.port = port
        self.closed = False

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"LinkHandle({self.peer.name!r} on {self.peer.port!r}, {state})"


class LinkTransport:
    """
    Owns the byte stream to a named paired peer.

    ``connect`` blocks until the port is open and must be run off the UI
    thread. ``send`` and ``disconnect`` are cheap and run on the caller's
    thread.
    """

    def __init__(self,
                 directory: PairedPeerDirectory,
                 adapter: Optional[RadioAdapter] = None,
                 permissions: Optional[PortPermissions] = None,
                 baud_rate: int = 9600,
                 read_timeout_s: float = 1.0,
                 write_timeout_s: float = 1.0) -> None:
        self._directory = directory
        self._adapter = adapter
        self._permissions = permissions or PortPermissions()
        self.baud_rate = baud_rate
        self.read_timeout_s = read_timeout_s
        self.write_timeout_s = write_timeout_s

    def connect(self, peer_name: str) -> LinkHandle:
        if self._adapter is None or not self._adapter.present:
            raise AdapterUnavailable("No radio adapter")
        if not self._adapter.is_adapter_enabled():
            self._adapter.request_enable()
            raise AdapterUnavailable("Radio adapter is disabled")

        peer = self._directory.find_paired_peer(peer_name)
        if peer is None:
            raise PeerNotFound(peer_name)

        if not self._permissions.has_capability(peer.port):
            raise PermissionDenied(f"No read/write access to {peer.port}")

        try:
            port = serial.serial_for_url(
                peer.port,
                baudrate=self.baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.read_timeout_s,
                write_timeout=self.write_timeout_s,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            raise TransportError(str(e)) from e

        log_event("INFO", "Link", "Connected", peer=peer.name, port=peer.port, baud=self.baud_rate)
        return LinkHandle(peer, port)

    def is_connected(self, handle: Optional[LinkHandle]) -> bool:
        return handle is not None and not handle.closed and handle.port.is_open

    def send(self, handle: Optional[LinkHandle], data: bytes) -> None:
        if not self.is_connected(handle):
            raise NotConnected("Link is not open")
        try:
            handle.port.write(data)
            handle.port.flush()
        except serial.SerialTimeoutException as e:
            raise TransportError(f"Write timed out: {e}") from e
        except (serial.SerialException, OSError) as e:
            raise TransportError(str(e)) from e

    def disconnect(self, handle: Optional[LinkHandle]) -> None:
        if handle is None or handle.closed:
            return
        handle.closed = True
        try:
            handle.port.close()
        except (serial.SerialException, OSError) as e:
            log_event("WARNING", "Link", "Error closing port", port=handle.peer.port, error=e)
        log_event("INFO", "Link", "Disconnected", peer=handle.peer.name)


__all__ = [
    "LinkHandle",
    "LinkTransport",
    "PairedPeerDirectory",
    "Peer",
    "PortPermissions",
    "RadioAdapter",
]
