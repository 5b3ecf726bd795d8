"""
Shared connection context.

One ``LinkContext`` is owned by the connection manager and handed to the
direction session and the spiral controller. It holds the connection state and
the open handle, and is the single gate every outgoing command passes through.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from bigblue.logging_utils import log_event
from bigblue.wireless.comm import Command, encode_command
from bigblue.wireless.errors import NotConnected, TransportError
from bigblue.wireless.link import LinkHandle, LinkTransport


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class LinkContext:
    def __init__(self,
                 transport: LinkTransport,
                 on_link_lost: Optional[Callable[[TransportError], None]] = None) -> None:
        self.transport = transport
        self.state = ConnectionState.DISCONNECTED
        self.handle: Optional[LinkHandle] = None
        self.on_link_lost = on_link_lost

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def dispatch(self, command: Command) -> bool:
        """
        Encode and send ``command`` if the link is up.

        Returns True only when the bytes were handed to the port. Nothing is
        retried or queued.
        """
        if not self.connected:
            log_event("DEBUG", "Link", "Rejected while not connected", command=command, state=self.state.value)
            return False

        data = encode_command(command)
        try:
            self.transport.send(self.handle, data)
        except NotConnected:
            log_event("WARNING", "Link", "Dropped command, handle is closed", command=data.decode().strip())
            return False
        except TransportError as e:
            log_event("ERROR", "Link", "Send failed", command=data.decode().strip(), error=e)
            if self.on_link_lost is not None:
                self.on_link_lost(e)
            return False

        log_event("DEBUG", "Link", "Sent", command=data.decode().strip())
        return True
