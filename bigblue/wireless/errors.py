"""
Error codes for the radio link.

Connect and transport failures are raised as ``LinkError`` subclasses and are
turned into one-line operator messages by ``describe_failure`` at the
connection manager boundary.
"""

from __future__ import annotations


MAX_DETAIL_CHARS = 40


class LinkError(Exception):
    """Base class for everything the link layer raises."""


class ConnectError(LinkError):
    """The link could not be opened."""


class PeerNotFound(ConnectError):
    def __init__(self, peer_name: str):
        super().__init__(f"No paired peer named {peer_name!r}")
        self.peer_name = peer_name


class AdapterUnavailable(ConnectError):
    pass


class PermissionDenied(ConnectError):
    pass


class NotConnected(LinkError):
    """The handle is stale or closed."""


class TransportError(LinkError):
    """Lower-level I/O failure; the link must be treated as dead."""


class InvalidStateTransition(LinkError):
    """An operation was requested in a state that does not allow it."""


def _short(detail: object) -> str:
    text = str(detail)
    if len(text) > MAX_DETAIL_CHARS:
        text = text[:MAX_DETAIL_CHARS] + "..."
    return text


def describe_failure(exc: LinkError, during_session: bool = False) -> str:
    """Return the one-line message shown to the operator for ``exc``."""
    if isinstance(exc, PeerNotFound):
        return f"{exc.peer_name} not found. Please pair first."
    if isinstance(exc, AdapterUnavailable):
        return "Radio link is not available"
    if isinstance(exc, PermissionDenied):
        return "Serial port permissions required"
    prefix = "Link lost" if during_session else "Failed to connect"
    return f"{prefix}: {_short(exc)}"
