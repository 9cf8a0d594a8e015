"""Exception taxonomy for the Parley runtime."""

from __future__ import annotations


class ParleyError(Exception):
    """Base class for all Parley errors."""


# ------------------------------------------------------------------ #
# Transport
# ------------------------------------------------------------------ #


class TransportError(ParleyError):
    """A fault originating in the transport layer."""


class ConnectError(TransportError):
    """The connection could not be established."""


class ConnectTimeout(ConnectError):
    """The connection was not established within the connect timeout."""


class ConnectRefused(ConnectError):
    """The endpoint actively refused the connection."""


class NotConnected(TransportError):
    """A send was attempted while the channel is not open."""


class TransportSendFailure(TransportError):
    """Writing a frame to an open channel failed."""


class TransportUnexpectedClose(TransportError):
    """The channel closed while the session was still pumping messages."""


class TransportStateError(ParleyError):
    """The transport handle was driven out of sequence (programming error)."""


# ------------------------------------------------------------------ #
# Session
# ------------------------------------------------------------------ #


class DecodeFailure(ParleyError):
    """An inbound payload could not be decoded as structured data."""


class PersistFailure(ParleyError):
    """The run log could not be written to disk."""


class SessionStateError(ParleyError):
    """An operation was attempted on a session that no longer accepts it."""
