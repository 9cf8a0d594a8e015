"""TransportHandle — one persistent WebSocket connection to a chat endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from parley.constants import CONNECT_TIMEOUT
from parley.errors import (
    ConnectError,
    ConnectRefused,
    ConnectTimeout,
    NotConnected,
    TransportSendFailure,
    TransportStateError,
)

logger = logging.getLogger(__name__)

InboundKind = Literal["open", "message", "error", "close"]


class Channel(Protocol):
    """The subset of a WebSocket client connection the handle relies on."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


Connector = Callable[[str], Awaitable[Channel]]


@dataclass(frozen=True)
class InboundEvent:
    """One occurrence on the inbound side of the channel."""

    kind: InboundKind
    data: str | bytes | None = None
    error: BaseException | None = None


async def open_websocket(address: str) -> Channel:
    """Default connector: open a WebSocket client connection to *address*."""
    # The handle bounds the whole attempt with its own timeout.
    return await ws_connect(address, open_timeout=None)


class TransportHandle:
    """Wraps a single bidirectional message channel.

    ``connect`` may be called again after ``close`` (reconnect); calling it
    while a channel is open raises :class:`TransportStateError`.
    """

    def __init__(
        self,
        address: str,
        connect_timeout: float = CONNECT_TIMEOUT,
        connector: Connector | None = None,
    ) -> None:
        self._address = address
        self._timeout = connect_timeout
        self._connector = connector or open_websocket
        self._channel: Channel | None = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def is_open(self) -> bool:
        """True between a successful ``connect`` and the next ``close``."""
        return self._channel is not None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def connect(self) -> None:
        """Open the channel, failing within ``connect_timeout`` seconds.

        Raises:
            ConnectTimeout: The endpoint did not complete the handshake in time.
            ConnectRefused: The endpoint refused the TCP connection.
            ConnectError: Any other connect failure (bad URI, bad handshake...).
            TransportStateError: A channel is already open.
        """
        if self._channel is not None:
            msg = f"Already connected to {self._address}"
            raise TransportStateError(msg)

        logger.debug("Connecting to %s (timeout %.1fs)", self._address, self._timeout)
        try:
            self._channel = await asyncio.wait_for(
                self._connector(self._address), timeout=self._timeout
            )
        except TimeoutError as exc:
            msg = f"Connection to {self._address} timed out after {self._timeout:g}s"
            raise ConnectTimeout(msg) from exc
        except ConnectionRefusedError as exc:
            msg = f"Connection to {self._address} refused"
            raise ConnectRefused(msg) from exc
        except (OSError, WebSocketException) as exc:
            msg = f"Cannot connect to {self._address}: {exc}"
            raise ConnectError(msg) from exc

    async def close(self) -> None:
        """Close the channel. Idempotent and never raises."""
        channel, self._channel = self._channel, None
        if channel is None:
            return
        try:
            await asyncio.wait_for(channel.close(), timeout=self._timeout)
        except (TimeoutError, OSError, WebSocketException) as exc:
            logger.debug("Ignoring error while closing %s: %s", self._address, exc)

    # ------------------------------------------------------------------ #
    # Data
    # ------------------------------------------------------------------ #

    async def send(self, text: str) -> None:
        """Write one text frame.

        Raises:
            NotConnected: No channel is open.
            TransportSendFailure: The write failed on an open channel.
        """
        if self._channel is None:
            msg = "WebSocket not connected"
            raise NotConnected(msg)
        try:
            await self._channel.send(text)
        except (OSError, WebSocketException) as exc:
            msg = f"Send to {self._address} failed: {exc}"
            raise TransportSendFailure(msg) from exc

    async def events(self) -> AsyncIterator[InboundEvent]:
        """Yield inbound events for the current channel in arrival order.

        Produces ``open``, then one ``message`` per frame, then ``error``
        (abnormal closure only) and finally ``close``.
        """
        channel = self._channel
        if channel is None:
            msg = "WebSocket not connected"
            raise NotConnected(msg)

        yield InboundEvent("open")
        try:
            async for data in channel:
                yield InboundEvent("message", data=data)
        except (OSError, WebSocketException) as exc:
            yield InboundEvent("error", error=exc)
        yield InboundEvent("close")
