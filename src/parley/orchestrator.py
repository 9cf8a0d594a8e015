"""SessionOrchestrator — connection state machine and paced message pump."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence

from parley.config.models import RunConfig
from parley.constants import POLL_INTERVAL
from parley.errors import (
    ConnectError,
    NotConnected,
    SessionStateError,
    TransportError,
    TransportStateError,
    TransportUnexpectedClose,
)
from parley.pacing import PacingEngine
from parley.progress import NullProgress, ProgressObserver
from parley.prompts import resolve_prompts
from parley.session.models import (
    EndReason,
    PromptEvent,
    ResponseEvent,
    RunLog,
    RunStats,
    utc_now,
)
from parley.session.recorder import EventRecorder
from parley.session.state import ConnectionState, Phase, RunState, Session
from parley.summary import SummaryEmitter
from parley.transport import TransportHandle
from parley.wire import encode_prompt, extract_response_text

logger = logging.getLogger(__name__)

#: Granularity of the shutdown drain poll, in seconds.
_DRAIN_POLL = 0.05


class SessionOrchestrator:
    """Owns one run: connect, pump prompts, record replies, shut down.

    State machine::

        idle -> connecting -> running <-> reconnecting -> stopping -> stopped

    The send loop and the inbound reader run as two tasks on the same event
    loop.  Counter updates and ledger appends never straddle an ``await``,
    and an ``asyncio.Lock`` is held across each send so a reply can never be
    recorded ahead of the prompt that caused it.

    A failed send consumes its prompt: after a reconnect the pump moves on
    to the next prompt (at-most-once delivery).
    """

    def __init__(
        self,
        config: RunConfig,
        transport: TransportHandle | None = None,
        *,
        prompts: Sequence[str] | None = None,
        recorder: EventRecorder | None = None,
        emitter: SummaryEmitter | None = None,
        observer: ProgressObserver | None = None,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._config = config
        self._transport = transport or TransportHandle(
            config.url, connect_timeout=config.connect_timeout
        )
        if prompts is None:
            prompts = resolve_prompts(config.mode, config.custom_prompts)
        self._pacing = PacingEngine(prompts)
        self._recorder = recorder if recorder is not None else EventRecorder()
        self._emitter = emitter
        self._observer: ProgressObserver = observer or NullProgress()
        self._poll = poll_interval

        self._session = Session()
        self._phase = Phase.IDLE
        self._conn = ConnectionState.DISCONNECTED
        self._cancel = asyncio.Event()
        self._send_lock = asyncio.Lock()
        self._channel_lost = False
        self._reader: asyncio.Task[None] | None = None
        self._run_log: RunLog | None = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def session(self) -> Session:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def connection_state(self) -> ConnectionState:
        return self._conn

    @property
    def recorder(self) -> EventRecorder:
        return self._recorder

    @property
    def pacing(self) -> PacingEngine:
        return self._pacing

    @property
    def run_log(self) -> RunLog | None:
        """The assembled run log, available once the session has stopped."""
        return self._run_log

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    async def run(self) -> RunLog:
        """Connect, pump prompts until done, then shut down.

        Returns:
            The run log handed to the emitter.

        Raises:
            ConnectError: The initial connect failed; nothing was sent and
                no log was written.
            SessionStateError: The orchestrator has already been run.
        """
        if self._phase is not Phase.IDLE:
            msg = f"Session is {self._phase.value}; create a new orchestrator to run again"
            raise SessionStateError(msg)

        self._phase = Phase.CONNECTING
        try:
            await self._connect()
        except ConnectError as exc:
            self._session.error_count += 1
            logger.error("Initial connect failed: %s", exc)
            self._phase = Phase.STOPPED
            self._session.run_state = RunState.STOPPED
            self._recorder.close()
            raise

        self._session.mark_started(utc_now())
        self._session.run_state = RunState.RUNNING
        self._phase = Phase.RUNNING

        outcome: EndReason = "error"
        try:
            outcome = await self._pump()
        except Exception:
            logger.exception("Message pump failed")
            raise
        finally:
            run_log = await self._shutdown(outcome)
        return run_log

    def toggle_pause(self) -> bool:
        """Flip the pause flag and return it. Only effective while running."""
        if self._phase is Phase.RUNNING:
            self._session.paused = not self._session.paused
            logger.info("Pump %s", "paused" if self._session.paused else "resumed")
            self._observer.pause_changed(self._session)
        return self._session.paused

    def cancel(self) -> None:
        """Request a graceful shutdown. No effect once stopped."""
        if self._phase is Phase.STOPPED:
            return
        self._cancel.set()

    async def close(self) -> None:
        """Stop the session if it is still live. No effect once stopped.

        A running session is asked to cancel and finishes its own shutdown
        inside :meth:`run`; a session that never ran is stopped directly.
        """
        if self._phase is Phase.STOPPED:
            return
        if self._phase is Phase.IDLE:
            self._phase = Phase.STOPPED
            self._session.run_state = RunState.STOPPED
            self._recorder.close()
            await self._transport.close()
            return
        self.cancel()

    # ------------------------------------------------------------------ #
    # Send loop
    # ------------------------------------------------------------------ #

    async def _pump(self) -> EndReason:
        session = self._session
        while session.messages_sent < self._config.max_messages:
            if self._cancel.is_set():
                return "cancelled"

            if self._channel_lost:
                if not await self._reconnect():
                    return "cancelled" if self._cancel.is_set() else "unrecoverable"
                continue

            if session.paused:
                await self._wait(self._poll)
                continue

            prompt = self._pacing.next()
            try:
                await self._send(prompt)
            except TransportError as exc:
                if self._conn is ConnectionState.OPEN:
                    self._transport_fault(f"Send failed: {exc}")
                continue

            await self._wait(self._config.interval)
        return "complete"

    async def _send(self, prompt: str) -> None:
        async with self._send_lock:
            now = utc_now()
            seq = self._session.seq
            await self._transport.send(encode_prompt(prompt, now, seq))
            self._session.messages_sent += 1
            self._recorder.append(PromptEvent(timestamp=now, content=prompt, session=seq))
        self._observer.prompt_sent(self._session, prompt)

    async def _wait(self, duration: float) -> bool:
        """Sleep up to *duration* seconds; return True early on cancellation."""
        if duration <= 0:
            await asyncio.sleep(0)
            return self._cancel.is_set()
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._cancel.wait(), timeout=duration)
        return self._cancel.is_set()

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #

    async def _connect(self) -> None:
        if self._conn in (ConnectionState.CONNECTING, ConnectionState.OPEN):
            msg = f"Connect requested while {self._conn.value}"
            raise TransportStateError(msg)

        self._conn = ConnectionState.CONNECTING
        try:
            await self._transport.connect()
        except ConnectError:
            self._conn = ConnectionState.DISCONNECTED
            raise

        self._conn = ConnectionState.OPEN
        self._channel_lost = False
        self._session.seq += 1
        self._reader = asyncio.create_task(self._consume(self._session.seq))
        logger.info("Connected to %s (session %d)", self._config.url, self._session.seq)
        self._observer.connected(self._session, self._config.url)

    async def _reconnect(self) -> bool:
        """Replace a lost channel. Returns False when every attempt failed."""
        self._phase = Phase.RECONNECTING
        self._observer.reconnecting(self._session)
        await self._close_channel()

        attempts = self._config.reconnect_attempts
        for attempt in range(1, attempts + 1):
            try:
                await self._connect()
            except ConnectError as exc:
                self._session.error_count += 1
                logger.warning("Reconnect attempt %d/%d failed: %s", attempt, attempts, exc)
                self._observer.error(self._session, f"Reconnection failed: {exc}")
                if attempt < attempts and await self._wait(self._poll):
                    return False
                continue
            self._phase = Phase.RUNNING
            return True
        return False

    async def _close_channel(self) -> None:
        """Close the transport and retire its reader task."""
        self._conn = ConnectionState.CLOSING
        await self._transport.close()

        reader, self._reader = self._reader, None
        if reader is not None:
            # Give the reader a moment to flush frames that were already buffered.
            await asyncio.wait({reader}, timeout=self._poll)
            if not reader.done():
                reader.cancel()
            for result in await asyncio.gather(reader, return_exceptions=True):
                if isinstance(result, Exception):
                    logger.error("Inbound reader failed: %r", result)
        self._conn = ConnectionState.DISCONNECTED

    def _transport_fault(self, message: str) -> None:
        self._session.error_count += 1
        self._conn = ConnectionState.DISCONNECTED
        self._channel_lost = True
        logger.warning("%s", message)
        self._observer.error(self._session, message)

    # ------------------------------------------------------------------ #
    # Inbound side
    # ------------------------------------------------------------------ #

    async def _consume(self, seq: int) -> None:
        """Drain inbound events for the connection numbered *seq*."""
        try:
            async for event in self._transport.events():
                match event.kind:
                    case "message" if event.data is not None:
                        await self._on_message(seq, event.data)
                    case "error":
                        self._on_channel_down(
                            seq, TransportUnexpectedClose(f"Connection error: {event.error}")
                        )
                    case "close":
                        self._on_channel_down(
                            seq, TransportUnexpectedClose("Connection closed unexpectedly")
                        )
                    case _:
                        logger.debug("Channel %d: %s", seq, event.kind)
        except NotConnected:
            logger.debug("Channel %d closed before its reader started", seq)

    async def _on_message(self, seq: int, data: str | bytes) -> None:
        text = extract_response_text(data)
        async with self._send_lock:
            self._recorder.append(
                ResponseEvent(timestamp=utc_now(), content=text, session=seq)
            )
            self._session.responses_received += 1
        self._observer.response_received(self._session, text)

    def _on_channel_down(self, seq: int, exc: TransportUnexpectedClose) -> None:
        # Closures we initiated, and stale channels, are not faults.
        if seq != self._session.seq or self._conn is not ConnectionState.OPEN:
            return
        if self._phase is not Phase.RUNNING:
            return
        self._transport_fault(str(exc))

    # ------------------------------------------------------------------ #
    # Shutdown
    # ------------------------------------------------------------------ #

    async def _shutdown(self, outcome: EndReason) -> RunLog:
        self._phase = Phase.STOPPING
        self._session.paused = False
        self._session.outcome = outcome
        logger.info("Stopping session (%s)", outcome)

        if self._conn is ConnectionState.OPEN:
            await self._drain()
        await self._close_channel()
        self._recorder.close()

        self._session.end_time = utc_now()
        self._run_log = self._build_run_log()
        if self._emitter is not None:
            self._emitter.emit(self._run_log)

        self._session.run_state = RunState.STOPPED
        self._phase = Phase.STOPPED
        return self._run_log

    async def _drain(self) -> None:
        """Wait briefly for replies to prompts that are still outstanding."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.drain_timeout
        session = self._session
        while session.responses_received < session.messages_sent:
            if self._reader is None or self._reader.done():
                return
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.info(
                    "Drain timeout: %d response(s) outstanding",
                    session.messages_sent - session.responses_received,
                )
                return
            await asyncio.sleep(min(_DRAIN_POLL, remaining))

    def _build_run_log(self) -> RunLog:
        session = self._session
        end_time = session.end_time or utc_now()
        stats = RunStats(
            messages_sent=session.messages_sent,
            responses_received=session.responses_received,
            error_count=session.error_count,
            session_count=session.seq,
            start_time=session.start_time,
            end_time=end_time,
            duration_ms=int(session.elapsed * 1000),
            outcome=session.outcome or "error",
        )
        return RunLog(
            config=self._config,
            stats=stats,
            events=list(self._recorder.snapshot()),
        )
