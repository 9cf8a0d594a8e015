"""EventRecorder — append-only in-memory ledger of prompts and responses."""

from __future__ import annotations

import threading

from parley.session.models import EventKind, LedgerEvent


class EventRecorder:
    """Records ledger events in chronological append order.

    Thread-safe: all appends are serialized through a ``threading.Lock``.
    Timestamps are kept non-decreasing: an event stamped earlier than the
    previous entry (wall clock stepped backwards) is stored with the
    previous entry's timestamp.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[LedgerEvent] = []
        self._counts: dict[str, int] = {"prompt": 0, "response": 0}
        self._closed = False

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        """True once :meth:`close` has been called."""
        return self._closed

    def __len__(self) -> int:
        return len(self._events)

    def count(self, kind: EventKind) -> int:
        """Number of recorded events of *kind*."""
        return self._counts[kind]

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def append(self, event: LedgerEvent) -> LedgerEvent:
        """Add *event* to the end of the ledger and return the stored copy.

        Silently drops events after the recorder has been closed.
        """
        with self._lock:
            if self._closed:
                return event
            if self._events and event.timestamp < self._events[-1].timestamp:
                event = event.model_copy(
                    update={"timestamp": self._events[-1].timestamp}
                )
            self._events.append(event)
            self._counts[event.type] += 1
            return event

    def snapshot(self) -> tuple[LedgerEvent, ...]:
        """Return the full ordered ledger recorded so far."""
        with self._lock:
            return tuple(self._events)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop accepting events. Idempotent."""
        with self._lock:
            self._closed = True
