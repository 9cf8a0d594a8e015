"""Runtime state of one orchestrator run."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime

from parley.session.models import EndReason


class RunState(enum.Enum):
    """Coarse lifecycle of a Session."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Phase(enum.Enum):
    """Orchestrator state machine."""

    IDLE = "idle"
    CONNECTING = "connecting"
    RUNNING = "running"
    RECONNECTING = "reconnecting"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ConnectionState(enum.Enum):
    """State of the orchestrator's single transport channel."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"


@dataclass
class Session:
    """Counters and lifecycle flags for a single run. Not reusable."""

    seq: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    messages_sent: int = 0
    responses_received: int = 0
    error_count: int = 0
    run_state: RunState = RunState.IDLE
    paused: bool = False
    outcome: EndReason | None = None
    _started_mono: float | None = field(default=None, repr=False)

    def mark_started(self, now: datetime) -> None:
        self.start_time = now
        self._started_mono = time.monotonic()

    @property
    def elapsed(self) -> float:
        """Seconds since the session started running (0 before that)."""
        if self._started_mono is None:
            return 0.0
        return time.monotonic() - self._started_mono
