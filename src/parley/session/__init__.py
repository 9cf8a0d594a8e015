"""Session recording — ledger event models and the in-memory recorder."""

from parley.session.models import (
    ChatMessage,
    EndReason,
    EventKind,
    LedgerEvent,
    PromptEvent,
    ResponseEvent,
    RunLog,
    RunStats,
)
from parley.session.recorder import EventRecorder

__all__ = [
    "ChatMessage",
    "EndReason",
    "EventKind",
    "EventRecorder",
    "LedgerEvent",
    "PromptEvent",
    "ResponseEvent",
    "RunLog",
    "RunStats",
]
