"""Pydantic v2 models for ledger events, wire messages and the run log."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from parley.config.models import RunConfig

EventKind = Literal["prompt", "response"]

EndReason = Literal["complete", "cancelled", "unrecoverable", "error"]


def utc_now() -> datetime:
    """Current UTC time, truncated to milliseconds."""
    now = datetime.now(tz=UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


# ------------------------------------------------------------------ #
# Ledger events
# ------------------------------------------------------------------ #


class _EventBase(BaseModel):
    """Common fields shared by every ledger event."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: datetime = Field(description="Capture time (UTC)")
    content: str = Field(description="Text payload")
    session: int = Field(ge=0, description="Session sequence number at capture")


class PromptEvent(_EventBase):
    """A prompt that was successfully sent."""

    type: Literal["prompt"] = "prompt"


class ResponseEvent(_EventBase):
    """A response decoded from an inbound message."""

    type: Literal["response"] = "response"


def _event_discriminator(v: Any) -> str:
    """Extract the discriminator value from raw data or a model instance."""
    if isinstance(v, dict):
        return str(v.get("type", ""))
    return str(getattr(v, "type", ""))


LedgerEvent = Annotated[
    Annotated[PromptEvent, Tag("prompt")] | Annotated[ResponseEvent, Tag("response")],
    Discriminator(_event_discriminator),
]
"""Discriminated union of ledger event types."""


# ------------------------------------------------------------------ #
# Wire format
# ------------------------------------------------------------------ #


class ChatMessage(BaseModel):
    """Outbound payload sent for every prompt."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["chat"] = "chat"
    message: str = Field(description="Prompt text")
    timestamp: datetime = Field(description="Capture time (UTC)")
    session: int = Field(ge=0, description="Session sequence number")


# ------------------------------------------------------------------ #
# Run log
# ------------------------------------------------------------------ #


class RunStats(BaseModel):
    """Final counters and timing for one run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    messages_sent: int = Field(ge=0)
    responses_received: int = Field(ge=0)
    error_count: int = Field(ge=0)
    session_count: int = Field(ge=0, description="Successful (re)connects")
    start_time: datetime | None = None
    end_time: datetime
    duration_ms: int = Field(ge=0)
    outcome: EndReason

    @property
    def success_rate(self) -> int:
        """Responses per prompt sent, as a rounded percentage."""
        if self.messages_sent == 0:
            return 0
        return round(self.responses_received / self.messages_sent * 100)


class RunLog(BaseModel):
    """The persisted artifact: config, stats and the full ordered ledger."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    config: RunConfig
    stats: RunStats
    events: list[LedgerEvent] = Field(default_factory=list)
