"""Pydantic v2 model for the resolved run configuration."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parley.constants import (
    CONNECT_TIMEOUT,
    DEFAULT_INTERVAL,
    DEFAULT_MAX_MESSAGES,
    DEFAULT_URL,
    DRAIN_TIMEOUT,
    PromptMode,
)

_WS_SCHEMES = ("ws://", "wss://")


def default_log_file() -> Path:
    """Return the dated default log path, e.g. ``parley-2026-10-19.json``."""
    return Path(f"parley-{date.today().isoformat()}.json")


class RunConfig(BaseModel):
    """Everything a run needs, resolved once before the session starts."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(
        default=DEFAULT_URL,
        description="WebSocket endpoint, e.g. 'ws://localhost:8080/chat'",
    )
    mode: PromptMode = Field(
        default="general",
        description="Prompt category, or 'custom' to use custom_prompts",
    )
    custom_prompts: tuple[str, ...] = Field(
        default=(),
        description="Prompts used when mode is 'custom'",
    )
    interval: float = Field(
        default=DEFAULT_INTERVAL,
        ge=0,
        description="Seconds to wait after each prompt",
    )
    max_messages: int = Field(
        default=DEFAULT_MAX_MESSAGES,
        ge=1,
        description="Number of prompts to send before stopping",
    )
    log_file: Path = Field(
        default_factory=default_log_file,
        description="Where the JSON run log is written",
    )
    connect_timeout: float = Field(
        default=CONNECT_TIMEOUT,
        gt=0,
        description="Seconds allowed for a single connect attempt",
    )
    drain_timeout: float = Field(
        default=DRAIN_TIMEOUT,
        ge=0,
        description="Seconds to wait at shutdown for outstanding replies",
    )
    reconnect_attempts: int = Field(
        default=1,
        ge=1,
        description="Connect cycles allowed after a transport fault",
    )

    @field_validator("url")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(_WS_SCHEMES):
            msg = f"Invalid url '{value}': expected a ws:// or wss:// address"
            raise ValueError(msg)
        return value

    @field_validator("custom_prompts", mode="before")
    @classmethod
    def _drop_blank_prompts(cls, value: object) -> object:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list | tuple):
            return tuple(str(p) for p in value if str(p).strip())
        return value
