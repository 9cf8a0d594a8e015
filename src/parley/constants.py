"""Shared constants and defaults for the Parley runtime."""

from __future__ import annotations

from typing import Literal

#: Default WebSocket endpoint.
DEFAULT_URL = "ws://localhost:8080/chat"

#: Seconds between prompts.
DEFAULT_INTERVAL = 3.0

#: Prompts sent per run.
DEFAULT_MAX_MESSAGES = 50

#: Upper bound on a single connect attempt, in seconds.
CONNECT_TIMEOUT = 10.0

#: Granularity of the pause poll and of cancellation checks, in seconds.
POLL_INTERVAL = 1.0

#: Seconds to wait at shutdown for replies to prompts already sent.
DRAIN_TIMEOUT = 2.0

#: Inbound payload fields consulted, in order, for the response text.
RESPONSE_TEXT_FIELDS = ("message", "content", "text")

#: Text recorded when a structured response carries none of the fields above.
RESPONSE_PLACEHOLDER = "Response received"

PromptMode = Literal["general", "qa", "creative", "technical", "educational", "custom"]

#: Prompt modes in menu order (used by the interactive configuration).
PROMPT_MODES: tuple[PromptMode, ...] = (
    "general",
    "qa",
    "creative",
    "technical",
    "educational",
    "custom",
)
