"""Wire encoding of outbound prompts and best-effort decoding of replies."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from parley.constants import RESPONSE_PLACEHOLDER, RESPONSE_TEXT_FIELDS
from parley.errors import DecodeFailure
from parley.session.models import ChatMessage

logger = logging.getLogger(__name__)


def encode_prompt(text: str, timestamp: datetime, session: int) -> str:
    """Serialize a prompt as the outbound ``chat`` JSON message."""
    return ChatMessage(message=text, timestamp=timestamp, session=session).model_dump_json()


def decode_payload(text: str) -> Any:
    """Parse *text* as JSON, raising :class:`DecodeFailure` if it is not."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Payload is not JSON: {exc}"
        raise DecodeFailure(msg) from exc


def extract_response_text(data: str | bytes) -> str:
    """Return the display/log text carried by an inbound payload.

    Lossy by nature: a JSON object yields the first non-empty string among
    ``message``, ``content`` and ``text`` (or a placeholder when none is
    present). Any other JSON value also yields the placeholder; only
    payloads that fail to decode are taken verbatim as text.
    """
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    try:
        payload = decode_payload(text)
    except DecodeFailure:
        logger.debug("Inbound payload is not JSON; recording as plain text")
        return text

    if not isinstance(payload, dict):
        return RESPONSE_PLACEHOLDER
    for field in RESPONSE_TEXT_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value:
            return value
    return RESPONSE_PLACEHOLDER
