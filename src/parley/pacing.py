"""PacingEngine — cyclic cursor over the prompt sequence."""

from __future__ import annotations

from collections.abc import Sequence


class PacingEngine:
    """Hands out prompts in order, wrapping around when exhausted.

    The engine knows nothing about time or pause state; the orchestrator
    decides when to call :meth:`next` and how long to wait afterwards.
    """

    def __init__(self, prompts: Sequence[str]) -> None:
        if not prompts:
            msg = "PacingEngine requires at least one prompt"
            raise ValueError(msg)
        self._prompts = tuple(prompts)
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """Number of prompts handed out so far."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._prompts)

    def peek(self) -> str:
        """Return the prompt :meth:`next` would return, without advancing."""
        return self._prompts[self._cursor % len(self._prompts)]

    def next(self) -> str:
        """Return the prompt at the cursor and advance the cursor by one."""
        prompt = self.peek()
        self._cursor += 1
        return prompt
