"""Progress observers — console rendering of a running session."""

from __future__ import annotations

from typing import Protocol

import click

from parley.session.state import Session
from parley.summary import format_duration

#: Max characters of a response to show in the console preview.
_PREVIEW_LEN = 100


class ProgressObserver(Protocol):
    """Receives live notifications from the orchestrator."""

    def connected(self, session: Session, address: str) -> None: ...

    def prompt_sent(self, session: Session, text: str) -> None: ...

    def response_received(self, session: Session, text: str) -> None: ...

    def error(self, session: Session, message: str) -> None: ...

    def reconnecting(self, session: Session) -> None: ...

    def pause_changed(self, session: Session) -> None: ...


class ConsoleProgress:
    """Prints sent prompts, responses and a one-line progress bar."""

    def __init__(self, max_messages: int, quiet: bool = False) -> None:
        self._max = max_messages
        self._quiet = quiet

    def connected(self, session: Session, address: str) -> None:
        click.echo(click.style(f"Connected to {address} (session {session.seq})", fg="green"))

    def prompt_sent(self, session: Session, text: str) -> None:
        if not self._quiet:
            click.echo(f"\n> [{session.messages_sent}] {text}")
        self._render(session)

    def response_received(self, session: Session, text: str) -> None:
        if not self._quiet:
            preview = text if len(text) <= _PREVIEW_LEN else text[:_PREVIEW_LEN] + "..."
            click.echo(f"\n< [{session.responses_received}] {preview}")
        self._render(session)

    def error(self, session: Session, message: str) -> None:
        click.echo(click.style(f"\nError: {message}", fg="red"), err=True)
        self._render(session)

    def reconnecting(self, session: Session) -> None:
        click.echo(click.style("\nAttempting to reconnect...", fg="yellow"))

    def pause_changed(self, session: Session) -> None:
        click.echo("\nPaused" if session.paused else "\nResumed")

    def _render(self, session: Session) -> None:
        pct = round(session.messages_sent / self._max * 100)
        click.echo(
            f"\rProgress: {session.messages_sent}/{self._max} ({pct}%)"
            f" | Responses: {session.responses_received}"
            f" | Elapsed: {format_duration(session.elapsed)}"
            f" | Errors: {session.error_count}",
            nl=False,
        )


class NullProgress:
    """Observer that ignores every notification."""

    def connected(self, session: Session, address: str) -> None:
        pass

    def prompt_sent(self, session: Session, text: str) -> None:
        pass

    def response_received(self, session: Session, text: str) -> None:
        pass

    def error(self, session: Session, message: str) -> None:
        pass

    def reconnecting(self, session: Session) -> None:
        pass

    def pause_changed(self, session: Session) -> None:
        pass
