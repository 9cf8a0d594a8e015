"""parley run — pump prompts at a chat endpoint and record the exchange."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import os
import select
import signal
import sys
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import click

from parley.config.models import RunConfig
from parley.config.parser import DEFAULT_CONFIG_NAME, ENV_KEYS, ConfigError, load_config
from parley.constants import (
    DEFAULT_INTERVAL,
    DEFAULT_MAX_MESSAGES,
    DEFAULT_URL,
    PROMPT_MODES,
)
from parley.errors import ConnectError
from parley.orchestrator import SessionOrchestrator
from parley.progress import ConsoleProgress
from parley.session.models import EndReason
from parley.summary import SummaryEmitter

logger = logging.getLogger(__name__)

#: Outcomes that make ``parley run`` exit non-zero.
_FAILED_OUTCOMES: frozenset[EndReason] = frozenset({"unrecoverable", "error"})


# ------------------------------------------------------------------ #
# Click command
# ------------------------------------------------------------------ #


@click.command()
@click.option(
    "-f", "--file", "config_file", type=click.Path(), help="Config file path."
)
@click.option("--url", type=str, default=None, help="WebSocket endpoint URL.")
@click.option(
    "--mode",
    type=click.Choice(PROMPT_MODES),
    default=None,
    help="Prompt category.",
)
@click.option(
    "--prompt",
    "custom_prompts",
    multiple=True,
    help="Custom prompt (repeatable). Implies --mode custom when no mode is given.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=None,
    help=f"Seconds between prompts (default {DEFAULT_INTERVAL:g}).",
)
@click.option(
    "--max",
    "max_messages",
    type=click.IntRange(min=1),
    default=None,
    help=f"Prompts to send before stopping (default {DEFAULT_MAX_MESSAGES}).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the JSON run log (default parley-<date>.json).",
)
@click.option(
    "--connect-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds allowed for each connect attempt.",
)
@click.option(
    "--drain-timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait for outstanding replies at shutdown.",
)
@click.option(
    "--reconnect-attempts",
    type=click.IntRange(min=1),
    default=None,
    help="Connect cycles allowed after a dropped connection.",
)
@click.option(
    "--interactive/--no-interactive",
    default=None,
    help="Ask for settings on the terminal "
    "(default: when no option is given and stdin is a terminal).",
)
@click.option("-q", "--quiet", is_flag=True, help="Only show the progress line.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def run(
    config_file: str | None,
    url: str | None,
    mode: str | None,
    custom_prompts: tuple[str, ...],
    interval: float | None,
    max_messages: int | None,
    log_file: Path | None,
    connect_timeout: float | None,
    drain_timeout: float | None,
    reconnect_attempts: int | None,
    interactive: bool | None,
    quiet: bool,
    verbose: bool,
) -> None:
    """Send a paced stream of prompts to a chat endpoint and log the replies."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if custom_prompts and mode is None:
        mode = "custom"
    overrides: dict[str, Any] = {
        "url": url,
        "mode": mode,
        "custom_prompts": list(custom_prompts) or None,
        "interval": interval,
        "max_messages": max_messages,
        "log_file": log_file,
        "connect_timeout": connect_timeout,
        "drain_timeout": drain_timeout,
        "reconnect_attempts": reconnect_attempts,
    }

    if interactive is None:
        no_options = (
            config_file is None
            and all(v is None for v in overrides.values())
            and not Path(DEFAULT_CONFIG_NAME).is_file()
            and not any(os.environ.get(name) for name in ENV_KEYS)
        )
        interactive = no_options and sys.stdin.isatty()
    if interactive:
        overrides.update(collect_interactive_config(overrides))

    try:
        config = load_config(Path(config_file) if config_file else None, overrides)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    try:
        outcome = asyncio.run(
            _run_session(config, quiet=quiet, enable_control=sys.stdin.isatty())
        )
    except ConnectError as exc:
        click.echo(f"Error: failed to start: {exc}", err=True)
        raise SystemExit(1) from exc
    if outcome in _FAILED_OUTCOMES:
        raise SystemExit(1)


# ------------------------------------------------------------------ #
# Interactive configuration
# ------------------------------------------------------------------ #


def collect_interactive_config(given: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Ask for the run settings on the terminal; blank answers keep defaults.

    Settings already present in *given* (typically command-line flags) are
    not asked for and are left out of the returned mapping.
    """
    given = given or {}
    answers: dict[str, Any] = {}
    click.echo("Parley configuration\n")
    if given.get("url") is None:
        answers["url"] = click.prompt("Endpoint URL", default=DEFAULT_URL)

    mode = given.get("mode")
    if mode is None:
        click.echo("\nPrompt modes:")
        for index, name in enumerate(PROMPT_MODES, start=1):
            click.echo(f"  {index}. {name}")
        choice = click.prompt(
            "Select mode",
            type=click.IntRange(1, len(PROMPT_MODES)),
            default=1,
        )
        mode = answers["mode"] = PROMPT_MODES[choice - 1]

    if mode == "custom" and not given.get("custom_prompts"):
        click.echo("\nEnter custom prompts (one per line, empty line to finish):")
        custom: list[str] = []
        while True:
            line = click.prompt(">", default="", show_default=False, prompt_suffix=" ")
            if not line.strip():
                break
            custom.append(line)
        if custom:
            answers["custom_prompts"] = custom

    if given.get("interval") is None:
        answers["interval"] = click.prompt(
            "Interval in seconds",
            type=click.FloatRange(min=0),
            default=DEFAULT_INTERVAL,
        )
    if given.get("max_messages") is None:
        answers["max_messages"] = click.prompt(
            "Max messages",
            type=click.IntRange(min=1),
            default=DEFAULT_MAX_MESSAGES,
        )
    return answers


# ------------------------------------------------------------------ #
# Session runner
# ------------------------------------------------------------------ #


async def _run_session(
    config: RunConfig,
    quiet: bool = False,
    enable_control: bool = False,
) -> EndReason:
    """Run one session with signal handling and optional terminal controls."""
    orchestrator = SessionOrchestrator(
        config,
        emitter=SummaryEmitter(config.log_file),
        observer=ConsoleProgress(config.max_messages, quiet=quiet),
    )

    click.echo(f"\n  Parley -- {config.url}")
    click.echo(
        f"  Mode: {config.mode} | Interval: {config.interval:g}s"
        f" | Max: {config.max_messages}"
    )
    click.echo(f"  Log:  {config.log_file}")
    if enable_control:
        click.echo("  Controls: p + Enter to pause/resume, q + Enter to stop")
    click.echo("  Press Ctrl+C to stop gracefully.\n")

    loop = asyncio.get_running_loop()

    def _signal_shutdown(sig_name: str) -> None:
        logger.info("Received %s; requesting shutdown", sig_name)
        click.echo(f"\nReceived {sig_name}, shutting down gracefully...", err=True)
        orchestrator.cancel()

    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, _signal_shutdown, sig.name)
            installed.append(sig)

    control_task = (
        asyncio.create_task(_control_loop(orchestrator)) if enable_control else None
    )

    try:
        run_log = await orchestrator.run()
    finally:
        if control_task is not None:
            control_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await control_task
        for sig in installed:
            loop.remove_signal_handler(sig)

    return run_log.stats.outcome


# ------------------------------------------------------------------ #
# Terminal controls
# ------------------------------------------------------------------ #


async def _control_loop(orchestrator: SessionOrchestrator) -> None:
    """Read control commands from stdin until cancelled or EOF."""
    # Bridge task cancellation to the reader thread so it stops polling.
    thread_cancel = threading.Event()
    loop = asyncio.get_running_loop()
    try:
        while True:
            try:
                line = await loop.run_in_executor(
                    None,
                    functools.partial(_read_command, thread_cancel),
                )
            except EOFError:
                return
            handle_command(line, orchestrator)
    finally:
        thread_cancel.set()


def _read_command(cancel: threading.Event) -> str:
    """Blocking stdin reader for use with ``run_in_executor``.

    Uses ``select.select`` with a 0.5 s timeout so the thread can check
    *cancel* between polls; raises ``EOFError`` once cancelled or at EOF.
    """
    while not cancel.is_set():
        ready, _, _ = select.select([sys.stdin], [], [], 0.5)
        if ready:
            line = sys.stdin.readline()
            if not line:
                raise EOFError
            return line.rstrip("\n")
    raise EOFError


def handle_command(line: str, orchestrator: SessionOrchestrator) -> None:
    """Apply one terminal control command to *orchestrator*."""
    cmd = line.strip().lower()
    if not cmd:
        return

    if cmd in ("p", "pause"):
        orchestrator.toggle_pause()
        return

    if cmd in ("r", "resume"):
        if orchestrator.session.paused:
            orchestrator.toggle_pause()
        return

    if cmd in ("q", "quit", "stop"):
        click.echo("\nStopping...")
        orchestrator.cancel()
        return

    click.echo(f"\nUnknown command: {cmd} (p = pause/resume, r = resume, q = stop)")
