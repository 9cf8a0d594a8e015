"""SummaryEmitter — persists the run log and prints the run summary."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from parley.errors import PersistFailure
from parley.session.models import RunLog

logger = logging.getLogger(__name__)

_RULE = "=" * 40


def format_duration(seconds: float) -> str:
    """Format a duration as '2h 05m 09s', '1m 22s' or '34.2s'."""
    if seconds >= 3600:
        hours = int(seconds // 3600)
        minutes = int(seconds % 3600 // 60)
        secs = int(seconds % 60)
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if seconds >= 60:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    return f"{seconds:.1f}s"


def format_summary(run_log: RunLog) -> str:
    """Render the human-readable summary block for *run_log*."""
    stats = run_log.stats
    rows = [
        ("Messages sent", str(stats.messages_sent)),
        ("Responses received", str(stats.responses_received)),
        ("Success rate", f"{stats.success_rate}%"),
        ("Errors", str(stats.error_count)),
        ("Sessions", str(stats.session_count)),
        ("Duration", format_duration(stats.duration_ms / 1000)),
        ("Mode", run_log.config.mode),
        ("Endpoint", run_log.config.url),
    ]
    width = max(len(label) for label, _ in rows) + 2
    lines = [f"Session ended ({stats.outcome})", _RULE]
    lines.extend(f"{label + ':':<{width}}{value}" for label, value in rows)
    lines.append(_RULE)
    return "\n".join(lines)


def write_run_log(run_log: RunLog, path: Path) -> Path:
    """Write *run_log* as indented JSON to *path* and return the resolved path.

    Raises:
        PersistFailure: The file could not be written.
    """
    resolved = path.expanduser().resolve()
    try:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        resolved.write_text(run_log.model_dump_json(indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to save log to {resolved}: {exc}"
        raise PersistFailure(msg) from exc
    return resolved


class SummaryEmitter:
    """Final step of a run: write the log, then print the summary.

    A failed write is reported but never prevents the summary.
    """

    def __init__(self, log_path: Path) -> None:
        self._log_path = log_path
        self.written_path: Path | None = None
        self.persist_error: PersistFailure | None = None

    def emit(self, run_log: RunLog) -> str:
        """Persist *run_log* and print its summary. Returns the summary text."""
        try:
            self.written_path = write_run_log(run_log, self._log_path)
        except PersistFailure as exc:
            self.persist_error = exc
            logger.error("%s", exc)
            click.echo(f"Error: {exc}", err=True)
        else:
            click.echo(f"\nLog saved to: {self.written_path}")

        summary = format_summary(run_log)
        click.echo(summary)
        return summary
