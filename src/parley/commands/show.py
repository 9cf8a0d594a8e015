"""parley show — print the summary and ledger of a saved run log."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError

from parley.session.models import RunLog
from parley.summary import format_summary

#: Max characters of event content per ledger line.
_PREVIEW_LEN = 100


def load_run_log(path: Path) -> RunLog:
    """Read and validate a run log written by ``parley run``.

    Raises:
        click.ClickException: The file is unreadable or not a valid run log.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot read {path}: {exc}") from exc
    try:
        return RunLog.model_validate_json(text)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = " → ".join(str(s) for s in first["loc"]) or "document"
        raise click.ClickException(
            f"{path.name} is not a valid run log ({loc}: {first['msg']})"
        ) from exc


def format_ledger(run_log: RunLog, limit: int | None = None) -> list[str]:
    """Render one line per ledger event, oldest first."""
    events = run_log.events if limit is None else run_log.events[:limit]
    lines: list[str] = []
    for event in events:
        marker = ">" if event.type == "prompt" else "<"
        content = event.content.replace("\n", " ")
        if len(content) > _PREVIEW_LEN:
            content = content[:_PREVIEW_LEN] + "..."
        ts = event.timestamp.strftime("%H:%M:%S.%f")[:-3]
        lines.append(f"{ts} [s{event.session}] {marker} {content}")
    return lines


@click.command()
@click.argument("log_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--events", "show_events", is_flag=True, help="Also print the ledger.")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Print at most this many ledger entries.",
)
def show(log_file: Path, show_events: bool, limit: int | None) -> None:
    """Print the summary of a saved run log."""
    run_log = load_run_log(log_file)
    click.echo(format_summary(run_log))
    stats = run_log.stats
    if stats.start_time is not None:
        click.echo(f"Started: {stats.start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    click.echo(f"Ended:   {stats.end_time.strftime('%Y-%m-%d %H:%M:%S')}")

    if show_events:
        click.echo(f"\nLedger ({len(run_log.events)} events):")
        for line in format_ledger(run_log, limit):
            click.echo(f"  {line}")
