"""Tests for summary formatting, run-log persistence and console progress."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from parley.config.models import RunConfig
from parley.errors import PersistFailure
from parley.progress import ConsoleProgress
from parley.session.models import PromptEvent, ResponseEvent, RunLog, RunStats
from parley.session.state import Session
from parley.summary import SummaryEmitter, format_duration, format_summary, write_run_log

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_T0 = datetime(2026, 10, 19, 9, 0, 0, tzinfo=UTC)


def _make_run_log(**stats: Any) -> RunLog:
    values: dict[str, Any] = {
        "messages_sent": 10,
        "responses_received": 9,
        "error_count": 1,
        "session_count": 2,
        "start_time": _T0,
        "end_time": _T0 + timedelta(seconds=82),
        "duration_ms": 82_000,
        "outcome": "complete",
    }
    values.update(stats)
    return RunLog(
        config=RunConfig(url="ws://chat.test/ws", mode="qa"),
        stats=RunStats(**values),
        events=[
            PromptEvent(timestamp=_T0, content="Q?", session=1),
            ResponseEvent(timestamp=_T0, content="A.", session=1),
        ],
    )


# ===================================================================
# Formatting
# ===================================================================


class TestFormatDuration:
    def test_seconds(self) -> None:
        assert format_duration(34.25) == "34.2s"

    def test_zero(self) -> None:
        assert format_duration(0) == "0.0s"

    def test_minutes(self) -> None:
        assert format_duration(82) == "1m 22s"

    def test_pads_seconds(self) -> None:
        assert format_duration(125) == "2m 05s"

    def test_just_under_an_hour(self) -> None:
        assert format_duration(3599) == "59m 59s"

    def test_hours(self) -> None:
        assert format_duration(3600) == "1h 00m 00s"
        assert format_duration(2 * 3600) == "2h 00m 00s"
        assert format_duration(2 * 3600 + 5 * 60 + 9.7) == "2h 05m 09s"

    def test_summary_row_uses_hours(self) -> None:
        text = format_summary(_make_run_log(duration_ms=7_500_000))
        assert "2h 05m 00s" in text


class TestFormatSummary:
    def test_contains_all_rows(self) -> None:
        text = format_summary(_make_run_log())
        lines = text.splitlines()
        assert lines[0] == "Session ended (complete)"
        assert "Messages sent:" in text
        assert "Success rate:" in text and "90%" in text
        assert "Duration:" in text and "1m 22s" in text
        assert "ws://chat.test/ws" in text
        assert lines[-1] == "=" * 40

    def test_values_aligned(self) -> None:
        rows = format_summary(_make_run_log()).splitlines()[2:-1]
        columns = {len(row) - len(row.split(":", 1)[1].lstrip()) for row in rows}
        assert len(columns) == 1

    def test_reports_outcome(self) -> None:
        text = format_summary(_make_run_log(outcome="cancelled"))
        assert text.startswith("Session ended (cancelled)")


# ===================================================================
# Persistence
# ===================================================================


class TestWriteRunLog:
    def test_writes_json(self, tmp_path: Path) -> None:
        path = write_run_log(_make_run_log(), tmp_path / "nested" / "run.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"config", "stats", "events"}
        assert data["config"]["mode"] == "qa"
        assert data["stats"]["responses_received"] == 9
        assert [e["type"] for e in data["events"]] == ["prompt", "response"]

    def test_readable_back(self, tmp_path: Path) -> None:
        original = _make_run_log()
        path = write_run_log(original, tmp_path / "run.json")
        assert RunLog.model_validate_json(path.read_text(encoding="utf-8")) == original

    def test_unwritable_path(self, tmp_path: Path) -> None:
        with pytest.raises(PersistFailure, match="Failed to save log"):
            write_run_log(_make_run_log(), tmp_path)


class TestSummaryEmitter:
    def test_emit_writes_and_prints(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        emitter = SummaryEmitter(tmp_path / "run.json")

        summary = emitter.emit(_make_run_log())

        out = capsys.readouterr().out
        assert emitter.written_path == (tmp_path / "run.json").resolve()
        assert emitter.persist_error is None
        assert "Log saved to:" in out
        assert summary in out

    def test_persist_failure_still_prints_summary(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        emitter = SummaryEmitter(tmp_path)

        emitter.emit(_make_run_log())

        captured = capsys.readouterr()
        assert isinstance(emitter.persist_error, PersistFailure)
        assert emitter.written_path is None
        assert "Error: Failed to save log" in captured.err
        assert "Session ended (complete)" in captured.out


# ===================================================================
# Console progress
# ===================================================================


class TestConsoleProgress:
    def test_prompt_and_progress_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        session = Session(messages_sent=2, responses_received=1)
        ConsoleProgress(max_messages=4).prompt_sent(session, "hello")

        out = capsys.readouterr().out
        assert "> [2] hello" in out
        assert "Progress: 2/4 (50%)" in out
        assert "Responses: 1" in out

    def test_long_response_truncated(self, capsys: pytest.CaptureFixture[str]) -> None:
        session = Session(messages_sent=1, responses_received=1)
        ConsoleProgress(max_messages=1).response_received(session, "x" * 300)

        out = capsys.readouterr().out
        assert "< [1] " + "x" * 100 + "..." in out
        assert "x" * 101 not in out

    def test_quiet_only_renders_progress(self, capsys: pytest.CaptureFixture[str]) -> None:
        session = Session(messages_sent=1)
        ConsoleProgress(max_messages=10, quiet=True).prompt_sent(session, "secret")

        out = capsys.readouterr().out
        assert "secret" not in out
        assert "Progress: 1/10" in out

    def test_error_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleProgress(max_messages=1).error(Session(), "Send failed")
        assert "Error: Send failed" in capsys.readouterr().err
