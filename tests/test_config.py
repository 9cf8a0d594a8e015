"""Tests for RunConfig validation and the config loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from parley.config import ConfigError, RunConfig, default_log_file, load_config
from parley.config.parser import ENV_KEYS

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every test in an empty directory with no PARLEY_* variables."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_KEYS:
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


# ================================================================== #
# RunConfig model
# ================================================================== #


class TestRunConfig:
    def test_defaults(self) -> None:
        config = RunConfig()
        assert config.url == "ws://localhost:8080/chat"
        assert config.mode == "general"
        assert config.interval == 3.0
        assert config.max_messages == 50
        assert config.custom_prompts == ()
        assert config.reconnect_attempts == 1
        assert config.log_file == default_log_file()

    def test_default_log_file_is_dated(self) -> None:
        name = default_log_file().name
        assert name.startswith("parley-")
        assert name.endswith(".json")

    @pytest.mark.parametrize("url", ["ws://host/chat", "wss://host:9000/x", "  ws://h  "])
    def test_accepts_websocket_urls(self, url: str) -> None:
        assert RunConfig(url=url).url == url.strip()

    @pytest.mark.parametrize("url", ["http://host/chat", "localhost:8080", ""])
    def test_rejects_other_schemes(self, url: str) -> None:
        with pytest.raises(ValidationError, match="ws:// or wss://"):
            RunConfig(url=url)

    def test_zero_interval_allowed(self) -> None:
        assert RunConfig(interval=0).interval == 0

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(interval=-1)

    def test_max_messages_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(max_messages=0)

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(mode="poetry")

    def test_blank_custom_prompts_dropped(self) -> None:
        config = RunConfig(mode="custom", custom_prompts=["  hi ", "", "   ", "there"])
        assert config.custom_prompts == ("  hi ", "there")

    def test_custom_prompt_text_kept_verbatim(self) -> None:
        prompts = ["  indented question?", "trailing space ", "line one\nline two"]
        config = RunConfig(mode="custom", custom_prompts=prompts)
        assert config.custom_prompts == tuple(prompts)

    def test_single_custom_prompt_string(self) -> None:
        assert RunConfig(custom_prompts="just one").custom_prompts == ("just one",)

    def test_frozen(self) -> None:
        config = RunConfig()
        with pytest.raises(ValidationError):
            config.interval = 1.0  # type: ignore[misc]

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(speed=3)  # type: ignore[call-arg]


# ================================================================== #
# load_config
# ================================================================== #


class TestLoadConfig:
    def test_defaults_without_file(self) -> None:
        assert load_config() == RunConfig(log_file=default_log_file())

    def test_reads_yaml(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "run.yaml",
            "url: wss://example.test/chat\nmode: qa\ninterval: 0.5\nmax_messages: 7\n",
        )
        config = load_config(path)
        assert config.url == "wss://example.test/chat"
        assert config.mode == "qa"
        assert config.interval == 0.5
        assert config.max_messages == 7

    def test_picks_up_default_file_in_cwd(self, tmp_path: Path) -> None:
        _write(tmp_path / "parley.yaml", "max_messages: 9\n")
        assert load_config().max_messages == 9

    def test_custom_prompts_from_yaml(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "run.yaml",
            "mode: custom\ncustom_prompts:\n  - first\n  - second\n",
        )
        assert load_config(path).custom_prompts == ("first", "second")

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "")
        assert load_config(path).max_messages == 50

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml_reports_position(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "url: [unterminated\n")
        with pytest.raises(ConfigError, match=r"Invalid YAML in run\.yaml \(line"):
            load_config(path)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path)

    def test_unknown_option(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "speed: 11\n")
        with pytest.raises(ConfigError, match="speed: Unknown option"):
            load_config(path)

    def test_validation_errors_are_flattened(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "max_messages: 0\ninterval: -2\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        message = str(exc_info.value)
        assert message.startswith("Config validation failed:")
        assert "max_messages" in message
        assert "interval" in message

    def test_bad_url_in_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "url: http://example.test\n")
        with pytest.raises(ConfigError, match="url"):
            load_config(path)


# ================================================================== #
# Precedence
# ================================================================== #


class TestPrecedence:
    def test_env_overrides_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = _write(tmp_path / "run.yaml", "max_messages: 5\nmode: qa\n")
        monkeypatch.setenv("PARLEY_MAX", "12")
        monkeypatch.setenv("PARLEY_URL", "ws://from-env/chat")

        config = load_config(path)

        assert config.max_messages == 12
        assert config.url == "ws://from-env/chat"
        assert config.mode == "qa"

    def test_overrides_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PARLEY_INTERVAL", "9")
        config = load_config(overrides={"interval": 0.25})
        assert config.interval == 0.25

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "run.yaml", "mode: creative\n")
        config = load_config(path, {"mode": None, "url": None})
        assert config.mode == "creative"

    def test_blank_env_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PARLEY_MODE", "   ")
        assert load_config().mode == "general"

    def test_dotenv_next_to_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        path = _write(conf_dir / "run.yaml", "max_messages: 3\n")
        _write(conf_dir / ".env", "PARLEY_MODE=technical\n")
        # load_dotenv writes straight into os.environ.
        monkeypatch.setenv("PARLEY_MODE", "")

        assert load_config(path).mode == "general"

        monkeypatch.delenv("PARLEY_MODE")
        assert load_config(path).mode == "technical"

    def test_invalid_env_value_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PARLEY_MAX", "lots")
        with pytest.raises(ConfigError, match="max_messages"):
            load_config()
