"""Load, merge, and validate the run configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from parley.config.models import RunConfig

DEFAULT_CONFIG_NAME = "parley.yaml"

#: Environment variables consulted between the YAML file and the flags.
ENV_KEYS = {
    "PARLEY_URL": "url",
    "PARLEY_MODE": "mode",
    "PARLEY_INTERVAL": "interval",
    "PARLEY_MAX": "max_messages",
    "PARLEY_LOG_FILE": "log_file",
}


class ConfigError(Exception):
    """User-facing configuration error."""


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RunConfig:
    """Resolve a RunConfig from an optional YAML file plus overrides.

    Precedence, lowest first: defaults, the YAML file, ``PARLEY_*``
    environment variables (a sibling ``.env`` is loaded first), then
    *overrides*.

    Args:
        path: Explicit config file path. If None, ``parley.yaml`` in the
              current directory is used when present; otherwise only
              defaults, environment and *overrides* apply.
        overrides: Values that take precedence over everything else
              (typically command-line flags). ``None`` values are ignored.

    Returns:
        A validated, frozen RunConfig.

    Raises:
        ConfigError: On missing file, bad YAML, or validation failure.
    """
    config_path = _resolve_path(path)
    raw: dict[str, Any] = {}
    if config_path is not None:
        raw = _read_yaml(config_path)
        _load_env(config_path.parent)
    else:
        _load_env(Path.cwd())
    raw.update(_read_env())
    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value
    return _validate(raw)


def _resolve_path(path: Path | None) -> Path | None:
    if path is not None:
        resolved = Path(path)
        if not resolved.is_file():
            msg = f"Config file not found: {resolved}"
            raise ConfigError(msg)
        return resolved

    default = Path.cwd() / DEFAULT_CONFIG_NAME
    if default.is_file():
        return default
    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read config file: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        detail = ""
        if hasattr(exc, "problem_mark") and exc.problem_mark is not None:
            mark = exc.problem_mark
            detail = f" (line {mark.line + 1}, column {mark.column + 1})"
        msg = f"Invalid YAML in {path.name}{detail}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {path.name}, got {type(data).__name__}"
        raise ConfigError(msg)

    return data


def _load_env(config_dir: Path) -> None:
    env_path = config_dir / ".env"
    if env_path.is_file():
        load_dotenv(env_path)


def _read_env() -> dict[str, str]:
    return {
        key: os.environ[name].strip()
        for name, key in ENV_KEYS.items()
        if os.environ.get(name, "").strip()
    }


def _validate(raw: dict[str, Any]) -> RunConfig:
    try:
        return RunConfig.model_validate(raw)
    except ValidationError as exc:
        parts: list[str] = []
        for err in exc.errors():
            loc = " → ".join(str(s) for s in err["loc"]) or "config"
            msg = err["msg"]
            # Make certain error messages more user-friendly
            if "field required" in msg.lower():
                msg = "This field is required"
            elif "extra inputs are not permitted" in msg.lower():
                msg = "Unknown option"
            elif "input should be" in msg.lower():
                msg = f"Invalid value: {msg}"
            parts.append(f"  {loc}: {msg}")
        joined = "\n".join(parts)
        msg = f"Config validation failed:\n{joined}"
        raise ConfigError(msg) from exc
