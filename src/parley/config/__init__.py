"""Configuration model and loader for parley.yaml."""

from parley.config.models import RunConfig, default_log_file
from parley.config.parser import ConfigError, load_config

__all__ = [
    "ConfigError",
    "RunConfig",
    "default_log_file",
    "load_config",
]
