"""parley init — scaffold a parley.yaml in the current directory."""

from __future__ import annotations

from pathlib import Path

import click

from parley.config.parser import DEFAULT_CONFIG_NAME

ENV_EXAMPLE_FILENAME = ".env.example"

TEMPLATE_YAML = """\
# Parley run configuration
# Command-line flags override these values; PARLEY_* environment
# variables sit in between.

# WebSocket endpoint to exercise
url: ws://localhost:8080/chat

# Prompt category: general | qa | creative | technical | educational | custom
mode: general

# Used only when mode is custom (a built-in set is used if left empty)
# custom_prompts:
#   - Tell me about your capabilities
#   - What can you help me with?

# Seconds to wait after each prompt
interval: 3

# Prompts to send before stopping
max_messages: 50

# Where the JSON run log is written (default: parley-<date>.json)
# log_file: logs/parley-run.json

# Connection tuning
# connect_timeout: 10     # seconds per connect attempt
# drain_timeout: 2        # seconds to wait for outstanding replies at shutdown
# reconnect_attempts: 1   # connect cycles allowed after a dropped connection
"""

TEMPLATE_ENV_EXAMPLE = """\
# Environment overrides picked up by `parley run`.
# Copy this file to .env next to parley.yaml.

PARLEY_URL=
PARLEY_MODE=
PARLEY_INTERVAL=
PARLEY_MAX=
"""


@click.command()
@click.option(
    "--force",
    is_flag=True,
    help=f"Overwrite existing {DEFAULT_CONFIG_NAME} if it exists.",
)
def init(force: bool) -> None:
    """Scaffold a parley.yaml in the current directory."""
    cwd = Path.cwd()
    config_path = cwd / DEFAULT_CONFIG_NAME
    env_example_path = cwd / ENV_EXAMPLE_FILENAME

    if config_path.exists() and not force:
        raise click.ClickException(
            f"{DEFAULT_CONFIG_NAME} already exists. Use --force to overwrite."
        )

    try:
        config_path.write_text(TEMPLATE_YAML, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot write {DEFAULT_CONFIG_NAME}: {exc}") from exc
    click.echo(f"  Created {DEFAULT_CONFIG_NAME}")

    if not env_example_path.exists() or force:
        try:
            env_example_path.write_text(TEMPLATE_ENV_EXAMPLE, encoding="utf-8")
        except OSError as exc:
            raise click.ClickException(
                f"Cannot write {ENV_EXAMPLE_FILENAME}: {exc}"
            ) from exc
        click.echo(f"  Created {ENV_EXAMPLE_FILENAME}")
    else:
        click.echo(f"  Skipped {ENV_EXAMPLE_FILENAME} (already exists)")

    click.echo()
    click.echo("Next steps:")
    click.echo(f"  1. Edit {DEFAULT_CONFIG_NAME} to point at your endpoint")
    click.echo("  2. Run `parley run` to start sending prompts")
