"""Root CLI group and version flag."""

import click

from parley import __version__
from parley.commands.init import init
from parley.commands.run import run
from parley.commands.show import show


@click.group()
@click.version_option(version=__version__, prog_name="parley")
def cli() -> None:
    """Parley — paced conversational load generator for chat endpoints."""


cli.add_command(init)
cli.add_command(run)
cli.add_command(show)
