from parley.cli import cli

cli()
