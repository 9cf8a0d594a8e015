"""Click subcommands for the parley CLI."""
