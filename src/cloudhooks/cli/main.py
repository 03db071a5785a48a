"""cloudhooks CLI entry point."""

import click


@click.group()
def cli():
    """cloudhooks — hook registry and dispatch CLI."""
    pass


# Register subcommand groups
from cloudhooks.cli.hooks_cmd import hooks  # noqa: E402

cli.add_command(hooks)
