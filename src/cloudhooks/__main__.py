"""Allow ``python -m cloudhooks``."""

from cloudhooks.cli.main import cli

cli()
