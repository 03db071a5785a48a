"""Hook CLI commands — inspect registrations and trigger kinds."""

import sys
from pathlib import Path

import click

from cloudhooks.config import HookConfig
from cloudhooks.runtime import HookRuntime
from cloudhooks.triggers.types import TriggerKind


@click.group()
def hooks():
    """Hook commands."""
    pass


@hooks.command("kinds")
def kinds_cmd():
    """List every trigger kind with its scope."""
    for kind in TriggerKind:
        line = f"  {kind.value:<18} {kind.scope.value:<11}"
        if kind.default_class:
            line += f" default class: {kind.default_class}"
        click.echo(line.rstrip())


@hooks.command("list")
@click.argument("module")
@click.option(
    "--tenant",
    default="default",
    show_default=True,
    help="Tenant id to load the cloud code under.",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="YAML config file (defaults to CLOUDHOOKS_* environment variables).",
)
def list_cmd(module: str, tenant: str, config_path: Path | None):
    """Load cloud code from MODULE and list the hooks it registers.

    MODULE is a dotted import path to a module exposing register(cloud).
    """
    config = HookConfig.from_file(config_path) if config_path else HookConfig.from_env()
    runtime = HookRuntime(config)

    # Allow loading modules relative to the working directory
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        runtime.load_cloud_code(tenant, module)
    except Exception as e:
        click.echo(click.style(f"Failed to load cloud code: {e}", fg="red"), err=True)
        raise SystemExit(1)

    registry = runtime.registry
    registrations = registry.list_registrations(tenant)
    functions = registry.list_functions(tenant)
    jobs = registry.list_jobs(tenant)

    click.echo(f"Tenant {tenant}:")
    click.echo(f"\nTriggers ({len(registrations)}):")
    for registration in registrations:
        key = registration.key
        target = key.class_name or "-"
        suffix = " [validator]" if registration.validator else ""
        click.echo(f"  {key.kind.value:<18} {target}{suffix}")

    click.echo(f"\nFunctions ({len(functions)}):")
    for name in functions:
        function = registry.lookup_function(tenant, name)
        suffix = " [validator]" if function and function.validator else ""
        click.echo(f"  {name}{suffix}")

    click.echo(f"\nJobs ({len(jobs)}):")
    for name in jobs:
        click.echo(f"  {name}")

    if registry.lookup_live_query_handler(tenant):
        click.echo("\nLive query event handler registered.")

    total = registry.get_stats(tenant)["total"]
    click.echo(click.style(f"\n{total} hook(s) registered.", fg="green", bold=True))
