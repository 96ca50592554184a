"""Cache command group - inspect and clear the metadata cache."""

from __future__ import annotations

import os

import click

from gitmgr.commands._helpers import cli_errors, get_service
from gitmgr.errors import NotARepositoryError


@click.group()
def cache() -> None:
    """Manage the metadata cache."""


@cache.command("clear")
@click.argument("path", required=False)
@click.option("--all", "all_", is_flag=True, help="Clear every repository's entries")
@click.pass_context
def clear(ctx: click.Context, path: str | None, all_: bool) -> None:
    """Clear cached metadata for PATH (default: current directory)."""
    service = get_service(ctx)
    if service.cache is None:
        click.echo("Cache is disabled; nothing to clear.")
        return

    if all_:
        if path:
            raise click.UsageError("PATH cannot be combined with --all")
        with cli_errors():
            service.cache.clear_all()
        click.echo(f"Cleared all cached metadata under {service.cache.base_dir}")
        return

    target = os.path.realpath(path or os.getcwd())
    with cli_errors():
        try:
            target = service.open(target).root
        except NotARepositoryError:
            # Entries of a deleted repository are still keyed on its old root.
            pass
        service.cache.clear(target)
    click.echo(f"Cleared cached metadata for {target}")
