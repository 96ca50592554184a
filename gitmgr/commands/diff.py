"""Diff command - print the diff between the working tree and refs."""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, get_service, resolve_path
from gitmgr.constants import TIMEOUT_GIT_QUERY
from gitmgr.executor import ExecContext


@click.command()
@click.argument("path", required=False)
@click.option("--base", default="", help="Base ref")
@click.option("--head", default="", help="Head ref (requires --base)")
@click.option("--stat", is_flag=True, help="Show a diffstat instead of the patch")
@click.pass_context
def diff(ctx: click.Context, path: str | None, base: str, head: str, stat: bool) -> None:
    """Show changes (working tree by default)."""
    service = get_service(ctx)
    with cli_errors():
        text = service.diff(
            resolve_path(path), base, head, stat,
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )
    if text:
        click.echo(text.rstrip("\n"))
