"""Remotes command - list configured remotes with credential-free URLs."""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, get_service, resolve_path, use_cache
from gitmgr.constants import TIMEOUT_GIT_QUERY
from gitmgr.executor import ExecContext
from gitmgr.redaction import sanitize_url
from gitmgr.utils import dump_json, format_table_row


@click.command()
@click.argument("path", required=False)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def remotes(ctx: click.Context, path: str | None, json_output: bool) -> None:
    """List remotes."""
    service = get_service(ctx)
    with cli_errors():
        result = service.remotes(
            resolve_path(path),
            use_cache=use_cache(ctx),
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )

    if json_output:
        click.echo(dump_json(result))
        return
    for remote in result:
        fetch_url = sanitize_url(remote.fetch_url or remote.url)
        push_url = sanitize_url(remote.push_url or remote.url)
        click.echo(format_table_row(remote.name, f"{fetch_url} (fetch)", name_width=12))
        click.echo(format_table_row(remote.name, f"{push_url} (push)", name_width=12))
