"""Open command - resolve a path to a repository and describe it."""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, get_service
from gitmgr.constants import TIMEOUT_GIT_QUERY
from gitmgr.executor import ExecContext
from gitmgr.utils import dump_json, format_kv


@click.command("open")
@click.argument("path")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def open_cmd(ctx: click.Context, path: str, json_output: bool) -> None:
    """Open an existing repository."""
    service = get_service(ctx)
    with cli_errors():
        repo = service.open(path, ExecContext.with_timeout(TIMEOUT_GIT_QUERY))

    if json_output:
        click.echo(dump_json(repo))
        return

    click.echo("Repository opened successfully:")
    click.echo(format_kv("Path", repo.path))
    click.echo(format_kv("Git Dir", repo.git_dir))
    click.echo(format_kv("Bare", str(repo.is_bare).lower()))
    click.echo(format_kv("Worktree", str(repo.is_worktree).lower()))
