"""Branches command - list local (and optionally remote) branches."""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, get_service, resolve_path, use_cache
from gitmgr.constants import TIMEOUT_GIT_QUERY
from gitmgr.executor import ExecContext
from gitmgr.models import BranchInfo
from gitmgr.utils import GREEN, dump_json, format_table_row


def _describe(branch: BranchInfo) -> str:
    if not branch.upstream:
        return ""
    counts = []
    if branch.ahead:
        counts.append(f"ahead {branch.ahead}")
    if branch.behind:
        counts.append(f"behind {branch.behind}")
    suffix = f": {', '.join(counts)}" if counts else ""
    return f"[{branch.upstream}{suffix}]"


@click.command()
@click.argument("path", required=False)
@click.option("--all", "-a", "all_", is_flag=True, help="Include remote-tracking branches")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def branches(ctx: click.Context, path: str | None, all_: bool, json_output: bool) -> None:
    """List branches."""
    service = get_service(ctx)
    with cli_errors():
        result = service.branches(
            resolve_path(path),
            all_,
            use_cache=use_cache(ctx),
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )

    if json_output:
        click.echo(dump_json(result))
        return
    for branch in result:
        name = f"{branch.remote}/{branch.name}" if branch.remote else branch.name
        marker = "*" if branch.current else " "
        color = GREEN if branch.current else ""
        click.echo(f"{marker}{format_table_row(name, _describe(branch), color=color).rstrip()}")
