"""Status command - show branch, upstream and working-tree changes.

Output follows ``git status`` closely enough to be familiar:

    On branch main
    Your branch is ahead by 2 commits with 'origin/main'

    Changes in working directory:
       M README.md
      ?? notes.txt
"""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, get_service, resolve_path, use_cache
from gitmgr.constants import TIMEOUT_GIT_QUERY
from gitmgr.executor import ExecContext
from gitmgr.models import RepoStatus, TrackingState
from gitmgr.utils import dump_json


def format_tracking(status: RepoStatus) -> str | None:
    """Describe the branch's relation to its upstream, or None without one."""
    if not status.upstream:
        return None
    if status.tracking == TrackingState.UNKNOWN:
        return f"Your branch tracks '{status.upstream}' (ahead/behind unknown)"
    if status.ahead and status.behind:
        relation = f"ahead by {status.ahead} and behind by {status.behind} commits"
    elif status.ahead:
        relation = f"ahead by {status.ahead} commits"
    elif status.behind:
        relation = f"behind by {status.behind} commits"
    else:
        relation = "up to date"
    return f"Your branch is {relation} with '{status.upstream}'"


def render_status(status: RepoStatus) -> list[str]:
    if status.branch:
        lines = [f"On branch {status.branch}"]
    else:
        lines = ["HEAD detached"]
    tracking = format_tracking(status)
    if tracking:
        lines.append(tracking)

    if status.clean:
        lines.append("\nnothing to commit, working tree clean")
    else:
        lines.append("\nChanges in working directory:")
        for f in status.files:
            name = f"{f.orig_path} -> {f.path}" if f.orig_path else f.path
            lines.append(f"  {f.status} {name}")
    return lines


@click.command()
@click.argument("path", required=False)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, path: str | None, json_output: bool) -> None:
    """Show repository status (PATH defaults to the current directory)."""
    service = get_service(ctx)
    with cli_errors():
        result = service.status(
            resolve_path(path),
            use_cache=use_cache(ctx),
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )

    if json_output:
        click.echo(dump_json(result))
        return
    for line in render_status(result):
        click.echo(line)
