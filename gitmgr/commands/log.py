"""Log command - show recent commits."""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, get_service, resolve_path, use_cache
from gitmgr.constants import DEFAULT_LOG_LIMIT, TIMEOUT_GIT_QUERY
from gitmgr.executor import ExecContext
from gitmgr.models import CommitInfo
from gitmgr.utils import BOLD, RESET, YELLOW, dump_json


def _format_commit(commit: CommitInfo) -> list[str]:
    lines = [f"{YELLOW}commit {commit.hash}{RESET}"]
    lines.append(f"Author: {commit.author} <{commit.email}>")
    if commit.date is not None:
        lines.append(f"Date:   {commit.date.strftime('%Y-%m-%d %H:%M:%S %z')}")
    lines.append("")
    lines.append(f"    {commit.subject}")
    if commit.body:
        lines.append("")
        lines.extend(f"    {line}" for line in commit.body.splitlines())
    lines.append("")
    return lines


@click.command()
@click.argument("path", required=False)
@click.option(
    "-n", "--max-count", type=click.IntRange(min=1), default=DEFAULT_LOG_LIMIT,
    show_default=True, help="Number of commits to show",
)
@click.option("--oneline", is_flag=True, help="One line per commit")
@click.option("--ref", default="", help="Start from this ref instead of HEAD")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def log(
    ctx: click.Context,
    path: str | None,
    max_count: int,
    oneline: bool,
    ref: str,
    json_output: bool,
) -> None:
    """Show commit history."""
    service = get_service(ctx)
    with cli_errors():
        commits = service.log(
            resolve_path(path),
            ref,
            max_count,
            oneline,
            use_cache=use_cache(ctx),
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )

    if json_output:
        click.echo(dump_json(commits))
        return
    if not commits:
        click.echo("No commits yet")
        return
    for commit in commits:
        if oneline:
            click.echo(f"{BOLD}{commit.short_hash}{RESET} {commit.subject}")
        else:
            for line in _format_commit(commit):
                click.echo(line)
