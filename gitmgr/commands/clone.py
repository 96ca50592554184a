"""Clone command - clone a remote repository into a local directory."""

from __future__ import annotations

import click

from gitmgr.commands._helpers import cli_errors, derive_clone_path, get_service
from gitmgr.constants import TIMEOUT_GIT_CLONE
from gitmgr.executor import ExecContext
from gitmgr.models import CloneOptions
from gitmgr.redaction import sanitize_url


@click.command()
@click.argument("url")
@click.argument("path", required=False)
@click.option("--branch", "-b", default="", help="Branch to check out")
@click.option("--depth", type=click.IntRange(min=0), default=0, help="Shallow clone depth")
@click.option("--recursive", is_flag=True, help="Also clone submodules")
@click.pass_context
def clone(
    ctx: click.Context,
    url: str,
    path: str | None,
    branch: str,
    depth: int,
    recursive: bool,
) -> None:
    """Clone a repository (PATH defaults to the URL's last segment)."""
    dest = path or derive_clone_path(url)
    service = get_service(ctx)

    click.echo(f"Cloning {sanitize_url(url)} to {dest}...")
    opts = CloneOptions(
        url=url,
        path=dest,
        branch=branch,
        depth=depth,
        recursive=recursive,
        progress=True,
    )
    with cli_errors():
        repo = service.clone(opts, ExecContext.with_timeout(TIMEOUT_GIT_CLONE))
    click.echo(f"Repository cloned successfully to {repo.path}")
