"""Shared helper functions for gitmgr commands."""
from __future__ import annotations

import contextlib
import os
from collections.abc import Iterator
from urllib.parse import urlparse

import click

from gitmgr.errors import GitMgrError
from gitmgr.service import RepoService, create_service


def get_service(ctx: click.Context) -> RepoService:
    """Return the service stored on the root context, building it on first use.

    Tests inject a ready-made service through ``obj={"service": ...}``.
    """
    obj = ctx.find_root().ensure_object(dict)
    service = obj.get("service")
    if service is None:
        service = obj["service"] = create_service()
    return service


def use_cache(ctx: click.Context) -> bool:
    """Whether reads may be answered from the cache (``--no-cache`` clears it)."""
    obj = ctx.find_root().obj or {}
    return obj.get("use_cache", True)


@contextlib.contextmanager
def cli_errors() -> Iterator[None]:
    """Report gitmgr errors as ``Error: ...`` on stderr and exit 1."""
    try:
        yield
    except GitMgrError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def derive_clone_path(url: str) -> str:
    """Destination directory for a clone when none is given.

    Uses the last path segment of *url* with a trailing ``.git`` removed;
    falls back to ``repo`` when nothing usable remains.

    Examples:
        >>> derive_clone_path("https://github.com/user/project.git")
        'project'
        >>> derive_clone_path("git@github.com:user/tool")
        'tool'
    """
    path = urlparse(url).path if "://" in url else url
    # scp-like syntax: host:owner/name
    if "://" not in url and ":" in path:
        path = path.split(":", 1)[1]
    name = path.rstrip("/").rsplit("/", 1)[-1]
    name = name.removesuffix(".git")
    if not name or name in (".", ".."):
        return "repo"
    return name


def resolve_path(path: str | None) -> str:
    """Default a repository path argument to the working directory."""
    return path or os.getcwd()
