"""Command-line interface for gitmgr.

Subcommands live in :mod:`gitmgr.commands` and are imported on first
use, so ``gitmgr --help`` and ``gitmgr version`` never pay for Flask or
the backend.
"""

from __future__ import annotations

import importlib
import logging
import sys

import click

from gitmgr.config import get_config
from gitmgr.errors import ConfigError
from gitmgr.logging_config import setup_logging

logger = logging.getLogger(__name__)

# alias -> (command, arguments inserted before the user's own)
ALIASES: dict[str, tuple[str, list[str]]] = {
    "st": ("status", []),
    "info": ("open", []),
}

# command -> (module, attribute)
_LAZY_COMMANDS: dict[str, tuple[str, str]] = {
    "branches": ("gitmgr.commands.branches", "branches"),
    "cache": ("gitmgr.commands.cache_cmd", "cache"),
    "clone": ("gitmgr.commands.clone", "clone"),
    "diff": ("gitmgr.commands.diff", "diff"),
    "log": ("gitmgr.commands.log", "log"),
    "open": ("gitmgr.commands.open_cmd", "open_cmd"),
    "remotes": ("gitmgr.commands.remotes", "remotes"),
    "serve": ("gitmgr.commands.serve", "serve"),
    "status": ("gitmgr.commands.status", "status"),
    "version": ("gitmgr.commands.version", "version"),
}


class GitMgrGroup(click.Group):
    """Group that loads subcommands lazily and expands ``ALIASES``."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(set(self.commands) | set(_LAZY_COMMANDS))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in self.commands and cmd_name in _LAZY_COMMANDS:
            module_name, attr = _LAZY_COMMANDS[cmd_name]
            self.add_command(getattr(importlib.import_module(module_name), attr), cmd_name)
        return self.commands.get(cmd_name)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if not args:
            return super().resolve_command(ctx, args)

        name, rest = args[0], list(args[1:])
        if name in ALIASES:
            canonical, inserted = ALIASES[name]
            logger.debug("Expanding alias %s -> %s", name, canonical)
            name, rest = canonical, inserted + rest

        cmd = self.get_command(ctx, name)
        if cmd is None:
            ctx.fail(f"Unknown command '{name}'. Run 'gitmgr --help' for available commands.")
        return name, cmd, rest


@click.group(cls=GitMgrGroup, invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--no-cache", is_flag=True, help="Bypass the metadata cache for reads.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, no_cache: bool) -> None:
    """gitmgr - inspect and manage git repositories."""
    ctx.ensure_object(dict)["use_cache"] = not no_cache
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def main() -> None:
    """Console-script entry point.

    Runs Click with ``standalone_mode=False`` and maps every failure to
    exit status 1, including usage errors Click would report as 2.
    """
    try:
        config = get_config()
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    setup_logging(level=config.logging.level, format_type=config.logging.format)

    try:
        result = cli(standalone_mode=False)
    except click.UsageError as exc:
        click.echo(f"Error: {exc.format_message()}", err=True)
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted.", err=True)
        sys.exit(1)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        sys.exit(1 if code == 2 else code)
    if isinstance(result, int):
        sys.exit(result)


if __name__ == "__main__":
    main()
