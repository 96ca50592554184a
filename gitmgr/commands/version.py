"""Version command."""

from __future__ import annotations

import click

from gitmgr import __version__


@click.command()
def version() -> None:
    """Show version information."""
    click.echo(f"gitmgr version {__version__}")
