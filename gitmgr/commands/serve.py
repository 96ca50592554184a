"""Serve command - run the HTTP API in the foreground."""

from __future__ import annotations

import click


@click.command()
@click.option("--host", default=None, help="Bind address (default from config)")
@click.option("--port", type=click.IntRange(0, 65535), default=None, help="TCP port (default from config)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Serve the local HTTP API."""
    from gitmgr.api import create_app, run_server
    from gitmgr.commands._helpers import get_service

    app = create_app(get_service(ctx))
    run_server(app, host=host, port=port)
