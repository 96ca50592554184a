"""Local HTTP API for gitmgr.

A thin Flask layer over :class:`~gitmgr.service.RepoService`. Every
response uses the envelope ``{"success": true, "data": ...}`` or
``{"success": false, "error": "..."}``.

Status codes:
    200  success
    400  malformed or missing input, or the path is not a repository
    404  unknown route
    405  wrong method
    413  request body too large
    500  the git operation failed, or an unexpected error

The API has no authentication; bind it to loopback only.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import click
import pydantic
from flask import Flask, Response, jsonify, request
from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python
from werkzeug.exceptions import HTTPException

from gitmgr.config import GitMgrConfig, get_config
from gitmgr.constants import (
    DEFAULT_LOG_LIMIT,
    TIMEOUT_GIT_CLONE,
    TIMEOUT_GIT_QUERY,
    TIMEOUT_GIT_TRANSFER,
)
from gitmgr.errors import ConfigError, GitMgrError, NotARepositoryError, ValidationError
from gitmgr.executor import ExecContext
from gitmgr.logging_config import flask_request_middleware, setup_logging
from gitmgr.models import CloneOptions
from gitmgr.service import RepoService, create_service

logger = logging.getLogger(__name__)

# Errors caused by the caller's input rather than by git.
_CLIENT_ERRORS = (ValidationError, NotARepositoryError)

_TRUE_VALUES = ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Request Bodies
# ---------------------------------------------------------------------------


class CloneRequest(BaseModel):
    url: str = ""
    path: str = ""
    branch: str = ""
    depth: int = 0
    sparse: list[str] = Field(default_factory=list)
    recursive: bool = False


class SyncRequest(BaseModel):
    """Body of /v1/fetch, /v1/pull and /v1/push."""

    path: str = ""
    remote: str = ""
    branch: str = ""
    force: bool = False
    prune: bool = False
    tags: bool = False
    rebase: bool = False


class RawRequest(BaseModel):
    path: str = ""
    args: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Flask Application
# ---------------------------------------------------------------------------


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def create_app(
    service: Optional[RepoService] = None,
    *,
    config: Optional[GitMgrConfig] = None,
) -> Flask:
    """Create the gitmgr API Flask application.

    Args:
        service: Repository service (defaults to one built from config).
        config: Configuration (defaults to :func:`get_config`).
    """
    config = config or get_config()
    svc = service or create_service(config)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.server.max_request_body
    flask_request_middleware(app)

    def _make_error(message: str, status: int) -> Response:
        resp = jsonify({"success": False, "error": message})
        resp.status_code = status
        return resp

    def _ok(data: Any) -> Response:
        return jsonify({"success": True, "data": to_jsonable_python(data)})

    def _query_path() -> str:
        path = request.args.get("path", "")
        if not path:
            raise ValidationError("path parameter is required")
        return path

    def _body(model: type[BaseModel]) -> Any:
        raw = request.get_json(silent=True)
        if not isinstance(raw, dict):
            raise ValidationError("Invalid JSON request")
        try:
            return model.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid JSON request: {exc.error_count()} invalid field(s)") from exc

    # --- Queries -----------------------------------------------------------

    @app.route("/v1/repo", methods=["GET"])
    def repo_info():
        path = _query_path()
        return _ok(svc.open(path, ExecContext.with_timeout(TIMEOUT_GIT_QUERY)))

    @app.route("/v1/status", methods=["GET"])
    def status():
        path = _query_path()
        return _ok(svc.status(path, ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY)))

    @app.route("/v1/log", methods=["GET"])
    def log():
        path = _query_path()
        requested = request.args.get("max", type=int)
        max_count = requested if requested and requested > 0 else DEFAULT_LOG_LIMIT
        commits = svc.log(
            path,
            request.args.get("ref", ""),
            max_count,
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )
        return _ok(commits)

    @app.route("/v1/diff", methods=["GET"])
    def diff():
        path = _query_path()
        text = svc.diff(
            path,
            request.args.get("base", ""),
            request.args.get("head", ""),
            _flag(request.args.get("stat")),
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        )
        return _ok({"diff": text})

    @app.route("/v1/branches", methods=["GET"])
    def branches():
        path = _query_path()
        return _ok(svc.branches(
            path,
            _flag(request.args.get("all")),
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY),
        ))

    @app.route("/v1/remotes", methods=["GET"])
    def remotes():
        path = _query_path()
        return _ok(svc.remotes(path, ctx=ExecContext.with_timeout(TIMEOUT_GIT_QUERY)))

    # --- Mutations ---------------------------------------------------------

    @app.route("/v1/clone", methods=["POST"])
    def clone():
        req = _body(CloneRequest)
        if not req.url or not req.path:
            raise ValidationError("url and path are required")
        opts = CloneOptions(
            url=req.url,
            path=req.path,
            branch=req.branch,
            depth=req.depth,
            sparse=req.sparse,
            recursive=req.recursive,
            progress=True,
        )
        return _ok(svc.clone(opts, ExecContext.with_timeout(TIMEOUT_GIT_CLONE)))

    @app.route("/v1/fetch", methods=["POST"])
    def fetch():
        req = _body(SyncRequest)
        if not req.path:
            raise ValidationError("path is required")
        svc.fetch(
            req.path, req.remote, req.prune, req.tags,
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_TRANSFER),
        )
        return _ok({"message": "Fetch completed successfully"})

    @app.route("/v1/pull", methods=["POST"])
    def pull():
        req = _body(SyncRequest)
        if not req.path:
            raise ValidationError("path is required")
        svc.pull(
            req.path, req.remote, req.branch, req.rebase,
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_TRANSFER),
        )
        return _ok({"message": "Pull completed successfully"})

    @app.route("/v1/push", methods=["POST"])
    def push():
        req = _body(SyncRequest)
        if not req.path:
            raise ValidationError("path is required")
        svc.push(
            req.path, req.remote, req.branch, req.force, req.tags,
            ctx=ExecContext.with_timeout(TIMEOUT_GIT_TRANSFER),
        )
        return _ok({"message": "Push completed successfully"})

    @app.route("/v1/raw", methods=["POST"])
    def raw():
        req = _body(RawRequest)
        if not req.path or not req.args:
            raise ValidationError("path and args are required")
        result = svc.raw(req.path, req.args, ctx=ExecContext.with_timeout(TIMEOUT_GIT_TRANSFER))
        return _ok(result)

    @app.route("/health", methods=["GET"])
    def health():
        return _ok({
            "status": "healthy",
            "time": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        })

    # --- Error mapping -----------------------------------------------------

    @app.errorhandler(GitMgrError)
    def gitmgr_error(e: GitMgrError):
        if isinstance(e, _CLIENT_ERRORS):
            return _make_error(str(e), 400)
        logger.warning("%s %s failed: %s", request.method, request.path, e)
        return _make_error(str(e), 500)

    @app.errorhandler(404)
    def not_found(e):
        return _make_error("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _make_error("Method not allowed", 405)

    @app.errorhandler(413)
    def request_too_large(e):
        return _make_error(
            f"Request body too large (max {config.server.max_request_body} bytes)", 413
        )

    @app.errorhandler(Exception)
    def unexpected_error(e: Exception):
        if isinstance(e, HTTPException):
            return _make_error(e.description or e.name, e.code or 500)
        logger.exception("%s %s raised an unexpected error", request.method, request.path)
        return _make_error("Internal server error", 500)

    return app


# ---------------------------------------------------------------------------
# Server Entry Point
# ---------------------------------------------------------------------------


def run_server(
    app: Optional[Flask] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> None:
    """Serve the API with werkzeug's threaded server until interrupted.

    Args:
        app: Flask application (creates default if None).
        host: Bind address (defaults to config).
        port: TCP port (defaults to config).
    """
    from werkzeug.serving import make_server

    config = get_config()
    host = host or config.server.host
    port = config.server.port if port is None else port
    if app is None:
        app = create_app(config=config)

    logger.info("Starting gitmgr API server on %s:%d", host, port)
    server = make_server(host, port, app, threaded=True)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("gitmgr API server shutting down")
    finally:
        server.server_close()


@click.command("gitmgr-server")
@click.option("--host", default=None, help="Bind address (default from config, 127.0.0.1).")
@click.option("--port", type=int, default=None, help="TCP port (default from config, 8080).")
@click.option("--log-level", default=None, help="Log level (default from config).")
@click.version_option(package_name="gitmgr", prog_name="gitmgr-server")
def main(host: Optional[str], port: Optional[int], log_level: Optional[str]) -> None:
    """Run the gitmgr HTTP API server."""
    try:
        config = get_config()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(level=log_level or config.logging.level, format_type=config.logging.format)
    run_server(host=host, port=port)


if __name__ == "__main__":
    main()
