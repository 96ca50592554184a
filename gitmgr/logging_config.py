"""Logging setup for the gitmgr entry points.

Two output formats are available:

- ``text``: one human-readable line per record, request ID in brackets
- ``json``: one JSON object per record, with correlation context and any
  ``extra=`` fields merged in

Correlation context (request ID, repository path, anything else a caller
sets) lives in a context variable, so concurrent requests served by the
threaded server never see each other's IDs.

Nothing is configured at import time; ``gitmgr`` and ``gitmgr-server``
call :func:`setup_logging`, library modules only call
``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar, Token
from typing import Any, Optional

from gitmgr.redaction import scrub_output

_context: ContextVar[dict[str, Any]] = ContextVar("gitmgr_log_context", default={})

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "text"

# Attributes every LogRecord has; anything else came from ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


def set_context(
    request_id: Optional[str] = None,
    repo_path: Optional[str] = None,
    **extra: Any,
) -> None:
    """Merge values into the correlation context. None values are ignored."""
    updates = {"request_id": request_id, "repo_path": repo_path, **extra}
    merged = dict(_context.get())
    merged.update({k: v for k, v in updates.items() if v is not None})
    _context.set(merged)


def get_context() -> dict[str, Any]:
    return dict(_context.get())


def clear_context() -> None:
    _context.set({})


class LogContext:
    """Scope correlation values to a ``with`` block.

    Usage:
        with LogContext(repo_path="/src/app", op="clone"):
            logger.info("Cloning")
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        repo_path: Optional[str] = None,
        **extra: Any,
    ):
        self._values = {"request_id": request_id, "repo_path": repo_path, **extra}
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        merged = dict(_context.get())
        merged.update({k: v for k, v in self._values.items() if v is not None})
        self._token = _context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class _GitMgrFormatter(logging.Formatter):
    """Shared options and helpers; messages are always credential-scrubbed."""

    def __init__(self, include_timestamp: bool = True, include_location: bool = False):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_location = include_location

    @staticmethod
    def timestamp(record: logging.LogRecord) -> str:
        base = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
        return f"{base}.{int(record.msecs * 1000):06d}Z"

    @staticmethod
    def message(record: logging.LogRecord) -> str:
        return scrub_output(record.getMessage())


class JSONFormatter(_GitMgrFormatter):
    """One JSON object per record.

    Example::

        {"timestamp": "2024-01-15T10:30:00.123000Z", "level": "INFO",
         "logger": "gitmgr.execgit", "message": "Cloning ...",
         "request_id": "req-123", "location": "execgit.py:42:clone",
         "url": "https://***@github.com/org/repo.git"}
    """

    def __init__(self, include_timestamp: bool = True, include_location: bool = True):
        super().__init__(include_timestamp, include_location)

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {}
        if self.include_timestamp:
            entry["timestamp"] = self.timestamp(record)
        entry["level"] = record.levelname
        entry["logger"] = record.name
        entry["message"] = self.message(record)
        entry.update(get_context())
        if self.include_location:
            entry["location"] = f"{record.filename}:{record.lineno}:{record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(entry, default=str)


class TextFormatter(_GitMgrFormatter):
    """``<timestamp> LEVEL [logger] [request-id] message``"""

    def format(self, record: logging.LogRecord) -> str:
        fields = [self.timestamp(record)] if self.include_timestamp else []
        fields += [record.levelname, f"[{record.name}]"]
        request_id = _context.get().get("request_id")
        if request_id:
            fields.append(f"[{request_id}]")
        fields.append(self.message(record))
        if self.include_location:
            fields.append(f"({record.filename}:{record.lineno})")

        line = " ".join(fields)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


_FORMATTERS: dict[str, type[_GitMgrFormatter]] = {
    "json": JSONFormatter,
    "text": TextFormatter,
}


def setup_logging(
    level: Optional[str] = None,
    format_type: Optional[str] = None,
    include_timestamp: bool = True,
    include_location: Optional[bool] = None,
) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Level name; falls back to ``GITMGR_LOG_LEVEL``, then WARNING.
        format_type: ``json`` or ``text``; falls back to ``GITMGR_LOG_FORMAT``,
            then ``text``. Unknown values use ``text``.
        include_timestamp: Prefix records with a UTC timestamp.
        include_location: Add file/line information. Each formatter has
            its own default when this is None.
    """
    level = level or os.environ.get("GITMGR_LOG_LEVEL") or DEFAULT_LOG_LEVEL
    format_type = format_type or os.environ.get("GITMGR_LOG_FORMAT") or DEFAULT_LOG_FORMAT

    formatter_cls = _FORMATTERS.get(format_type.lower(), TextFormatter)
    options: dict[str, Any] = {"include_timestamp": include_timestamp}
    if include_location is not None:
        options["include_location"] = include_location

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter_cls(**options))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.handlers.clear()
    root.addHandler(handler)


# ---------------------------------------------------------------------------
# Flask integration
# ---------------------------------------------------------------------------


def generate_request_id() -> str:
    return str(uuid.uuid4())


def flask_request_middleware(app, logger: Optional[logging.Logger] = None) -> None:
    """Attach request-ID propagation and request logging to a Flask app.

    The ``X-Request-ID`` header is honoured when present and generated
    otherwise, stored in the logging context together with the ``path``
    query argument, and echoed back on the response.
    """
    from flask import g, request

    logger = logger or logging.getLogger("gitmgr.http")

    @app.before_request
    def _start_request():
        g.request_id = request.headers.get("X-Request-ID") or generate_request_id()
        g.request_started = time.monotonic()
        set_context(
            request_id=g.request_id,
            repo_path=request.args.get("path") or None,
            method=request.method,
            path=request.path,
        )
        logger.info("%s %s", request.method, request.path, extra={"event": "request_start"})

    @app.after_request
    def _finish_request(response):
        started = g.get("request_started")
        logger.info(
            "%s %s -> %d",
            request.method,
            request.path,
            response.status_code,
            extra={
                "event": "request_complete",
                "status_code": response.status_code,
                "duration_ms": None if started is None else (time.monotonic() - started) * 1000,
            },
        )
        if "request_id" in g:
            response.headers["X-Request-ID"] = g.request_id
        return response

    @app.teardown_request
    def _end_request(exception=None):
        if exception is not None:
            logger.error("Request failed: %s", exception, exc_info=exception)
        clear_context()
