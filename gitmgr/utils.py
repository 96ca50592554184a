"""Terminal output helpers for the gitmgr CLI.

Structured diagnostics go through :mod:`logging`; these helpers format
what the user asked to see.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any

from pydantic_core import to_jsonable_python


def _colors_enabled() -> bool:
    """Color only on a real terminal, and never with NO_COLOR or TERM=dumb."""
    if os.environ.get("NO_COLOR") or os.environ.get("TERM", "dumb") == "dumb":
        return False
    return sys.stdout.isatty()


_ANSI = _colors_enabled()

BOLD = "\033[1m" if _ANSI else ""
GREEN = "\033[92m" if _ANSI else ""
YELLOW = "\033[93m" if _ANSI else ""
RESET = "\033[0m" if _ANSI else ""


def format_kv(key: str, value: Any) -> str:
    return f"  {key}: {value}"


def format_table_row(name: str, *cols: str, name_width: int = 30, color: str = "") -> str:
    """Two-space indent, ``name`` padded to ``name_width``, then ``cols``.

    ``color`` wraps the padded name, so escape codes never count toward
    the column width.
    """
    cell = f"{name:<{name_width}}"
    if color:
        cell = f"{color}{cell}{RESET}"
    return " ".join([f"  {cell}", *cols])


def dump_json(payload: Any) -> str:
    """Render models, lists of models or plain data as indented JSON."""
    return json.dumps(to_jsonable_python(payload), indent=2)
