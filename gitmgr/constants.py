"""Configuration defaults for gitmgr.

Timeouts, cache TTLs and filesystem locations shared by the executor,
the cache and the consumers. Values that users may want to tune are
read through :mod:`gitmgr.config`; this module only holds defaults.
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_int(key: str, default: int) -> int:
    """Read an integer from an environment variable, returning default on parse failure."""
    try:
        return int(os.environ.get(key, str(default)))
    except (ValueError, TypeError):
        return default


def _env_float(key: str, default: float) -> float:
    """Read a float from an environment variable, returning default on parse failure."""
    try:
        return float(os.environ.get(key, str(default)))
    except (ValueError, TypeError):
        return default


# ============================================================================
# Directory & Path Constants
# ============================================================================


def get_cache_root() -> Path:
    """Get the base directory for the metadata cache.

    Respects GITMGR_CACHE_DIR, then XDG_CACHE_HOME. Defaults to
    ~/.gitmgr/cache if neither is set.

    Returns:
        Path to the cache root directory
    """
    override = os.environ.get("GITMGR_CACHE_DIR")
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg) / "gitmgr"
    return Path.home() / ".gitmgr" / "cache"


def get_config_path() -> Path:
    """Get the path of the optional YAML configuration file.

    Returns:
        Path from GITMGR_CONFIG, or ~/.config/gitmgr/config.yaml
    """
    override = os.environ.get("GITMGR_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".config" / "gitmgr" / "config.yaml"


# ============================================================================
# Executor Constants
# ============================================================================

GIT_BINARY: str = "git"
"""Name (or path) of the git executable."""

SECURE_PATH_DIRS: tuple[str, ...] = (
    "/usr/bin",
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/bin",
)
"""Only directories placed on PATH for the child process."""

SHELL_METACHARACTERS: str = ";|&$`"
"""Characters that cause an argument token to be dropped."""

REDACTION_MASK: str = "***"

# ============================================================================
# Subprocess Timeout Constants (seconds)
# ============================================================================

TIMEOUT_GIT_DEFAULT: float = 120.0
"""Applied when a call carries no deadline of its own."""

TIMEOUT_GIT_QUERY: float = 30.0
"""Used by consumers for status/log/diff/open style queries."""

TIMEOUT_GIT_TRANSFER: float = 120.0
"""Used by consumers for fetch/pull/push and raw commands."""

TIMEOUT_GIT_CLONE: float = 300.0
"""Used by consumers for clone."""

# ============================================================================
# Cache TTL Constants (seconds)
# ============================================================================

TTL_STATUS: float = 30.0
"""Status changes most often and drives user-visible correctness."""

TTL_BRANCHES: float = 300.0
TTL_REMOTES: float = 600.0
TTL_COMMITS: float = 120.0

CACHE_KEY_STATUS = "status"
CACHE_KEY_BRANCHES = "branches"
CACHE_KEY_REMOTES = "remotes"
CACHE_KEY_COMMITS = "commits"

# ============================================================================
# HTTP Server Constants
# ============================================================================

SERVER_HOST: str = "127.0.0.1"
SERVER_PORT: int = 8080
MAX_REQUEST_BODY: int = 256 * 1024
DEFAULT_LOG_LIMIT: int = 10
