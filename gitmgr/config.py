"""Configuration loader for gitmgr.

Settings come from three layers, later ones winning:

1. Defaults in :mod:`gitmgr.constants`.
2. An optional YAML file (``GITMGR_CONFIG``, default
   ``~/.config/gitmgr/config.yaml``).
3. ``GITMGR_*`` environment variables.

Example file::

    executor:
      git_binary: /usr/bin/git
      timeout: 60
    cache:
      enabled: true
      ttl_status: 15
    server:
      host: 127.0.0.1
      port: 8080
    logging:
      level: DEBUG
      format: json
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from gitmgr.constants import (
    CACHE_KEY_BRANCHES,
    CACHE_KEY_COMMITS,
    CACHE_KEY_REMOTES,
    CACHE_KEY_STATUS,
    GIT_BINARY,
    MAX_REQUEST_BODY,
    SERVER_HOST,
    SERVER_PORT,
    TIMEOUT_GIT_DEFAULT,
    TTL_BRANCHES,
    TTL_COMMITS,
    TTL_REMOTES,
    TTL_STATUS,
    _env_float,
    _env_int,
    get_cache_root,
    get_config_path,
)
from gitmgr.errors import ConfigError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS = ("json", "text")


@dataclass
class ExecutorConfig:
    """git executor configuration."""

    git_binary: str = GIT_BINARY
    timeout: float = TIMEOUT_GIT_DEFAULT

    def __post_init__(self):
        if not self.git_binary:
            raise ConfigError("executor.git_binary cannot be empty")
        if self.timeout <= 0:
            raise ConfigError(f"executor.timeout must be positive, got {self.timeout}")


@dataclass
class CacheConfig:
    """Metadata cache configuration."""

    enabled: bool = True
    dir: str = ""
    ttl_status: float = TTL_STATUS
    ttl_branches: float = TTL_BRANCHES
    ttl_remotes: float = TTL_REMOTES
    ttl_commits: float = TTL_COMMITS

    def __post_init__(self):
        for name in ("ttl_status", "ttl_branches", "ttl_remotes", "ttl_commits"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigError(f"cache.{name} must not be negative, got {value}")

    def cache_dir(self) -> Path:
        return Path(self.dir).expanduser() if self.dir else get_cache_root()

    def ttls(self) -> Dict[str, float]:
        return {
            CACHE_KEY_STATUS: self.ttl_status,
            CACHE_KEY_BRANCHES: self.ttl_branches,
            CACHE_KEY_REMOTES: self.ttl_remotes,
            CACHE_KEY_COMMITS: self.ttl_commits,
        }


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = SERVER_HOST
    port: int = SERVER_PORT
    max_request_body: int = MAX_REQUEST_BODY

    def __post_init__(self):
        if not self.host:
            raise ConfigError("server.host cannot be empty")
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"server.port must be between 0 and 65535, got {self.port}")
        if self.max_request_body <= 0:
            raise ConfigError(
                f"server.max_request_body must be positive, got {self.max_request_body}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "text"

    def __post_init__(self):
        self.level = self.level.upper()
        self.format = self.format.lower()
        if self.level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid logging.level '{self.level}'. "
                f"Valid levels: {', '.join(VALID_LOG_LEVELS)}"
            )
        if self.format not in VALID_LOG_FORMATS:
            raise ConfigError(
                f"Invalid logging.format '{self.format}'. "
                f"Valid formats: {', '.join(VALID_LOG_FORMATS)}"
            )


@dataclass
class GitMgrConfig:
    """Complete gitmgr configuration."""

    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. A missing file yields an empty dict.

    Raises:
        ConfigError: If the file cannot be read or parsed, or is not a mapping.
    """
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid configuration file {path}: expected YAML dictionary, got {type(data).__name__}"
        )
    return data


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a dictionary")
    return value


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config(path: Optional[str | Path] = None) -> GitMgrConfig:
    """Load configuration from file and environment.

    Args:
        path: Optional YAML path. Defaults to ``GITMGR_CONFIG`` or
            ``~/.config/gitmgr/config.yaml``; a missing file is not an error.

    Raises:
        ConfigError: If a value is malformed or out of range.
    """
    data = _load_yaml_file(Path(path) if path else get_config_path())

    executor = _section(data, "executor")
    cache = _section(data, "cache")
    server = _section(data, "server")
    logging_ = _section(data, "logging")

    try:
        return GitMgrConfig(
            executor=ExecutorConfig(
                git_binary=os.environ.get(
                    "GITMGR_GIT_BINARY", str(executor.get("git_binary", GIT_BINARY))
                ),
                timeout=_env_float(
                    "GITMGR_GIT_TIMEOUT", float(executor.get("timeout", TIMEOUT_GIT_DEFAULT))
                ),
            ),
            cache=CacheConfig(
                enabled=_env_bool("GITMGR_CACHE_ENABLED", bool(cache.get("enabled", True))),
                dir=os.environ.get("GITMGR_CACHE_DIR", str(cache.get("dir", ""))),
                ttl_status=_env_float(
                    "GITMGR_TTL_STATUS", float(cache.get("ttl_status", TTL_STATUS))
                ),
                ttl_branches=_env_float(
                    "GITMGR_TTL_BRANCHES", float(cache.get("ttl_branches", TTL_BRANCHES))
                ),
                ttl_remotes=_env_float(
                    "GITMGR_TTL_REMOTES", float(cache.get("ttl_remotes", TTL_REMOTES))
                ),
                ttl_commits=_env_float(
                    "GITMGR_TTL_COMMITS", float(cache.get("ttl_commits", TTL_COMMITS))
                ),
            ),
            server=ServerConfig(
                host=os.environ.get("GITMGR_HOST", str(server.get("host", SERVER_HOST))),
                port=_env_int("GITMGR_PORT", int(server.get("port", SERVER_PORT))),
                max_request_body=int(server.get("max_request_body", MAX_REQUEST_BODY)),
            ),
            logging=LoggingConfig(
                level=os.environ.get("GITMGR_LOG_LEVEL", str(logging_.get("level", "WARNING"))),
                format=os.environ.get("GITMGR_LOG_FORMAT", str(logging_.get("format", "text"))),
            ),
        )
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Invalid configuration value: {e}")


@lru_cache(maxsize=1)
def get_config() -> GitMgrConfig:
    """Return the process-wide configuration, loading it on first use."""
    return load_config()
