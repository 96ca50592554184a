"""Unit tests for gitmgr.config and the defaults in gitmgr.constants."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitmgr.config import (
    CacheConfig,
    ExecutorConfig,
    LoggingConfig,
    ServerConfig,
    get_config,
    load_config,
)
from gitmgr.constants import get_cache_root, get_config_path
from gitmgr.errors import ConfigError

_ENV_VARS = (
    "GITMGR_CONFIG",
    "GITMGR_GIT_BINARY",
    "GITMGR_GIT_TIMEOUT",
    "GITMGR_CACHE_ENABLED",
    "GITMGR_CACHE_DIR",
    "GITMGR_TTL_STATUS",
    "GITMGR_TTL_BRANCHES",
    "GITMGR_TTL_REMOTES",
    "GITMGR_TTL_COMMITS",
    "GITMGR_HOST",
    "GITMGR_PORT",
    "GITMGR_LOG_LEVEL",
    "GITMGR_LOG_FORMAT",
    "XDG_CACHE_HOME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    get_config.cache_clear()
    yield
    get_config.cache_clear()


class TestDefaults:
    def test_no_file(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config.executor.git_binary == "git"
        assert config.executor.timeout == 120.0
        assert config.cache.enabled
        assert config.cache.ttls() == {
            "status": 30.0,
            "branches": 300.0,
            "remotes": 600.0,
            "commits": 120.0,
        }
        assert (config.server.host, config.server.port) == ("127.0.0.1", 8080)
        assert (config.logging.level, config.logging.format) == ("WARNING", "text")

    def test_cache_root_fallbacks(self, monkeypatch, tmp_path):
        assert get_cache_root() == tmp_path / "home" / ".gitmgr" / "cache"
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
        assert get_cache_root() == tmp_path / "xdg" / "gitmgr"
        monkeypatch.setenv("GITMGR_CACHE_DIR", str(tmp_path / "explicit"))
        assert get_cache_root() == tmp_path / "explicit"

    def test_config_path(self, monkeypatch, tmp_path):
        assert get_config_path() == tmp_path / "home" / ".config" / "gitmgr" / "config.yaml"
        monkeypatch.setenv("GITMGR_CONFIG", "/etc/gitmgr.yaml")
        assert get_config_path() == Path("/etc/gitmgr.yaml")


class TestYamlFile:
    def test_sections(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "executor:\n"
            "  git_binary: /usr/local/bin/git\n"
            "  timeout: 60\n"
            "cache:\n"
            "  enabled: false\n"
            "  dir: ~/gm-cache\n"
            "  ttl_status: 15\n"
            "server:\n"
            "  port: 9090\n"
            "logging:\n"
            "  level: debug\n"
            "  format: JSON\n"
        )
        config = load_config(path)
        assert config.executor.git_binary == "/usr/local/bin/git"
        assert config.executor.timeout == 60.0
        assert not config.cache.enabled
        assert config.cache.ttl_status == 15.0
        assert config.cache.cache_dir() == tmp_path / "home" / "gm-cache"
        assert config.server.port == 9090
        assert (config.logging.level, config.logging.format) == ("DEBUG", "json")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).server.port == 8080

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("executor: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_section_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("cache: yes\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_wrong_value_type(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  port: eighty\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_file_from_env(self, monkeypatch, tmp_path):
        path = tmp_path / "env.yaml"
        path.write_text("server:\n  port: 7000\n")
        monkeypatch.setenv("GITMGR_CONFIG", str(path))
        assert get_config().server.port == 7000


class TestEnvironmentOverrides:
    def test_env_beats_file(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  port: 9090\ncache:\n  ttl_remotes: 10\n")
        monkeypatch.setenv("GITMGR_PORT", "9191")
        monkeypatch.setenv("GITMGR_TTL_REMOTES", "20")
        monkeypatch.setenv("GITMGR_CACHE_ENABLED", "false")
        monkeypatch.setenv("GITMGR_LOG_LEVEL", "info")
        config = load_config(path)
        assert config.server.port == 9191
        assert config.cache.ttl_remotes == 20.0
        assert not config.cache.enabled
        assert config.logging.level == "INFO"

    def test_unparseable_number_keeps_default(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GITMGR_GIT_TIMEOUT", "soon")
        assert load_config(tmp_path / "none.yaml").executor.timeout == 120.0

    def test_get_config_is_memoised(self):
        assert get_config() is get_config()


class TestValidation:
    def test_executor(self):
        with pytest.raises(ConfigError):
            ExecutorConfig(git_binary="")
        with pytest.raises(ConfigError):
            ExecutorConfig(timeout=0)

    def test_negative_ttl(self):
        with pytest.raises(ConfigError):
            CacheConfig(ttl_commits=-1)

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port):
        with pytest.raises(ConfigError):
            ServerConfig(port=port)

    def test_logging(self):
        with pytest.raises(ConfigError):
            LoggingConfig(level="LOUD")
        with pytest.raises(ConfigError):
            LoggingConfig(format="xml")

    def test_invalid_env_level(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GITMGR_LOG_LEVEL", "chatty")
        with pytest.raises(ConfigError):
            load_config(tmp_path / "none.yaml")
