"""Unit tests for gitmgr.service.

The backend is a MagicMock so each test can count backend calls and
observe when the cache answers instead.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from gitmgr.cache import MetadataCache
from gitmgr.config import CacheConfig, ExecutorConfig, GitMgrConfig
from gitmgr.errors import CacheError, MergeConflictError
from gitmgr.execgit import ExecGit
from gitmgr.models import (
    BranchInfo,
    CloneOptions,
    CommitInfo,
    ExecResult,
    RemoteInfo,
    Repo,
    RepoStatus,
)
from gitmgr.service import RepoService, commits_cache_key, create_service


@pytest.fixture
def repo(tmp_path):
    return Repo(path=str(tmp_path / "repo"), work_dir=str(tmp_path / "repo"))


@pytest.fixture
def backend(repo):
    backend = MagicMock(spec=ExecGit)
    backend.open.return_value = repo
    backend.clone.return_value = repo
    backend.init.return_value = repo
    backend.status.return_value = RepoStatus(branch="main")
    backend.log.return_value = [CommitInfo(hash="abc", subject="First")]
    backend.list_branches.return_value = [BranchInfo(name="main", current=True)]
    backend.list_remotes.return_value = [RemoteInfo(name="origin")]
    backend.diff.return_value = "diff --git a/x b/x\n"
    backend.run_raw.return_value = ExecResult(exit_code=0, stdout="ok\n")
    return backend


@pytest.fixture
def cache(tmp_path):
    return MetadataCache(tmp_path / "cache")


@pytest.fixture
def service(backend, cache):
    return RepoService(backend, cache)


class TestReadThrough:
    def test_second_status_served_from_cache(self, service, backend, repo):
        first = service.status(repo.path)
        second = service.status(repo.path)
        assert first == second == RepoStatus(branch="main")
        assert backend.status.call_count == 1

    def test_use_cache_false_bypasses(self, service, backend, repo):
        service.status(repo.path)
        service.status(repo.path, use_cache=False)
        assert backend.status.call_count == 2

    def test_without_cache(self, backend, repo):
        service = RepoService(backend)
        service.remotes(repo.path)
        service.remotes(repo.path)
        assert backend.list_remotes.call_count == 2

    def test_branches_all_cached_separately(self, service, backend, repo):
        service.branches(repo.path)
        service.branches(repo.path, True)
        service.branches(repo.path, True)
        assert backend.list_branches.call_count == 2

    def test_log_queries_cached_separately(self, service, backend, repo):
        service.log(repo.path, "", 10)
        service.log(repo.path, "", 5)
        service.log(repo.path, "", 10)
        assert backend.log.call_count == 2

    def test_diff_never_cached(self, service, backend, repo):
        service.diff(repo.path, "main", "feature")
        service.diff(repo.path, "main", "feature")
        assert backend.diff.call_count == 2


class TestInvalidation:
    @pytest.mark.parametrize(
        "mutation",
        [
            lambda s, p: s.fetch(p, "origin"),
            lambda s, p: s.pull(p, "origin", "main"),
            lambda s, p: s.push(p, "origin", "main"),
            lambda s, p: s.checkout(p, "feature"),
            lambda s, p: s.create_branch(p, "feature"),
            lambda s, p: s.delete_branch(p, "feature"),
            lambda s, p: s.raw(p, ["gc"]),
        ],
    )
    def test_mutation_clears_partition(self, service, backend, repo, mutation):
        service.status(repo.path)
        mutation(service, repo.path)
        service.status(repo.path)
        assert backend.status.call_count == 2

    def test_failed_mutation_keeps_cache(self, service, backend, repo):
        service.status(repo.path)
        backend.pull.side_effect = MergeConflictError("pull failed: CONFLICT")
        with pytest.raises(MergeConflictError):
            service.pull(repo.path)
        service.status(repo.path)
        assert backend.status.call_count == 1

    def test_clone_clears_stale_entries(self, service, backend, cache, repo):
        cache.cache_status(repo.path, RepoStatus(branch="stale"))
        service.clone(CloneOptions(url="https://example.com/r.git", path=repo.path))
        assert cache.get_cached_status(repo.path) is None

    def test_subdirectory_shares_repository_partition(self, service, backend, cache, repo):
        sub = f"{repo.work_dir}/src"
        backend.open.side_effect = lambda path, ctx=None: Repo(
            path=str(path), work_dir=repo.work_dir, git_dir=f"{repo.work_dir}/.git"
        )
        service.status(sub)
        assert cache.get_cached_status(repo.work_dir) == RepoStatus(branch="main")

        service.checkout(repo.work_dir, "feature")
        service.status(sub)
        assert backend.status.call_count == 2

    def test_invalidate_plain_path_opens_repository(self, service, backend, cache, repo):
        cache.cache_status(repo.work_dir, RepoStatus(branch="stale"))
        service.invalidate(f"{repo.work_dir}/src")
        backend.open.assert_called_once_with(f"{repo.work_dir}/src")
        assert cache.get_cached_status(repo.work_dir) is None

    def test_raw_returns_result(self, service, repo):
        assert service.raw(repo.path, ["rev-parse", "HEAD"]).stdout == "ok\n"


class TestCacheFailures:
    def test_read_failure_falls_through(self, backend, repo, caplog):
        cache = MagicMock(spec=MetadataCache)
        cache.get_cached_status.side_effect = CacheError("corrupt cache entry")
        service = RepoService(backend, cache)

        with caplog.at_level(logging.WARNING, logger="gitmgr.service"):
            status = service.status(repo.path)

        assert status == RepoStatus(branch="main")
        assert "Cache read failed" in caplog.text
        cache.cache_status.assert_called_once()

    def test_write_failure_is_not_fatal(self, backend, repo, caplog):
        cache = MagicMock(spec=MetadataCache)
        cache.get_cached_remotes.return_value = None
        cache.cache_remotes.side_effect = CacheError("disk full")
        service = RepoService(backend, cache)

        with caplog.at_level(logging.WARNING, logger="gitmgr.service"):
            remotes = service.remotes(repo.path)

        assert remotes == [RemoteInfo(name="origin")]
        assert "Cache write failed" in caplog.text

    def test_invalidation_failure_is_not_fatal(self, backend, repo, caplog):
        cache = MagicMock(spec=MetadataCache)
        cache.clear.side_effect = CacheError("permission denied")
        service = RepoService(backend, cache)
        with caplog.at_level(logging.WARNING, logger="gitmgr.service"):
            service.fetch(repo.path)
        assert "Cache invalidation failed" in caplog.text


class TestCommitsCacheKey:
    def test_default_query_uses_plain_key(self):
        assert commits_cache_key() == "commits"

    def test_parameters_change_key(self):
        keys = {
            commits_cache_key("main", 10),
            commits_cache_key("main", 5),
            commits_cache_key("dev", 10),
            commits_cache_key("main", 10, True),
        }
        assert len(keys) == 4
        assert all(k.startswith("commits-") for k in keys)

    def test_stable(self):
        assert commits_cache_key("main", 10) == commits_cache_key("main", 10)


class TestCreateService:
    def test_wires_config(self, tmp_path):
        config = GitMgrConfig(
            executor=ExecutorConfig(git_binary="/usr/bin/git", timeout=45),
            cache=CacheConfig(dir=str(tmp_path / "c"), ttl_status=12),
        )
        service = create_service(config)
        assert service.backend.executor.git_binary == "/usr/bin/git"
        assert service.backend.executor.timeout == 45
        assert service.cache.base_dir == tmp_path / "c"
        assert service.cache.ttls["status"] == 12

    def test_cache_disabled(self):
        service = create_service(GitMgrConfig(cache=CacheConfig(enabled=False)))
        assert service.cache is None
