"""Read-through repository service.

Sits between the consumers (CLI, HTTP API) and a backend. Metadata
queries are answered from the cache when a fresh entry exists; mutating
operations clear the repository's cache partition once they succeed.

Cache problems never fail a call: they are logged as warnings and the
request goes to the backend.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from gitmgr.cache import MetadataCache
from gitmgr.config import GitMgrConfig, get_config
from gitmgr.constants import CACHE_KEY_BRANCHES, CACHE_KEY_COMMITS
from gitmgr.errors import CacheError
from gitmgr.execgit import ExecGit
from gitmgr.executor import ExecContext, GitExecutor
from gitmgr.models import (
    BranchInfo,
    CloneOptions,
    CommitInfo,
    ExecResult,
    RemoteInfo,
    Repo,
    RepoStatus,
)

T = TypeVar("T")


def commits_cache_key(ref: str = "", max_count: int = 0, oneline: bool = False) -> str:
    """Cache key for one log query; the default query uses the plain key."""
    if not ref and max_count <= 0 and not oneline:
        return CACHE_KEY_COMMITS
    digest = hashlib.sha256(
        json.dumps([ref, max_count, oneline]).encode("utf-8")
    ).hexdigest()[:16]
    return f"{CACHE_KEY_COMMITS}-{digest}"


class RepoService:
    """Consumer-facing operations over a backend plus optional cache."""

    def __init__(
        self,
        backend: Optional[ExecGit] = None,
        cache: Optional[MetadataCache] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.backend = backend or ExecGit(logger=self.logger)
        self.cache = cache

    # ------------------------------------------------------------------
    # Cache plumbing
    # ------------------------------------------------------------------

    def _cached(
        self,
        repo: Repo,
        use_cache: bool,
        lookup: Callable[[str], Optional[T]],
        store: Callable[[str, T], None],
        load: Callable[[], T],
    ) -> T:
        if self.cache is None or not use_cache:
            return load()
        try:
            hit = lookup(repo.root)
        except CacheError as exc:
            self.logger.warning("Cache read failed for %s: %s", repo.root, exc)
            hit = None
        if hit is not None:
            self.logger.debug("Cache hit for %s", repo.root)
            return hit

        value = load()
        try:
            store(repo.root, value)
        except CacheError as exc:
            self.logger.warning("Cache write failed for %s: %s", repo.root, exc)
        return value

    def invalidate(self, target: str | Path | Repo) -> None:
        """Drop every cached entry of a repository.

        Entries are keyed on :attr:`Repo.root`; a plain path is opened first
        so any directory inside the repository clears the same partition.
        """
        if self.cache is None:
            return
        repo = target if isinstance(target, Repo) else self.backend.open(target)
        path = repo.root
        try:
            self.cache.clear(path)
        except CacheError as exc:
            self.logger.warning("Cache invalidation failed for %s: %s", path, exc)

    def _mutate(self, path: str | Path, ctx: Optional[ExecContext], op: Callable[[Repo], Any]) -> Any:
        repo = self.backend.open(path, ctx)
        result = op(repo)
        self.invalidate(repo)
        return result

    # ------------------------------------------------------------------
    # Repository
    # ------------------------------------------------------------------

    def open(self, path: str | Path, ctx: Optional[ExecContext] = None) -> Repo:
        return self.backend.open(path, ctx)

    def clone(self, opts: CloneOptions, ctx: Optional[ExecContext] = None) -> Repo:
        repo = self.backend.clone(opts, ctx)
        self.invalidate(repo)
        return repo

    def init(self, path: str | Path, bare: bool = False, ctx: Optional[ExecContext] = None) -> Repo:
        repo = self.backend.init(path, bare, ctx)
        self.invalidate(repo)
        return repo

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def status(
        self, path: str | Path, *, use_cache: bool = True, ctx: Optional[ExecContext] = None
    ) -> RepoStatus:
        repo = self.backend.open(path, ctx)
        cache = self.cache
        return self._cached(
            repo,
            use_cache,
            lambda p: cache.get_cached_status(p),
            lambda p, v: cache.cache_status(p, v),
            lambda: self.backend.status(repo, ctx),
        )

    def log(
        self,
        path: str | Path,
        ref: str = "",
        max_count: int = 0,
        oneline: bool = False,
        *,
        use_cache: bool = True,
        ctx: Optional[ExecContext] = None,
    ) -> list[CommitInfo]:
        repo = self.backend.open(path, ctx)
        key = commits_cache_key(ref, max_count, oneline)
        cache = self.cache
        return self._cached(
            repo,
            use_cache,
            lambda p: cache.get_cached_commits(p, key),
            lambda p, v: cache.cache_commits(p, v, key),
            lambda: self.backend.log(repo, ref, max_count, oneline, ctx),
        )

    def diff(
        self,
        path: str | Path,
        base: str = "",
        head: str = "",
        stat: bool = False,
        *,
        ctx: Optional[ExecContext] = None,
    ) -> str:
        repo = self.backend.open(path, ctx)
        return self.backend.diff(repo, base, head, stat, ctx)

    def branches(
        self,
        path: str | Path,
        all_: bool = False,
        *,
        use_cache: bool = True,
        ctx: Optional[ExecContext] = None,
    ) -> list[BranchInfo]:
        repo = self.backend.open(path, ctx)
        key = f"{CACHE_KEY_BRANCHES}-all" if all_ else CACHE_KEY_BRANCHES
        cache = self.cache
        return self._cached(
            repo,
            use_cache,
            lambda p: cache.get_cached_branches(p, key),
            lambda p, v: cache.cache_branches(p, v, key),
            lambda: self.backend.list_branches(repo, all_, ctx),
        )

    def remotes(
        self, path: str | Path, *, use_cache: bool = True, ctx: Optional[ExecContext] = None
    ) -> list[RemoteInfo]:
        repo = self.backend.open(path, ctx)
        cache = self.cache
        return self._cached(
            repo,
            use_cache,
            lambda p: cache.get_cached_remotes(p),
            lambda p, v: cache.cache_remotes(p, v),
            lambda: self.backend.list_remotes(repo, ctx),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def fetch(
        self,
        path: str | Path,
        remote: str = "",
        prune: bool = False,
        tags: bool = False,
        *,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        self._mutate(path, ctx, lambda repo: self.backend.fetch(repo, remote, prune, tags, ctx))

    def pull(
        self,
        path: str | Path,
        remote: str = "",
        branch: str = "",
        rebase: bool = False,
        *,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        self._mutate(path, ctx, lambda repo: self.backend.pull(repo, remote, branch, rebase, ctx))

    def push(
        self,
        path: str | Path,
        remote: str = "",
        branch: str = "",
        force: bool = False,
        tags: bool = False,
        *,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        self._mutate(
            path, ctx, lambda repo: self.backend.push(repo, remote, branch, force, tags, ctx)
        )

    def checkout(
        self,
        path: str | Path,
        ref: str,
        create_branch: bool = False,
        *,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        self._mutate(path, ctx, lambda repo: self.backend.checkout(repo, ref, create_branch, ctx))

    def create_branch(
        self,
        path: str | Path,
        name: str,
        start_point: str = "",
        *,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        self._mutate(path, ctx, lambda repo: self.backend.create_branch(repo, name, start_point, ctx))

    def delete_branch(
        self,
        path: str | Path,
        name: str,
        force: bool = False,
        *,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        self._mutate(path, ctx, lambda repo: self.backend.delete_branch(repo, name, force, ctx))

    def raw(
        self, path: str | Path, args: list[str], *, ctx: Optional[ExecContext] = None
    ) -> ExecResult:
        """Run raw git arguments; the partition is cleared since they may mutate."""
        return self._mutate(path, ctx, lambda repo: self.backend.run_raw(repo, args, ctx))


def create_service(
    config: Optional[GitMgrConfig] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> RepoService:
    """Build a service wired from configuration (defaults to :func:`get_config`)."""
    config = config or get_config()
    logger = logger or logging.getLogger(__name__)
    executor = GitExecutor(
        config.executor.git_binary,
        config.executor.timeout,
        logger=logger,
    )
    cache = None
    if config.cache.enabled:
        cache = MetadataCache(config.cache.cache_dir(), ttls=config.cache.ttls(), logger=logger)
    return RepoService(ExecGit(executor, logger=logger), cache, logger=logger)
