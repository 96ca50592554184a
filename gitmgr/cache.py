"""On-disk TTL cache for repository metadata.

Layout::

    <cache root>/<sha256(abs repo path)>/<key>.json

Each file holds ``{"data": ..., "timestamp": <epoch s>, "ttl": <s>}``.
Files are written atomically with 0600 permissions, partition
directories are 0700.

Concurrency: reads of one partition run concurrently, writes are
exclusive. Locks are sharded per partition, so traffic on one repository
never waits for another. Atomic replacement keeps readers in other
processes consistent as well.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import logging
import os
import shutil
import threading
import time
from collections.abc import Iterator
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Optional

import pydantic
from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError, to_jsonable_python

from gitmgr.atomic_io import atomic_write, remove_file
from gitmgr.constants import (
    CACHE_KEY_BRANCHES,
    CACHE_KEY_COMMITS,
    CACHE_KEY_REMOTES,
    CACHE_KEY_STATUS,
    TTL_BRANCHES,
    TTL_COMMITS,
    TTL_REMOTES,
    TTL_STATUS,
    get_cache_root,
)
from gitmgr.errors import CacheError, ValidationError
from gitmgr.models import BranchInfo, CacheEntry, CommitInfo, RemoteInfo, RepoStatus

DEFAULT_TTLS: dict[str, float] = {
    CACHE_KEY_STATUS: TTL_STATUS,
    CACHE_KEY_BRANCHES: TTL_BRANCHES,
    CACHE_KEY_REMOTES: TTL_REMOTES,
    CACHE_KEY_COMMITS: TTL_COMMITS,
}


# ============================================================================
# Locking
# ============================================================================


class RWLock:
    """Readers-writer lock. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextlib.contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


# ============================================================================
# Helpers
# ============================================================================


def repo_hash(repo_path: str | Path) -> str:
    """Partition name for a repository: sha256 hex of its absolute path."""
    return hashlib.sha256(os.path.abspath(str(repo_path)).encode("utf-8")).hexdigest()


def _assert_safe_key(key: str) -> None:
    """Reject keys that could escape the partition directory.

    Raises:
        ValidationError: If *key* is empty, contains ``/`` or ``\\``,
            or equals ``.`` or ``..``.
    """
    if not key:
        raise ValidationError("cache key must not be empty")
    if "/" in key or "\\" in key or os.sep in key:
        raise ValidationError(f"cache key must not contain path separators: {key!r}")
    if key in (".", ".."):
        raise ValidationError(f"cache key must not be '.' or '..': {key!r}")


@lru_cache(maxsize=None)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


# ============================================================================
# Cache
# ============================================================================


class MetadataCache:
    """Per-repository JSON snapshots with independent TTLs."""

    def __init__(
        self,
        base_dir: Optional[str | Path] = None,
        *,
        clock: Callable[[], float] = time.time,
        ttls: Optional[dict[str, float]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else get_cache_root()
        self.clock = clock
        self.ttls = {**DEFAULT_TTLS, **(ttls or {})}
        self.logger = logger or logging.getLogger(__name__)
        self._locks: dict[str, RWLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Paths & locks
    # ------------------------------------------------------------------

    def partition_dir(self, repo_path: str | Path) -> Path:
        return self.base_dir / repo_hash(repo_path)

    def entry_path(self, repo_path: str | Path, key: str) -> Path:
        _assert_safe_key(key)
        return self.partition_dir(repo_path) / f"{key}.json"

    def _lock_for(self, repo_path: str | Path) -> RWLock:
        digest = repo_hash(repo_path)
        with self._locks_guard:
            lock = self._locks.get(digest)
            if lock is None:
                lock = self._locks[digest] = RWLock()
            return lock

    # ------------------------------------------------------------------
    # Generic operations
    # ------------------------------------------------------------------

    def set(self, repo_path: str | Path, key: str, payload: Any, ttl: float) -> None:
        """Store *payload* under *key* for *ttl* seconds.

        Raises:
            ValidationError: *key* is not a safe file name.
            CacheError: The payload cannot be serialized or the file
                cannot be written.
        """
        path = self.entry_path(repo_path, key)
        try:
            document = json.dumps(
                {"data": to_jsonable_python(payload), "timestamp": self.clock(), "ttl": ttl},
                indent=2,
            )
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            raise CacheError(f"cannot serialize cache entry {key!r}: {exc}") from exc

        with self._lock_for(repo_path).write():
            try:
                atomic_write(path, document)
            except OSError as exc:
                raise CacheError(f"cannot write cache entry {path}: {exc}") from exc

    def get(
        self, repo_path: str | Path, key: str, target: Any = None
    ) -> tuple[bool, Any]:
        """Look up *key*.

        Returns:
            ``(False, None)`` on a miss or an expired entry (the expired file
            is deleted). Otherwise ``(True, value)`` where value is validated
            into *target* when given, or the raw JSON payload.

        Raises:
            CacheError: The entry exists but cannot be read or decoded.
        """
        path = self.entry_path(repo_path, key)
        lock = self._lock_for(repo_path)

        with lock.read():
            entry = self._load(path)
        if entry is None:
            return False, None

        if entry.expired(self.clock()):
            with lock.write():
                # Another writer may have refreshed it meanwhile.
                current = self._load(path)
                if current is not None and current.expired(self.clock()):
                    self._remove(path)
            return False, None

        if target is None:
            return True, entry.data
        try:
            return True, _adapter(target).validate_python(entry.data)
        except pydantic.ValidationError as exc:
            raise CacheError(f"cached {key!r} does not match expected type: {exc}") from exc

    def delete(self, repo_path: str | Path, key: str) -> None:
        path = self.entry_path(repo_path, key)
        with self._lock_for(repo_path).write():
            self._remove(path)

    def clear(self, repo_path: str | Path) -> None:
        """Remove every entry of one repository. An absent partition is fine."""
        partition = self.partition_dir(repo_path)
        with self._lock_for(repo_path).write():
            try:
                shutil.rmtree(partition)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise CacheError(f"cannot clear cache {partition}: {exc}") from exc
        self.logger.debug("Cleared cache partition %s", partition.name)

    def clear_all(self) -> None:
        """Remove every partition under the cache root."""
        with self._locks_guard:
            locks = list(self._locks.values())
        with contextlib.ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock.write())
            try:
                shutil.rmtree(self.base_dir)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise CacheError(f"cannot clear cache {self.base_dir}: {exc}") from exc

    def _load(self, path: Path) -> Optional[CacheEntry]:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheError(f"cannot read cache entry {path}: {exc}") from exc
        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (json.JSONDecodeError, pydantic.ValidationError) as exc:
            raise CacheError(f"corrupt cache entry {path}: {exc}") from exc

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            remove_file(path)
        except OSError as exc:
            raise CacheError(f"cannot delete cache entry {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def cache_status(self, repo_path: str | Path, status: RepoStatus) -> None:
        self.set(repo_path, CACHE_KEY_STATUS, status, self.ttls[CACHE_KEY_STATUS])

    def get_cached_status(self, repo_path: str | Path) -> Optional[RepoStatus]:
        found, value = self.get(repo_path, CACHE_KEY_STATUS, RepoStatus)
        return value if found else None

    def cache_branches(
        self,
        repo_path: str | Path,
        branches: list[BranchInfo],
        key: str = CACHE_KEY_BRANCHES,
    ) -> None:
        self.set(repo_path, key, branches, self.ttls[CACHE_KEY_BRANCHES])

    def get_cached_branches(
        self, repo_path: str | Path, key: str = CACHE_KEY_BRANCHES
    ) -> Optional[list[BranchInfo]]:
        found, value = self.get(repo_path, key, list[BranchInfo])
        return value if found else None

    def cache_remotes(self, repo_path: str | Path, remotes: list[RemoteInfo]) -> None:
        self.set(repo_path, CACHE_KEY_REMOTES, remotes, self.ttls[CACHE_KEY_REMOTES])

    def get_cached_remotes(self, repo_path: str | Path) -> Optional[list[RemoteInfo]]:
        found, value = self.get(repo_path, CACHE_KEY_REMOTES, list[RemoteInfo])
        return value if found else None

    def cache_commits(
        self,
        repo_path: str | Path,
        commits: list[CommitInfo],
        key: str = CACHE_KEY_COMMITS,
    ) -> None:
        self.set(repo_path, key, commits, self.ttls[CACHE_KEY_COMMITS])

    def get_cached_commits(
        self, repo_path: str | Path, key: str = CACHE_KEY_COMMITS
    ) -> Optional[list[CommitInfo]]:
        found, value = self.get(repo_path, key, list[CommitInfo])
        return value if found else None
