from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field


class Repo(BaseModel):
    """A resolved repository handle.

    Created by open/init/clone/discover and never mutated afterwards.
    Not persisted: every consumer call re-derives it from git.
    """

    path: str
    """Absolute, filesystem-resolved path the handle was opened with."""

    work_dir: str = ""
    """Top of the working tree; empty for bare repositories."""

    git_dir: str = ""
    """Absolute path of the metadata directory."""

    is_bare: bool = False
    is_worktree: bool = False
    """True when ``path`` is inside a working tree."""

    @property
    def root(self) -> str:
        """Canonical identity: the working-tree top, or the git dir when bare."""
        return self.work_dir or self.git_dir or self.path


class CloneOptions(BaseModel):
    """Options for :meth:`ExecGit.clone`."""

    url: str
    path: str
    branch: str = ""
    depth: int = 0
    bare: bool = False
    mirror: bool = False
    recursive: bool = False
    progress: bool = False
    sparse: list[str] = Field(default_factory=list)
    """Sparse-checkout patterns applied after the clone completes."""


class ExecResult(BaseModel):
    """Outcome of one git invocation."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    """Captured stderr, already scrubbed of credentials."""

    duration: float = 0.0
    """Wall-clock seconds."""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class TrackingState(str, Enum):
    """Whether ahead/behind counts on a status are meaningful."""

    NONE = "none"
    """Detached HEAD or no upstream configured."""

    UNKNOWN = "unknown"
    """An upstream query failed; counts default to zero."""

    TRACKED = "tracked"


class FileStatus(BaseModel):
    """One changed path from ``git status --porcelain``."""

    path: str
    status: str
    """Two-character XY status code, e.g. ``" M"`` or ``"??"``."""

    staged: bool = False
    modified: bool = False
    orig_path: str = ""
    """Source path of a rename or copy."""


class RepoStatus(BaseModel):
    """Working-tree state snapshot."""

    branch: str = ""
    upstream: str = ""
    ahead: int = 0
    behind: int = 0
    tracking: TrackingState = TrackingState.NONE
    files: list[FileStatus] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def clean(self) -> bool:
        return not self.files


class BranchInfo(BaseModel):
    """One entry of ``git branch`` output."""

    name: str
    current: bool = False
    remote: str = ""
    """Owning remote for remote-tracking branches."""

    upstream: str = ""
    ahead: int = 0
    behind: int = 0


class RemoteInfo(BaseModel):
    """One configured remote."""

    name: str
    url: str = ""
    fetch_url: str = ""
    push_url: str = ""


class CommitInfo(BaseModel):
    """One commit in history."""

    hash: str = ""
    short_hash: str = ""
    author: str = ""
    email: str = ""
    date: Optional[datetime] = None
    subject: str = ""
    body: str = ""


class CacheEntry(BaseModel):
    """A cached payload as stored on disk."""

    data: Any = None
    timestamp: float
    """Epoch seconds at write time."""

    ttl: float
    """Seconds the entry stays valid."""

    def expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl
