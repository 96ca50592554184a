"""Backend contract for repository operations.

A backend advertises the operations it implements as a set of
:class:`Capability` values. Callers can check ``supports()`` before
invoking an operation; an operation outside the set raises
:class:`~gitmgr.errors.UnsupportedOperationError` when called.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import FrozenSet

from gitmgr.errors import UnsupportedOperationError


class Capability(str, Enum):
    """Groups of operations a backend may provide."""

    REPOSITORY = "repository"
    """open, init, clone, discover, config."""

    INSPECTION = "inspection"
    """status, log, diff, blame, rev-parse, show, ls-tree."""

    REMOTES = "remotes"
    SYNC = "sync"
    """fetch, pull, push."""

    BRANCHES = "branches"
    TAGS = "tags"
    MERGE = "merge"
    """merge, rebase, cherry-pick, revert."""

    INTERACTIVE_REBASE = "interactive_rebase"
    STASH = "stash"
    WORKTREES = "worktrees"
    SUBMODULES = "submodules"
    LFS = "lfs"
    RAW = "raw"


class GitBackend(ABC):
    """Base class for repository backends."""

    name: str = "base"

    @property
    @abstractmethod
    def capabilities(self) -> FrozenSet[Capability]:
        """Capabilities this backend implements."""

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        """Raise UnsupportedOperationError unless ``capability`` is provided."""
        if not self.supports(capability):
            raise UnsupportedOperationError(capability.value)
