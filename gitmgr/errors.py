"""Exception hierarchy for gitmgr.

Provides a structured exception tree so callers can catch broad
categories (``GitMgrError``, ``ProcessError``, ``TransportError``) or
specific failure modes.

This module is a base-layer module: it must NOT import from any
other ``gitmgr`` submodule.
"""

from __future__ import annotations


class GitMgrError(Exception):
    """Base exception for all gitmgr errors."""


class ValidationError(GitMgrError):
    """Missing or invalid input, detected before any subprocess is spawned."""


class ConfigError(GitMgrError):
    """Invalid configuration file or environment override."""


class NotARepositoryError(GitMgrError):
    """The path does not resolve to a git repository. Never retryable."""

    def __init__(self, path: str) -> None:
        super().__init__(f"not a git repository: {path}")
        self.path = path


class ProcessError(GitMgrError):
    """git ran but exited non-zero.

    ``stderr`` has already been scrubbed of credentials by the executor.
    """

    def __init__(self, message: str, *, exit_code: int = 1, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class MergeConflictError(ProcessError):
    """The operation stopped on merge conflicts."""


class NonFastForwardError(ProcessError):
    """An update was rejected because it is not a fast-forward."""


class AuthenticationError(ProcessError):
    """The remote refused the credentials (or none were available)."""


class RefExistsError(ProcessError):
    """A branch or tag with that name already exists."""


class BranchNotMergedError(ProcessError):
    """Branch deletion refused because the branch is not fully merged."""


class LocalChangesError(ProcessError):
    """Local changes would be overwritten by the operation."""


class TransportError(GitMgrError):
    """git could not be run to completion (not found, timed out, cancelled)."""


class GitNotFoundError(TransportError):
    """The git binary could not be located."""


class CommandTimeoutError(TransportError):
    """The deadline expired; the child was killed and its output discarded."""


class CommandCancelledError(TransportError):
    """The caller cancelled the call; the child was killed."""


class ParseError(GitMgrError):
    """git output did not match the expected format at all."""


class CacheError(GitMgrError):
    """Cache directory or file could not be read or written."""


class UnsupportedOperationError(GitMgrError):
    """The backend does not provide the requested capability."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"operation not supported by this backend: {capability}")
        self.capability = capability
