"""
Pytest configuration for unit tests.

Provides a scripted stand-in for GitExecutor so backend and service tests
run without a git binary.
"""

from __future__ import annotations

import pytest

from gitmgr.execgit import ExecGit
from gitmgr.models import ExecResult


class FakeExecutor:
    """Records every call and answers from scripted responses.

    Responses are matched by argument prefix; the most recently added
    match wins. Unmatched calls succeed with empty output.
    """

    def __init__(self):
        self.calls: list[tuple[str, list[str]]] = []
        self._responses: list[tuple[list[str], ExecResult]] = []

    def on(self, *prefix: str, stdout: str = "", stderr: str = "", exit_code: int = 0) -> None:
        self._responses.insert(
            0, (list(prefix), ExecResult(exit_code=exit_code, stdout=stdout, stderr=stderr))
        )

    def run(self, repo_path, args, ctx=None) -> ExecResult:
        args = list(args)
        self.calls.append((str(repo_path), args))
        for prefix, result in self._responses:
            if args[: len(prefix)] == prefix:
                return result
        return ExecResult(exit_code=0)

    def args_for(self, *prefix: str) -> list[list[str]]:
        """Argument lists of every call starting with *prefix*."""
        return [args for _, args in self.calls if args[: len(prefix)] == list(prefix)]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def git(fake_executor: FakeExecutor) -> ExecGit:
    """ExecGit wired to the fake executor."""
    return ExecGit(fake_executor)


@pytest.fixture
def repo_dir(tmp_path, fake_executor):
    """A directory that the fake executor reports as a non-bare work tree."""
    path = tmp_path.resolve()
    fake_executor.on("rev-parse", "--git-dir", stdout=".git\n")
    fake_executor.on("rev-parse", "--is-bare-repository", stdout="false\n")
    fake_executor.on("rev-parse", "--is-inside-work-tree", stdout="true\n")
    fake_executor.on("rev-parse", "--show-toplevel", stdout=f"{path}\n")
    return path
