"""
Top-level pytest conftest.py -- shared fixtures for tests that run real git.

Provides:
    has_git      - session-scoped check that git is reachable on the secure PATH
    requires_git - skip the test when it is not
    run_git      - callable running git with a fixed identity
    local_repo   - temporary directory with a deterministic git repo
"""

import os
import subprocess

import pytest

from gitmgr.constants import SECURE_PATH_DIRS

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
}


@pytest.fixture(scope="session")
def has_git():
    """Check whether git lives in one of the directories the executor allows.

    The executor replaces PATH, so a git found only elsewhere cannot be used.
    """
    return any(os.access(os.path.join(d, "git"), os.X_OK) for d in SECURE_PATH_DIRS)


@pytest.fixture
def requires_git(has_git):
    """Skip the test when git is not available."""
    if not has_git:
        pytest.skip("git is not available on the secure PATH")


@pytest.fixture
def run_git():
    """Return a callable that runs git in a directory and returns stdout.

    Usage::

        run_git(repo, "commit", "-m", "msg")
    """
    env = {**os.environ, **GIT_IDENTITY}

    def _run(cwd, *args):
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    return _run


@pytest.fixture
def local_repo(tmp_path, requires_git, run_git):
    """Create a temporary directory containing a deterministic git repo.

    The repo has ``main`` as its default branch, a single ``README.md``,
    and two commits. Yields the resolved ``pathlib.Path`` to the repo root.
    """
    repo = (tmp_path / "repo").resolve()
    repo.mkdir()

    run_git(repo, "init")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("# Test Repository\n")
    run_git(repo, "add", "README.md")
    run_git(repo, "commit", "-m", "Initial commit")
    (repo / "README.md").write_text("# Test Repository\n\nMore text.\n")
    run_git(repo, "commit", "-am", "Expand README", "-m", "Adds a second paragraph.")

    yield repo
