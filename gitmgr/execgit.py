"""git-binary backend.

Implements every repository operation by building an argument vector,
running it through :class:`~gitmgr.executor.GitExecutor`, and parsing
the output with :mod:`gitmgr.parsers`. Non-zero exits of mutating
commands are classified into :class:`~gitmgr.errors.ProcessError`
subclasses by matching known stderr fragments.

Security-critical: ref, branch, remote and tag names are validated so
user input can never be read by git as an option.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from gitmgr.backend import Capability, GitBackend
from gitmgr.errors import (
    AuthenticationError,
    BranchNotMergedError,
    LocalChangesError,
    MergeConflictError,
    NonFastForwardError,
    NotARepositoryError,
    ProcessError,
    RefExistsError,
    ValidationError,
)
from gitmgr.executor import ExecContext, GitExecutor
from gitmgr.logging_config import LogContext
from gitmgr.models import (
    BranchInfo,
    CloneOptions,
    CommitInfo,
    ExecResult,
    RemoteInfo,
    Repo,
    RepoStatus,
    TrackingState,
)
from gitmgr.parsers import (
    LOG_FORMAT,
    UPSTREAM_FORMAT,
    parse_ahead_behind,
    parse_bool,
    parse_branches,
    parse_log,
    parse_oneline_log,
    parse_porcelain_status,
    parse_remotes,
    parse_stash_list,
    parse_upstreams,
    parse_worktree_list,
)
from gitmgr.redaction import sanitize_url

# Ordered: the first fragment found in stderr (case-insensitive) wins.
_ERROR_PATTERNS: tuple[tuple[str, type[ProcessError]], ...] = (
    ("would be overwritten", LocalChangesError),
    ("conflict", MergeConflictError),
    ("non-fast-forward", NonFastForwardError),
    ("[rejected]", NonFastForwardError),
    ("authentication", AuthenticationError),
    ("permission denied", AuthenticationError),
    ("could not read username", AuthenticationError),
    ("already exists", RefExistsError),
    ("not fully merged", BranchNotMergedError),
)

_NO_COMMITS_MARKERS = ("does not have any commits yet", "bad default revision 'HEAD'")


# ============================================================================
# Input Validation
# ============================================================================


def _require(value: str, what: str) -> None:
    if not value:
        raise ValidationError(f"{what} is required")


def _validate_name(value: str, what: str) -> None:
    """Reject empty names and names git would parse as an option."""
    _require(value, what)
    if value.startswith("-"):
        raise ValidationError(f"{what} must not start with '-': {value!r}")


def _validate_ref(value: str, what: str = "ref") -> None:
    """Like :func:`_validate_name` but an empty ref is allowed."""
    if value and value.startswith("-"):
        raise ValidationError(f"{what} must not start with '-': {value!r}")


def _resolve_path(path: str | Path, what: str = "path") -> Path:
    """Validate a caller-supplied path and return it absolute and resolved."""
    _require(str(path) if path else "", what)
    if "\0" in str(path):
        raise ValidationError(f"{what} must not contain NUL bytes")
    return Path(path).expanduser().resolve()


def classify_failure(action: str, result: ExecResult) -> ProcessError:
    """Map a failed git result to the most specific ProcessError subclass."""
    stderr = result.stderr.strip()
    lowered = stderr.lower()
    exc_type: type[ProcessError] = ProcessError
    for fragment, candidate in _ERROR_PATTERNS:
        if fragment in lowered:
            exc_type = candidate
            break
    return exc_type(
        f"{action} failed: {stderr or f'exit code {result.exit_code}'}",
        exit_code=result.exit_code,
        stderr=result.stderr,
    )


# ============================================================================
# Backend
# ============================================================================


class ExecGit(GitBackend):
    """Repository operations backed by the ``git`` executable."""

    name = "execgit"

    _CAPABILITIES = frozenset(
        set(Capability) - {Capability.LFS, Capability.INTERACTIVE_REBASE}
    )

    def __init__(
        self,
        executor: Optional[GitExecutor] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.executor = executor or GitExecutor(logger=self.logger)

    @property
    def capabilities(self) -> frozenset[Capability]:
        return self._CAPABILITIES

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run(
        self, cwd: str | Path, args: list[str], ctx: Optional[ExecContext]
    ) -> ExecResult:
        return self.executor.run(cwd, args, ctx)

    def _check(
        self,
        repo: Repo,
        args: list[str],
        action: str,
        ctx: Optional[ExecContext],
    ) -> ExecResult:
        """Run ``args`` in ``repo`` and raise a classified error on non-zero exit."""
        result = self._run(repo.path, args, ctx)
        if not result.ok:
            raise classify_failure(action, result)
        return result

    # ------------------------------------------------------------------
    # Repository
    # ------------------------------------------------------------------

    def open(self, path: str | Path, ctx: Optional[ExecContext] = None) -> Repo:
        """Open an existing repository at ``path``.

        Raises:
            ValidationError: ``path`` is empty.
            NotARepositoryError: git does not recognise ``path``.
        """
        abs_path = _resolve_path(path)

        result = self._run(abs_path, ["rev-parse", "--git-dir"], ctx)
        if not result.ok:
            raise NotARepositoryError(str(abs_path))
        git_dir = Path(result.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = abs_path / git_dir

        is_bare = parse_bool(
            self._run(abs_path, ["rev-parse", "--is-bare-repository"], ctx).stdout
        )
        inside = self._run(abs_path, ["rev-parse", "--is-inside-work-tree"], ctx)
        is_worktree = inside.ok and parse_bool(inside.stdout)

        work_dir = ""
        if is_worktree:
            top = self._run(abs_path, ["rev-parse", "--show-toplevel"], ctx)
            work_dir = top.stdout.strip() if top.ok else str(abs_path)

        repo = Repo(
            path=str(abs_path),
            work_dir=work_dir,
            git_dir=str(git_dir.resolve()),
            is_bare=is_bare,
            is_worktree=is_worktree,
        )
        self.logger.info(
            "Opened repository %s",
            repo.path,
            extra={"repo_path": repo.path, "bare": is_bare, "worktree": is_worktree},
        )
        return repo

    def init(
        self, path: str | Path, bare: bool = False, ctx: Optional[ExecContext] = None
    ) -> Repo:
        abs_path = _resolve_path(path)
        try:
            abs_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ValidationError(f"cannot create {abs_path.parent}: {exc}") from exc

        args = ["init"]
        if bare:
            args.append("--bare")
        args.append(str(abs_path))

        self.logger.info(
            "Initializing repository %s",
            abs_path,
            extra={"repo_path": str(abs_path), "bare": bare},
        )
        result = self._run(abs_path.parent, args, ctx)
        if not result.ok:
            raise classify_failure("init", result)
        return self.open(abs_path, ctx)

    def clone(self, opts: CloneOptions, ctx: Optional[ExecContext] = None) -> Repo:
        """Clone ``opts.url`` into ``opts.path`` and open the result.

        Input problems raise ValidationError before any subprocess is
        spawned. A failed clone raises ProcessError naming the URL with
        its credentials removed.
        """
        _require(opts.url, "clone URL")
        _require(opts.path, "clone path")
        if opts.url.startswith("-"):
            raise ValidationError(f"clone URL must not start with '-': {opts.url!r}")
        _validate_ref(opts.branch, "branch")
        if opts.depth < 0:
            raise ValidationError(f"depth must be non-negative: {opts.depth}")

        dest = _resolve_path(opts.path, "clone path")
        safe_url = sanitize_url(opts.url)

        args = ["clone"]
        if opts.branch:
            args.extend(["--branch", opts.branch])
        if opts.depth > 0:
            args.extend(["--depth", str(opts.depth)])
        if opts.bare:
            args.append("--bare")
        if opts.mirror:
            args.append("--mirror")
        if opts.recursive:
            args.append("--recursive")
        if opts.progress:
            args.append("--progress")
        sparse = bool(opts.sparse) and not (opts.bare or opts.mirror)
        if sparse:
            args.append("--sparse")
        args.extend(["--", opts.url, str(dest)])

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ValidationError(f"cannot create {dest.parent}: {exc}") from exc

        with LogContext(repo_path=str(dest), op="clone"):
            self.logger.info(
                "Cloning %s into %s",
                safe_url,
                dest,
                extra={
                    "url": safe_url,
                    "branch": opts.branch,
                    "depth": opts.depth,
                },
            )
            result = self._run(dest.parent, args, ctx)
            if not result.ok:
                detail = result.stderr.strip() or f"exit code {result.exit_code}"
                raise ProcessError(
                    f"clone of {safe_url} failed: {detail}",
                    exit_code=result.exit_code,
                    stderr=result.stderr,
                )

            if sparse:
                sc = self._run(dest, ["sparse-checkout", "set", *opts.sparse], ctx)
                if not sc.ok:
                    raise classify_failure("sparse-checkout", sc)

            return self.open(dest, ctx)

    def discover(self, path: str | Path, ctx: Optional[ExecContext] = None) -> Repo:
        """Find the repository enclosing ``path`` and open it at its top level."""
        abs_path = _resolve_path(path)
        result = self._run(abs_path, ["rev-parse", "--show-toplevel"], ctx)
        if result.ok and result.stdout.strip():
            return self.open(result.stdout.strip(), ctx)
        # Bare repositories have no top level; open() decides.
        return self.open(abs_path, ctx)

    def get_config(
        self, repo: Repo, key: str, ctx: Optional[ExecContext] = None
    ) -> Optional[str]:
        """Return a config value, or None when the key is unset."""
        _validate_name(key, "config key")
        result = self._run(repo.path, ["config", "--get", key], ctx)
        if result.exit_code == 1:
            return None
        if not result.ok:
            raise classify_failure("config", result)
        return result.stdout.strip()

    def set_config(
        self,
        repo: Repo,
        key: str,
        value: str,
        global_: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        _validate_name(key, "config key")
        args = ["config"]
        if global_:
            args.append("--global")
        args.extend([key, value])
        self._check(repo, args, "config", ctx)
        self.logger.info("Config %s updated", key, extra={"key": key, "global": global_})

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def status(self, repo: Repo, ctx: Optional[ExecContext] = None) -> RepoStatus:
        """Return branch, upstream tracking and changed files.

        Failure to determine the upstream or the ahead/behind counts does
        not fail the call; it is reported through ``tracking``.
        """
        with LogContext(repo_path=repo.path, op="status"):
            head = self._check(repo, ["branch", "--show-current"], "status", ctx)
            branch = head.stdout.strip()
            status = RepoStatus(branch=branch)

            if branch:
                up = self._run(
                    repo.path, ["rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"], ctx
                )
                if up.ok and up.stdout.strip():
                    status.upstream = up.stdout.strip()
                    status.tracking = TrackingState.UNKNOWN
                    counts = self._run(
                        repo.path,
                        ["rev-list", "--count", "--left-right", f"{branch}...{status.upstream}"],
                        ctx,
                    )
                    parsed = parse_ahead_behind(counts.stdout) if counts.ok else None
                    if parsed is not None:
                        status.ahead, status.behind = parsed
                        status.tracking = TrackingState.TRACKED
                elif "no upstream" not in up.stderr.lower():
                    status.tracking = TrackingState.UNKNOWN

            porcelain = self._check(repo, ["status", "--porcelain", "-z"], "status", ctx)
            status.files = parse_porcelain_status(porcelain.stdout)
            return status

    def log(
        self,
        repo: Repo,
        ref: str = "",
        max_count: int = 0,
        oneline: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> list[CommitInfo]:
        """Return commit history, newest first.

        ``max_count <= 0`` means no limit. A repository without commits
        yields an empty list.
        """
        _validate_ref(ref)
        args = ["log", "--oneline" if oneline else LOG_FORMAT]
        if max_count > 0:
            args.extend(["-n", str(max_count)])
        if ref:
            args.append(ref)

        result = self._run(repo.path, args, ctx)
        if not result.ok:
            if any(marker in result.stderr for marker in _NO_COMMITS_MARKERS):
                return []
            raise classify_failure("log", result)
        if oneline:
            return parse_oneline_log(result.stdout)
        return parse_log(result.stdout)

    def diff(
        self,
        repo: Repo,
        base: str = "",
        head: str = "",
        stat: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> str:
        _validate_ref(base, "base")
        _validate_ref(head, "head")
        args = ["diff"]
        if stat:
            args.append("--stat")
        if base and head:
            args.append(f"{base}...{head}")
        elif base or head:
            args.append(base or head)
        return self._check(repo, args, "diff", ctx).stdout

    def blame(
        self, repo: Repo, file: str, ref: str = "", ctx: Optional[ExecContext] = None
    ) -> str:
        _require(file, "file")
        _validate_ref(ref)
        args = ["blame"]
        if ref:
            args.append(ref)
        args.extend(["--", file])
        return self._check(repo, args, "blame", ctx).stdout

    def rev_parse(self, repo: Repo, ref: str, ctx: Optional[ExecContext] = None) -> str:
        _validate_name(ref, "ref")
        return self._check(repo, ["rev-parse", "--verify", ref], "rev-parse", ctx).stdout.strip()

    def show(self, repo: Repo, ref: str, ctx: Optional[ExecContext] = None) -> str:
        _validate_name(ref, "ref")
        return self._check(repo, ["show", ref], "show", ctx).stdout

    def ls_tree(
        self, repo: Repo, ref: str, path: str = "", ctx: Optional[ExecContext] = None
    ) -> str:
        _validate_name(ref, "ref")
        args = ["ls-tree", ref]
        if path:
            args.append(path)
        return self._check(repo, args, "ls-tree", ctx).stdout

    # ------------------------------------------------------------------
    # Remotes
    # ------------------------------------------------------------------

    def list_remotes(self, repo: Repo, ctx: Optional[ExecContext] = None) -> list[RemoteInfo]:
        result = self._check(repo, ["remote", "-v"], "list remotes", ctx)
        return parse_remotes(result.stdout)

    def add_remote(
        self, repo: Repo, name: str, url: str, ctx: Optional[ExecContext] = None
    ) -> None:
        _validate_name(name, "remote name")
        _validate_name(url, "remote URL")
        self._check(repo, ["remote", "add", name, url], f"add remote {name}", ctx)
        self.logger.info(
            "Remote %s added", name, extra={"remote": name, "url": sanitize_url(url)}
        )

    def remove_remote(self, repo: Repo, name: str, ctx: Optional[ExecContext] = None) -> None:
        _validate_name(name, "remote name")
        self._check(repo, ["remote", "remove", name], f"remove remote {name}", ctx)
        self.logger.info("Remote %s removed", name, extra={"remote": name})

    def set_remote_url(
        self, repo: Repo, name: str, url: str, ctx: Optional[ExecContext] = None
    ) -> None:
        _validate_name(name, "remote name")
        _validate_name(url, "remote URL")
        self._check(repo, ["remote", "set-url", name, url], f"set URL of remote {name}", ctx)
        self.logger.info(
            "Remote %s URL updated", name, extra={"remote": name, "url": sanitize_url(url)}
        )

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def fetch(
        self,
        repo: Repo,
        remote: str = "",
        prune: bool = False,
        tags: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        _validate_ref(remote, "remote")
        args = ["fetch"]
        if prune:
            args.append("--prune")
        if tags:
            args.append("--tags")
        if remote:
            args.append(remote)
        self.logger.info(
            "Fetching %s", remote or "default remote",
            extra={"repo_path": repo.path, "remote": remote, "prune": prune, "tags": tags},
        )
        self._check(repo, args, "fetch", ctx)

    def pull(
        self,
        repo: Repo,
        remote: str = "",
        branch: str = "",
        rebase: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        _validate_ref(remote, "remote")
        _validate_ref(branch, "branch")
        if branch and not remote:
            raise ValidationError("branch requires a remote")
        args = ["pull"]
        if rebase:
            args.append("--rebase")
        if remote:
            args.append(remote)
        if branch:
            args.append(branch)
        self.logger.info(
            "Pulling %s %s", remote or "default remote", branch,
            extra={"repo_path": repo.path, "remote": remote, "branch": branch, "rebase": rebase},
        )
        self._check(repo, args, "pull", ctx)

    def push(
        self,
        repo: Repo,
        remote: str = "",
        branch: str = "",
        force: bool = False,
        tags: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        _validate_ref(remote, "remote")
        _validate_ref(branch, "branch")
        if branch and not remote:
            raise ValidationError("branch requires a remote")
        args = ["push"]
        if force:
            args.append("--force-with-lease")
        if tags:
            args.append("--tags")
        if remote:
            args.append(remote)
        if branch:
            args.append(branch)
        self.logger.info(
            "Pushing %s %s", remote or "default remote", branch,
            extra={
                "repo_path": repo.path,
                "remote": remote,
                "branch": branch,
                "force": force,
                "tags": tags,
            },
        )
        self._check(repo, args, "push", ctx)

    # ------------------------------------------------------------------
    # Branches & Tags
    # ------------------------------------------------------------------

    def list_branches(
        self, repo: Repo, all_: bool = False, ctx: Optional[ExecContext] = None
    ) -> list[BranchInfo]:
        args = ["branch", "-vv"]
        if all_:
            args.append("-a")
        result = self._check(repo, args, "list branches", ctx)
        branches = parse_branches(result.stdout)

        refs = self._check(
            repo, ["for-each-ref", UPSTREAM_FORMAT, "refs/heads"], "list upstreams", ctx
        )
        upstreams = parse_upstreams(refs.stdout)
        for branch in branches:
            if not branch.remote and branch.name in upstreams:
                branch.upstream, branch.ahead, branch.behind = upstreams[branch.name]
        return branches

    def create_branch(
        self,
        repo: Repo,
        name: str,
        start_point: str = "",
        ctx: Optional[ExecContext] = None,
    ) -> None:
        _validate_name(name, "branch name")
        _validate_ref(start_point, "start point")
        args = ["branch", name]
        if start_point:
            args.append(start_point)
        self._check(repo, args, f"create branch {name}", ctx)
        self.logger.info(
            "Branch %s created", name, extra={"branch": name, "start_point": start_point}
        )

    def delete_branch(
        self, repo: Repo, name: str, force: bool = False, ctx: Optional[ExecContext] = None
    ) -> None:
        _validate_name(name, "branch name")
        self._check(repo, ["branch", "-D" if force else "-d", name], f"delete branch {name}", ctx)
        self.logger.info("Branch %s deleted", name, extra={"branch": name, "force": force})

    def checkout(
        self,
        repo: Repo,
        ref: str,
        create_branch: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        _validate_name(ref, "ref")
        args = ["checkout"]
        if create_branch:
            args.append("-b")
        args.append(ref)
        self._check(repo, args, f"checkout {ref}", ctx)
        self.logger.info("Checked out %s", ref, extra={"ref": ref, "create_branch": create_branch})

    def tag(
        self,
        repo: Repo,
        name: str,
        ref: str = "",
        message: str = "",
        sign: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        """Create a tag. A message makes it annotated; signing requires one."""
        _validate_name(name, "tag name")
        _validate_ref(ref)
        if sign and not message:
            raise ValidationError("a signed tag requires a message")
        args = ["tag"]
        if sign:
            args.append("-s")
        if message:
            args.extend(["-m", message])
        args.append(name)
        if ref:
            args.append(ref)
        self._check(repo, args, f"tag {name}", ctx)
        self.logger.info("Tag %s created", name, extra={"tag": name, "ref": ref, "sign": sign})

    def delete_tag(self, repo: Repo, name: str, ctx: Optional[ExecContext] = None) -> None:
        _validate_name(name, "tag name")
        self._check(repo, ["tag", "-d", name], f"delete tag {name}", ctx)
        self.logger.info("Tag %s deleted", name, extra={"tag": name})

    # ------------------------------------------------------------------
    # Merge Flow
    # ------------------------------------------------------------------

    def merge(
        self, repo: Repo, ref: str, no_ff: bool = False, ctx: Optional[ExecContext] = None
    ) -> None:
        _validate_name(ref, "ref")
        args = ["merge", "--no-edit"]
        if no_ff:
            args.append("--no-ff")
        args.append(ref)
        self._check(repo, args, f"merge {ref}", ctx)
        self.logger.info("Merged %s", ref, extra={"ref": ref, "no_ff": no_ff})

    def rebase(
        self,
        repo: Repo,
        upstream: str,
        interactive: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        if interactive:
            self.require(Capability.INTERACTIVE_REBASE)
        _validate_name(upstream, "upstream")
        self._check(repo, ["rebase", upstream], f"rebase onto {upstream}", ctx)
        self.logger.info("Rebased onto %s", upstream, extra={"ref": upstream})

    def cherry_pick(self, repo: Repo, commit: str, ctx: Optional[ExecContext] = None) -> None:
        _validate_name(commit, "commit")
        self._check(repo, ["cherry-pick", commit], f"cherry-pick {commit}", ctx)

    def revert(self, repo: Repo, commit: str, ctx: Optional[ExecContext] = None) -> None:
        _validate_name(commit, "commit")
        self._check(repo, ["revert", "--no-edit", commit], f"revert {commit}", ctx)

    # ------------------------------------------------------------------
    # Stash, Worktrees, Submodules
    # ------------------------------------------------------------------

    def stash_save(
        self,
        repo: Repo,
        message: str = "",
        include_untracked: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        args = ["stash", "push"]
        if include_untracked:
            args.append("--include-untracked")
        if message:
            args.extend(["-m", message])
        self._check(repo, args, "stash", ctx)

    def stash_list(self, repo: Repo, ctx: Optional[ExecContext] = None) -> list[str]:
        return parse_stash_list(self._check(repo, ["stash", "list"], "stash list", ctx).stdout)

    def stash_pop(self, repo: Repo, index: int = 0, ctx: Optional[ExecContext] = None) -> None:
        if index < 0:
            raise ValidationError(f"stash index must be non-negative: {index}")
        self._check(repo, ["stash", "pop", f"stash@{{{index}}}"], "stash pop", ctx)

    def worktree_create(
        self, repo: Repo, path: str, branch: str = "", ctx: Optional[ExecContext] = None
    ) -> None:
        _require(path, "worktree path")
        _validate_ref(branch, "branch")
        dest = str(Path(path).expanduser().resolve())
        args = ["worktree", "add", dest]
        if branch:
            args.append(branch)
        self._check(repo, args, "worktree add", ctx)
        self.logger.info("Worktree created at %s", dest, extra={"worktree": dest, "branch": branch})

    def worktree_remove(
        self, repo: Repo, path: str, force: bool = False, ctx: Optional[ExecContext] = None
    ) -> None:
        _require(path, "worktree path")
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(str(Path(path).expanduser().resolve()))
        self._check(repo, args, "worktree remove", ctx)

    def worktree_list(self, repo: Repo, ctx: Optional[ExecContext] = None) -> list[str]:
        result = self._check(repo, ["worktree", "list", "--porcelain"], "worktree list", ctx)
        return parse_worktree_list(result.stdout)

    def submodule_init(self, repo: Repo, path: str = "", ctx: Optional[ExecContext] = None) -> None:
        args = ["submodule", "init"]
        if path:
            args.extend(["--", path])
        self._check(repo, args, "submodule init", ctx)

    def submodule_update(
        self,
        repo: Repo,
        path: str = "",
        recursive: bool = False,
        ctx: Optional[ExecContext] = None,
    ) -> None:
        args = ["submodule", "update", "--init"]
        if recursive:
            args.append("--recursive")
        if path:
            args.extend(["--", path])
        self._check(repo, args, "submodule update", ctx)

    def submodule_status(self, repo: Repo, ctx: Optional[ExecContext] = None) -> str:
        return self._check(repo, ["submodule", "status"], "submodule status", ctx).stdout

    # ------------------------------------------------------------------
    # LFS (not provided by this backend)
    # ------------------------------------------------------------------

    def lfs_install(self, repo: Repo, ctx: Optional[ExecContext] = None) -> None:
        self.require(Capability.LFS)

    def lfs_fetch(self, repo: Repo, remote: str = "", ctx: Optional[ExecContext] = None) -> None:
        self.require(Capability.LFS)

    def lfs_pull(self, repo: Repo, remote: str = "", ctx: Optional[ExecContext] = None) -> None:
        self.require(Capability.LFS)

    # ------------------------------------------------------------------
    # Raw
    # ------------------------------------------------------------------

    def run_raw(
        self, repo: Repo, args: list[str], ctx: Optional[ExecContext] = None
    ) -> ExecResult:
        """Run arbitrary git arguments. Non-zero exits are returned, not raised."""
        self.require(Capability.RAW)
        if not args:
            raise ValidationError("args are required")
        return self._run(repo.path, list(args), ctx)
