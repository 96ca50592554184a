"""Parsers for git's textual output.

Every function here is pure: text in, typed records out. Keeping the
format knowledge in one module means an alternate backend (or a
structured-output mode) can replace it without touching callers.

Tolerance policy: malformed individual lines are skipped, but output
that has content and yields no records at all raises ParseError so a
format change is never mistaken for an empty result.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from gitmgr.errors import ParseError
from gitmgr.models import BranchInfo, CommitInfo, FileStatus, RemoteInfo

LOG_FIELD_SEP = "\x1f"
LOG_RECORD_SEP = "\x1e"
LOG_FORMAT = "--pretty=format:%H%x1f%h%x1f%an%x1f%ae%x1f%ai%x1f%s%x1f%b%x1e"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"
LOG_MIN_FIELDS = 6

# Characters that do not count as "present" in a porcelain XY code.
_UNTRACKED_MARKERS = "?!"

UPSTREAM_FORMAT = "--format=%(refname:short)%00%(upstream:short)%00%(upstream:track)"

_AHEAD_RE = re.compile(r"ahead (\d+)")
_BEHIND_RE = re.compile(r"behind (\d+)")

_REMOTES_PREFIX = "remotes/"


def _require_records(text: str, records: list, what: str) -> None:
    if text.strip() and not records:
        raise ParseError(f"unrecognised {what} output: {text.strip().splitlines()[0][:120]!r}")


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def _code_present(ch: str) -> bool:
    return ch != " " and ch not in _UNTRACKED_MARKERS


def parse_porcelain_status(text: str) -> list[FileStatus]:
    """Parse ``git status --porcelain -z`` (v1) output.

    Entries are NUL-terminated ``XY<space>path`` records with paths
    verbatim (no C-style quoting). ``staged`` is true iff X is a real
    status; ``modified`` iff Y is. Untracked (``??``) and ignored (``!!``)
    entries are therefore neither staged nor modified. A rename or copy
    entry carries the destination and is followed by one extra field
    holding the source path.
    """
    files: list[FileStatus] = []
    fields = iter(text.split("\0"))
    for entry in fields:
        if len(entry) < 4 or entry[2] != " ":
            continue
        code = entry[:2]
        path = entry[3:]
        orig_path = ""
        if "R" in code or "C" in code:
            orig_path = next(fields, "")
        files.append(FileStatus(
            path=path,
            status=code,
            staged=_code_present(code[0]),
            modified=_code_present(code[1]),
            orig_path=orig_path,
        ))
    _require_records(text, files, "status")
    return files


def parse_ahead_behind(text: str) -> Optional[tuple[int, int]]:
    """Parse ``git rev-list --count --left-right A...B`` into (ahead, behind)."""
    counts = text.split()
    if len(counts) != 2:
        return None
    try:
        return int(counts[0]), int(counts[1])
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Log
# ---------------------------------------------------------------------------


def parse_log_date(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value.strip(), LOG_DATE_FORMAT)
    except ValueError:
        return None


def parse_log(text: str) -> list[CommitInfo]:
    """Parse output produced with :data:`LOG_FORMAT`.

    Records are separated by :data:`LOG_RECORD_SEP` when present, which
    keeps multi-line bodies intact; otherwise each line is one record.
    Fields are split on the unit separator (``%x1f``) positionally, so a
    ``|`` in a subject stays put. Records with fewer than six fields are
    skipped.
    """
    if LOG_RECORD_SEP in text:
        records = [r.lstrip("\n") for r in text.split(LOG_RECORD_SEP)]
    else:
        records = text.split("\n")

    commits: list[CommitInfo] = []
    for record in records:
        if not record.strip():
            continue
        parts = record.split(LOG_FIELD_SEP)
        if len(parts) < LOG_MIN_FIELDS:
            continue
        body = LOG_FIELD_SEP.join(parts[6:]).strip() if len(parts) > 6 else ""
        commits.append(CommitInfo(
            hash=parts[0],
            short_hash=parts[1],
            author=parts[2],
            email=parts[3],
            date=parse_log_date(parts[4]),
            subject=parts[5],
            body=body,
        ))
    _require_records(text, commits, "log")
    return commits


def parse_oneline_log(text: str) -> list[CommitInfo]:
    """Parse ``git log --oneline``: ``<short hash> <subject>`` per line."""
    commits: list[CommitInfo] = []
    for line in text.split("\n"):
        parts = line.split(" ", 1)
        if len(parts) < 2 or not parts[0]:
            continue
        commits.append(CommitInfo(short_hash=parts[0], subject=parts[1]))
    _require_records(text, commits, "log")
    return commits


# ---------------------------------------------------------------------------
# Remotes
# ---------------------------------------------------------------------------


def parse_remotes(text: str) -> list[RemoteInfo]:
    """Parse ``git remote -v``.

    Each remote usually appears twice (fetch and push). Lines are merged
    by name so every remote is reported exactly once, in the order first
    seen.
    """
    remotes: dict[str, RemoteInfo] = {}
    for line in text.split("\n"):
        parts = line.split()
        if len(parts) < 3:
            continue
        name, url, kind = parts[0], parts[1], parts[2].strip("()")
        remote = remotes.get(name)
        if remote is None:
            remote = remotes[name] = RemoteInfo(name=name, url=url)
        if kind == "fetch":
            remote.fetch_url = url
        elif kind == "push":
            remote.push_url = url
    result = list(remotes.values())
    _require_records(text, result, "remote")
    return result


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------


def parse_branches(text: str) -> list[BranchInfo]:
    """Parse the branch list of ``git branch -v`` / ``-vv`` (optionally ``-a``).

    - A leading ``*`` marks the current branch.
    - ``remotes/<remote>/<name>`` entries are split into remote and name.
    - Symbolic ``HEAD -> ...`` lines and detached-HEAD pseudo entries are
      excluded.

    Upstream information is not read from this output: the bracketed
    tracking hint cannot be told apart from a subject starting with ``[``.
    Use :func:`parse_upstreams` on ``for-each-ref`` output instead.
    """
    branches: list[BranchInfo] = []
    skipped_pseudo = False
    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            continue
        current = line.startswith("*")
        # "+" marks a branch checked out in another worktree.
        if line[0] in "*+":
            line = line[1:].strip()
        parts = line.split(None, 2)
        if line.startswith("(") or (len(parts) > 1 and parts[1] == "->"):
            skipped_pseudo = True
            continue
        if len(parts) < 2:
            continue

        branch = BranchInfo(name=parts[0], current=current)
        if branch.name.startswith(_REMOTES_PREFIX):
            remote, _, name = branch.name[len(_REMOTES_PREFIX):].partition("/")
            if name:
                branch.remote = remote
                branch.name = name
        branches.append(branch)

    if not skipped_pseudo:
        _require_records(text, branches, "branch")
    return branches


def parse_upstreams(text: str) -> dict[str, tuple[str, int, int]]:
    """Parse ``git for-each-ref`` output produced with :data:`UPSTREAM_FORMAT`.

    Each line is ``<branch>\\0<upstream>\\0<track>`` where track looks like
    ``[ahead 2, behind 1]``, ``[gone]`` or is empty. Returns a mapping of
    branch name to ``(upstream, ahead, behind)`` for branches that have
    an upstream configured.
    """
    upstreams: dict[str, tuple[str, int, int]] = {}
    for line in text.split("\n"):
        fields = line.split("\0")
        if len(fields) != 3 or not fields[0] or not fields[1]:
            continue
        name, upstream, track = fields
        ahead = _AHEAD_RE.search(track)
        behind = _BEHIND_RE.search(track)
        upstreams[name] = (
            upstream,
            int(ahead.group(1)) if ahead else 0,
            int(behind.group(1)) if behind else 0,
        )
    return upstreams


# ---------------------------------------------------------------------------
# Misc listings
# ---------------------------------------------------------------------------


def parse_stash_list(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.strip()]


def parse_worktree_list(text: str) -> list[str]:
    """Parse ``git worktree list --porcelain`` into worktree paths."""
    return [
        line[len("worktree "):]
        for line in text.split("\n")
        if line.startswith("worktree ")
    ]


def parse_bool(text: str) -> bool:
    """Parse git's ``true``/``false`` answers (rev-parse --is-*)."""
    return text.strip() == "true"
