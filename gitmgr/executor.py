"""Secure git subprocess execution.

Every git invocation in gitmgr goes through :class:`GitExecutor`:

- Arguments are an explicit token list (never a shell string) and are
  filtered by :func:`sanitize_args` before use.
- The child environment is rebuilt from scratch by
  :func:`build_secure_env`; nothing is inherited from the caller.
- Each call is bounded by a deadline and can be cancelled through an
  :class:`ExecContext`; either kills the child and discards its output.
- Non-zero exits are returned as data. Only transport failures
  (binary missing, deadline, cancellation, OS errors) raise.
- stderr is scrubbed of credentials before it leaves this module.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from gitmgr.constants import (
    GIT_BINARY,
    SECURE_PATH_DIRS,
    SHELL_METACHARACTERS,
    TIMEOUT_GIT_DEFAULT,
)
from gitmgr.errors import (
    CommandCancelledError,
    CommandTimeoutError,
    GitNotFoundError,
    TransportError,
    ValidationError,
)
from gitmgr.models import ExecResult
from gitmgr.redaction import scrub_output

# Flags whose following token carries free-form text (commit/tag/stash messages).
_MESSAGE_FLAGS: frozenset = frozenset({"-m", "--message"})

# Flags carrying free-form text in the same token.
_TEXT_FLAG_PREFIXES: tuple = ("--message=", "--format=", "--pretty=")

# How often a running child is checked for cancellation.
_POLL_INTERVAL = 0.1


# ---------------------------------------------------------------------------
# Call Context
# ---------------------------------------------------------------------------


@dataclass
class ExecContext:
    """Deadline and cancellation shared by every subprocess of one logical call.

    A multi-step operation (status runs four git commands) passes the same
    context to each step, so the deadline bounds the whole operation.
    """

    deadline: Optional[float] = None
    """Absolute ``time.monotonic()`` value, or None for the executor default."""

    cancel_event: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def with_timeout(cls, seconds: float) -> "ExecContext":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None if there is none."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()


# ---------------------------------------------------------------------------
# Argument & Environment Sanitization
# ---------------------------------------------------------------------------


def sanitize_args(args: Sequence[str]) -> List[str]:
    """Filter an argument vector before it is handed to git.

    Empty tokens are dropped. Tokens containing a shell metacharacter
    (``; | & $ `` and backtick) are dropped unless they are allow-listed:
    the value following ``-m``/``--message``, or a token starting with
    ``--message=``, ``--format=`` or ``--pretty=``. Allow-listed tokens
    pass through unmodified; their content is not inspected.
    """
    sanitized: List[str] = []
    takes_message = False
    for arg in args:
        is_message_value = takes_message
        takes_message = False
        if not arg:
            continue
        if arg in _MESSAGE_FLAGS:
            sanitized.append(arg)
            takes_message = True
            continue
        if is_message_value or arg.startswith(_TEXT_FLAG_PREFIXES):
            sanitized.append(arg)
            continue
        if any(ch in arg for ch in SHELL_METACHARACTERS):
            continue
        sanitized.append(arg)
    return sanitized


def secure_path() -> str:
    """Return the PATH given to git: canonical install directories only."""
    return ":".join(SECURE_PATH_DIRS)


def build_secure_env() -> Dict[str, str]:
    """Build the complete environment for a git child process.

    Interactive credential prompts are disabled and the locale is fixed so
    output parsing is stable. No variable is inherited from this process.
    """
    return {
        "GIT_TERMINAL_PROMPT": "0",
        "LC_ALL": "C",
        "PATH": secure_path(),
    }


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class GitExecutor:
    """Runs git against a repository path with the security policy applied."""

    def __init__(
        self,
        git_binary: str = GIT_BINARY,
        timeout: float = TIMEOUT_GIT_DEFAULT,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.git_binary = git_binary
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def set_timeout(self, timeout: float) -> None:
        """Change the default applied to calls without a deadline."""
        self.timeout = timeout

    def run(
        self,
        repo_path: Union[str, Path],
        args: Sequence[str],
        ctx: Optional[ExecContext] = None,
    ) -> ExecResult:
        """Run ``git -C <repo_path> <args>``.

        Args:
            repo_path: Directory git operates in.
            args: Argument tokens, sanitized before use.
            ctx: Optional deadline/cancellation. Without one the executor's
                default timeout applies.

        Returns:
            ExecResult with the real exit code; non-zero exits are not errors.

        Raises:
            CommandCancelledError: ``ctx`` was cancelled before or during the run.
            CommandTimeoutError: The deadline passed before or during the run.
            GitNotFoundError: The git binary could not be executed.
            ValidationError: ``repo_path`` or an argument contains a NUL byte.
            TransportError: Any other OS-level failure to run git.
        """
        if ctx is not None and ctx.cancelled:
            raise CommandCancelledError("git call cancelled before start")

        remaining = ctx.remaining() if ctx is not None else None
        timeout = self.timeout if remaining is None else remaining
        if timeout <= 0:
            raise CommandTimeoutError("deadline exceeded before git started")

        if "\0" in str(repo_path) or any("\0" in arg for arg in args):
            raise ValidationError("git arguments must not contain NUL bytes")

        cmd = [self.git_binary, "-C", str(repo_path), *sanitize_args(args)]
        subcommand = cmd[3] if len(cmd) > 3 else ""

        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=build_secure_env(),
            )
        except FileNotFoundError as exc:
            raise GitNotFoundError(f"git executable not found: {self.git_binary}") from exc
        except OSError as exc:
            raise TransportError(f"failed to execute git: {exc}") from exc

        deadline = start + timeout
        cancel_event = ctx.cancel_event if ctx is not None else None
        try:
            while True:
                left = deadline - time.monotonic()
                wait = left if cancel_event is None else min(left, _POLL_INTERVAL)
                try:
                    stdout, stderr = proc.communicate(timeout=max(wait, 0))
                    break
                except subprocess.TimeoutExpired:
                    if cancel_event is not None and cancel_event.is_set():
                        self._kill(proc)
                        raise CommandCancelledError(f"git {subcommand} cancelled")
                    if time.monotonic() >= deadline:
                        self._kill(proc)
                        raise CommandTimeoutError(
                            f"git {subcommand} timed out after {timeout:.0f}s"
                        )
        except OSError as exc:
            self._kill(proc)
            raise TransportError(f"I/O error while running git: {exc}") from exc

        duration = time.monotonic() - start
        result = ExecResult(
            exit_code=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=scrub_output(stderr.decode("utf-8", errors="replace")),
            duration=duration,
        )
        self.logger.debug(
            "git %s exited %d in %.3fs",
            subcommand,
            result.exit_code,
            duration,
            extra={"subcommand": subcommand, "exit_code": result.exit_code},
        )
        return result

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        """Kill the child and reap it; buffered output is discarded."""
        try:
            proc.kill()
        except OSError:
            pass
        try:
            proc.communicate()
        except (OSError, ValueError):
            pass
