"""Minimal Git helper that discovers the remotes of a working directory."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Iterable, List, Optional, Protocol

import anyio

from .models import DEFAULT_COMMAND_TIMEOUT, Remote

logger = logging.getLogger(__name__)

GIT_EXECUTABLE = "git"
NO_REMOTES_ERROR = "No git remotes configured"

_REMOTE_LINE = re.compile(r"^(\S+)\s+(\S+)\s+\((fetch|push)\)$")


class GitCommandError(RuntimeError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, args: Iterable[str], returncode: int, stderr: str) -> None:
        self.command = [GIT_EXECUTABLE, *args]
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = self.stderr or f"{' '.join(self.command)} exited with status {returncode}"
        super().__init__(message)


class GitRunner(Protocol):
    def __call__(self, *args: str, cwd: str | Path, timeout: float) -> Awaitable[str]: ...


async def run_git(*args: str, cwd: str | Path, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> str:
    """Run ``git *args`` in *cwd* and return its decoded stdout.

    Raises :class:`GitCommandError` on a non-zero exit, :class:`TimeoutError`
    when *timeout* seconds elapse (the process is killed), and ``OSError``
    when git cannot be started.
    """

    with anyio.fail_after(timeout):
        result = await anyio.run_process([GIT_EXECUTABLE, *args], cwd=cwd, check=False)

    stdout = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise GitCommandError(args, result.returncode, stderr)
    return stdout


@dataclass(frozen=True)
class RemoteListing:
    """Outcome of a remote discovery: the remotes found, or why there are none."""

    remotes: List[Remote] = field(default_factory=list)
    error: Optional[str] = None


def parse_remote_lines(output: str) -> List[Remote]:
    """Parse ``git remote -v`` output, skipping lines of any other shape."""

    remotes: List[Remote] = []
    for line in output.splitlines():
        match = _REMOTE_LINE.match(line.strip())
        if not match:
            continue
        name, url, direction = match.groups()
        remotes.append(Remote(name=name, url=url, direction=direction))
    return remotes


def _describe_failure(exc: Exception, cwd: str | Path, timeout: float) -> str:
    if isinstance(exc, TimeoutError):
        return f"git remote -v timed out after {timeout:g} seconds"
    if isinstance(exc, FileNotFoundError):
        if exc.filename == GIT_EXECUTABLE:
            return "git executable not found"
        if exc.filename is not None and str(exc.filename) == str(cwd):
            return f"Working directory does not exist: {cwd}"
    return str(exc) or type(exc).__name__


async def list_remotes(
    cwd: str | Path,
    *,
    runner: GitRunner = run_git,
    timeout: float = DEFAULT_COMMAND_TIMEOUT,
) -> RemoteListing:
    """List the remotes configured for *cwd*.

    Ordinary failures (not a repository, git missing, timeout) never escape:
    they come back as an empty listing with ``error`` set.
    """

    try:
        output = await runner("remote", "-v", cwd=cwd, timeout=timeout)
    except Exception as exc:
        message = _describe_failure(exc, cwd, timeout)
        logger.debug("Remote discovery failed in %s: %s", cwd, message)
        return RemoteListing(error=message)

    remotes = parse_remote_lines(output)
    if not remotes:
        return RemoteListing(error=NO_REMOTES_ERROR)
    return RemoteListing(remotes=remotes)


__all__ = [
    "GIT_EXECUTABLE",
    "NO_REMOTES_ERROR",
    "GitCommandError",
    "GitRunner",
    "RemoteListing",
    "list_remotes",
    "parse_remote_lines",
    "run_git",
]
