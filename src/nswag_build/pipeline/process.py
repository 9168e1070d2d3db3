"""External tool invocation.

All subprocess calls go through ``run_command`` so failures surface as
``CommandError`` with the tool's output attached.
"""

from __future__ import annotations

import os
import re
import subprocess  # nosec B404
from collections.abc import Callable, Sequence
from pathlib import Path

from nswag_build.errors import CommandError, ParseError
from nswag_build.logging import get_logger

log = get_logger("nswag_build.pipeline.process")

# https://github.com/owner/name(.git) or git@github.com:owner/name(.git)
_GITHUB_REMOTE_RE = re.compile(r"github\.com[:/](?P<owner>[^/\s]+)/(?P<name>[^/\s]+?)(?:\.git)?/?$")


CommandRunner = Callable[..., str]


def run_command(cmd: Sequence[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    """Run a command to completion and return its combined output.

    Raises:
        CommandError: The executable is missing or exited non-zero.
    """
    args = [str(part) for part in cmd]
    log.info("command_started", cmd=args[0], args=args[1:], cwd=str(cwd))
    try:
        proc = subprocess.run(  # nosec B603
            args,
            cwd=str(cwd),
            env={**os.environ, **env} if env else None,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as exc:
        raise CommandError(f"Executable not found: {args[0]}") from exc

    if proc.returncode != 0:
        log.warning(
            "command_failed",
            cmd=args[0],
            returncode=proc.returncode,
            output=(proc.stdout or "")[-500:],
        )
        raise CommandError(
            f"Command failed ({proc.returncode}): {' '.join(args)}",
            returncode=proc.returncode,
            output=proc.stdout or "",
        )

    return proc.stdout or ""


# ------------------------------------------------------------------
# git
# ------------------------------------------------------------------


class Git:
    """Thin wrapper over the ``git`` executable for one working tree."""

    def __init__(self, cwd: Path, runner: CommandRunner = run_command) -> None:
        self._cwd = cwd
        self._run = runner

    def __call__(self, *args: str) -> str:
        return self._run(["git", *args], cwd=self._cwd)

    def has_uncommitted_changes(self, *paths: str) -> bool:
        status = self("status", "--porcelain", *(["--", *paths] if paths else []))
        return bool(status.strip())

    def current_branch(self) -> str:
        return self("rev-parse", "--abbrev-ref", "HEAD").strip()

    def repository_identifier(self, remote: str = "origin") -> str:
        """Return ``owner/name`` of a GitHub remote."""
        url = self("remote", "get-url", remote).strip()
        return parse_github_remote(url)


def parse_github_remote(url: str) -> str:
    m = _GITHUB_REMOTE_RE.search(url.strip())
    if m is None:
        raise ParseError(f"Not a GitHub remote URL: {url!r}")
    return f"{m.group('owner')}/{m.group('name')}"
