"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git and
other external tools (uv) with their invocations logged.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .logs import get_logger

log = get_logger(__name__)


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain=v1").
        cwd: Repository directory. Defaults to the current directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., probing HEAD).

    Returns:
        Stripped stdout from the git command.

    Raises:
        subprocess.CalledProcessError: If check is True and git fails.
    """
    log.debug("running git", args=list(args), cwd=str(cwd or "."))
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def run(
    *args: str,
    cwd: Path | None = None,
    check: bool = True,
    capture: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run an arbitrary external command.

    Unlike git(), output streams directly to the terminal by default so
    users can see build and upload progress.

    Args:
        *args: Command and arguments (e.g., "uv", "build", "packages/a").
        cwd: Working directory for the command.
        check: If True (default), raise on non-zero exit.
        capture: If True, capture stdout/stderr instead of streaming them.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    log.debug("running command", cmd=" ".join(args), cwd=str(cwd or "."))
    return subprocess.run(args, cwd=cwd, check=check, capture_output=capture, text=True)
