"""External command execution for the code-review helper.

Every git/gh invocation goes through run_command so callers get a
CommandResult back instead of an exception when the tool fails.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import EXIT_NOT_FOUND, EXIT_TIMEOUT, get_timeout

logger = logging.getLogger("code-review.runner")


@dataclass
class CommandResult:
    """Captured output of one external command."""
    cmd: List[str]
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    took_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cmd": self.cmd,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "returncode": self.returncode,
            "took_ms": self.took_ms,
        }


def tool_available(name: str) -> bool:
    """Check whether an executable is on PATH."""
    return shutil.which(name) is not None


def run_command(
    cmd: List[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        cmd: Command and arguments to execute
        cwd: Working directory for the command
        timeout: Timeout in seconds (default from CODE_REVIEW_TIMEOUT)

    Returns:
        CommandResult with stdout/stderr verbatim. A missing executable
        yields returncode 127 and a timeout yields 124.
    """
    effective_timeout = timeout if timeout is not None else get_timeout()
    logger.debug("Running %s (timeout=%ss)", " ".join(cmd), effective_timeout)
    t0 = time.time()

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(cwd) if cwd else None,
            timeout=effective_timeout,
        )
    except FileNotFoundError:
        logger.debug("Executable not found: %s", cmd[0])
        return CommandResult(
            cmd=list(cmd),
            stderr=f"Error: {cmd[0]} not found on PATH",
            returncode=EXIT_NOT_FOUND,
            took_ms=int((time.time() - t0) * 1000),
        )
    except subprocess.TimeoutExpired:
        logger.debug("Timed out after %ss: %s", effective_timeout, cmd[0])
        return CommandResult(
            cmd=list(cmd),
            stderr=f"Error: {cmd[0]} timed out after {effective_timeout}s",
            returncode=EXIT_TIMEOUT,
            took_ms=int((time.time() - t0) * 1000),
        )

    result = CommandResult(
        cmd=list(cmd),
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        returncode=proc.returncode,
        took_ms=int((time.time() - t0) * 1000),
    )
    logger.debug("%s exited %d in %dms", cmd[0], result.returncode, result.took_ms)
    return result


@dataclass
class ToolStatus:
    """Availability of one external CLI."""
    name: str
    installed: bool
    version: str = ""
    authenticated: Optional[bool] = None
    detail: str = ""


def check_tools() -> List[ToolStatus]:
    """Report git and gh availability, plus gh authentication."""
    statuses = []

    git_installed = tool_available("git")
    git = ToolStatus(name="git", installed=git_installed)
    if git_installed:
        res = run_command(["git", "--version"])
        git.version = res.stdout.strip()
    statuses.append(git)

    gh_installed = tool_available("gh")
    gh = ToolStatus(name="gh", installed=gh_installed)
    if gh_installed:
        res = run_command(["gh", "--version"])
        gh.version = res.stdout.strip().splitlines()[0] if res.stdout.strip() else ""
        auth = run_command(["gh", "auth", "status"])
        gh.authenticated = auth.ok
        if not auth.ok:
            gh.detail = "Run: gh auth login"
    statuses.append(gh)

    return statuses
