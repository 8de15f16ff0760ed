"""Shell, git and gh utilities.

Thin wrappers around subprocess for the external tools the action drives,
plus the output helpers that make up its log.
"""

from __future__ import annotations

import subprocess
import sys


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., remote tag lookup).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()


def gh(*args: str, input: str | None = None, check: bool = True) -> str:
    """Run a GitHub CLI command and return stdout.

    The token is picked up by gh from GH_TOKEN / GITHUB_TOKEN in the
    environment.

    Args:
        *args: Arguments to pass to gh (e.g., "api", "repos/o/r/pulls").
        input: Optional text fed to stdin, used for JSON request bodies
               (``gh api --input -``).
        check: If True (default), raise on non-zero exit.
    """
    result = subprocess.run(
        ["gh", *args], input=input, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def run(
    *args: str, cwd: str | None = None, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary shell command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see install and publish progress.

    Args:
        *args: Command and arguments (e.g., "npm", "publish").
        cwd: Directory to run in, defaults to the current directory.
        check: If True (default), raise on non-zero exit.
    """
    return subprocess.run(args, cwd=cwd, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the action in the workflow log.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning as a GitHub Actions annotation.

    Recoverable problems (malformed changelog fragments, skipped packages)
    go through here so they surface in the run summary without failing it.
    """
    print(f"::warning::{msg}")


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the action.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
