"""Shell, git and gh utilities.

Provides thin wrappers around subprocess calls for running git, the GitHub
CLI and other binaries, plus the console output helpers used throughout the
release pipeline. When running inside GitHub Actions, step headers become
collapsible ``::group::`` blocks and debug lines use the ``::debug::``
workflow command.
"""

from __future__ import annotations

import os
import re
import subprocess
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .errors import ExternalCommandError

_HTTP_STATUS_RE = re.compile(r"\(HTTP (\d{3})\)|HTTP (\d{3})")


def in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def _execute(
    args: list[str],
    *,
    cwd: Path | str | None = None,
    input_text: str | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            cwd=cwd,
            input=input_text,
            check=False,
        )
    except FileNotFoundError as exc:
        raise ExternalCommandError(
            f"Command not found: {args[0]}", command=args
        ) from exc

    if check and result.returncode != 0:
        stderr = result.stderr.strip()
        status = None
        match = _HTTP_STATUS_RE.search(stderr)
        if match:
            status = int(match.group(1) or match.group(2))
        detail = stderr.splitlines()[-1] if stderr else "no output"
        raise ExternalCommandError(
            f"Command failed ({result.returncode}): {' '.join(args[:3])}: {detail}",
            command=args,
            returncode=result.returncode,
            stderr=stderr,
            status=status,
        )
    return result


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run in, defaults to the current directory.
        check: If True (default), raise ExternalCommandError on non-zero exit.
               Set to False for commands that may legitimately fail.

    Returns:
        Stripped stdout from the git command.
    """
    return _execute(["git", *args], cwd=cwd, check=check).stdout.strip()


def gh(*args: str, input_text: str | None = None, check: bool = True) -> str:
    """Run a GitHub CLI command and return stdout.

    Authentication comes from ``GH_TOKEN`` in the environment, which the CLI
    entry point sets from the ``github_token`` input.
    """
    return _execute(["gh", *args], input_text=input_text, check=check).stdout.strip()


def run(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run an arbitrary command and return its stripped stdout.

    Used for external binaries such as terraform-docs whose output we need.
    """
    return _execute(list(args), cwd=cwd, check=check).stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the release pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


@contextmanager
def group(msg: str) -> Iterator[None]:
    """Wrap a phase of output in a collapsible group (or a step header)."""
    if in_github_actions():
        print(f"::group::{msg}")
        try:
            yield
        finally:
            print("::endgroup::")
    else:
        step(msg)
        yield


def info(msg: str) -> None:
    print(f"  {msg}")


def debug(msg: str) -> None:
    if in_github_actions():
        for line in msg.splitlines() or [""]:
            print(f"::debug::{line}")
    elif os.environ.get("RUNNER_DEBUG") == "1":
        print(f"  [debug] {msg}")


def warning(msg: str) -> None:
    prefix = "::warning::" if in_github_actions() else "WARNING: "
    print(f"{prefix}{msg}", file=sys.stderr)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the pipeline.
    """
    prefix = "::error::" if in_github_actions() else "ERROR: "
    print(f"{prefix}{msg}", file=sys.stderr)
    sys.exit(1)


def plural(count: int, word: str, suffix: str = "s") -> str:
    return f"{count} {word}{'' if count == 1 else suffix}"
