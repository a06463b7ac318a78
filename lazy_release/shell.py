"""Shell and console utilities.

Provides a thin wrapper around the GitHub CLI plus the console output helpers
used throughout the release flow.
"""

from __future__ import annotations

import subprocess

import click

from .exceptions import GitHubError

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable debug() output."""
    global _verbose
    _verbose = enabled


def gh(*args: str, input: str | None = None, check: bool = True) -> str:
    """Run a gh command and return stdout.

    Args:
        *args: Arguments to pass to gh (e.g., "api", "repos/o/r").
        input: Text written to the command's stdin (used with --input -).
        check: If True (default), raise GitHubError on non-zero exit. Set to
               False for calls whose failure means "no data".

    Returns:
        Stripped stdout from the gh command, or "" when check is False and
        the command failed.
    """
    result = subprocess.run(
        ["gh", *args], input=input, capture_output=True, text=True, check=False
    )
    if result.returncode != 0:
        if check:
            raise GitHubError(
                f"gh {' '.join(args[:2])} failed with exit code {result.returncode}",
                stderr=result.stderr,
                output=result.stdout,
            )
        return ""
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the release flow in terminal output.
    """
    click.echo(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def info(msg: str) -> None:
    click.echo(f"{click.style('✔', fg='green')} {msg}")


def warn(msg: str) -> None:
    click.echo(f"{click.style('⚠', fg='yellow')} {msg}", err=True)


def debug(msg: str) -> None:
    if _verbose:
        click.echo(f"{click.style('›', fg='bright_black')} {msg}")

