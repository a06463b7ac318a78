"""Exception hierarchy for lazy-release.

Parse failures on tags and pull request bodies are caught where they occur and
treated as "skip this candidate"; everything else propagates to the CLI, which
turns it into a readable error.
"""

from __future__ import annotations

import re


class LazyReleaseError(Exception):
    """Base class for all lazy-release errors."""


class VersionParseError(LazyReleaseError, ValueError):
    """Raised when a string does not contain a MAJOR.MINOR.PATCH version."""


class ConfigError(LazyReleaseError):
    """Raised for invalid configuration values."""


class UnknownStrategyError(LazyReleaseError, KeyError):
    """Raised when a strategy key is not registered."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Invalid strategy '{self.key}'"


class FileNotFoundOnBranchError(LazyReleaseError):
    """Raised when a file does not exist on the requested branch."""

    def __init__(self, path: str, branch: str) -> None:
        super().__init__(f"File '{path}' does not exist on branch '{branch}'")
        self.path = path
        self.branch = branch


class DuplicateReleaseError(LazyReleaseError):
    """Raised when the remote already has a release for the tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"Release '{tag}' already exists")
        self.tag = tag


class GitHubError(LazyReleaseError):
    """Raised when a gh invocation fails."""

    def __init__(self, message: str, stderr: str = "", output: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr
        self.output = output

    @property
    def status(self) -> int | None:
        """HTTP status reported by gh api, if any."""
        match = re.search(r"HTTP (\d{3})", self.stderr)
        return int(match[1]) if match else None
