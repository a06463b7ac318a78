"""Configuration for lazy-release.

Settings come from the [tool.lazy-release] table of a local pyproject.toml when
there is one, and command line options override them. Keys may be written with
hyphens or underscores.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigError

CONFIG_TABLE = "lazy-release"


class ReleaseConfig(BaseModel):
    """Settings for planning and publishing releases.

    Attributes:
        strategy: Key of the release strategy (see strategies.STRATEGIES).
        target_branch: Branch to release from; the remote default branch if None.
        release_branch_prefix: Prefix of the release pull request head branch.
        label_pending: Label of release pull requests awaiting a tag.
        label_tagged: Label swapped in once the release has been published.
        release_history_depth: Released pull requests seen before the release
            scan assumes older ones are released too.
        max_commits: Upper bound on branch history read when resolving the
            previous release; unbounded if None.
        changelog_path: Path of the changelog in the repository.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: str = "rust"
    target_branch: str | None = None
    release_branch_prefix: str = "lazy-release--branches--"
    label_pending: str = "autorelease: pending"
    label_tagged: str = "autorelease: tagged"
    release_history_depth: int = Field(default=10, ge=1)
    max_commits: int | None = Field(default=None, ge=1)
    changelog_path: str = "CHANGELOG.md"

    def release_branch_name(self, target_branch: str) -> str:
        """Head branch of the release pull request for target_branch."""
        return f"{self.release_branch_prefix}{target_branch}"


def _normalize_keys(table: dict[str, Any]) -> dict[str, Any]:
    return {key.replace("-", "_"): value for key, value in table.items()}


def load_config(path: Path | None = None, **overrides: Any) -> ReleaseConfig:
    """Load configuration from pyproject.toml and apply overrides.

    Args:
        path: pyproject.toml to read. Defaults to ./pyproject.toml; a missing
              default file just means "no settings".
        **overrides: Values that take precedence; None values are ignored.

    Raises:
        ConfigError: If the file is missing (when given explicitly) or a
                     value is invalid.
    """
    settings: dict[str, Any] = {}

    pyproject = path or Path.cwd() / "pyproject.toml"
    if pyproject.exists():
        doc = tomlkit.parse(pyproject.read_text())
        table = doc.get("tool", {}).get(CONFIG_TABLE)
        if table:
            settings.update(_normalize_keys(table.unwrap()))
    elif path is not None:
        raise ConfigError(f"Config file not found: {path}")

    settings.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ReleaseConfig(**settings)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
