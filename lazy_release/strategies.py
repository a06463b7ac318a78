"""Release strategies: which files a release changes, per ecosystem.

A strategy turns the decided version and changelog entry into a list of
Updates. Strategies are looked up by key in STRATEGIES.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import semver
from pydantic import BaseModel, ConfigDict

from .changelog import ChangelogUpdater
from .exceptions import UnknownStrategyError
from .models import Update
from .toml import get_package_name, load_toml
from .updaters import CargoLockUpdater, CargoTomlUpdater

CHANGELOG_PATH = "CHANGELOG.md"


class FileSource(Protocol):
    def fetch_file_contents(self, path: str, branch: str) -> str: ...


class UpdateOptions(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    changelog_entry: str
    release_version: semver.Version
    target_branch: str


class Strategy(Protocol):
    def determine_updates(self, options: UpdateOptions) -> list[Update]: ...


class SimpleStrategy:
    """Only the changelog. Ecosystem strategies extend it with their own files."""

    def __init__(
        self, github: FileSource, changelog_path: str = CHANGELOG_PATH
    ) -> None:
        self.github = github
        self.changelog_path = changelog_path

    def determine_updates(self, options: UpdateOptions) -> list[Update]:
        return [
            Update(
                path=self.changelog_path,
                create_if_missing=True,
                updater=ChangelogUpdater(options.changelog_entry),
            )
        ]


class RustStrategy(SimpleStrategy):
    """Cargo crates: CHANGELOG.md, Cargo.toml and Cargo.lock."""

    manifest_path = "Cargo.toml"
    lock_path = "Cargo.lock"

    def determine_updates(self, options: UpdateOptions) -> list[Update]:
        updates = super().determine_updates(options)
        updates.append(
            Update(
                path=self.manifest_path,
                create_if_missing=False,
                updater=CargoTomlUpdater(options.release_version),
            )
        )

        # The lockfile needs the crate name, so the manifest must exist
        manifest = self.github.fetch_file_contents(
            self.manifest_path, options.target_branch
        )
        versions: dict[str, semver.Version] = {}
        name = get_package_name(load_toml(manifest))
        if name:
            versions[name] = options.release_version

        updates.append(
            Update(
                path=self.lock_path,
                create_if_missing=False,
                updater=CargoLockUpdater(versions),
            )
        )
        return updates


StrategyBuilder = Callable[..., Strategy]

STRATEGIES: dict[str, StrategyBuilder] = {
    "rust": RustStrategy,
    "simple": SimpleStrategy,
}


def strategy_types() -> list[str]:
    """Registered strategy keys, sorted."""
    return sorted(STRATEGIES)


def validate_strategy(key: str) -> None:
    if key not in STRATEGIES:
        raise UnknownStrategyError(key)


def build_strategy(
    key: str, github: FileSource, changelog_path: str = CHANGELOG_PATH
) -> Strategy:
    """Build the strategy registered under key.

    Raises:
        UnknownStrategyError: If no strategy is registered under key.
    """
    validate_strategy(key)
    return STRATEGIES[key](github, changelog_path=changelog_path)
