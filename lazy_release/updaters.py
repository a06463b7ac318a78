"""Manifest and lockfile updaters for Rust crates.

Both updaters rewrite version strings in place with tomlkit, so comments,
ordering and whitespace of Cargo.toml and Cargo.lock are left untouched.
"""

from __future__ import annotations

from collections.abc import Mapping

import semver

from .toml import edit_toml, get_lock_packages, load_toml


class CargoTomlUpdater:
    """Sets [package].version in Cargo.toml."""

    def __init__(self, version: semver.Version) -> None:
        self.version = version

    def update_content(self, content: str | None) -> str:
        if not content:
            return ""
        return edit_toml(content, ("package", "version"), str(self.version))


class CargoLockUpdater:
    """Sets the version of every [[package]] entry of a released crate.

    Args:
        versions: Map of crate name → version it is being released at.
    """

    def __init__(self, versions: Mapping[str, semver.Version]) -> None:
        self.versions = dict(versions)

    def update_content(self, content: str | None) -> str:
        content = content or ""
        packages = get_lock_packages(load_toml(content))

        # Each edit works on the result of the previous one
        for index, package in enumerate(packages):
            name = str(package.get("name", ""))
            if name in self.versions:
                content = edit_toml(
                    content, ("package", index, "version"), str(self.versions[name])
                )
        return content
