"""Version parsing and bumping utilities.

Versions are semver.Version objects. Parsing is more lenient than
semver.Version.parse: the MAJOR.MINOR.PATCH triple may appear anywhere in the
string, the pre-release is everything between the first "-" and an optional
"+", and the build is everything after the "+". Bumps keep the pre-release and
build parts of the input.
"""

from __future__ import annotations

import re
from enum import Enum

import semver

from .exceptions import VersionParseError

#: Previous release used when no version tag is reachable from the target branch.
UNRELEASED = semver.Version(0, 0, 0)

VERSION_PATTERN = re.compile(
    r"(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<prerelease>[^+]+))?(?:\+(?P<build>.*))?"
)
TAG_PATTERN = re.compile(r"^v?(?P<version>\d+\.\d+\.\d+.*)$")


class BumpKind(str, Enum):
    """Unit of increment decided for a release."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Examples:
        "1.2.3" → 1.2.3
        "1.2.3-rc.1+build.5" → 1.2.3-rc.1+build.5

    Raises:
        VersionParseError: If no MAJOR.MINOR.PATCH triple is present ("1.2").
    """
    match = VERSION_PATTERN.search(version_str)
    if not match:
        raise VersionParseError(f"Unable to parse version string: {version_str}")
    return semver.Version(
        int(match["major"]),
        int(match["minor"]),
        int(match["patch"]),
        # An empty build ("1.2.3+") renders as nothing, same as no build
        match["prerelease"] or None,
        match["build"] or None,
    )


def parse_version_tag(tag_name: str) -> semver.Version | None:
    """Parse a tag name like "v1.2.3" or "1.2.3", or return None if it isn't one."""
    match = TAG_PATTERN.match(tag_name)
    if not match:
        return None
    return parse_version(match["version"])


def bump_major(version: semver.Version) -> semver.Version:
    """1.2.3-rc → 2.0.0-rc"""
    return version.replace(major=version.major + 1, minor=0, patch=0)


def bump_minor(version: semver.Version) -> semver.Version:
    """1.2.3-rc → 1.3.0-rc"""
    return version.replace(minor=version.minor + 1, patch=0)


def bump_patch(version: semver.Version) -> semver.Version:
    """1.2.3-rc → 1.2.4-rc"""
    return version.replace(patch=version.patch + 1)


_BUMPS = {
    BumpKind.MAJOR: bump_major,
    BumpKind.MINOR: bump_minor,
    BumpKind.PATCH: bump_patch,
}


def bump(version: semver.Version, kind: BumpKind) -> semver.Version:
    """Return a new version incremented by the given bump kind."""
    return _BUMPS[kind](version)
