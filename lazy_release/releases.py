"""Detecting merged release pull requests that have not been tagged yet."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from .body import extract_release_info
from .exceptions import VersionParseError
from .models import PullRequest, Release, Tag
from .shell import debug, info, warn
from .versions import parse_version_tag

#: How many released pull requests to see before assuming older ones are released too.
RELEASE_HISTORY_DEPTH = 10
#: How many of the newest tags are checked for already released shas.
VERSION_TAG_LIMIT = 100


class ReleaseSource(Protocol):
    def tags(self, max_results: int | None = None) -> Iterable[Tag]: ...

    def pull_requests(
        self, branch: str, status: str = "MERGED", max_results: int | None = None
    ) -> Iterable[PullRequest]: ...


def build_release(pull_request: PullRequest) -> Release | None:
    """Build a Release from a merged release pull request.

    Returns None if the pull request has no merge sha or its body does not
    carry release notes with a version heading.
    """
    if not pull_request.sha:
        warn(f"Pull request #{pull_request.number} has no SHA, not merged? Skipping.")
        return None

    release_info = extract_release_info(pull_request.body, pull_request.number)
    if release_info is None:
        return None

    return Release(
        sha=pull_request.sha,
        tag=f"v{release_info.version}",
        notes=release_info.notes,
        pull_request_number=pull_request.number,
    )


def version_tag_shas(source: ReleaseSource) -> set[str]:
    """Shas of the newest tags whose names are versions."""
    shas: set[str] = set()
    for tag in source.tags(VERSION_TAG_LIMIT):
        try:
            if parse_version_tag(tag.name) is not None:
                shas.add(tag.sha)
        except VersionParseError:
            continue
    return shas


def is_release_candidate(
    pull_request: PullRequest, release_branch_prefix: str, label_pending: str
) -> bool:
    return (
        pull_request.head_branch_name.startswith(release_branch_prefix)
        or label_pending in pull_request.labels
    )


def determine_releases(
    source: ReleaseSource,
    target_branch: str,
    release_branch_prefix: str,
    label_pending: str,
    depth: int = RELEASE_HISTORY_DEPTH,
) -> list[Release]:
    """Find merged release pull requests that still need a tag.

    Merged pull requests are scanned newest first. Only release candidates
    (release branch prefix or pending label) count. Once `depth` candidates
    turn out to be tagged already, the scan stops and older pull requests are
    assumed to be released.

    Args:
        source: Remote repository providing tags and pull requests.
        target_branch: Base branch of the release pull requests.
        release_branch_prefix: Head branch prefix of release pull requests.
        label_pending: Label carried by release pull requests awaiting a tag.
        depth: Number of already released candidates that ends the scan.

    Returns:
        Releases to publish, newest first.
    """
    info("Finding release candidates...")
    released_shas = version_tag_shas(source)

    releases: list[Release] = []
    confirmed = 0
    for pull_request in source.pull_requests(target_branch, "MERGED"):
        if not is_release_candidate(pull_request, release_branch_prefix, label_pending):
            continue

        if pull_request.sha and pull_request.sha in released_shas:
            debug(f"Skipping already released pull request #{pull_request.number}")
            confirmed += 1
            if confirmed >= depth:
                info(
                    f"Found {depth} previous releases after examining pull request "
                    f"#{pull_request.number}, assuming older pull requests have "
                    "been released"
                )
                break
            continue

        release = build_release(pull_request)
        if release is None:
            debug(
                f"Pull request #{pull_request.number} does not contain valid release "
                "notes or version"
            )
            continue
        debug(f"Found unreleased pull request #{pull_request.number}")
        releases.append(release)

    return releases
