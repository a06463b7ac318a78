"""Tests for lazy_release.releases."""

from __future__ import annotations

import pytest

from lazy_release.body import wrap_body
from lazy_release.models import PullRequest, Tag
from lazy_release.releases import (
    build_release,
    determine_releases,
    is_release_candidate,
    version_tag_shas,
)

PREFIX = "lazy-release--branches--"
PENDING = "autorelease: pending"


def release_pull_request(
    number: int, version: str, sha: str | None = None, labels: list[str] | None = None
) -> PullRequest:
    return PullRequest(
        number=number,
        title=f"chore(main): release {version}",
        body=wrap_body(
            f"## v{version} (2024-01-01)\n\n### Bug Fixes\n\n- Fix {number}\n"
        ),
        head_branch_name=f"{PREFIX}main",
        base_branch_name="main",
        sha=sha if sha is not None else f"sha{number}",
        labels=labels if labels is not None else [PENDING],
    )


def feature_pull_request(number: int) -> PullRequest:
    return PullRequest(
        number=number,
        title="Add a feature",
        body="Adds a feature",
        head_branch_name=f"feature-{number}",
        base_branch_name="main",
        sha=f"sha{number}",
        labels=["feat"],
    )


class TestBuildRelease:
    def test_release_from_pull_request(self) -> None:
        release = build_release(release_pull_request(12, "1.4.0"))

        assert release is not None
        assert release.tag == "v1.4.0"
        assert release.sha == "sha12"
        assert release.pull_request_number == 12
        assert release.notes.startswith("## v1.4.0 (2024-01-01)")
        assert release.notes.endswith("- Fix 12")

    def test_requires_sha(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert build_release(release_pull_request(3, "1.0.0", sha="")) is None
        assert "Pull request #3 has no SHA" in capsys.readouterr().err

    def test_requires_version_in_body(self) -> None:
        pull_request = PullRequest(number=4, body="No release notes here", sha="abc")
        assert build_release(pull_request) is None


class TestIsReleaseCandidate:
    def test_by_head_branch(self) -> None:
        pull_request = release_pull_request(1, "1.0.0", labels=[])
        assert is_release_candidate(pull_request, PREFIX, PENDING)

    def test_by_pending_label(self) -> None:
        pull_request = PullRequest(
            number=1, head_branch_name="renamed", labels=[PENDING]
        )
        assert is_release_candidate(pull_request, PREFIX, PENDING)

    def test_other_pull_request(self) -> None:
        assert not is_release_candidate(feature_pull_request(1), PREFIX, PENDING)


class TestVersionTagShas:
    def test_only_version_tags(self, remote) -> None:
        source = remote(
            tags=[
                Tag(sha="a", name="v1.0.0"),
                Tag(sha="b", name="nightly"),
                Tag(sha="c", name="0.9.0"),
            ]
        )
        assert version_tag_shas(source) == {"a", "c"}


class TestDetermineReleases:
    def test_untagged_release_pull_request(self, remote) -> None:
        source = remote(
            tags=[Tag(sha="sha1", name="v1.0.0")],
            pull_requests=[
                release_pull_request(2, "1.1.0"),
                release_pull_request(1, "1.0.0"),
            ],
        )

        releases = determine_releases(source, "main", PREFIX, PENDING)

        assert [r.tag for r in releases] == ["v1.1.0"]

    def test_newest_first(self, remote) -> None:
        source = remote(
            pull_requests=[
                release_pull_request(3, "1.2.0"),
                feature_pull_request(2),
                release_pull_request(1, "1.1.0"),
            ],
        )

        releases = determine_releases(source, "main", PREFIX, PENDING)

        assert [r.tag for r in releases] == ["v1.2.0", "v1.1.0"]

    def test_nothing_to_release(self, remote) -> None:
        source = remote(pull_requests=[feature_pull_request(1)])
        assert determine_releases(source, "main", PREFIX, PENDING) == []

    def test_stops_after_depth_released_candidates(self, remote) -> None:
        pull_requests = [release_pull_request(n, f"1.{n}.0") for n in range(12, 0, -1)]
        source = remote(
            tags=[Tag(sha=pr.sha, name=f"v1.{pr.number}.0") for pr in pull_requests],
            pull_requests=pull_requests,
        )

        releases = determine_releases(source, "main", PREFIX, PENDING)

        assert releases == []
        assert source.pull_request_pulls == 10

    def test_depth_is_configurable(self, remote) -> None:
        pull_requests = [release_pull_request(n, f"1.{n}.0") for n in range(5, 0, -1)]
        source = remote(
            tags=[
                Tag(sha=pr.sha, name=f"v1.{pr.number}.0") for pr in pull_requests[:2]
            ],
            pull_requests=pull_requests,
        )

        releases = determine_releases(source, "main", PREFIX, PENDING, depth=2)

        assert releases == []
        assert source.pull_request_pulls == 2

    def test_non_candidates_do_not_count(self, remote) -> None:
        released = [release_pull_request(n, f"1.{n}.0") for n in range(3, 0, -1)]
        pull_requests = [feature_pull_request(n) for n in range(100, 90, -1)] + released
        source = remote(
            tags=[Tag(sha=pr.sha, name=f"v1.{pr.number}.0") for pr in released],
            pull_requests=pull_requests,
        )

        determine_releases(source, "main", PREFIX, PENDING, depth=3)

        assert source.pull_request_pulls == len(pull_requests)

    def test_invalid_body_is_skipped_and_not_counted(self, remote) -> None:
        broken = PullRequest(
            number=9,
            body="Notes were removed",
            head_branch_name=f"{PREFIX}main",
            sha="sha9",
        )
        source = remote(
            tags=[Tag(sha="sha7", name="v1.7.0")],
            pull_requests=[
                broken,
                release_pull_request(8, "1.8.0"),
                release_pull_request(7, "1.7.0"),
            ],
        )

        releases = determine_releases(source, "main", PREFIX, PENDING, depth=1)

        assert [r.tag for r in releases] == ["v1.8.0"]
        assert source.pull_request_pulls == 3
