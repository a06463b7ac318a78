"""Shared test fixtures."""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterator

import pytest

from lazy_release.exceptions import FileNotFoundOnBranchError
from lazy_release.models import Commit, PullRequest, Tag


class FakeRemote:
    """In-memory remote repository that counts how much of each sequence is read."""

    def __init__(
        self,
        tags: list[Tag] | None = None,
        commits: list[Commit] | None = None,
        pull_requests: list[PullRequest] | None = None,
        files: dict[str, str] | None = None,
    ) -> None:
        self._tags = tags or []
        self._commits = commits or []
        self._pull_requests = pull_requests or []
        self.files = files or {}
        self.history_calls = 0
        self.commit_pulls = 0
        self.pull_request_pulls = 0

    def tags(self, max_results: int | None = None) -> Iterator[Tag]:
        yield from self._tags[:max_results]

    def merge_commits(
        self, branch: str, max_results: int | None = None
    ) -> Iterator[Commit]:
        self.history_calls += 1
        for commit in self._commits[:max_results]:
            self.commit_pulls += 1
            yield commit

    def pull_requests(
        self,
        branch: str,
        status: str = "MERGED",
        max_results: int | None = None,
        strict: bool = False,
    ) -> Iterator[PullRequest]:
        for pull_request in self._pull_requests[:max_results]:
            self.pull_request_pulls += 1
            yield pull_request

    def fetch_file_contents(self, path: str, branch: str) -> str:
        if path not in self.files:
            raise FileNotFoundOnBranchError(path, branch)
        return self.files[path]

    def default_branch(self) -> str:
        return "main"


def _sha(message: str) -> str:
    return hashlib.sha1(message.encode()).hexdigest()


@pytest.fixture
def remote() -> type[FakeRemote]:
    """The FakeRemote class, to build remotes with per-test data."""
    return FakeRemote


@pytest.fixture
def make_commit() -> Callable[[str], Commit]:
    """Factory for a plain commit without pull request."""

    def factory(message: str) -> Commit:
        return Commit(sha=_sha(message), message=message)

    return factory


@pytest.fixture
def make_merge_commit() -> Callable[..., Commit]:
    """Factory for the merge commit of a pull request."""

    def factory(number: int, message: str, labels: list[str] | None = None) -> Commit:
        sha = _sha(message)
        return Commit(
            sha=sha,
            message=message,
            is_merge_commit=True,
            pull_request=PullRequest(
                sha=sha,
                number=number,
                title=f"Pull request #{number}",
                body=message,
                permalink=f"https://github.com/owner/repo/pull/{number}",
                head_branch_name=f"branch-{number}",
                base_branch_name="main",
                merge_commit_oid=sha,
                labels=labels or [],
            ),
        )

    return factory


@pytest.fixture
def cargo_toml() -> str:
    return """\
[package]
name = "my-crate"
version = "0.1.0" # managed by lazy-release
edition = "2021"

[dependencies]
serde = "1.0"
"""


@pytest.fixture
def cargo_lock() -> str:
    return """\
# This file is automatically @generated by Cargo.
# It is not intended for manual editing.
version = 3

[[package]]
name = "itoa"
version = "1.0.9"
source = "registry+https://github.com/rust-lang/crates.io-index"

[[package]]
name = "my-crate"
version = "0.1.0"
dependencies = [
 "itoa",
 "serde",
]

[[package]]
name = "serde"
version = "1.0.188"
source = "registry+https://github.com/rust-lang/crates.io-index"
"""
