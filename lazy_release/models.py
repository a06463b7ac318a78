"""Data models for lazy-release.

These Pydantic models are the value objects passed between the release
planning stages. They are frozen: every stage builds new values instead of
mutating the ones it received.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import semver
from pydantic import BaseModel, ConfigDict, Field


class PullRequest(BaseModel):
    """A pull request as reported by the remote repository.

    Attributes:
        sha: The merge commit sha, when known to be the actual merge commit.
            Used to match merged pull requests against version tags.
        merge_commit_oid: The merge commit id recorded on the pull request.
        labels: Label names, in the order the remote reported them.
    """

    model_config = ConfigDict(frozen=True)

    number: int
    title: str = ""
    body: str = ""
    permalink: str = ""
    head_branch_name: str = ""
    base_branch_name: str = ""
    sha: str | None = None
    merge_commit_oid: str | None = None
    labels: list[str] = Field(default_factory=list)


class Commit(BaseModel):
    """One entry of a branch's linear commit history.

    Attributes:
        is_merge_commit: True only when this commit is the recorded merge
            commit of its pull request, not merely associated with it.
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    message: str = ""
    is_merge_commit: bool = False
    pull_request: PullRequest | None = None


class Tag(BaseModel):
    """A remote tag resolved to the commit it points at."""

    model_config = ConfigDict(frozen=True)

    sha: str
    name: str
    committed_date: str = ""


class ReleaseContext(BaseModel):
    """The previous release and every commit made after it, newest first."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    previous_release: semver.Version
    unreleased_commits: list[Commit] = Field(default_factory=list)


class Release(BaseModel):
    """A merged release pull request that has not been tagged yet."""

    model_config = ConfigDict(frozen=True)

    sha: str
    tag: str
    notes: str
    pull_request_number: int


@runtime_checkable
class Updater(Protocol):
    """Turns the current content of a file (None if absent) into new content."""

    def update_content(self, content: str | None) -> str: ...


class Update(BaseModel):
    """One file edit staged on the release branch."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str
    create_if_missing: bool
    updater: Updater


class ReleasePullRequest(BaseModel):
    """Everything needed to create or update the pending release pull request."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    title: str
    body: str
    head_branch_name: str
    base_branch_name: str
    labels: list[str]
    version: semver.Version
    updates: list[Update] = Field(default_factory=list)

    def as_pull_request(self, number: int = 0) -> PullRequest:
        """Pull request payload sent to the remote."""
        return PullRequest(
            number=number,
            title=self.title,
            body=self.body,
            head_branch_name=self.head_branch_name,
            base_branch_name=self.base_branch_name,
            labels=list(self.labels),
        )
