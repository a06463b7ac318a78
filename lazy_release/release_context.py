"""Finding the previous release and the commits made since.

The previous release is the newest version tag whose commit is reachable from
the target branch. Tags are tried newest first; a tag may point at a commit on
another branch, so each one has to be looked up in the branch history.

Branch history is paged from the remote and is by far the expensive part, so it
is pulled lazily, at most once, and kept: a tag that is not found in the part
already pulled continues the scan where the previous tag left it, and a tag
whose commit was already seen is answered from the cache alone.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Protocol

from .exceptions import VersionParseError
from .models import Commit, ReleaseContext, Tag
from .shell import debug, warn
from .versions import UNRELEASED, parse_version_tag


class HistorySource(Protocol):
    """The part of the remote repository the resolver reads from."""

    def tags(self, max_results: int | None = None) -> Iterable[Tag]: ...

    def merge_commits(
        self, branch: str, max_results: int | None = None
    ) -> Iterable[Commit]: ...


class CommitCache:
    """Memoizes a lazily pulled commit sequence so it can be replayed.

    Iterating a CommitCache yields the cached commits first, then keeps pulling
    from the live sequence, caching as it goes. The live sequence is created on
    first use and never restarted.
    """

    def __init__(
        self, source: HistorySource, branch: str, max_commits: int | None
    ) -> None:
        self._source = source
        self._branch = branch
        self._max_commits = max_commits
        self._live: Iterator[Commit] | None = None
        self._exhausted = False
        self.commits: list[Commit] = []
        self.shas: set[str] = set()

    def _pull(self) -> Commit | None:
        if self._exhausted:
            return None
        if self._live is None:
            commits = self._source.merge_commits(self._branch, self._max_commits)
            self._live = iter(commits)
        commit = next(self._live, None)
        if commit is None:
            self._exhausted = True
            return None
        self.commits.append(commit)
        self.shas.add(commit.sha)
        return commit

    def index_of(self, sha: str) -> int | None:
        """Position of sha in the branch history, pulling more pages as needed."""
        if sha in self.shas:
            return next(i for i, c in enumerate(self.commits) if c.sha == sha)
        while (commit := self._pull()) is not None:
            if commit.sha == sha:
                return len(self.commits) - 1
        return None

    def drain(self) -> list[Commit]:
        """Pull the remaining history and return all of it."""
        while self._pull() is not None:
            pass
        return self.commits


def determine_release_context(
    source: HistorySource, target_branch: str, max_commits: int | None = None
) -> ReleaseContext:
    """Resolve the previous release and the unreleased commits on a branch.

    Args:
        source: Remote repository providing tag and commit history sequences.
        target_branch: Branch the release is prepared for.
        max_commits: Optional bound on how much branch history is read.

    Returns:
        The newest reachable version tag as previous_release with the commits
        newer than it, or UNRELEASED with the whole history when no version
        tag is reachable.
    """
    history = CommitCache(source, target_branch, max_commits)

    for tag in source.tags():
        try:
            version = parse_version_tag(tag.name)
        except VersionParseError:
            version = None
        if version is None:
            debug(f"Ignoring tag '{tag.name}', not a version")
            continue

        index = history.index_of(tag.sha)
        if index is not None:
            debug(f"Previous release is {version} (tag '{tag.name}')")
            return ReleaseContext(
                previous_release=version,
                unreleased_commits=history.commits[:index],
            )

        warn(
            f"Tag '{tag.name}' not found in recent commits on branch "
            f"'{target_branch}', skipping"
        )

    # No version tag is reachable from the target branch: this is the first release
    return ReleaseContext(
        previous_release=UNRELEASED, unreleased_commits=history.drain()
    )
