"""Versioning strategies: decide how far to bump from the unreleased commits."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from .models import Commit
from .versions import BumpKind

FEATURE_LABELS = frozenset({"feat", "feature"})
BREAKING_SUFFIX = "!"


class VersioningStrategy(Protocol):
    def release_type(self, commits: Iterable[Commit]) -> BumpKind: ...


class SemanticVersioningStrategy:
    """Bump kind from the labels of merged pull requests.

    A label ending in "!" on any merge commit means a major bump, wherever it
    appears in the history. Otherwise a "feat"/"feature" label means a minor
    bump, and anything else a patch bump.
    """

    def release_type(self, commits: Iterable[Commit]) -> BumpKind:
        kind = BumpKind.PATCH
        for commit in commits:
            if not commit.is_merge_commit or commit.pull_request is None:
                continue
            for label in commit.pull_request.labels:
                if label.endswith(BREAKING_SUFFIX):
                    return BumpKind.MAJOR
                if label in FEATURE_LABELS:
                    kind = BumpKind.MINOR
        return kind
