"""Changelog rendering and CHANGELOG.md updating.

A changelog entry is one "## v<version> (<date>)" block with a "###" section
per note type. Sections always appear in SECTION_HEADINGS order, whatever order
the commits came in, and sections without notes are left out.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import date
from typing import NamedTuple, Protocol

import semver

from .models import Commit

SECTION_HEADINGS: dict[str, str] = {
    "feature": "Features",
    "fix": "Bug Fixes",
    "perf": "Performance Improvements",
    "deps": "Dependencies",
    "revert": "Reverts",
    "docs": "Documentation",
    "style": "Styles",
    "chore": "Miscellaneous Chores",
    "refactor": "Code Refactoring",
    "test": "Tests",
    "build": "Build System",
    "ci": "Continuous Integration",
    "other": "Other",
}
DEFAULT_SECTION = "other"

CHANGELOG_HEADER = "# Changelog\n"
VERSION_HEADER_PATTERN = re.compile(r"\n###? v?[0-9\[]")
PULL_REQUEST_REFERENCE = re.compile(r"\(#(\d+)\)")


class ChangelogNote(NamedTuple):
    section: str
    text: str


class NoteBuilder(Protocol):
    """Classifies a commit into a changelog note, or None to leave it out."""

    def build_note(
        self, commit: Commit, sections: Sequence[str], default_section: str
    ) -> ChangelogNote | None: ...


class PullRequestNoteBuilder:
    """Builds one note per pull request, from the pull request's merge commit.

    Commits that are only associated with a pull request (rebased or squashed
    from it) are skipped. The note goes under the first pull request label that
    names a section, and the "(#N)" reference in the commit headline becomes a
    link to the pull request.
    """

    def build_note(
        self, commit: Commit, sections: Sequence[str], default_section: str
    ) -> ChangelogNote | None:
        pull_request = commit.pull_request
        if pull_request is None or pull_request.sha != pull_request.merge_commit_oid:
            return None

        section = next(
            (label for label in pull_request.labels if label in sections),
            default_section,
        )
        headline = commit.message.split("\n")[0]
        return ChangelogNote(
            section, link_pull_request_reference(headline, pull_request.permalink)
        )


def link_pull_request_reference(text: str, permalink: str) -> str:
    """Turn the first "(#N)" into "([#N](permalink))"."""
    return PULL_REQUEST_REFERENCE.sub(
        lambda m: f"([#{m[1]}]({permalink}))", text, count=1
    )


def build_changelog(
    commits: Iterable[Commit],
    notes: NoteBuilder,
    version: semver.Version,
    release_date: date | None = None,
) -> str:
    """Render the changelog entry for a release.

    Args:
        commits: Unreleased commits; those without a note are dropped.
        notes: Classifies each commit into a section and note text.
        version: The version being released.
        release_date: Date shown in the heading, defaults to today (local).

    Returns:
        Markdown starting with "## v<version> (<YYYY-MM-DD>)".
    """
    sections = list(SECTION_HEADINGS)
    notes_by_section: dict[str, list[str]] = {}
    for commit in commits:
        note = notes.build_note(commit, sections, DEFAULT_SECTION)
        if note is not None:
            notes_by_section.setdefault(note.section, []).append(note.text)

    day = (release_date or date.today()).isoformat()
    body = f"## v{version} ({day})\n"
    for section, heading in SECTION_HEADINGS.items():
        section_notes = notes_by_section.get(section)
        if not section_notes:
            continue
        body += f"\n### {heading}\n"
        for text in section_notes:
            body += f"\n- {text}"
        body += "\n"
    return body


def update_changelog(content: str | None, entry: str) -> str:
    """Insert a changelog entry into existing CHANGELOG.md content.

    - No content: a "# Changelog" header followed by the entry.
    - Content without any version heading: header and entry are put above it.
    - Otherwise: the entry goes right before the first version heading.
    """
    content = content or ""

    match = VERSION_HEADER_PATTERN.search(content)
    if match is None:
        if content:
            return f"{CHANGELOG_HEADER}\n{entry}\n{content}"
        return f"{CHANGELOG_HEADER}\n{entry}"

    before = content[: match.start()]
    after = content[match.start() :]
    return f"{before}\n{entry}{after}".strip() + "\n"


class ChangelogUpdater:
    """Updater that adds a changelog entry to CHANGELOG.md."""

    def __init__(self, entry: str) -> None:
        self.entry = entry

    def update_content(self, content: str | None) -> str:
        return update_changelog(content, self.entry)
