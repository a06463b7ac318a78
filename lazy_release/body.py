"""Release pull request body: wrapping and re-parsing the changelog.

The body looks like:

    <header>
    ---


    <changelog>

    ---
    <footer>

Only the text between the delimiters is read back, so the header and footer
can be reworded without breaking older release pull requests. A body whose
closing delimiter was removed still parses; its content runs to the end.
"""

from __future__ import annotations

import re

import semver
from pydantic import BaseModel, ConfigDict

from .exceptions import VersionParseError
from .shell import warn
from .versions import parse_version

HEADER = ":robot: I have created a release *beep* *boop*"
FOOTER = "This pull request was generated with lazy-release."
NOTES_DELIMITER = "---"

RELEASE_HEADING_PATTERN = re.compile(
    r"^#{2,} v?\[?(?P<version>\d+\.\d+\.\d+[^\]\s]*)\]?"
)


class PullRequestBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: str
    content: str
    footer: str


class ReleaseInfo(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: semver.Version
    notes: str


def wrap_body(changelog: str) -> str:
    """Wrap a changelog entry into a release pull request body."""
    delimiter = NOTES_DELIMITER
    return f"{HEADER}\n{delimiter}\n\n\n{changelog}\n\n{delimiter}\n{FOOTER}"


def parse_body(body: str) -> PullRequestBody | None:
    """Split a pull request body into header, content and footer.

    Returns None when the body has no delimiter line at all.
    """
    lines = body.splitlines()
    try:
        first = lines.index(NOTES_DELIMITER)
    except ValueError:
        return None

    last = len(lines) - 1 - lines[::-1].index(NOTES_DELIMITER)
    if last == first:
        # No closing delimiter: the content runs to the end of the body
        last = len(lines)

    return PullRequestBody(
        header="\n".join(lines[:first]).strip(),
        content="\n".join(lines[first + 1 : last]),
        footer="\n".join(lines[last + 1 :]),
    )


def extract_release_info(body: str, pull_request_number: int) -> ReleaseInfo | None:
    """Read the released version and notes back from a pull request body.

    The notes are the whole content block, heading included.
    """
    parsed = parse_body(body)
    if parsed is None:
        warn(f"Unable to parse the body for pull request #{pull_request_number}")
        return None

    content = parsed.content.strip()
    match = RELEASE_HEADING_PATTERN.match(content)
    if match is None:
        warn("Unable to find a version in the release notes")
        return None

    try:
        version = parse_version(match["version"])
    except VersionParseError:
        warn(
            "Invalid version in the release notes of pull request "
            f"#{pull_request_number}"
        )
        return None
    return ReleaseInfo(version=version, notes=content)
