"""Tests for lazy_release.body."""

from __future__ import annotations

import pytest

from lazy_release.body import (
    FOOTER,
    HEADER,
    extract_release_info,
    parse_body,
    wrap_body,
)

CHANGELOG = "## v1.2.3 (2024-05-01)\n\n### Bug Fixes\n\n- Fix the thing\n"


class TestWrapBody:
    def test_layout(self) -> None:
        body = wrap_body(CHANGELOG)
        assert body.startswith(f"{HEADER}\n---\n\n\n## v1.2.3")
        assert body.endswith(f"- Fix the thing\n\n\n---\n{FOOTER}")


class TestParseBody:
    def test_wrapped_body(self) -> None:
        parsed = parse_body(wrap_body(CHANGELOG))
        assert parsed is not None
        assert parsed.header == HEADER
        assert parsed.content.strip() == CHANGELOG.strip()
        assert parsed.footer == FOOTER

    def test_no_delimiter(self) -> None:
        assert parse_body("Just a description") is None

    def test_header_is_stripped(self) -> None:
        parsed = parse_body("\n  intro  \n---\nnotes\n---\nbye")
        assert parsed is not None
        assert parsed.header == "intro"
        assert parsed.content == "notes"
        assert parsed.footer == "bye"

    def test_missing_closing_delimiter(self) -> None:
        parsed = parse_body(f"{HEADER}\n---\n{CHANGELOG}\n{FOOTER}")
        assert parsed is not None
        assert parsed.content.startswith("## v1.2.3")
        assert parsed.content.endswith(FOOTER)
        assert parsed.footer == ""

    def test_inner_delimiters_belong_to_content(self) -> None:
        parsed = parse_body("head\n---\none\n---\ntwo\n---\nfoot")
        assert parsed is not None
        assert parsed.content == "one\n---\ntwo"
        assert parsed.footer == "foot"

    def test_delimiter_must_be_whole_line(self) -> None:
        assert parse_body("head\n----\nnotes") is None


class TestExtractReleaseInfo:
    def test_version_and_notes(self) -> None:
        release_info = extract_release_info(wrap_body(CHANGELOG), 5)
        assert release_info is not None
        assert str(release_info.version) == "1.2.3"
        assert release_info.notes == CHANGELOG.strip()

    @pytest.mark.parametrize(
        ("heading", "expected"),
        [
            ("## 1.2.3", "1.2.3"),
            ("### v2.0.0-rc.1 (2024-05-01)", "2.0.0-rc.1"),
            ("## [0.4.0](https://x/compare/v0.3.0...v0.4.0)", "0.4.0"),
        ],
    )
    def test_heading_variants(self, heading: str, expected: str) -> None:
        release_info = extract_release_info(wrap_body(f"{heading}\n\n- note\n"), 5)
        assert release_info is not None
        assert str(release_info.version) == expected

    def test_unparseable_body(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert extract_release_info("Bumps the version", 9) is None
        assert "Unable to parse the body for pull request #9" in capsys.readouterr().err

    def test_missing_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert extract_release_info(wrap_body("Some notes without heading"), 9) is None
        err = capsys.readouterr().err
        assert "Unable to find a version in the release notes" in err

    def test_first_level_heading_is_not_a_release(self) -> None:
        assert extract_release_info(wrap_body("# 1.2.3\n\n- note\n"), 9) is None
