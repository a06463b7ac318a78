"""TOML reading and editing utilities.

Uses tomlkit to preserve formatting and comments when rewriting manifests and
lockfiles. This keeps the release pull request diff down to the changed values.
"""

from __future__ import annotations

from typing import Any, Union

import tomlkit

#: A key into a table or an index into an array of tables.
PathPart = Union[str, int]


def load_toml(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a TOMLDocument that preserves formatting."""
    return tomlkit.parse(content)


def dump_toml(doc: tomlkit.TOMLDocument) -> str:
    """Serialize a TOMLDocument, preserving original formatting."""
    return tomlkit.dumps(doc)


def edit_toml(content: str, path: tuple[PathPart, ...], value: Any) -> str:
    """Return content with the value at path replaced.

    The input text is never modified; each call parses it afresh, so a series of
    edits can be folded one after another, each on the previous result.

    Examples:
        edit_toml(text, ("package", "version"), "1.2.3")
        edit_toml(text, ("package", 4, "version"), "1.2.3")

    Raises:
        KeyError: If a table key along the path does not exist.
        IndexError: If an array index along the path is out of range.
    """
    if not path:
        raise ValueError("path must not be empty")

    doc = load_toml(content)
    container: Any = doc
    for part in path[:-1]:
        container = container[part]
    last = path[-1]
    # Only existing values are replaced; edits never introduce new keys
    if isinstance(last, str) and last not in container:
        raise KeyError(last)
    container[last] = value
    return dump_toml(doc)


def get_package_name(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract [package].name from a Cargo manifest, or None if missing."""
    name = doc.get("package", {}).get("name")
    return str(name) if name is not None else None


def get_lock_packages(doc: tomlkit.TOMLDocument) -> list[dict[str, Any]]:
    """Return the [[package]] entries of a Cargo lockfile, in document order."""
    return list(doc.get("package", []))
