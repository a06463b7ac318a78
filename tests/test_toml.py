"""Tests for lazy_release.toml."""

from __future__ import annotations

import pytest

from lazy_release.toml import edit_toml, get_lock_packages, get_package_name, load_toml


class TestEditToml:
    def test_edits_scalar(self, cargo_toml: str) -> None:
        result = edit_toml(cargo_toml, ("package", "version"), "1.2.3")
        assert 'version = "1.2.3"' in result
        assert 'version = "0.1.0"' not in result

    def test_preserves_rest_of_document(self, cargo_toml: str) -> None:
        result = edit_toml(cargo_toml, ("package", "version"), "1.2.3")
        assert 'edition = "2021"' in result
        assert '[dependencies]\nserde = "1.0"' in result
        assert "# managed by lazy-release" in result

    def test_edits_array_of_tables_entry(self, cargo_lock: str) -> None:
        result = edit_toml(cargo_lock, ("package", 1, "version"), "1.2.3")
        assert 'name = "my-crate"\nversion = "1.2.3"' in result
        assert 'name = "itoa"\nversion = "1.0.9"' in result
        assert "version = 3\n" in result

    def test_does_not_modify_input(self, cargo_toml: str) -> None:
        original = cargo_toml
        edit_toml(cargo_toml, ("package", "version"), "1.2.3")
        assert cargo_toml == original

    def test_missing_key_raises(self, cargo_toml: str) -> None:
        with pytest.raises(KeyError):
            edit_toml(cargo_toml, ("package", "license"), "MIT")

    def test_missing_table_raises(self) -> None:
        with pytest.raises(KeyError):
            edit_toml('[workspace]\nmembers = ["a"]\n', ("package", "version"), "1.0.0")

    def test_index_out_of_range_raises(self, cargo_lock: str) -> None:
        with pytest.raises(IndexError):
            edit_toml(cargo_lock, ("package", 10, "version"), "1.0.0")

    def test_empty_path_rejected(self, cargo_toml: str) -> None:
        with pytest.raises(ValueError):
            edit_toml(cargo_toml, (), "1.0.0")


class TestGetPackageName:
    def test_returns_name(self, cargo_toml: str) -> None:
        assert get_package_name(load_toml(cargo_toml)) == "my-crate"

    def test_none_without_package_table(self) -> None:
        assert get_package_name(load_toml('[workspace]\nmembers = ["a"]\n')) is None


class TestGetLockPackages:
    def test_returns_entries_in_order(self, cargo_lock: str) -> None:
        names = [str(p["name"]) for p in get_lock_packages(load_toml(cargo_lock))]
        assert names == ["itoa", "my-crate", "serde"]

    def test_empty_document(self) -> None:
        assert get_lock_packages(load_toml("")) == []
