"""Tests for lazy_release.toml."""

from __future__ import annotations

from pathlib import Path

import tomlkit

from lazy_release.toml import (
    get_all_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    has_project_table,
    is_private_project,
    load_pyproject,
    save_pyproject,
)


class TestLoadSavePyproject:
    def test_load(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        assert get_project_name(doc, "") == "test-package"

    def test_save_preserves_content(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        doc["project"]["version"] = "9.9.9"  # type: ignore[index]
        save_pyproject(tmp_pyproject, doc)

        reloaded = load_pyproject(tmp_pyproject)
        assert get_project_version(reloaded) == "9.9.9"
        assert '"requests>=2.0",' in tmp_pyproject.read_text()


class TestProjectFields:
    def test_name(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_project_name(sample_toml_doc, "fallback") == "my-package"

    def test_name_normalized(self) -> None:
        doc = tomlkit.parse('[project]\nname = "My_Package"')
        assert get_project_name(doc, "fallback") == "my-package"

    def test_name_fallback(self) -> None:
        assert get_project_name(tomlkit.parse(""), "fallback") == "fallback"

    def test_version(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_project_version(sample_toml_doc) == "2.0.0"

    def test_version_default(self) -> None:
        assert get_project_version(tomlkit.parse("[project]")) == "0.0.0"

    def test_has_project_table(self) -> None:
        assert has_project_table(tomlkit.parse("[project]\nname = 'a'"))
        assert not has_project_table(tomlkit.parse("[tool.uv.workspace]\nmembers = []"))

    def test_private_classifier(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert is_private_project(sample_toml_doc)
        assert not is_private_project(tomlkit.parse("[project]\nname = 'a'"))


class TestGetAllDependencyStrings:
    def test_collects_all_locations(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_all_dependency_strings(sample_toml_doc) == [
            "click>=8.0",
            "pydantic>=2.0",
            "pytest>=8.0",
            "sphinx>=7.0",
            "hypothesis>=6.0",
        ]

    def test_empty(self) -> None:
        assert get_all_dependency_strings(tomlkit.parse("[project]\nname = 'foo'")) == []


class TestGetWorkspaceMemberGlobs:
    def test_members(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_workspace_member_globs(sample_toml_doc) == ["packages/*", "libs/*"]

    def test_no_workspace(self) -> None:
        assert get_workspace_member_globs(tomlkit.parse("[project]\nname = 'a'")) == []
