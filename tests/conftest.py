"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import tomlkit

from lazy_release.models import Changelog, PackageInfo, RepoContext


@pytest.fixture
def repo() -> RepoContext:
    return RepoContext(owner="test-owner", repo="test-repo")


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal~=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal==0.1.0"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
classifiers = ["Private :: Do Not Upload"]
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0", {include-group = "dev"}]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
"""
    return tomlkit.parse(content)


def write_package_json(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


@pytest.fixture
def npm_workspace(tmp_path: Path) -> Path:
    """An npm workspace: root, pkg-a, pkg-b → pkg-a, pkg-c → pkg-b."""
    write_package_json(
        tmp_path / "package.json",
        {"name": "monorepo", "version": "1.0.0", "private": True, "workspaces": ["packages/*"]},
    )
    write_package_json(
        tmp_path / "packages" / "pkg-a" / "package.json",
        {"name": "@scope/pkg-a", "version": "1.0.0"},
    )
    write_package_json(
        tmp_path / "packages" / "pkg-b" / "package.json",
        {
            "name": "@scope/pkg-b",
            "version": "0.3.0",
            "dependencies": {"@scope/pkg-a": "^1.0.0", "lodash": "^4.17.21"},
        },
    )
    write_package_json(
        tmp_path / "packages" / "pkg-c" / "package.json",
        {
            "name": "pkg-c",
            "version": "2.1.0",
            "devDependencies": {"@scope/pkg-b": "workspace:*"},
        },
    )
    # Ignored locations
    write_package_json(
        tmp_path / "node_modules" / "lodash" / "package.json",
        {"name": "lodash", "version": "4.17.21"},
    )
    write_package_json(
        tmp_path / "packages" / "pkg-a" / "dist" / "package.json",
        {"name": "@scope/pkg-a", "version": "1.0.0"},
    )
    return tmp_path


@pytest.fixture
def uv_workspace(tmp_path: Path) -> Path:
    """A uv workspace: root project plus core and cli → core."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "suite"\nversion = "0.4.0"\n\n'
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n'
    )
    core = tmp_path / "packages" / "core"
    core.mkdir(parents=True)
    (core / "pyproject.toml").write_text(
        '[project]\nname = "core"\nversion = "1.2.0"\ndependencies = ["attrs>=23"]\n'
    )
    cli = tmp_path / "packages" / "cli"
    cli.mkdir(parents=True)
    (cli / "pyproject.toml").write_text(
        '[project]\nname = "cli"\nversion = "1.0.0"\n'
        'classifiers = ["Private :: Do Not Upload"]\n'
        'dependencies = ["core>=1.2.0", "click>=8"]\n'
    )
    return tmp_path


def make_pkg(name: str, version: str = "1.0.0", **kwargs) -> PackageInfo:
    """PackageInfo for a package living in packages/<unscoped name>/."""
    path = kwargs.pop("path", f"packages/{name.split('/')[-1]}/package.json")
    return PackageInfo(name=name, version=version, path=path, **kwargs)


def make_changelog(type_: str = "fix", *packages: str, **kwargs) -> Changelog:
    kwargs.setdefault("description", f"Some {type_}")
    return Changelog(type=type_, packages=list(packages), **kwargs)
