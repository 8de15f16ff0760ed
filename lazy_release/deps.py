"""PEP 508 dependency handling for pyproject.toml workspaces.

Parses dependency strings and rewrites pyproject.toml files so internal
workspace dependencies follow newly released versions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .toml import load_pyproject, save_pyproject


def dep_canonical_name(dep_str: str) -> str | None:
    """Extract the canonical package name from a PEP 508 dependency string.

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
        "not a requirement" → None
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement:
        return None


def rewrite_dep(dep_str: str, version: str, exact: bool = False) -> str:
    """Point a PEP 508 dependency at a new version, keeping its operator.

    Extras and environment markers are preserved. Unversioned and URL
    requirements are returned unchanged. A compound specifier collapses to
    ``>=``. With ``exact`` the dependency is pinned with ``==``.

    Examples:
        rewrite_dep("pkg>=1.0", "1.5.0") → "pkg>=1.5.0"
        rewrite_dep("pkg[b,a]~=1.0; python_version>'3.9'", "2.0.0")
            → 'pkg[a,b]~=2.0.0; python_version > "3.9"'
        rewrite_dep("pkg", "1.5.0") → "pkg"
    """
    req = Requirement(dep_str)
    specs = list(req.specifier)
    if req.url or not specs:
        return dep_str

    if exact:
        operator = "=="
    elif len(specs) == 1:
        operator = specs[0].operator
    else:
        operator = ">="

    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}{operator}{version}{marker}"


def rewrite_pyproject(
    pyproject_path: Path,
    new_version: str | None,
    internal_dep_versions: dict[str, str],
    exact: bool = False,
) -> None:
    """Update a package's version and its internal dependency specifiers.

    Internal deps are rewritten in all locations:
    - [project].dependencies
    - [project].optional-dependencies.*
    - [dependency-groups].*

    Uses tomlkit to preserve formatting and comments.

    Args:
        pyproject_path: Path to the pyproject.toml file.
        new_version: New version string to set, or None to keep the current one.
        internal_dep_versions: Map of canonical package name → new version.
        exact: Pin rewritten dependencies with ``==``.
    """
    doc = load_pyproject(pyproject_path)
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    if new_version:
        project["version"] = new_version

    if internal_dep_versions:
        deps = project.get("dependencies")
        if isinstance(deps, list):
            _rewrite_dep_list(deps, internal_dep_versions, exact)

        opt_deps = project.get("optional-dependencies")
        if isinstance(opt_deps, dict):
            for group in opt_deps.values():
                if isinstance(group, list):
                    _rewrite_dep_list(group, internal_dep_versions, exact)

        dep_groups = doc.get("dependency-groups")
        if isinstance(dep_groups, dict):
            for group in dep_groups.values():
                if isinstance(group, list):
                    _rewrite_dep_list(group, internal_dep_versions, exact)

    save_pyproject(pyproject_path, doc)


def _rewrite_dep_list(deps: list, versions: dict[str, str], exact: bool) -> None:
    """Rewrite internal dependencies in a list, modifying in place."""
    for i, dep_str in enumerate(deps):
        if not isinstance(dep_str, str):
            continue
        name = dep_canonical_name(dep_str)
        if name in versions:
            deps[i] = rewrite_dep(dep_str, versions[name], exact)
