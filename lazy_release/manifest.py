"""Workspace manifest discovery, reading and writing.

Two workspace kinds are supported:

- npm-style workspaces: every ``package.json`` below the root, excluding
  ``node_modules`` and ``dist``. The manifest at the root is the root package.
- uv workspaces: the root ``pyproject.toml`` (when it has a [project] table)
  plus the members listed in [tool.uv.workspace].

package.json files are edited with targeted substitutions rather than a
JSON round-trip, so key order, indentation and unrelated values stay
byte-identical.
"""

from __future__ import annotations

import glob
import json
import re
from pathlib import Path, PurePosixPath

from .constants import DEPENDENCY_FIELDS
from .deps import dep_canonical_name, rewrite_pyproject
from .models import PackageInfo
from .toml import (
    get_all_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    has_project_table,
    is_private_project,
    load_pyproject,
)
from .versions import get_version_prefix

PACKAGE_JSON = "package.json"
PYPROJECT_TOML = "pyproject.toml"
IGNORED_DIRS = {"node_modules", "dist"}

_VERSION_FIELD_PATTERN = re.compile(r'("version"\s*:\s*")[^"]*(")')
_NAME_FIELD_PATTERN = re.compile(r'^([ \t]*)("name"\s*:\s*"[^"]*")(,?)', re.MULTILINE)
# Specifiers that point at a registry version: optional operator then a digit
_VERSIONED_SPEC_PATTERN = re.compile(r"^[\^~><=]*\s*\d")


def is_root_manifest(path: str) -> bool:
    return PurePosixPath(path).parent == PurePosixPath(".")


def find_manifest_paths(root: Path) -> list[str]:
    """List workspace manifest paths relative to ``root``.

    Returns an empty list when ``root`` is neither an npm-style nor a uv
    workspace.
    """
    if (root / PACKAGE_JSON).exists():
        paths = []
        for match in glob.glob("**/package.json", root_dir=root, recursive=True):
            rel = PurePosixPath(Path(match).as_posix())
            if IGNORED_DIRS.intersection(rel.parts[:-1]):
                continue
            paths.append(str(rel))
        return sorted(paths, key=lambda p: (not is_root_manifest(p), p))

    root_pyproject = root / PYPROJECT_TOML
    if root_pyproject.exists():
        doc = load_pyproject(root_pyproject)
        paths = [PYPROJECT_TOML] if has_project_table(doc) else []
        for pattern in get_workspace_member_globs(doc):
            for match in sorted(glob.glob(pattern, root_dir=root)):
                candidate = Path(match) / PYPROJECT_TOML
                if (root / candidate).exists():
                    paths.append(candidate.as_posix())
        return paths

    return []


def read_package_json(path: Path) -> dict:
    return json.loads(path.read_text())


def _read_manifest(root: Path, path: str) -> tuple[PackageInfo, list[str]] | None:
    """Read one manifest into a PackageInfo plus its raw dependency names."""
    full_path = root / path
    if PurePosixPath(path).name == PYPROJECT_TOML:
        doc = load_pyproject(full_path)
        info = PackageInfo(
            name=get_project_name(doc, full_path.parent.name),
            version=get_project_version(doc),
            path=path,
            is_root=is_root_manifest(path),
            is_private=is_private_project(doc),
        )
        names = [dep_canonical_name(d) for d in get_all_dependency_strings(doc)]
        return info, [n for n in names if n]

    data = read_package_json(full_path)
    if not data.get("name"):
        print(f"  Skipping {path}: no name")
        return None
    info = PackageInfo(
        name=data["name"],
        version=data.get("version", "0.0.0"),
        path=path,
        is_root=is_root_manifest(path),
        is_private=bool(data.get("private", False)),
    )
    names = [name for field in DEPENDENCY_FIELDS for name in data.get(field, {})]
    return info, names


def get_package_infos(paths: list[str], root: Path | None = None) -> list[PackageInfo]:
    """Load PackageInfo for every manifest path.

    Dependencies are filtered to other packages of the same workspace, in
    declaration order and without duplicates.
    """
    root = root or Path.cwd()

    packages: list[PackageInfo] = []
    raw_deps: dict[str, list[str]] = {}
    for path in paths:
        loaded = _read_manifest(root, path)
        if loaded is None:
            continue
        info, names = loaded
        packages.append(info)
        raw_deps[info.name] = names

    workspace_names = {pkg.name for pkg in packages}
    for pkg in packages:
        for dep in raw_deps[pkg.name]:
            if dep in workspace_names and dep != pkg.name and dep not in pkg.dependencies:
                pkg.dependencies.append(dep)

    return packages


def replace_version_in_package_json(text: str, new_version: str) -> str:
    """Replace the first ``"version"`` value in package.json text.

    A manifest without a version gets one inserted after its ``"name"``
    entry, at the same indentation.
    """
    if not _VERSION_FIELD_PATTERN.search(text):
        return _insert_version_field(text, new_version)
    return _VERSION_FIELD_PATTERN.sub(
        lambda m: f"{m.group(1)}{new_version}{m.group(2)}", text, count=1
    )


def _insert_version_field(text: str, new_version: str) -> str:
    field = f'"version": "{new_version}"'
    match = _NAME_FIELD_PATTERN.search(text)
    if match:
        indent, name_entry, comma = match.groups()
        return (
            text[: match.start()]
            + f"{indent}{name_entry},\n{indent}{field}{comma}"
            + text[match.end() :]
        )

    # Single-line manifest: put the field first
    start = text.index("{") + 1
    separator = "" if text[start:].lstrip().startswith("}") else ", "
    return text[:start] + field + separator + text[start:]


def rewrite_dependency_spec(spec: str, version: str, exact: bool = False) -> str:
    """Point an npm dependency specifier at a new version.

    The range operator is kept. Non-registry specifiers (``workspace:*``,
    ``file:``, ``link:``, ``*``, git URLs) are returned unchanged.

    Examples:
        rewrite_dependency_spec("^1.0.0", "1.1.0") → "^1.1.0"
        rewrite_dependency_spec("workspace:*", "1.1.0") → "workspace:*"
    """
    if not _VERSIONED_SPEC_PATTERN.match(spec):
        return spec
    if exact:
        return version
    return get_version_prefix(spec) + version


def _find_object_span(text: str, field: str) -> tuple[int, int] | None:
    """Locate the ``{...}`` body of a top-level-style ``"field": {`` entry."""
    match = re.search(rf'"{re.escape(field)}"\s*:\s*\{{', text)
    if not match:
        return None
    start = match.end()
    end = text.find("}", start)
    return (start, end) if end != -1 else None


def update_package_json_dependencies(
    text: str, dep_versions: dict[str, str], exact: bool = False
) -> str:
    """Rewrite specifiers of the named dependencies in every dependency field."""
    for field in DEPENDENCY_FIELDS:
        span = _find_object_span(text, field)
        if span is None:
            continue
        start, end = span
        body = text[start:end]
        for name, version in dep_versions.items():
            body = _rewrite_dependency_entry(body, name, version, exact)
        text = text[:start] + body + text[end:]
    return text


def _rewrite_dependency_entry(body: str, name: str, version: str, exact: bool) -> str:
    pattern = re.compile(rf'("{re.escape(name)}"\s*:\s*")([^"]*)(")')

    def replace(m: re.Match[str]) -> str:
        spec = rewrite_dependency_spec(m.group(2), version, exact)
        return f"{m.group(1)}{spec}{m.group(3)}"

    return pattern.sub(replace, body)


def write_manifest(
    root: Path,
    pkg: PackageInfo,
    new_version: str | None,
    dep_versions: dict[str, str],
    exact: bool = False,
) -> None:
    """Persist a new version and dependency specifiers into a manifest.

    Args:
        root: Workspace root.
        pkg: Package whose manifest is written.
        new_version: Version to set, or None to only rewrite dependencies.
        dep_versions: Workspace dependency name → new version.
        exact: Write dependency versions without a range operator.
    """
    path = root / pkg.path
    if pkg.manifest_name == PYPROJECT_TOML:
        rewrite_pyproject(path, new_version, dep_versions, exact)
        return

    text = path.read_text()
    if new_version:
        text = replace_version_in_package_json(text, new_version)
    if dep_versions:
        text = update_package_json_dependencies(text, dep_versions, exact)
    path.write_text(text)
