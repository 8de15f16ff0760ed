"""Version parsing, bumping and aggregation.

Handles conversion between version strings and semver objects, and folds
the competing bump signals of a package's change records into one next
version.
"""

from __future__ import annotations

import re

import semver

from .graph import get_package_changelogs
from .models import Changelog, PackageInfo, SemverBump

_BUMP_RANK: dict[str, int] = {"patch": 0, "minor": 1, "major": 2}
_VERSION_PREFIX_PATTERN = re.compile(r"^([\^~><=]+)")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Full semver strings, prereleases included, are parsed as-is. Incomplete
    versions are padded with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"

    When padding, only the first 3 components are used (major.minor.patch).
    """
    try:
        return semver.Version.parse(version_str)
    except ValueError:
        pass
    parts = version_str.split(".")
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def get_new_version(version_str: str, bump: SemverBump) -> str:
    """Increment one component of a version.

    A prerelease is released as its final version when every component
    below the bumped one is already zero, so "2.0.0-rc.1" with a minor bump
    becomes "2.0.0" rather than "2.1.0".

    Examples:
        get_new_version("1.2.3", "major") → "2.0.0"
        get_new_version("1.2.3", "minor") → "1.3.0"
        get_new_version("1.2.3", "patch") → "1.2.4"
    """
    version = parse_version(version_str)
    if version.prerelease and _is_finalizing_bump(version, bump):
        return str(version.finalize_version())
    if bump == "major":
        return str(version.bump_major())
    if bump == "minor":
        return str(version.bump_minor())
    return str(version.bump_patch())


def _is_finalizing_bump(version: semver.Version, bump: SemverBump) -> bool:
    if bump == "major":
        return version.minor == 0 and version.patch == 0
    if bump == "minor":
        return version.patch == 0
    return True


def bump_patch(version_str: str) -> str:
    return get_new_version(version_str, "patch")


def get_semver_bump_for_package(
    pkg: PackageInfo, changelogs: list[Changelog]
) -> SemverBump:
    """Fold the relevant records of a package into a single bump.

    An explicit ``#major|#minor|#patch`` marker is the strongest signal: when
    any relevant record carries one, the highest explicit bump is used and
    nothing else is considered. Otherwise, walking records in order:

    - a breaking change on a 0.x package gives minor,
    - a breaking change gives major and ends the walk,
    - a minor record (feat) upgrades the result to minor,
    - anything else leaves the result at its current value (patch by default).
    """
    relevant = get_package_changelogs(pkg, changelogs)

    explicit = [c.semver_bump for c in relevant if c.has_explicit_version_bump]
    if explicit:
        return max(explicit, key=_BUMP_RANK.__getitem__)

    bump: SemverBump = "patch"
    for changelog in relevant:
        if changelog.is_breaking_change and pkg.version.startswith("0."):
            bump = "minor"
        elif changelog.is_breaking_change:
            bump = "major"
            break
        elif changelog.semver_bump == "minor":
            bump = "minor"
    return bump


def apply_new_version(pkg: PackageInfo, changelogs: list[Changelog]) -> None:
    """Set ``pkg.new_version`` from the records relevant to it.

    The current ``pkg.version`` is left unchanged.

    Example:
        pkg at "0.1.0" with one breaking record → new_version "0.2.0"
    """
    bump = get_semver_bump_for_package(pkg, changelogs)
    pkg.new_version = get_new_version(pkg.version, bump)


def bump_indirect_package_version(pkg: PackageInfo) -> None:
    """Indirectly changed packages always receive a patch bump."""
    pkg.new_version = bump_patch(pkg.version)


def get_version_prefix(version_spec: str) -> str:
    """Return the range operator in front of a dependency specifier.

    Examples:
        "^1.2.0" → "^"
        ">=1.0" → ">="
        "1.2.0" → ""
    """
    match = _VERSION_PREFIX_PATTERN.match(version_spec)
    return match.group(1) if match else ""


def get_snapshot_version(version: str, timestamp_ms: int, pep440: bool = False) -> str:
    """Build a prerelease version for snapshot publishes.

    Examples:
        get_snapshot_version("1.2.0", 17000) → "1.2.0-snapshot-17000"
        get_snapshot_version("1.2.0", 17000, pep440=True) → "1.2.0.dev17000"
    """
    if pep440:
        return f"{version}.dev{timestamp_ms}"
    return f"{version}-snapshot-{timestamp_ms}"
