"""Tests for lazy_release.versions."""

from __future__ import annotations

import pytest
from conftest import make_changelog, make_pkg

from lazy_release.versions import (
    apply_new_version,
    bump_indirect_package_version,
    bump_patch,
    get_new_version,
    get_semver_bump_for_package,
    get_snapshot_version,
    get_version_prefix,
    parse_version,
)


class TestParseVersion:
    def test_full_version(self) -> None:
        v = parse_version("1.2.3")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)

    def test_padding(self) -> None:
        assert str(parse_version("1")) == "1.0.0"
        assert str(parse_version("1.2")) == "1.2.0"

    def test_prerelease_kept(self) -> None:
        v = parse_version("2.0.0-rc.1")
        assert (v.major, v.minor, v.patch, v.prerelease) == (2, 0, 0, "rc.1")

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_version("not.a.version")


class TestGetNewVersion:
    @pytest.mark.parametrize(
        "bump, expected",
        [("major", "2.0.0"), ("minor", "1.3.0"), ("patch", "1.2.4")],
    )
    def test_bumps(self, bump: str, expected: str) -> None:
        assert get_new_version("1.2.3", bump) == expected  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "version, bump, expected",
        [
            ("1.2.3-beta.1", "patch", "1.2.3"),
            ("1.2.3-beta.1", "minor", "1.3.0"),
            ("1.2.0-beta.1", "minor", "1.2.0"),
            ("2.0.0-rc.1", "minor", "2.0.0"),
            ("2.0.0-rc.1", "major", "2.0.0"),
            ("1.2.0-rc.1", "major", "2.0.0"),
            ("1.0.0-alpha+build.5", "patch", "1.0.0"),
        ],
    )
    def test_prerelease_bumps(self, version: str, bump: str, expected: str) -> None:
        assert get_new_version(version, bump) == expected  # type: ignore[arg-type]

    def test_bump_patch(self) -> None:
        assert bump_patch("0.9.9") == "0.9.10"


class TestGetSemverBumpForPackage:
    def test_default_patch(self) -> None:
        pkg = make_pkg("a")
        assert get_semver_bump_for_package(pkg, [make_changelog("fix", "a")]) == "patch"

    def test_feat_is_minor(self) -> None:
        pkg = make_pkg("a")
        changelogs = [
            make_changelog("fix", "a"),
            make_changelog("feat", "a", semver_bump="minor"),
            make_changelog("chore", "a"),
        ]
        assert get_semver_bump_for_package(pkg, changelogs) == "minor"

    def test_breaking_is_major(self) -> None:
        pkg = make_pkg("a", "1.4.0")
        changelogs = [
            make_changelog("feat", "a", semver_bump="minor"),
            make_changelog("fix", "a", is_breaking_change=True, semver_bump="major"),
        ]
        assert get_semver_bump_for_package(pkg, changelogs) == "major"

    def test_breaking_on_zero_major_is_minor(self) -> None:
        pkg = make_pkg("a", "0.4.2")
        changelogs = [make_changelog("fix", "a", is_breaking_change=True, semver_bump="major")]
        assert get_semver_bump_for_package(pkg, changelogs) == "minor"

    def test_explicit_bump_wins(self) -> None:
        pkg = make_pkg("a", "1.0.0")
        changelogs = [
            make_changelog("feat", "a", is_breaking_change=True, semver_bump="major"),
            make_changelog("fix", "a", semver_bump="patch", has_explicit_version_bump=True),
        ]
        assert get_semver_bump_for_package(pkg, changelogs) == "patch"

    def test_highest_explicit_bump_wins(self) -> None:
        pkg = make_pkg("a", "0.1.0")
        changelogs = [
            make_changelog("fix", "a", semver_bump="patch", has_explicit_version_bump=True),
            make_changelog("fix", "a", semver_bump="major", has_explicit_version_bump=True),
            make_changelog("fix", "a", semver_bump="minor", has_explicit_version_bump=True),
        ]
        assert get_semver_bump_for_package(pkg, changelogs) == "major"

    def test_irrelevant_records_ignored(self) -> None:
        pkg = make_pkg("a")
        changelogs = [make_changelog("feat", "b", is_breaking_change=True, semver_bump="major")]
        assert get_semver_bump_for_package(pkg, changelogs) == "patch"


class TestApplyNewVersion:
    def test_breaking_change_on_zero_major(self) -> None:
        pkg = make_pkg("a", "0.1.0")
        apply_new_version(
            pkg, [make_changelog("fix", "a", is_breaking_change=True, semver_bump="patch")]
        )
        assert pkg.new_version == "0.2.0"
        assert pkg.version == "0.1.0"

    def test_feature(self) -> None:
        pkg = make_pkg("a", "1.2.3")
        apply_new_version(pkg, [make_changelog("feat", "a", semver_bump="minor")])
        assert pkg.new_version == "1.3.0"

    def test_indirect_bump(self) -> None:
        pkg = make_pkg("b", "2.5.1")
        bump_indirect_package_version(pkg)
        assert pkg.new_version == "2.5.2"
        assert pkg.version == "2.5.1"


class TestGetVersionPrefix:
    @pytest.mark.parametrize(
        "spec, expected",
        [("^1.2.0", "^"), ("~1.2.0", "~"), (">=1.0", ">="), ("1.2.0", ""), ("*", "")],
    )
    def test_prefixes(self, spec: str, expected: str) -> None:
        assert get_version_prefix(spec) == expected


class TestGetSnapshotVersion:
    def test_npm_format(self) -> None:
        assert get_snapshot_version("1.2.0", 1700000000000) == "1.2.0-snapshot-1700000000000"

    def test_pep440_format(self) -> None:
        assert get_snapshot_version("1.2.0", 17, pep440=True) == "1.2.0.dev17"


def test_apply_new_version_releases_prerelease() -> None:
    pkg = make_pkg("a", "2.0.0-rc.1")
    apply_new_version(pkg, [make_changelog("feat", "a", semver_bump="minor")])
    assert pkg.new_version == "2.0.0"
