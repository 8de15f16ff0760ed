"""Tests for lazy_release.graph."""

from __future__ import annotations

import pytest
from conftest import make_changelog, make_pkg

from lazy_release.graph import (
    get_changed_package_infos,
    get_package_changelogs,
    is_changelog_relevant,
    topo_sort,
)
from lazy_release.models import PackageInfo


class TestIsChangelogRelevant:
    def test_matches_unscoped_name(self) -> None:
        pkg = make_pkg("@scope/pkg-a")
        assert is_changelog_relevant(pkg, make_changelog("fix", "pkg-a"))
        assert not is_changelog_relevant(pkg, make_changelog("fix", "@scope/pkg-a"))

    def test_matches_directory_name(self) -> None:
        pkg = make_pkg("@scope/widgets", path="packages/ui/package.json")
        assert is_changelog_relevant(pkg, make_changelog("fix", "ui"))

    def test_root_matches_unscoped_records(self) -> None:
        root = make_pkg("monorepo", path="package.json", is_root=True)
        assert is_changelog_relevant(root, make_changelog("fix"))
        assert not is_changelog_relevant(root, make_changelog("fix", "pkg-a"))

    def test_non_root_ignores_unscoped_records(self) -> None:
        assert not is_changelog_relevant(make_pkg("pkg-a"), make_changelog("fix"))

    def test_root_has_no_directory_match(self) -> None:
        root = make_pkg("monorepo", path="package.json", is_root=True)
        assert root.directory_name == ""
        assert not is_changelog_relevant(root, make_changelog("fix", ""))

    def test_package_changelogs_keep_order(self) -> None:
        pkg = make_pkg("pkg-a")
        first = make_changelog("feat", "pkg-a", description="First")
        other = make_changelog("fix", "pkg-b")
        second = make_changelog("fix", "pkg-b", "pkg-a", description="Second")
        assert get_package_changelogs(pkg, [first, other, second]) == [first, second]


class TestGetChangedPackageInfos:
    def test_dependent_is_indirect(self) -> None:
        pkg_a = make_pkg("pkg-a")
        pkg_b = make_pkg("pkg-b", dependencies=["pkg-a"])

        direct, indirect = get_changed_package_infos(
            [make_changelog("fix", "pkg-a")], [pkg_a, pkg_b]
        )

        assert direct == [pkg_a]
        assert indirect == [pkg_b]

    def test_direct_and_indirect_are_disjoint(self) -> None:
        pkg_a = make_pkg("pkg-a")
        pkg_b = make_pkg("pkg-b", dependencies=["pkg-a"])

        direct, indirect = get_changed_package_infos(
            [make_changelog("fix", "pkg-a"), make_changelog("feat", "pkg-b")],
            [pkg_a, pkg_b],
        )

        assert direct == [pkg_a, pkg_b]
        assert indirect == []

    def test_single_hop_only(self) -> None:
        pkg_a = make_pkg("pkg-a")
        pkg_b = make_pkg("pkg-b", dependencies=["pkg-a"])
        pkg_c = make_pkg("pkg-c", dependencies=["pkg-b"])

        direct, indirect = get_changed_package_infos(
            [make_changelog("fix", "pkg-a")], [pkg_a, pkg_b, pkg_c]
        )

        assert direct == [pkg_a]
        assert indirect == [pkg_b]

    def test_scoped_dependency_names(self) -> None:
        pkg_a = make_pkg("@scope/pkg-a")
        pkg_b = make_pkg("@scope/pkg-b", dependencies=["@scope/pkg-a"])

        _, indirect = get_changed_package_infos(
            [make_changelog("feat", "pkg-a")], [pkg_a, pkg_b]
        )

        assert indirect == [pkg_b]

    def test_workspace_order_is_preserved(self) -> None:
        packages = [make_pkg("z"), make_pkg("a"), make_pkg("m")]
        direct, _ = get_changed_package_infos(
            [make_changelog("fix", "m", "z", "a")], packages
        )
        assert [p.name for p in direct] == ["z", "a", "m"]

    def test_no_changelogs(self) -> None:
        assert get_changed_package_infos([], [make_pkg("a")]) == ([], [])


def _info(name: str, deps: list[str] | None = None) -> PackageInfo:
    return make_pkg(name, dependencies=deps or [])


class TestTopoSort:
    def test_linear_chain(self) -> None:
        packages = {
            "a": _info("a", ["b"]),
            "b": _info("b", ["c"]),
            "c": _info("c"),
        }
        assert topo_sort(packages) == ["c", "b", "a"]

    def test_independent_packages_sorted(self) -> None:
        packages = {"zeta": _info("zeta"), "alpha": _info("alpha"), "mid": _info("mid")}
        assert topo_sort(packages) == ["alpha", "mid", "zeta"]

    def test_diamond(self) -> None:
        packages = {
            "top": _info("top", ["left", "right"]),
            "left": _info("left", ["base"]),
            "right": _info("right", ["base"]),
            "base": _info("base"),
        }
        order = topo_sort(packages)
        assert order[0] == "base"
        assert order[-1] == "top"

    def test_external_dependencies_ignored(self) -> None:
        packages = {"a": _info("a", ["not-in-set"])}
        assert topo_sort(packages) == ["a"]

    def test_cycle_raises(self) -> None:
        packages = {"a": _info("a", ["b"]), "b": _info("b", ["a"])}
        with pytest.raises(RuntimeError, match="cycle"):
            topo_sort(packages)

    def test_empty(self) -> None:
        assert topo_sort({}) == []
