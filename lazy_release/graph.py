"""Workspace dependency graph utilities.

Decides which packages a set of change records touches, directly or through
a workspace dependency, and orders packages so dependencies are published
before their dependents.
"""

from __future__ import annotations

from .models import Changelog, PackageInfo


def is_changelog_relevant(pkg: PackageInfo, changelog: Changelog) -> bool:
    """Check whether a change record applies to a package.

    A record applies when it names the package by unscoped name or by the
    name of the directory holding its manifest, or when it names no package
    at all and ``pkg`` is the workspace root.
    """
    if pkg.is_root and not changelog.packages:
        return True
    return pkg.name_without_scope in changelog.packages or (
        bool(pkg.directory_name) and pkg.directory_name in changelog.packages
    )


def get_package_changelogs(
    pkg: PackageInfo, changelogs: list[Changelog]
) -> list[Changelog]:
    """Filter change records to those relevant to ``pkg``, preserving order."""
    return [c for c in changelogs if is_changelog_relevant(pkg, c)]


def get_changed_package_infos(
    changelogs: list[Changelog], all_packages: list[PackageInfo]
) -> tuple[list[PackageInfo], list[PackageInfo]]:
    """Split the workspace into directly and indirectly changed packages.

    Direct packages are those at least one record applies to. Indirect
    packages are the remaining ones that declare a dependency on a direct
    package. Only a single hop is followed: a package depending solely on an
    indirect package is left untouched.

    Args:
        changelogs: Change records, in commit order.
        all_packages: Every package discovered in the workspace.

    Returns:
        Tuple of (direct packages, indirect packages), both in workspace
        order and never overlapping.

    Example:
        pkg-b depends on pkg-a, a record names pkg-a:
        get_changed_package_infos(...) → ([pkg-a], [pkg-b])
    """
    direct = [
        pkg
        for pkg in all_packages
        if any(is_changelog_relevant(pkg, c) for c in changelogs)
    ]
    direct_names = {pkg.name for pkg in direct}

    indirect = [
        pkg
        for pkg in all_packages
        if pkg.name not in direct_names
        and any(dep in direct_names for dep in pkg.dependencies)
    ]
    return direct, indirect


def topo_sort(packages: dict[str, PackageInfo]) -> list[str]:
    """Topologically sort packages by their internal dependencies.

    Uses Kahn's algorithm to produce a publish order where dependencies
    come before dependents. Packages with no dependencies are sorted
    alphabetically for deterministic output.

    Args:
        packages: Map of package name → PackageInfo.

    Returns:
        List of package names in publish order (dependencies first).

    Raises:
        RuntimeError: If a dependency cycle is detected.

    Example:
        If A depends on B, and B depends on C:
        topo_sort({A, B, C}) → [C, B, A]
    """
    in_degree = {n: 0 for n in packages}
    # Who depends on each package
    reverse_deps: dict[str, list[str]] = {n: [] for n in packages}

    for name, info in packages.items():
        for dep in info.dependencies:
            # Dependencies outside the set being sorted are already released
            if dep in packages:
                in_degree[name] += 1
                reverse_deps[dep].append(name)

    queue = sorted(n for n, d in in_degree.items() if d == 0)
    order: list[str] = []

    while queue:
        node = queue.pop(0)
        order.append(node)
        for dependent in sorted(reverse_deps[node]):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(order) != len(packages):
        remaining = set(packages) - set(order)
        raise RuntimeError(f"Dependency cycle detected involving: {remaining}")

    return order
