"""Markdown scanning and rendering for changelog sections and release PRs.

The scanners here are deliberately plain character and substring scans, not
a markdown parser: a ``## Changelog`` section ends at the first ``##`` run
and items are split on ``"- "``.
"""

from __future__ import annotations

import re

from .constants import (
    BREAKING_CHANGES_HEADING,
    CHANGELOG_HEADING,
    INDIRECT_UPDATE_NOTICE,
    RELEASE_ID,
    TYPE_TO_CHANGELOG_TYPE,
)
from .graph import get_package_changelogs
from .models import Changelog, PackageInfo, ReleaseEntry, RepoContext

RELEASE_PR_COMMENT = f"<!-- Release PR: {RELEASE_ID} -->"

_HEADING_PATTERN = re.compile(r"^([ \t]*)(#+ )", re.MULTILINE)
_RELEASE_HEADING_PATTERN = re.compile(
    r"^## (?:(?P<name>[^\s@]+)@)?(?P<old>[^\s➡]+)➡️(?P<new>\S+)[ \t]*$",
    re.MULTILINE,
)


def has_changelog_section(text: str) -> bool:
    return CHANGELOG_HEADING in text


def get_changelog_section_from_commit_message(text: str) -> str:
    """Extract the body of the ``## Changelog`` section from free text.

    Scans forward from the heading, counting consecutive ``#`` characters.
    Any other character resets the count, so single ``#`` characters (issue
    references, shell comments in code fences) are ignored. The section ends
    at the first run of two.

    Callers should check has_changelog_section() first. Without a heading the
    scan starts at the beginning of ``text``.

    Example:
        "intro\\n## Changelog\\n- feat(a): x\\n## Notes" → "- feat(a): x"
    """
    start = text.find(CHANGELOG_HEADING)
    start = start + len(CHANGELOG_HEADING) if start != -1 else 0
    end = len(text)

    hash_count = 0
    for i in range(start, len(text)):
        if text[i] == "#":
            hash_count += 1
            if hash_count == 2:
                end = i - 1
                break
        else:
            hash_count = 0

    return text[start:end].strip()


def get_changelog_items(section: str) -> list[str]:
    """Split a changelog section into items on the literal ``"- "`` marker.

    The split is not aware of code fences, so a ``"- "`` inside a fenced
    block starts a new item.
    """
    return [item.strip() for item in section.split("- ") if item.strip()]


def increase_heading_level(markdown: str) -> str:
    """Push every heading one level deeper (``# A`` → ``## A``).

    Only real headings (hashes followed by a space) are touched, so bump
    markers like ``#major`` are left alone.
    """
    return _HEADING_PATTERN.sub(r"\1#\2", markdown)


def append_release_id_to_markdown(markdown: str) -> str:
    return markdown + RELEASE_PR_COMMENT


def has_release_pr_comment(markdown: str) -> bool:
    return RELEASE_PR_COMMENT in markdown


def remove_release_pr_comment(markdown: str) -> str:
    return markdown.replace(RELEASE_PR_COMMENT, "")


def render_changelog_sections(changelogs: list[Changelog]) -> str:
    """Render breaking changes followed by one section per change type.

    Breaking records get their own leading section and are left out of the
    type sections. Type sections follow the fixed display order, items keep
    their input order within a section.
    """
    markdown = ""

    breaking = [c for c in changelogs if c.is_breaking_change]
    if breaking:
        markdown += f"{BREAKING_CHANGES_HEADING}\n"
        for changelog in breaking:
            markdown += f"- {changelog.description}\n"
        markdown += "\n"

    grouped: dict[str, list[Changelog]] = {}
    for changelog in changelogs:
        if changelog.is_breaking_change:
            continue
        grouped.setdefault(changelog.type, []).append(changelog)

    for type_ in sorted(grouped, key=lambda t: TYPE_TO_CHANGELOG_TYPE[t].sort):
        changelog_type = TYPE_TO_CHANGELOG_TYPE[type_]
        markdown += f"### {changelog_type.emoji} {changelog_type.display_name}\n"
        for changelog in grouped[type_]:
            markdown += f"- {changelog.description}\n"
        markdown += "\n"

    return markdown


def get_tag_name(pkg: PackageInfo, version: str | None = None) -> str:
    """Git tag for a package release.

    Examples:
        root package at 1.2.0 → "v1.2.0"
        "@scope/ui" at 0.3.1 → "@scope/ui@0.3.1"
    """
    version = version or pkg.version
    return f"v{version}" if pkg.is_root else f"{pkg.name}@{version}"


def get_major_tag_name(version: str) -> str:
    """Moving major tag for a version, e.g. "1.2.3" → "v1"."""
    return f"v{version.split('.')[0]}"


def get_github_release_name(pkg: PackageInfo) -> str:
    if pkg.is_root:
        return f"v{pkg.version}"
    return f"{pkg.name_without_scope}@{pkg.version}"


def generate_markdown(
    changed_packages: list[PackageInfo],
    indirect_packages: list[PackageInfo],
    changelogs: list[Changelog],
    repo: RepoContext | None = None,
) -> str:
    """Render the release PR body for a set of changed packages.

    Each directly changed package with relevant records gets a
    ``## name@old➡️new`` section (``## old➡️new`` for the root), an optional
    compare link, and its breaking/type sections. Indirect packages get a
    fixed dependency-update notice.

    Args:
        changed_packages: Directly changed packages, in workspace order.
        indirect_packages: Packages updated only because a dependency changed.
        changelogs: All change records for this release.
        repo: When given, a compare link between the old and new tag is added
              under each changed package heading.
    """
    markdown = "# 👉 Changelog\n\n"

    for pkg in changed_packages:
        package_changelogs = get_package_changelogs(pkg, changelogs)
        if not package_changelogs:
            continue

        if pkg.is_root:
            markdown += f"## {pkg.version}"
        else:
            markdown += f"## {pkg.name_without_scope}@{pkg.version}"
        if pkg.new_version:
            markdown += f"➡️{pkg.new_version}"
        markdown += "\n\n"

        if repo and pkg.new_version:
            compare_url = repo.compare_url(
                get_tag_name(pkg), get_tag_name(pkg, pkg.new_version)
            )
            markdown += f"[compare changes]({compare_url})\n\n"

        markdown += render_changelog_sections(package_changelogs)

    for pkg in indirect_packages:
        markdown += f"## {pkg.name_without_scope}@{pkg.version}"
        if pkg.new_version:
            markdown += f"➡️{pkg.new_version}"
        markdown += "\n\n"
        markdown += f"{INDIRECT_UPDATE_NOTICE}\n\n"

    return markdown


def parse_release_pr_body(body: str) -> list[ReleaseEntry]:
    """Parse a merged release PR body back into per-package release entries.

    Reads every ``## name@old➡️new`` / ``## old➡️new`` heading written by
    generate_markdown(). An entry's content is everything up to the next
    level-2 heading.
    """
    body = remove_release_pr_comment(body)
    headings = list(_RELEASE_HEADING_PATTERN.finditer(body))

    entries: list[ReleaseEntry] = []
    for i, match in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(body)
        next_section = body.find("\n## ", match.end(), end)
        if next_section != -1:
            end = next_section
        entries.append(
            ReleaseEntry(
                package_name=match.group("name"),
                old_version=match.group("old"),
                new_version=match.group("new"),
                content=body[match.end() : end].strip(),
            )
        )
    return entries
