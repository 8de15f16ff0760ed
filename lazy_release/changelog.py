"""Change-record building and CHANGELOG.md maintenance.

Turns changelog fragments (from commit messages, PR bodies or PR titles)
into Changelog records, and renders/merges the per-package CHANGELOG.md
sections.
"""

from __future__ import annotations

import re
from datetime import date as date_type
from datetime import datetime, timezone
from typing import cast

from .constants import INDIRECT_UPDATE_NOTICE
from .graph import get_package_changelogs
from .markdown import (
    get_changelog_items,
    get_changelog_section_from_commit_message,
    has_changelog_section,
    render_changelog_sections,
)
from .models import (
    Changelog,
    Commit,
    CommitTypeParts,
    PackageInfo,
    RepoContext,
    SemverBump,
    get_package_name_without_scope,
)
from .parsing import extract_commit_type, extract_commit_type_parts, extract_description
from .shell import warn

_EXPLICIT_BUMP_PATTERN = re.compile(r"#(major|minor|patch)")
_PR_REFERENCE_PATTERN = re.compile(r"\(#(\d+)\)")


def get_semver_from_description(description: str) -> SemverBump | None:
    """Return the explicit ``#major|#minor|#patch`` marker in a description."""
    match = _EXPLICIT_BUMP_PATTERN.search(description)
    return cast(SemverBump, match.group(1)) if match else None


def get_semver_bump(type_parts: CommitTypeParts) -> SemverBump:
    """Infer the bump from the header: breaking → major, feat → minor."""
    if type_parts.is_breaking_change:
        return "major"
    if type_parts.type == "feat":
        return "minor"
    return "patch"


def transform_description(
    description: str, repo: RepoContext | None = None, pr_number: int | None = None
) -> str:
    """Normalize a description for display.

    Trims, capitalizes the first letter, and when ``repo`` is given rewrites
    ``(#12)`` references into links to the pull request. ``pr_number`` adds
    a trailing link to that PR.

    Examples:
        transform_description(" fix crash (#12)", repo) →
            "Fix crash ([#12](https://github.com/o/r/pull/12))"
    """
    if not description:
        return ""

    text = description.strip()
    text = text[:1].upper() + text[1:]

    if repo:
        text = _PR_REFERENCE_PATTERN.sub(
            lambda m: f"([#{m.group(1)}]({repo.pull_request_url(int(m.group(1)))}))",
            text,
        )
        if pr_number:
            text += f" ([#{pr_number}]({repo.pull_request_url(pr_number)}))"

    return text


def create_changelog_from_changelog_item(
    item: str,
    root_package_name: str | None = None,
    repo: RepoContext | None = None,
) -> Changelog | None:
    """Build a change record from one fragment.

    Args:
        item: Fragment text, e.g. "feat(ui)!: drop old props #minor".
        root_package_name: Name of the workspace root. When the fragment
            names it explicitly it is dropped from the package list, since
            root changes are represented by an empty list.
        repo: Repository used to link PR references in the description.

    Returns:
        The record, or None (with a warning) when the header has no known
        type or the fragment has no colon.
    """
    header = extract_commit_type(item)
    description = extract_description(item)
    type_parts = extract_commit_type_parts(header)

    if not type_parts.type:
        warn(
            f'Skipping item with no type: "{item}". '
            'Expected format: "type(package): description".'
        )
        return None

    explicit_bump = get_semver_from_description(description)
    semver_bump = explicit_bump or get_semver_bump(type_parts)

    packages = type_parts.package_names
    if root_package_name and packages:
        root_name = get_package_name_without_scope(root_package_name)
        packages = [
            name for name in packages if get_package_name_without_scope(name) != root_name
        ]

    return Changelog(
        type=type_parts.type,
        description=transform_description(description, repo),
        packages=packages,
        is_breaking_change=type_parts.is_breaking_change,
        semver_bump=semver_bump,
        has_explicit_version_bump=explicit_bump is not None,
    )


def _changelogs_from_section(
    text: str, root_package_name: str | None, repo: RepoContext | None
) -> list[Changelog]:
    section = get_changelog_section_from_commit_message(text)
    changelogs: list[Changelog] = []
    for item in get_changelog_items(section):
        changelog = create_changelog_from_changelog_item(item, root_package_name, repo)
        if changelog:
            changelogs.append(changelog)
    return changelogs


def get_changelog_from_commits(
    commits: list[Commit],
    root_package_name: str | None = None,
    repo: RepoContext | None = None,
) -> list[Changelog]:
    """Build change records from commits, in commit then fragment order.

    A commit whose body has a ``## Changelog`` section yields one record per
    fragment. Any other commit yields at most one record, parsed from its
    subject line.
    """
    changelogs: list[Changelog] = []
    for commit in commits:
        if commit.body and has_changelog_section(commit.body):
            changelogs.extend(
                _changelogs_from_section(commit.body, root_package_name, repo)
            )
        else:
            changelog = create_changelog_from_changelog_item(
                commit.subject, root_package_name, repo
            )
            if changelog:
                changelogs.append(changelog)

    print(f"  Found {len(changelogs)} changelog entries in {len(commits)} commits")
    return changelogs


def get_changelog_from_markdown(
    markdown: str,
    root_package_name: str | None = None,
    repo: RepoContext | None = None,
) -> list[Changelog]:
    """Build change records from the ``## Changelog`` section of a PR body."""
    if not has_changelog_section(markdown):
        return []
    return _changelogs_from_section(markdown, root_package_name, repo)


def get_changelog_date(date: date_type | None = None) -> str:
    """Format a date as YYYY-MM-DD, defaulting to today in UTC."""
    date = date or datetime.now(timezone.utc).date()
    return date.isoformat()[:10]


def generate_changelog_content(
    pkg: PackageInfo, changelogs: list[Changelog], date: date_type | None = None
) -> str:
    """Render the CHANGELOG.md section for a package's new version.

    Packages with no relevant records (indirect updates) get the
    dependency-update notice instead of type sections.

    Example:
        ## 1.3.0 (2024-05-01)

        ### 🚀 New Features
        - Add table component
    """
    package_changelogs = get_package_changelogs(pkg, changelogs)

    markdown = f"## {pkg.new_version} ({get_changelog_date(date)})\n\n"
    if package_changelogs:
        markdown += render_changelog_sections(package_changelogs)
    else:
        markdown += INDIRECT_UPDATE_NOTICE

    return markdown.strip()


def _version_heading_pattern(version: str) -> re.Pattern[str]:
    # "## 1.2.0" optionally followed by " (YYYY-MM-DD)"
    return re.compile(
        rf"^## {re.escape(version)}(?: \(\d{{4}}-\d{{2}}-\d{{2}}\))?[ \t]*$",
        re.MULTILINE,
    )


def has_changelog_version(existing: str, version: str) -> bool:
    return bool(_version_heading_pattern(version).search(existing))


def replace_changelog_section(version: str, new_content: str, existing: str) -> str:
    """Replace the section for ``version`` in an existing changelog.

    The section runs from its heading to the next level-2 heading. When no
    heading for ``version`` exists, ``existing`` is returned unchanged.
    """
    match = _version_heading_pattern(version).search(existing)
    if not match:
        return existing

    end = existing.find("\n## ", match.end())

    updated = existing[: match.start()] + new_content
    if end != -1:
        updated += "\n\n" + existing[end:]
    return updated


def update_changelog(existing: str, new_content: str, new_version: str | None) -> str:
    """Merge a freshly rendered section into an existing CHANGELOG.md.

    Re-running a release for the same version replaces its section; a new
    version is prepended, newest first.
    """
    if not new_version:
        return ""
    if has_changelog_version(existing, new_version):
        return replace_changelog_section(new_version, new_content, existing)
    return new_content + "\n\n\n" + existing
