"""Fixed identifiers and lookup tables shared across the release action."""

from __future__ import annotations

import re
from typing import NamedTuple

RELEASE_BRANCH = "lazy-release/main"
RELEASE_PR_TITLE = "Version Packages"
DEFAULT_BRANCH = "main"

# Hidden markers embedded in PR bodies, comments and commit messages.
RELEASE_ID = "e5e6f0b2-6a4c-4f1d-9d3a-8b7c2e1f0a94"
PR_COMMENT_STATUS_ID = "b3da20ce-59b6-4bbd-a6e3-6d625f45d008"

CHANGELOG_HEADING = "## Changelog\n"
INDIRECT_UPDATE_NOTICE = "📦 Updated due to dependency changes"
BREAKING_CHANGES_HEADING = "### ⚠️ Breaking Changes"

COMMIT_TYPES = (
    "feat",
    "fix",
    "perf",
    "chore",
    "docs",
    "style",
    "refactor",
    "test",
    "build",
    "ci",
    "revert",
)

CONVENTIONAL_COMMITS_PATTERN = re.compile(
    rf"^({'|'.join(COMMIT_TYPES)})(!)?(\(([a-z0-9-]+)(,\s*[a-z0-9-]+)*\))?(!)?"
    r"(#(major|minor|patch))?: .+"
)


class ChangelogType(NamedTuple):
    emoji: str
    display_name: str
    sort: int


TYPE_TO_CHANGELOG_TYPE: dict[str, ChangelogType] = {
    "feat": ChangelogType("🚀", "New Features", 0),
    "fix": ChangelogType("🐛", "Bug Fixes", 1),
    "perf": ChangelogType("⚡️", "Performance Improvements", 2),
    "chore": ChangelogType("🏠", "Chores", 3),
    "docs": ChangelogType("📚", "Documentation", 4),
    "style": ChangelogType("🎨", "Styles", 5),
    "refactor": ChangelogType("♻️", "Refactors", 6),
    "test": ChangelogType("✅", "Tests", 7),
    "build": ChangelogType("📦", "Build System", 8),
    "ci": ChangelogType("🤖", "Continuous Integration", 9),
    "revert": ChangelogType("⏪", "Reverts", 10),
}

DEPENDENCY_FIELDS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)
