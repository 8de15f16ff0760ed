"""Conventional-commit header parsing.

Splits a changelog fragment such as ``feat(pkg-a, pkg-b)!: add thing`` into
its header and description, and parses the header into a type, the list of
scoped package names and the breaking-change flag.
"""

from __future__ import annotations

import re

from .constants import COMMIT_TYPES, CONVENTIONAL_COMMITS_PATTERN
from .models import CommitTypeParts

# The type word must end at "(", "!", "#", whitespace or end of header so that
# words like "feature" or "fixup" are not read as "feat" / "fix".
COMMIT_TYPE_PATTERN = re.compile(
    rf"^\s*({'|'.join(COMMIT_TYPES)})(?=[(!#\s]|$)"
    r"(!)?"
    r"(?:\(\s*([a-z0-9-]+(?:\s*,\s*[a-z0-9-]+)*)\s*\))?"
    r"(!)?"
)


def extract_commit_type(item: str) -> str:
    """Return the header of a fragment: the text before the first colon.

    Examples:
        "feat(ui): add table" → "feat(ui)"
        "no colon here" → ""
    """
    if ":" not in item:
        return ""
    return item[: item.index(":")].strip()


def extract_description(item: str) -> str:
    """Return the description of a fragment: the text after the first colon.

    Examples:
        "fix(api): handle 404 (#12)" → "handle 404 (#12)"
        "no colon here" → ""
    """
    if ":" not in item:
        return ""
    return item[item.index(":") + 1 :].strip()


def extract_commit_type_parts(header: str) -> CommitTypeParts:
    """Parse a conventional header into type, package names and breaking flag.

    The breaking marker ``!`` is recognized both before and after the scope
    list. A header that does not start with a known type yields an empty
    ``type``, which callers treat as unparseable.

    Examples:
        "chore(package-a)!" → type="chore", package_names=["package-a"], breaking
        "feat!(a, b)" → type="feat", package_names=["a", "b"], breaking
        "feat" → type="feat", package_names=[], not breaking
        "feature(a)" → type=""
    """
    match = COMMIT_TYPE_PATTERN.match(header)
    if not match:
        return CommitTypeParts(type="")

    scopes = match.group(3)
    package_names = [name.strip() for name in scopes.split(",")] if scopes else []
    return CommitTypeParts(
        type=match.group(1),
        package_names=package_names,
        is_breaking_change=bool(match.group(2) or match.group(4)),
    )


def is_pr_title_valid(title: str) -> bool:
    """Check a pull request title against the conventional-commit grammar."""
    return bool(CONVENTIONAL_COMMITS_PATTERN.match(title))
