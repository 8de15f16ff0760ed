"""Git operations used by the release flows.

Commit collection walks ``git log`` back to the previous release commit;
everything else is a thin wrapper over a git command.
"""

from __future__ import annotations

import re
import subprocess

from .constants import CONVENTIONAL_COMMITS_PATTERN, RELEASE_ID
from .models import Commit, RepoContext
from .shell import git, warn

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"

# Field and record separators for git log output
_FS = "\x1f"
_RS = "\x1e"

_REVERTS_HASH_PATTERN = re.compile(r"This reverts commit ([0-9a-f]{7,40})")


def setup_git_config() -> None:
    git("config", "--global", "user.name", BOT_NAME)
    git("config", "--global", "user.email", BOT_EMAIL)
    git("config", "--global", "--add", "safe.directory", "/github/workspace")


def checkout_branch(branch: str) -> None:
    git("fetch", "origin", branch)
    git("checkout", branch)


def create_or_checkout_branch(branch: str, default_branch: str) -> None:
    """Switch to ``branch`` and bring it up to date with the default branch.

    Merge conflicts are resolved in favour of the default branch. When the
    branch does not exist yet it is created from the current HEAD.
    """
    try:
        git("checkout", branch)
    except subprocess.CalledProcessError:
        print(f"  Branch {branch} does not exist, creating it")
        git("checkout", "-b", branch)
        return

    print(f"  Switched to branch {branch}")
    try:
        git("merge", f"origin/{default_branch}")
    except subprocess.CalledProcessError:
        print("  Merge conflicts detected, taking theirs")
        git("merge", "--abort")
        git("merge", "-X", "theirs", f"origin/{default_branch}")
    git("push", "origin", branch)


def has_unstaged_changes() -> bool:
    return bool(git("status", "--porcelain"))


def commit_and_push_changes(message: str = "chore: update release branch") -> None:
    git("add", ".")
    git("commit", "-m", message)
    git("push", "origin", "HEAD")


def does_tag_exist_on_remote(tag: str) -> bool:
    git("fetch", "--tags", check=False)
    return bool(git("ls-remote", "--tags", "origin", f"refs/tags/{tag}", check=False))


def create_tag(tag: str) -> None:
    git("tag", "-a", tag, "-m", f"Release {tag}")


def push_tags() -> None:
    git("push", "--tags")


def force_push_tag(tag: str) -> None:
    """Move a lightweight tag (e.g. ``v1``) to HEAD and force-push it."""
    git("tag", "-f", tag)
    git("push", "origin", tag, "--force")


def is_last_commit_release_commit() -> bool:
    """Check whether HEAD is the merge of a release PR."""
    last_commit = git("log", "-1", "--pretty=format:%B")
    return RELEASE_ID in last_commit


def parse_git_log(output: str) -> list[Commit]:
    """Parse ``git log`` output written with the %x1f / %x1e separators."""
    commits: list[Commit] = []
    for record in output.split(_RS):
        record = record.strip("\n")
        if not record.strip():
            continue
        hash_, subject, body = (record.split(_FS) + ["", ""])[:3]
        commits.append(
            Commit(hash=hash_.strip(), subject=subject.strip(), body=body.strip())
        )
    return commits


def list_commits() -> list[Commit]:
    """List commits reachable from HEAD, newest first."""
    output = git("log", f"--pretty=format:%H{_FS}%s{_FS}%b{_RS}")
    return parse_git_log(output)


def _is_reverted_by(release: Commit, newer: Commit, repo: RepoContext | None) -> bool:
    match = re.search(r"#(\d+)", release.message)
    if not match or repo is None:
        return False
    return f"Reverts {repo.name_with_owner}#{match.group(1)}" in newer.message


def collect_release_commits(
    commits: list[Commit],
    repo: RepoContext | None = None,
    end_commit: str | None = None,
) -> list[Commit]:
    """Take commits newest-first until the previous release commit.

    A release commit (one carrying the release id) ends the walk, unless
    the next newer commit reverts its PR. Release commits without a PR
    reference, or at the very top of the history, are skipped instead.
    When ``end_commit`` is given the walk also stops there, exclusive.
    """
    collected: list[Commit] = []
    for i, commit in enumerate(commits):
        if end_commit and commit.hash.startswith(end_commit):
            break

        if RELEASE_ID in commit.message:
            if not re.search(r"#(\d+)", commit.message):
                warn(f"Skipping release commit {commit.hash}: no PR number")
                continue
            if i == 0:
                warn(f"Skipping release commit {commit.hash}: it is the latest commit")
                continue
            if _is_reverted_by(commit, commits[i - 1], repo):
                warn(f"Skipping release commit {commit.hash}: reverted afterwards")
                continue
            break

        collected.append(commit)
    return collected


def get_revert_target(commit: Commit, repo: RepoContext | None = None) -> str | None:
    """Identify what a revert commit reverts.

    Returns the reverted commit hash for ``git revert`` messages, ``#N`` for
    GitHub revert PRs (``Reverts owner/repo#N``), or None.
    """
    match = _REVERTS_HASH_PATTERN.search(commit.message)
    if match:
        return match.group(1)
    if repo:
        pattern = rf"Reverts {re.escape(repo.name_with_owner)}#(\d+)"
        match = re.search(pattern, commit.message)
        if match:
            return f"#{match.group(1)}"
    return None


def filter_reverted_commits(
    commits: list[Commit], repo: RepoContext | None = None
) -> list[Commit]:
    """Drop revert commits together with the commits they revert."""
    dropped: set[str] = set()
    for commit in commits:
        target = get_revert_target(commit, repo)
        if target is None:
            continue
        dropped.add(commit.hash)
        for other in commits:
            if target.startswith("#"):
                if f"({target})" in other.subject:
                    dropped.add(other.hash)
            elif other.hash.startswith(target):
                dropped.add(other.hash)
    return [c for c in commits if c.hash not in dropped]


def is_changelog_commit(commit: Commit) -> bool:
    """Keep conventional commits and commits carrying a changelog section."""
    return bool(CONVENTIONAL_COMMITS_PATTERN.match(commit.message)) or (
        "## Changelog" in commit.message
    )


def get_recent_commits(
    repo: RepoContext | None = None, end_commit: str | None = None
) -> list[Commit]:
    """Commits since the last release that can contribute changelog entries."""
    commits = collect_release_commits(list_commits(), repo, end_commit)
    commits = filter_reverted_commits(commits, repo)
    filtered = [c for c in commits if is_changelog_commit(c)]
    print(f"  {len(filtered)} of {len(commits)} commits carry changelog entries")
    return filtered
