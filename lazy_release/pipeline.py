"""Release flows: status comment → release PR → publish.

This module orchestrates the lazy-release action:
1. On an open pull request, validate its title and post a status comment
   previewing the release (optionally publishing snapshot versions)
2. When a regular pull request is merged, collect the changelog entries
   since the last release, bump versions, update manifests and
   CHANGELOG.md files, and open or update the release PR
3. When the release PR is merged, tag, publish and create GitHub releases

The changelog/version engine lives in changelog, graph, versions and
markdown. Everything here reads the workspace, calls the engine and writes
the results back through git, gh and the package manager.
"""

from __future__ import annotations

import time
from datetime import date as date_type
from pathlib import Path

from .changelog import (
    create_changelog_from_changelog_item,
    generate_changelog_content,
    get_changelog_from_commits,
    get_changelog_from_markdown,
    update_changelog,
)
from .config import ActionConfig
from .constants import PR_COMMENT_STATUS_ID, RELEASE_BRANCH, RELEASE_PR_TITLE
from .git import (
    checkout_branch,
    commit_and_push_changes,
    create_or_checkout_branch,
    create_tag,
    does_tag_exist_on_remote,
    force_push_tag,
    get_recent_commits,
    has_unstaged_changes,
    is_last_commit_release_commit,
    push_tags,
    setup_git_config,
)
from .github import (
    create_or_update_pr,
    create_pr_comment,
    create_release,
    list_pr_comments,
    update_pr_comment,
    write_output,
)
from .graph import get_changed_package_infos, topo_sort
from .manifest import (
    PACKAGE_JSON,
    PYPROJECT_TOML,
    find_manifest_paths,
    get_package_infos,
    write_manifest,
)
from .markdown import (
    append_release_id_to_markdown,
    generate_markdown,
    get_github_release_name,
    get_major_tag_name,
    get_tag_name,
    has_changelog_section,
    has_release_pr_comment,
    increase_heading_level,
    parse_release_pr_body,
)
from .models import Changelog, PackageInfo, ReleaseEntry, RepoContext, SnapshotResult
from .package_manager import PackageManager, require_package_manager, update_lock_files
from .parsing import is_pr_title_valid
from .shell import fatal, run, step, warn
from .versions import apply_new_version, bump_indirect_package_version, get_snapshot_version


def discover_packages(root: Path | None = None) -> list[PackageInfo]:
    """Scan the workspace and load every package manifest.

    Returns an empty list when no manifests or packages are found; callers
    decide whether that ends the run.
    """
    step("Discovering workspace packages")
    root = root or Path.cwd()

    paths = find_manifest_paths(root)
    if not paths:
        print("  No package manifests found")
        return []

    packages = get_package_infos(paths, root)
    for pkg in packages:
        deps = f" → [{', '.join(pkg.dependencies)}]" if pkg.dependencies else ""
        root_marker = " (root)" if pkg.is_root else ""
        print(f"  {pkg.name} {pkg.version} ({pkg.path}){root_marker}{deps}")
    return packages


def get_root_package_name(packages: list[PackageInfo]) -> str | None:
    return next((pkg.name for pkg in packages if pkg.is_root), None)


def resolve_release_plan(
    changelogs: list[Changelog], packages: list[PackageInfo]
) -> tuple[list[PackageInfo], list[PackageInfo]]:
    """Partition the workspace and compute each affected package's new version."""
    changed, indirect = get_changed_package_infos(changelogs, packages)
    for pkg in changed:
        apply_new_version(pkg, changelogs)
    for pkg in indirect:
        bump_indirect_package_version(pkg)
    for pkg in changed:
        print(f"  {pkg.name}: {pkg.version} → {pkg.new_version}")
    for pkg in indirect:
        print(f"  {pkg.name}: {pkg.version} → {pkg.new_version} (dependency update)")
    return changed, indirect


def write_workspace_versions(
    root: Path, packages: list[PackageInfo], exact: bool = False
) -> None:
    """Write new versions, and the dependency specifiers that point at them.

    Every manifest is visited: a package is rewritten when it has a new
    version itself or depends on a workspace package that has one.
    """
    by_name = {pkg.name: pkg for pkg in packages}
    for pkg in packages:
        dep_versions: dict[str, str] = {}
        for dep in pkg.dependencies:
            new_version = by_name[dep].new_version if dep in by_name else None
            if new_version:
                dep_versions[dep] = new_version
        if pkg.new_version or dep_versions:
            write_manifest(root, pkg, pkg.new_version, dep_versions, exact)


def create_or_update_changelog(
    root: Path,
    pkg: PackageInfo,
    changelogs: list[Changelog],
    date: date_type | None = None,
) -> None:
    """Prepend (or replace) the package's section in its CHANGELOG.md."""
    changelog_path = root / pkg.directory / "CHANGELOG.md"
    content = generate_changelog_content(pkg, changelogs, date)

    if changelog_path.exists():
        updated = update_changelog(changelog_path.read_text(), content, pkg.new_version)
        changelog_path.write_text(updated)
    else:
        changelog_path.write_text(content)
    print(f"  Updated {changelog_path.relative_to(root)}")


def create_or_update_release_pr(
    config: ActionConfig, repo: RepoContext, root: Path | None = None
) -> None:
    """Collect changes since the last release and open or update the release PR."""
    root = root or Path.cwd()
    step("Preparing release branch")
    create_or_checkout_branch(RELEASE_BRANCH, config.default_branch)

    step("Collecting commits since last release")
    commits = get_recent_commits(repo, config.end_commit)

    packages = discover_packages(root)
    if not packages:
        return

    changelogs = get_changelog_from_commits(commits, get_root_package_name(packages), repo)

    step("Resolving versions")
    changed, indirect = resolve_release_plan(changelogs, packages)
    if not changed:
        print("  No packages changed, skipping release PR")
        return

    step("Updating manifests and changelogs")
    write_workspace_versions(root, packages)
    for pkg in changed:
        create_or_update_changelog(root, pkg, changelogs)
    for pkg in indirect:
        create_or_update_changelog(root, pkg, [])

    markdown = generate_markdown(changed, indirect, changelogs, repo)
    print(markdown)

    update_lock_files(require_package_manager(root), cwd=str(root))

    if has_unstaged_changes():
        commit_and_push_changes()

    step("Opening release PR")
    create_or_update_pr(
        repo,
        title=RELEASE_PR_TITLE,
        body=append_release_id_to_markdown(markdown),
        head=RELEASE_BRANCH,
        base=config.default_branch,
    )


def build_status_comment(
    changelogs: list[Changelog],
    changed: list[PackageInfo],
    indirect: list[PackageInfo],
    repo: RepoContext | None = None,
    head_sha: str | None = None,
    snapshot_commands: list[str] | None = None,
) -> str:
    """Render the PR status comment body."""
    markdown = "## 🚀 Lazy Release Action\n"
    markdown += "✅ Changelogs found.\n" if changelogs else "⚠️ No changelogs found.\n"

    count = len(changed) + len(indirect)
    if count:
        markdown += f"📦 {count} package{'s' if count != 1 else ''} will be updated.\n"
    else:
        markdown += "⚠️ No packages changed.\n"

    if head_sha:
        markdown += f"Latest commit: {head_sha}\n\n"

    if changed:
        content = generate_markdown(changed, indirect, changelogs, repo)
        markdown += increase_heading_level(content.strip())

    if snapshot_commands:
        markdown += "\n\n## 📸 Snapshots\n"
        markdown += "\n\n".join(f"```\n{command}\n```" for command in snapshot_commands)

    markdown += f"\n\n<!-- {PR_COMMENT_STATUS_ID} -->"
    return markdown


def create_or_update_pr_status_comment(
    config: ActionConfig,
    repo: RepoContext,
    root: Path | None = None,
    create_snapshot: bool = False,
) -> None:
    """Post (or refresh) the status comment on the triggering pull request."""
    root = root or Path.cwd()
    pr = config.pull_request
    if pr is None:
        return
    if has_release_pr_comment(pr.body):
        print("  Release PR detected, skipping status comment")
        return

    step("Updating PR status comment")
    packages = discover_packages(root)
    if not packages:
        return

    root_package_name = get_root_package_name(packages)
    changelogs: list[Changelog] = []
    if has_changelog_section(pr.body):
        changelogs = get_changelog_from_markdown(pr.body, root_package_name, repo)
    elif pr.title:
        changelog = create_changelog_from_changelog_item(pr.title, root_package_name, repo)
        if changelog:
            changelogs.append(changelog)

    changed, indirect = resolve_release_plan(changelogs, packages)

    snapshot_commands: list[str] = []
    if create_snapshot and config.snapshots and changed:
        pm = require_package_manager(root)
        results = create_snapshots(root, [*changed, *indirect], packages, pm)
        snapshot_commands = [
            pm.install_hint(r.package_name, r.new_version) for r in results
        ]

    markdown = build_status_comment(
        changelogs, changed, indirect, repo, pr.head_sha, snapshot_commands
    )

    comments = list_pr_comments(repo, pr.number)
    existing = next(
        (c for c in comments if PR_COMMENT_STATUS_ID in (c.get("body") or "")), None
    )
    if existing:
        print(f"  Updating comment {existing['id']}")
        update_pr_comment(repo, existing["id"], markdown)
    else:
        print("  Creating status comment")
        create_pr_comment(repo, pr.number, markdown)


def create_snapshots(
    root: Path,
    affected: list[PackageInfo],
    all_packages: list[PackageInfo],
    pm: PackageManager,
    timestamp_ms: int | None = None,
) -> list[SnapshotResult]:
    """Publish a snapshot prerelease of every affected public package.

    Dependents inside the workspace are pointed at the exact snapshot
    version before publishing.
    """
    step("Publishing snapshots")
    timestamp_ms = timestamp_ms or int(time.time() * 1000)

    results: list[SnapshotResult] = []
    for pkg in affected:
        if pkg.is_private:
            warn(f"Package {pkg.name} is private, skipping snapshot")
            continue
        if not (root / pkg.path).exists():
            warn(f"Manifest {pkg.path} does not exist, skipping snapshot")
            continue

        base_version = pkg.new_version or pkg.version
        snapshot = get_snapshot_version(
            base_version, timestamp_ms, pep440=pkg.manifest_name == PYPROJECT_TOML
        )

        write_manifest(root, pkg, snapshot, {})
        for other in all_packages:
            if pkg.name in other.dependencies:
                write_manifest(root, other, None, {pkg.name: snapshot}, exact=True)

        update_lock_files(pm, cwd=str(root))
        for command in pm.publish_commands(tag="snapshot"):
            run(*command, cwd=str(root / pkg.directory))
        print(f"  {pkg.name}@{snapshot}")
        results.append(SnapshotResult(package_name=pkg.name, new_version=snapshot))
    return results


def match_release_entries(
    packages: list[PackageInfo], entries: list[ReleaseEntry]
) -> list[tuple[PackageInfo, ReleaseEntry]]:
    """Pair each released package with its section of the release PR body."""
    matched = []
    for pkg in packages:
        entry = next(
            (
                e
                for e in entries
                if e.package_name in (pkg.name, pkg.name_without_scope)
                or (pkg.is_root and e.is_root)
            ),
            None,
        )
        if entry:
            matched.append((pkg, entry))
    return matched


def create_tags(packages: list[PackageInfo], config: ActionConfig) -> list[str]:
    """Create and push annotated tags for released packages.

    Tags already present on the remote are skipped. Each newly tagged
    package gets a ``{name}_version`` step output.
    """
    step("Tagging release")
    created: list[str] = []
    root_pkg = None
    for pkg in packages:
        if pkg.is_root:
            root_pkg = pkg
        tag = get_tag_name(pkg)
        if does_tag_exist_on_remote(tag):
            print(f"  {tag} already exists on remote")
            continue
        create_tag(tag)
        created.append(tag)
        print(f"  {tag}")
        write_output(config.output_path, f"{pkg.name_without_scope}_version", pkg.version)

    if not created:
        print("  No new tags to push")
        return created
    push_tags()

    if root_pkg and config.publish_major_tag:
        major_tag = get_major_tag_name(root_pkg.version)
        force_push_tag(major_tag)
        print(f"  Moved {major_tag}")
    return created


def publish_packages(
    root: Path, packages: list[PackageInfo], config: ActionConfig
) -> bool:
    """Publish public packages in dependency order.

    A failing publish (typically a version that already exists on the
    registry) is reported as a warning and does not stop the others.

    Returns:
        True if at least one package was published.
    """
    step(f"Publishing {len(packages)} packages")
    pm = require_package_manager(root)

    by_name = {pkg.name: pkg for pkg in packages}
    try:
        order = topo_sort(by_name)
    except RuntimeError as e:
        warn(f"{e}; publishing in workspace order")
        order = list(by_name)

    published = False
    for name in order:
        pkg = by_name[name]
        if pkg.is_private:
            print(f"  {name}: private, skipped")
            continue
        print(f"\n  {name} {pkg.version}")
        ok = True
        for command in pm.publish_commands():
            result = run(*command, cwd=str(root / pkg.directory), check=False)
            if result.returncode != 0:
                ok = False
                break
        if ok:
            published = True
        else:
            warn(f"Publishing {name}@{pkg.version} failed (already published?)")

    write_output(config.output_path, "published", "true" if published else "false")
    return published


def create_github_releases(
    matched: list[tuple[PackageInfo, ReleaseEntry]], repo: RepoContext
) -> None:
    step("Creating GitHub releases")
    for pkg, entry in matched:
        tag = get_tag_name(pkg)
        if not does_tag_exist_on_remote(tag):
            warn(f"Tag {tag} does not exist on remote, skipping release")
            continue
        name = get_github_release_name(pkg)
        print(f"  {name}")
        create_release(repo, tag_name=tag, name=name, body=entry.content.strip())


def publish(config: ActionConfig, repo: RepoContext, root: Path | None = None) -> None:
    """Tag, publish and release the packages listed in the merged release PR."""
    root = root or Path.cwd()
    body = config.pull_request.body if config.pull_request else ""
    if not body:
        print("No pull request body found, skipping release")
        return

    entries = parse_release_pr_body(body)
    if not entries:
        print("No release entries in the pull request body, skipping release")
        return

    packages = discover_packages(root)
    matched = match_release_entries(packages, entries)
    if not matched:
        print("No released packages found in the workspace, skipping release")
        return

    released = [pkg for pkg, _ in matched]
    create_tags(released, config)
    publish_packages(root, released, config)
    create_github_releases(matched, repo)


def configure_registry_auth(config: ActionConfig, root: Path | None = None) -> None:
    """Store registry tokens in the npm user config."""
    root = root or Path.cwd()
    if not (root / PACKAGE_JSON).exists():
        return
    if config.npm_token:
        run("npm", "config", "set", f"//registry.npmjs.org/:_authToken={config.npm_token}")
    if config.github_token:
        token = config.github_token
        run("npm", "config", "set", f"//npm.pkg.github.com/:_authToken={token}")


def preview_release(
    root: Path | None = None, repo: RepoContext | None = None, end_commit: str | None = None
) -> str:
    """Compute the release PR body from local history without writing anything."""
    root = root or Path.cwd()
    commits = get_recent_commits(repo, end_commit)
    packages = discover_packages(root)
    if not packages:
        return ""
    changelogs = get_changelog_from_commits(commits, get_root_package_name(packages), repo)
    step("Resolving versions")
    changed, indirect = resolve_release_plan(changelogs, packages)
    if not changed:
        return ""
    return generate_markdown(changed, indirect, changelogs, repo)


def run_action(config: ActionConfig | None = None) -> None:
    """Entry point for the GitHub Action.

    Dispatches on the triggering pull request: merged release PRs publish,
    other merged PRs update the release PR, open PRs get a status comment.
    """
    config = config or ActionConfig.from_env()
    if config.repo is None:
        fatal("GITHUB_REPOSITORY is not set")
        return
    pr = config.pull_request
    if pr is None:
        fatal("lazy-release must be triggered by a pull_request event")
        return

    setup_git_config()
    configure_registry_auth(config)

    if pr.merged:
        print(f"Pull request #{pr.number} has been merged")
        checkout_branch(config.default_branch)
        if is_last_commit_release_commit():
            publish(config, config.repo)
        else:
            create_or_update_release_pr(config, config.repo)
        return

    print(f"Pull request #{pr.number} is not merged yet")
    if not is_pr_title_valid(pr.title) and pr.title != RELEASE_PR_TITLE:
        create_or_update_pr_status_comment(config, config.repo)
        fatal(f"Invalid pull request title: {pr.title}")
        return
    create_or_update_pr_status_comment(config, config.repo, create_snapshot=True)
    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
