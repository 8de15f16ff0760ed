"""CLI entry point for lazy-release."""

from __future__ import annotations

import os
from pathlib import Path

import click

from lazy_release.config import ActionConfig
from lazy_release.models import RepoContext
from lazy_release.parsing import is_pr_title_valid
from lazy_release.pipeline import preview_release, run_action


@click.group()
@click.version_option(package_name="lazy-release")
def cli() -> None:
    """Lazy monorepo releases driven by changelog sections in commits and PRs."""


@cli.command()
def run() -> None:
    """Run the action for the current pull_request event (called from CI)."""
    run_action(ActionConfig.from_env())


@cli.command()
@click.option(
    "--repo",
    "repo_slug",
    default=lambda: os.environ.get("GITHUB_REPOSITORY", ""),
    help="owner/repo used for PR and compare links.",
)
@click.option("--end-commit", default=None, help="Stop collecting commits at this hash.")
def preview(repo_slug: str, end_commit: str | None) -> None:
    """Print the release PR body for the local history without changing anything."""
    root = Path.cwd()
    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    repo = None
    if repo_slug:
        if "/" not in repo_slug:
            raise click.ClickException(f"--repo must be owner/repo, got {repo_slug!r}")
        owner, name = repo_slug.split("/", 1)
        repo = RepoContext(owner=owner, repo=name)

    markdown = preview_release(root, repo, end_commit)
    if not markdown:
        click.echo("Nothing to release.")
        return
    click.echo()
    click.echo(markdown.rstrip())


@cli.command("validate-title")
@click.argument("title")
def validate_title(title: str) -> None:
    """Check a pull request title against the conventional-commit format."""
    if not is_pr_title_valid(title):
        raise click.ClickException(
            f"Invalid pull request title: {title}\n"
            'Expected "type(package): description", e.g. "feat(ui): add table".'
        )
    click.echo(f"✓ {title}")
