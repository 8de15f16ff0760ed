"""Action configuration read from the GitHub Actions environment."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel

from .constants import DEFAULT_BRANCH
from .models import RepoContext


class PullRequestEvent(BaseModel):
    """The parts of a ``pull_request`` event payload the action reads."""

    number: int = 0
    title: str = ""
    body: str = ""
    merged: bool = False
    head_sha: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> PullRequestEvent | None:
        pr = payload.get("pull_request")
        if not pr:
            return None
        return cls(
            number=pr.get("number") or 0,
            title=pr.get("title") or "",
            body=pr.get("body") or "",
            merged=bool(pr.get("merged")),
            head_sha=(pr.get("head") or {}).get("sha"),
        )


class ActionConfig(BaseModel):
    """Inputs and context for one action run.

    Attributes:
        github_token: Token for gh and the GitHub npm registry.
        npm_token: Token for registry.npmjs.org, optional.
        default_branch: Branch release PRs target.
        snapshots: Publish snapshot versions for open pull requests.
        publish_major_tag: Move a ``vN`` tag to each root release.
        end_commit: Stop collecting commits at this hash.
        repo: Repository the action runs in.
        pull_request: Triggering pull request, None for other events.
        output_path: File that receives step outputs.
    """

    github_token: str = ""
    npm_token: str = ""
    default_branch: str = DEFAULT_BRANCH
    snapshots: bool = False
    publish_major_tag: bool = False
    end_commit: str | None = None
    repo: RepoContext | None = None
    pull_request: PullRequestEvent | None = None
    output_path: str | None = None

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ActionConfig:
        """Build the configuration from ``INPUT_*`` and ``GITHUB_*`` variables."""
        env = dict(os.environ) if env is None else env

        repo = None
        if "/" in env.get("GITHUB_REPOSITORY", ""):
            owner, name = env["GITHUB_REPOSITORY"].split("/", 1)
            repo = RepoContext(owner=owner, repo=name)

        pull_request = None
        event_path = env.get("GITHUB_EVENT_PATH")
        if event_path and Path(event_path).exists():
            payload = json.loads(Path(event_path).read_text())
            pull_request = PullRequestEvent.from_payload(payload)

        return cls(
            github_token=env.get("INPUT_GITHUB-TOKEN", ""),
            npm_token=env.get("INPUT_NPM-TOKEN", ""),
            default_branch=env.get("INPUT_DEFAULT-BRANCH") or DEFAULT_BRANCH,
            snapshots=_input_flag(env, "INPUT_SNAPSHOTS"),
            publish_major_tag=_input_flag(env, "INPUT_PUBLISH-MAJOR-TAG"),
            end_commit=env.get("INPUT_END-COMMIT") or None,
            repo=repo,
            pull_request=pull_request,
            output_path=env.get("GITHUB_OUTPUT") or None,
        )


def _input_flag(env: dict[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() == "true"
