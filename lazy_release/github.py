"""GitHub API access through the gh CLI.

Every call goes through ``gh api`` so authentication, retries and
enterprise hosts are handled by gh itself.
"""

from __future__ import annotations

import json
from typing import Any

from .models import RepoContext
from .shell import gh


def _api(method: str, endpoint: str, payload: dict[str, Any] | None = None) -> Any:
    args = ["api", "--method", method, endpoint]
    if payload is None:
        output = gh(*args)
    else:
        output = gh(*args, "--input", "-", input=json.dumps(payload))
    return json.loads(output) if output else None


def create_or_update_pr(
    repo: RepoContext, title: str, body: str, head: str, base: str
) -> dict[str, Any]:
    """Open a PR from ``head`` into ``base``, or update the open one.

    Returns:
        The pull request object returned by the API.
    """
    existing = _api(
        "GET",
        f"repos/{repo.name_with_owner}/pulls"
        f"?head={repo.owner}:{head}&base={base}&state=open",
    )
    if existing:
        number = existing[0]["number"]
        pr = _api(
            "PATCH",
            f"repos/{repo.name_with_owner}/pulls/{number}",
            {"title": title, "body": body},
        )
        print(f"  Updated PR #{number}")
        return pr

    pr = _api(
        "POST",
        f"repos/{repo.name_with_owner}/pulls",
        {"title": title, "body": body, "head": head, "base": base},
    )
    print(f"  Created PR #{pr['number']}")
    return pr


def list_pr_comments(repo: RepoContext, pr_number: int) -> list[dict[str, Any]]:
    return _api(
        "GET", f"repos/{repo.name_with_owner}/issues/{pr_number}/comments?per_page=100"
    ) or []


def create_pr_comment(repo: RepoContext, pr_number: int, body: str) -> None:
    endpoint = f"repos/{repo.name_with_owner}/issues/{pr_number}/comments"
    _api("POST", endpoint, {"body": body})


def update_pr_comment(repo: RepoContext, comment_id: int, body: str) -> None:
    endpoint = f"repos/{repo.name_with_owner}/issues/comments/{comment_id}"
    _api("PATCH", endpoint, {"body": body})


def create_release(repo: RepoContext, tag_name: str, name: str, body: str) -> None:
    _api(
        "POST",
        f"repos/{repo.name_with_owner}/releases",
        {"tag_name": tag_name, "name": name, "body": body},
    )


def write_output(output_path: str | None, name: str, value: str) -> None:
    """Append a step output to the GITHUB_OUTPUT file.

    Outside of Actions (no output file) the value is only printed.
    """
    print(f"  output {name}={value}")
    if not output_path:
        return
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")
