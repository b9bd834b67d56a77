"""GitHub Actions run context.

Built once from the runner's ``GITHUB_*`` environment variables and the JSON
event payload at ``GITHUB_EVENT_PATH``, then passed explicitly to the
functions that talk to GitHub.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .errors import ConfigError


class Context(BaseModel):
    """Where the action runs and which pull request it looks at.

    Attributes:
        repo_owner: Owner of the repository, e.g. "octo-org".
        repo_name: Repository name without the owner.
        server_url: GitHub server URL, e.g. "https://github.com".
        pr_number: Number of the triggering pull request.
        pr_title: Pull request title.
        pr_body: Pull request description, possibly empty.
        event_name: Triggering event, e.g. "pull_request".
        is_pr_merge_event: True when the pull request was just merged.
        merge_commit_sha: Commit releases are created on, when merged.
        workspace_dir: Checkout directory of the repository.
    """

    repo_owner: str
    repo_name: str
    server_url: str = "https://github.com"
    pr_number: int
    pr_title: str = ""
    pr_body: str = ""
    event_name: str = "pull_request"
    is_pr_merge_event: bool = False
    merge_commit_sha: str | None = None
    workspace_dir: Path

    @property
    def repository(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    @property
    def repo_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/{self.repository}"

    @property
    def pr_url(self) -> str:
        return f"{self.repo_url}/pull/{self.pr_number}"

    @property
    def wiki_url(self) -> str:
        return f"{self.repo_url}/wiki"


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "").strip()
    if not value:
        raise ConfigError(f"Environment variable {name} is not set")
    return value


def read_event_payload(path: str | Path) -> dict[str, Any]:
    """Load the webhook payload that triggered the workflow."""
    try:
        return json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read event payload {path}: {exc}") from exc


def load_context(environ: Mapping[str, str] | None = None) -> Context:
    """Build the run context from the GitHub Actions environment.

    Raises:
        ConfigError: If the repository, workspace or pull request cannot be
            determined.
    """
    env = os.environ if environ is None else environ

    repository = _require(env, "GITHUB_REPOSITORY")
    owner, sep, name = repository.partition("/")
    if not sep or not owner or not name:
        raise ConfigError(f"GITHUB_REPOSITORY must look like 'owner/name', got '{repository}'")

    workspace = Path(_require(env, "GITHUB_WORKSPACE"))
    event_name = env.get("GITHUB_EVENT_NAME", "pull_request")
    event_path = env.get("GITHUB_EVENT_PATH", "")
    payload = read_event_payload(event_path) if event_path else {}

    pull_request = payload.get("pull_request") or {}
    number = pull_request.get("number") or payload.get("number")
    if not number:
        raise ConfigError(
            "No pull request found in the event payload; run this action on "
            "pull_request events"
        )

    merged = bool(pull_request.get("merged"))
    is_merge = event_name == "pull_request" and payload.get("action") == "closed" and merged

    return Context(
        repo_owner=owner,
        repo_name=name,
        server_url=env.get("GITHUB_SERVER_URL") or "https://github.com",
        pr_number=int(number),
        pr_title=(pull_request.get("title") or "").strip(),
        pr_body=pull_request.get("body") or "",
        event_name=event_name,
        is_pr_merge_event=is_merge,
        merge_commit_sha=pull_request.get("merge_commit_sha"),
        workspace_dir=workspace,
    )
