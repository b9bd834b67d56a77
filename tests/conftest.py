"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tf_module_releaser.config import Config
from tf_module_releaser.context import Context
from tf_module_releaser.models import CommitDetails, GitHubRelease, TerraformModule


def make_config(**overrides) -> Config:
    """Build a Config with defaults, overriding selected fields."""
    return Config(**overrides)


def make_context(workspace_dir: Path, **overrides) -> Context:
    """Build a merged-or-open pull request context for owner/repo."""
    values = {
        "repo_owner": "octo-org",
        "repo_name": "infra",
        "server_url": "https://github.com",
        "pr_number": 7,
        "pr_title": "Update modules",
        "pr_body": "",
        "workspace_dir": workspace_dir,
    }
    values.update(overrides)
    return Context(**values)


def make_commit(sha: str, message: str, *files: str) -> CommitDetails:
    return CommitDetails(sha=sha, message=message, files=list(files))


def make_release(release_id: int, tag_name: str, body: str = "") -> GitHubRelease:
    return GitHubRelease(id=release_id, title=tag_name, body=body, tag_name=tag_name)


def make_module(name: str, directory: Path, **overrides) -> TerraformModule:
    return TerraformModule(name=name, directory=directory, **overrides)


def write_tree(root: Path, files: list[str]) -> Path:
    """Create empty files (and their parent directories) below root."""
    for relative in files:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")
    return root


@pytest.fixture(autouse=True)
def clean_action_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests never see the runner's GitHub Actions environment."""
    for name in ("GITHUB_ACTIONS", "RUNNER_DEBUG", "GITHUB_OUTPUT", "GH_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A monorepo with nested, ignored and cached Terraform directories."""
    root = tmp_path / "repo"
    root.mkdir()
    return write_tree(
        root,
        [
            "main.tf",
            "README.md",
            "modules/vpc/main.tf",
            "modules/vpc/README.md",
            "modules/vpc/endpoint/main.tf",
            "modules/rds/variables.tf",
            "modules/rds/.terraform/modules/cache/main.tf",
            "modules/docs-only/README.md",
            "examples/complete/main.tf",
        ],
    ).resolve()
