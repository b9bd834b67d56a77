"""CLI entry point for terraform-module-releaser."""

from __future__ import annotations

import json
import os
import sys
from contextlib import redirect_stdout
from pathlib import Path

import click

from tf_module_releaser.config import load_config
from tf_module_releaser.context import load_context
from tf_module_releaser.models import CommitDetails, ReleasePlan
from tf_module_releaser.parser import build_release_plan
from tf_module_releaser.pipeline import module_outputs, run_release
from tf_module_releaser.shell import fatal, git

CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with a [tool.terraform-module-releaser] table.",
)


@click.group()
@click.version_option(package_name="terraform-module-releaser")
def cli() -> None:
    """Release Terraform modules of a monorepo from pull requests."""


@cli.command()
@CONFIG_OPTION
def run(config_path: Path | None) -> None:
    """Run the release action for the current pull request (usually in CI)."""
    try:
        config = load_config(config_path)
        if config.github_token:
            os.environ["GH_TOKEN"] = config.github_token
        context = load_context()
        run_release(config, context)
    except Exception as exc:  # noqa: BLE001 - reported as the step failure
        message = str(exc).strip() or type(exc).__name__
        fatal(message.splitlines()[0])


def read_local_commits(base: str, head: str, cwd: Path) -> list[CommitDetails]:
    """Read the commits in ``base..head`` of a local repository, oldest first."""
    shas = git("rev-list", "--reverse", f"{base}..{head}", cwd=cwd).splitlines()
    commits: list[CommitDetails] = []
    for sha in shas:
        message = git("log", "-1", "--format=%B", sha, cwd=cwd)
        files = git(
            "diff-tree", "--no-commit-id", "--name-only", "-r", "--root", sha, cwd=cwd
        ).splitlines()
        commits.append(CommitDetails(sha=sha, message=message, files=files))
    return commits


def plan_summary(plan: ReleasePlan, workspace: Path) -> dict[str, object]:
    outputs = module_outputs(plan, workspace)
    return {
        "changed_modules": json.loads(outputs["changed-modules-map"]),
        "all_module_names": json.loads(outputs["all-module-names"]),
        "initial_release_module_names": plan.initial_release_module_names,
        "module_names_to_remove": plan.module_names_to_remove,
        "tags_to_delete": plan.tags_to_delete,
    }


@cli.command()
@CONFIG_OPTION
@click.option("--base", required=True, help="Base revision, e.g. origin/main.")
@click.option("--head", default="HEAD", show_default=True, help="Head revision.")
@click.option(
    "--workspace",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository checkout to analyse.",
)
def plan(config_path: Path | None, base: str, head: str, workspace: Path) -> None:
    """Print the release plan for a local commit range as JSON."""
    # Progress output goes to stderr so stdout stays valid JSON.
    try:
        with redirect_stdout(sys.stderr):
            config = load_config(config_path)
            commits = read_local_commits(base, head, workspace)
            tags = git("tag", "--list", cwd=workspace).splitlines()
            release_plan = build_release_plan(config, workspace, commits, tags, [])
    except Exception as exc:  # noqa: BLE001 - reported as a CLI error
        message = str(exc).strip() or type(exc).__name__
        raise click.ClickException(message.splitlines()[0]) from exc
    click.echo(json.dumps(plan_summary(release_plan, workspace), indent=2))
