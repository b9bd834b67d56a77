"""Release pipeline: analyse → comment → release → clean up → wiki.

This module orchestrates one action run for a pull request:
1. Stop if the pull request already carries the post-release comment
2. Fetch the PR commits, then all tags, then all releases
3. Build the release plan (pure, see ``parser.py``)
4. While the PR is open: check the wiki and post the release plan comment
5. On merge: create releases, comment, delete legacy releases then tags,
   regenerate the wiki
6. Write the step outputs

External calls happen strictly in this order. Nothing is rolled back; a
failure aborts the run and the next run starts from scratch.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from .changelog import get_module_changelog
from .config import Config
from .context import Context
from .errors import ExternalCommandError
from .github import (
    create_release,
    delete_release,
    delete_tag,
    get_all_releases,
    get_all_tags,
    get_pull_request_commits,
)
from .models import GitHubRelease, ReleasePlan, TerraformModule
from .parser import build_release_plan
from .pull_request import (
    WikiCheck,
    WikiStatus,
    add_post_release_comment,
    add_release_plan_comment,
    has_release_comment,
)
from .shell import group, info, plural, step
from .wiki import checkout_wiki, commit_and_push_wiki, generate_wiki_files


def create_tagged_releases(
    modules: list[TerraformModule], context: Context
) -> list[TerraformModule]:
    """Create a release (and its tag) for every module that needs one.

    Each created tag and release is prepended to the module so later steps
    (comment, wiki) see the new latest version.
    """
    released: list[TerraformModule] = []
    if not modules:
        info("No changed Terraform modules to process. Skipping tag/release creation.")
        return released

    for module in modules:
        with group(f"Creating release & tag for module: {module.name}"):
            info(f"Release type: {module.release_type.value}")
            info(f"Next tag: {module.next_tag}")
            body = get_module_changelog(module, context)
            release = create_release(
                context, module.next_tag, module.next_tag, body, context.merge_commit_sha
            )
            module.tags.insert(0, module.next_tag)
            module.releases.insert(0, release)
            released.append(module)
    return released


def delete_legacy_releases(
    releases: list[GitHubRelease], context: Context, enabled: bool
) -> None:
    if not enabled:
        info("Deletion of legacy tags/releases is disabled. Skipping.")
        return
    with group("Deleting legacy Terraform module releases"):
        if not releases:
            info("No legacy releases found to delete. Skipping.")
            return
        info(f"Found {plural(len(releases), 'legacy release')} to delete.")
        for release in releases:
            info(f"Deleting release: {release.tag_name}")
            delete_release(context, release.id)


def delete_legacy_tags(tags: list[str], context: Context, enabled: bool) -> None:
    if not enabled:
        info("Deletion of legacy tags/releases is disabled. Skipping.")
        return
    with group("Deleting legacy Terraform module tags"):
        if not tags:
            info("No legacy tags found to delete. Skipping.")
            return
        info(f"Found {plural(len(tags), 'legacy tag')} to delete.")
        for tag in tags:
            info(f"Deleting tag: {tag}")
            delete_tag(context, tag)


def _write_output(output_path: str, name: str, value: str) -> None:
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")


def module_outputs(plan: ReleasePlan, workspace_dir: Path) -> dict[str, str]:
    """Step outputs describing changed and all modules, as JSON strings."""
    root = workspace_dir.resolve()

    def describe(module: TerraformModule) -> dict[str, str | None]:
        return {
            "path": module.directory.relative_to(root).as_posix(),
            "latestTag": module.latest_tag,
            "latestTagVersion": module.latest_tag_version,
            "nextTag": module.next_tag,
            "nextTagVersion": module.next_tag_version,
            "releaseType": module.release_type.value if module.release_type else None,
        }

    changed = plan.changed_modules
    return {
        "changed-module-names": json.dumps([m.name for m in changed]),
        "changed-module-paths": json.dumps([describe(m)["path"] for m in changed]),
        "changed-modules-map": json.dumps({m.name: describe(m) for m in changed}),
        "all-module-names": json.dumps([m.name for m in plan.modules]),
        "all-module-paths": json.dumps([describe(m)["path"] for m in plan.modules]),
        "all-modules-map": json.dumps({m.name: describe(m) for m in plan.modules}),
    }


def write_outputs(plan: ReleasePlan, workspace_dir: Path, github_output: str | None) -> None:
    outputs = module_outputs(plan, workspace_dir)
    if not github_output:
        for name, value in outputs.items():
            info(f"{name}={value}")
        return
    for name, value in outputs.items():
        _write_output(github_output, name, value)


def check_wiki(config: Config, context: Context) -> WikiCheck:
    """Check that the wiki can be cloned before a merge depends on it."""
    if config.disable_wiki:
        return WikiCheck(status=WikiStatus.DISABLED)
    with tempfile.TemporaryDirectory(prefix="wiki-") as tmp:
        try:
            checkout_wiki(context, Path(tmp), config.github_token)
        except ExternalCommandError as exc:
            return WikiCheck(status=WikiStatus.FAILURE, error_message=str(exc).splitlines()[0])
    return WikiCheck(status=WikiStatus.SUCCESS)


def update_wiki(plan: ReleasePlan, config: Config, context: Context) -> None:
    if config.disable_wiki:
        info("Wiki generation is disabled.")
        return
    with tempfile.TemporaryDirectory(prefix="wiki-") as tmp:
        wiki_dir = Path(tmp)
        checkout_wiki(context, wiki_dir, config.github_token)
        generate_wiki_files(
            plan.modules,
            context,
            wiki_dir,
            changelog_max=config.wiki_sidebar_changelog_max,
            disable_branding=config.disable_branding,
        )
        commit_and_push_wiki(wiki_dir, context)


def handle_pull_request(plan: ReleasePlan, config: Config, context: Context) -> None:
    """Open pull request: post the release plan, then surface a wiki failure."""
    wiki = check_wiki(config, context)
    add_release_plan_comment(
        plan,
        context,
        wiki,
        delete_legacy_tags=config.delete_legacy_tags,
        disable_branding=config.disable_branding,
    )
    if wiki.status is WikiStatus.FAILURE:
        raise ExternalCommandError(f"Failed to checkout wiki: {wiki.error_message}")


def handle_merge(plan: ReleasePlan, config: Config, context: Context) -> None:
    """Merged pull request: release, comment, clean up and publish the wiki."""
    released = create_tagged_releases(plan.changed_modules, context)
    add_post_release_comment(released, context, disable_branding=config.disable_branding)
    delete_legacy_releases(plan.releases_to_delete, context, config.delete_legacy_tags)
    delete_legacy_tags(plan.tags_to_delete, context, config.delete_legacy_tags)
    update_wiki(plan, config, context)


def run_release(config: Config, context: Context) -> ReleasePlan | None:
    """Execute one action run.

    Returns:
        The computed plan, or None when the pull request was already released.
    """
    if has_release_comment(context):
        info("Release comment found. Exiting.")
        return None

    commits = get_pull_request_commits(context)
    all_tags = get_all_tags(context)
    all_releases = get_all_releases(context)

    with group("Analysing Terraform modules"):
        plan = build_release_plan(
            config, context.workspace_dir, commits, all_tags, all_releases
        )
        for module in plan.modules:
            info(module.summary())
        if plan.initial_release_module_names:
            info(f"Initial releases: {', '.join(plan.initial_release_module_names)}")
        if plan.module_names_to_remove:
            info(f"Removed modules: {', '.join(plan.module_names_to_remove)}")

    if context.is_pr_merge_event:
        handle_merge(plan, config, context)
    else:
        handle_pull_request(plan, config, context)

    write_outputs(plan, context.workspace_dir, os.environ.get("GITHUB_OUTPUT"))
    step("Done!")
    return plan
