"""Pull request comments: the release plan and the post-release summary.

The release plan comment is posted (and kept up to date) while a pull
request is open. Once it is merged, a post-release comment lists the created
releases. Its hidden marker doubles as the "already released" flag that
stops a re-run from releasing the same pull request twice.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from .changelog import get_pull_request_changelog
from .context import Context
from .github import find_comment_with_marker, upsert_pull_request_comment
from .models import ReleasePlan, TerraformModule
from .shell import group, info

RELEASE_PLAN_MARKER = "<!-- terraform-module-releaser — release-plan -->"
RELEASE_MARKER = "<!-- terraform-module-releaser — release-marker -->"
PROJECT_URL = "https://github.com/techpivot/terraform-module-releaser"
BRANDING_COMMENT = (
    '<h4 align="center"><sub align="middle">Powered by: '
    f'<a href="{PROJECT_URL}">terraform-module-releaser</a></sub></h4>'
)

_RELEASE_TYPE_ICONS = {"major": "🔴", "minor": "🟡", "patch": "🟢", "initial": "🆕"}


class WikiStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    DISABLED = "disabled"


class WikiCheck(BaseModel):
    """Result of checking out the wiki before the release plan is posted."""

    status: WikiStatus = WikiStatus.DISABLED
    error_message: str | None = None


def _release_type_label(module: TerraformModule) -> str:
    label = "initial" if module.is_initial_release else module.release_type.value
    return f"{_RELEASE_TYPE_ICONS[label]} {label}"


def _wiki_message(wiki: WikiCheck) -> str:
    if wiki.status is WikiStatus.SUCCESS:
        return "> ###### ✅ Wiki Check"
    if wiki.status is WikiStatus.FAILURE:
        return (
            f"> ##### ⚠️ Wiki Check: Failed to checkout wiki. {wiki.error_message or ''}"
            "<br><br>Please review the logs of the latest workflow run."
        )
    return "> ###### 🚫 Wiki Check: Generation is disabled."


def _removal_message(module_names: list[str], delete_legacy_tags: bool) -> str:
    if not module_names:
        return ""
    note = (
        "> **Note**: The following Terraform modules no longer exist in source; "
        "however corresponding tags/releases exist."
    )
    if delete_legacy_tags:
        note += (
            " Automated tag/release deletion is **enabled** and the corresponding "
            "tags/releases will be deleted when this pull request is merged."
        )
    else:
        note += " Automated tag/release deletion is **disabled** and nothing will be deleted."
    items = "\n".join(f"> - `{name}`" for name in module_names)
    return f"{note}\n{items}"


def render_release_plan(
    plan: ReleasePlan,
    context: Context,
    wiki: WikiCheck,
    *,
    delete_legacy_tags: bool = True,
    disable_branding: bool = False,
) -> str:
    """Render the release plan comment body (without the marker)."""
    changed = plan.changed_modules
    sections = ["# Release Plan"]

    if changed:
        rows = [
            "| Module | Release Type | Latest Version | New Version |",
            "|--|--|--|--|",
        ]
        for module in changed:
            rows.append(
                f"| `{module.name}` | {_release_type_label(module)} | "
                f"{module.latest_tag_version or ''} | **{module.next_tag_version}** |"
            )
        sections.append("\n".join(rows))
    else:
        sections.append("No Terraform modules updated in this pull request.")

    sections.append(_wiki_message(wiki))
    removal = _removal_message(plan.module_names_to_remove, delete_legacy_tags)
    if removal:
        sections.append(removal)

    if changed:
        sections.append("# Changelog")
        sections.append(get_pull_request_changelog(changed, context))

    if not disable_branding:
        sections.append(BRANDING_COMMENT)
    return "\n\n".join(sections)


def render_post_release(
    released: list[TerraformModule],
    context: Context,
    *,
    disable_branding: bool = False,
) -> str:
    """Render the post-release comment body (without the marker)."""
    if not released:
        body = (
            ":rocket: Release Complete\n\n"
            "No new Terraform module releases were created by this pull request."
        )
    else:
        lines = [":rocket: The following Terraform modules were released:", ""]
        for module in released:
            lines.append(
                f"- **[{module.next_tag}]({context.repo_url}/releases/tag/{module.next_tag})**"
            )
        body = "\n".join(lines)

    if not disable_branding:
        body += f"\n\n{BRANDING_COMMENT}"
    return body


def has_release_comment(context: Context) -> bool:
    """Whether this pull request has already been released."""
    return find_comment_with_marker(context, RELEASE_MARKER) is not None


def add_release_plan_comment(
    plan: ReleasePlan,
    context: Context,
    wiki: WikiCheck,
    *,
    delete_legacy_tags: bool = True,
    disable_branding: bool = False,
) -> int:
    with group("Commenting on pull request"):
        body = render_release_plan(
            plan,
            context,
            wiki,
            delete_legacy_tags=delete_legacy_tags,
            disable_branding=disable_branding,
        )
        return upsert_pull_request_comment(context, RELEASE_PLAN_MARKER, body)


def add_post_release_comment(
    released: list[TerraformModule],
    context: Context,
    *,
    disable_branding: bool = False,
) -> int:
    with group("Adding post-release comment"):
        info(f"Released modules: {', '.join(m.name for m in released) or '<none>'}")
        body = render_post_release(released, context, disable_branding=disable_branding)
        return upsert_pull_request_comment(context, RELEASE_MARKER, body)
