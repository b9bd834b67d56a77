"""Markdown changelogs for pull request comments, releases and wiki pages."""

from __future__ import annotations

from datetime import date, datetime, timezone

from .context import Context
from .models import TerraformModule


def _today() -> date:
    return datetime.now(timezone.utc).date()


def create_changelog_entry(
    heading: str,
    commit_messages: list[str],
    context: Context,
    today: date | None = None,
) -> str:
    """Render one changelog entry.

    The entry starts with the heading and date, then links the pull request
    and lists the commit messages. A message identical to the pull request
    title is left out. Newlines inside a message become ``<br>`` so each
    message stays a single list item.

    Example:
        ## `aws/vpc/v1.1.0` (2024-11-05)

        - :twisted_rightwards_arrows:**[PR #12](https://github.com/o/r/pull/12)** - Add endpoints
        - feat: add gateway endpoints
    """
    day = (today or _today()).isoformat()
    lines = [
        f"## `{heading}` ({day})\n",
        f"- :twisted_rightwards_arrows:**[PR #{context.pr_number}]({context.pr_url})** "
        f"- {context.pr_title}",
    ]
    for message in commit_messages:
        if message.strip() == context.pr_title:
            continue
        lines.append(f"- {message.strip().replace(chr(10), '<br>')}")
    return "\n".join(lines)


def get_pull_request_changelog(
    modules: list[TerraformModule], context: Context, today: date | None = None
) -> str:
    """Changelog of every module that needs a release, headed by its next tag."""
    return "\n\n".join(
        create_changelog_entry(module.next_tag, module.commit_messages, context, today)
        for module in modules
        if module.needs_release()
    )


def get_module_changelog(
    module: TerraformModule, context: Context, today: date | None = None
) -> str:
    """Release notes for a module's next release, headed by its version."""
    if not module.needs_release():
        return ""
    return create_changelog_entry(
        module.next_tag_version, module.commit_messages, context, today
    )


def get_module_release_changelog(module: TerraformModule) -> str:
    """All non-empty release notes of a module, newest first."""
    bodies = (release.body.strip() for release in module.releases)
    return "\n\n".join(body for body in bodies if body)
