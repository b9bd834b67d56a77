"""GitHub REST access through the ``gh`` CLI.

Every call goes through ``gh api`` so authentication, pagination and the API
host come from the CLI (``GH_TOKEN``, ``GH_HOST``). Listing endpoints use
``--paginate --slurp``, which returns one JSON array per page wrapped in an
outer array.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

from .context import Context
from .errors import ExternalCommandError
from .models import CommitDetails, GitHubRelease
from .shell import debug, gh, group, info, plural

_PERMISSIONS_HINT = (
    "Ensure the workflow grants the required permission, e.g.:\n\n"
    "permissions:\n  {permission}: write"
)


def _with_permission_hint(
    exc: ExternalCommandError, action: str, permission: str
) -> ExternalCommandError:
    """Wrap a 403 from the API in an error that names the missing permission."""
    message = f"{action}: {exc}"
    if exc.status == 403:
        message += "\n" + _PERMISSIONS_HINT.format(permission=permission)
    return ExternalCommandError(
        message,
        command=exc.command,
        returncode=exc.returncode,
        stderr=exc.stderr,
        status=exc.status,
    )


def api(endpoint: str, *, method: str = "GET", payload: dict[str, Any] | None = None) -> Any:
    """Call a REST endpoint and return the decoded JSON response (or None)."""
    args = ["api", "--method", method, "-H", "Accept: application/vnd.github+json", endpoint]
    input_text = None
    if payload is not None:
        args += ["--input", "-"]
        input_text = json.dumps(payload)
    output = gh(*args, input_text=input_text)
    return json.loads(output) if output else None


def api_paginated(endpoint: str) -> list[Any]:
    """Fetch every page of a listing endpoint and flatten the results."""
    output = gh(
        "api",
        "--paginate",
        "--slurp",
        "-H",
        "Accept: application/vnd.github+json",
        f"{endpoint}{'&' if '?' in endpoint else '?'}per_page=100",
    )
    pages = json.loads(output) if output else []
    return [item for page in pages for item in page]


def get_pull_request_commits(context: Context) -> list[CommitDetails]:
    """Fetch the pull request's commits together with their changed files.

    Raises:
        ExternalCommandError: If the API cannot be read; a 403 includes a
            hint about the ``pull-requests`` permission.
    """
    with group("Fetching pull request commits"):
        try:
            listed = api_paginated(
                f"repos/{context.repository}/pulls/{context.pr_number}/commits"
            )
            commits: list[CommitDetails] = []
            for item in listed:
                sha = item["sha"]
                detail = api(f"repos/{context.repository}/commits/{sha}")
                files = [entry["filename"] for entry in detail.get("files") or []]
                commits.append(
                    CommitDetails(sha=sha, message=item["commit"]["message"], files=files)
                )
        except ExternalCommandError as exc:
            raise _with_permission_hint(
                exc, "Unable to read pull request commits", "pull-requests"
            ) from exc

        info(f"Found {plural(len(commits), 'commit')}.")
        debug(json.dumps([commit.model_dump() for commit in commits], indent=2))
        return commits


def get_all_tags(context: Context) -> list[str]:
    """Fetch the names of every tag in the repository."""
    with group("Fetching repository tags"):
        try:
            tags = [item["name"] for item in api_paginated(f"repos/{context.repository}/tags")]
        except ExternalCommandError as exc:
            raise _with_permission_hint(exc, "Failed to fetch tags", "contents") from exc
        info(f"Found {plural(len(tags), 'tag')}.")
        debug(json.dumps(tags, indent=2))
        return tags


def _release_from_api(item: dict[str, Any]) -> GitHubRelease:
    return GitHubRelease(
        id=item["id"],
        title=item.get("name") or "",
        body=item.get("body") or "",
        tag_name=item["tag_name"],
    )


def get_all_releases(context: Context) -> list[GitHubRelease]:
    """Fetch every release in the repository, most recent first."""
    with group("Fetching repository releases"):
        try:
            releases = [
                _release_from_api(item)
                for item in api_paginated(f"repos/{context.repository}/releases")
            ]
        except ExternalCommandError as exc:
            raise _with_permission_hint(exc, "Failed to fetch releases", "contents") from exc
        info(f"Found {plural(len(releases), 'release')}.")
        debug(json.dumps([release.tag_name for release in releases], indent=2))
        return releases


def create_release(
    context: Context,
    tag_name: str,
    title: str,
    body: str,
    target: str | None = None,
) -> GitHubRelease:
    """Create a release, letting GitHub create ``tag_name`` on ``target``.

    Raises:
        ExternalCommandError: On API failure; a 403 includes a hint about the
            ``contents`` permission.
    """
    payload: dict[str, Any] = {
        "tag_name": tag_name,
        "name": title,
        "body": body,
        "draft": False,
        "prerelease": False,
    }
    if target:
        payload["target_commitish"] = target
    try:
        created = api(f"repos/{context.repository}/releases", method="POST", payload=payload)
    except ExternalCommandError as exc:
        raise _with_permission_hint(
            exc, f"Failed to create release {tag_name}", "contents"
        ) from exc
    return _release_from_api(created)


def delete_release(context: Context, release_id: int) -> None:
    try:
        api(f"repos/{context.repository}/releases/{release_id}", method="DELETE")
    except ExternalCommandError as exc:
        raise _with_permission_hint(
            exc, f"Failed to delete release {release_id}", "contents"
        ) from exc


def delete_tag(context: Context, tag_name: str) -> None:
    try:
        api(
            f"repos/{context.repository}/git/refs/tags/{quote(tag_name, safe='/')}",
            method="DELETE",
        )
    except ExternalCommandError as exc:
        raise _with_permission_hint(
            exc, f"Failed to delete tag {tag_name}", "contents"
        ) from exc


def list_pull_request_comments(context: Context) -> list[dict[str, Any]]:
    return api_paginated(
        f"repos/{context.repository}/issues/{context.pr_number}/comments"
    )


def find_comment_with_marker(context: Context, marker: str) -> dict[str, Any] | None:
    """Return the first pull request comment whose body contains ``marker``."""
    for comment in list_pull_request_comments(context):
        if marker in (comment.get("body") or ""):
            return comment
    return None


def upsert_pull_request_comment(context: Context, marker: str, body: str) -> int:
    """Create or update the pull request comment identified by ``marker``.

    The marker is appended to the body when it is missing so the comment can
    be found again on the next run.

    Returns:
        The comment ID.
    """
    if marker not in body:
        body = f"{body}\n\n{marker}"
    try:
        existing = find_comment_with_marker(context, marker)
        if existing is not None:
            api(
                f"repos/{context.repository}/issues/comments/{existing['id']}",
                method="PATCH",
                payload={"body": body},
            )
            info(f"Updated comment {existing['id']}")
            return existing["id"]

        created = api(
            f"repos/{context.repository}/issues/{context.pr_number}/comments",
            method="POST",
            payload={"body": body},
        )
    except ExternalCommandError as exc:
        raise _with_permission_hint(
            exc, "Failed to comment on the pull request", "pull-requests"
        ) from exc
    info(f"Posted comment {created['id']} @ {created.get('html_url', '')}")
    return created["id"]
