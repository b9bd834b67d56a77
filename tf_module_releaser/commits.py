"""Release type detection from commit messages.

Two mutually exclusive strategies are supported, selected by
``Config.semver_mode``:

- **keywords**: case-insensitive substring search for the configured major,
  minor and patch keywords anywhere in the message.
- **conventional-commits**: the first line must look like
  ``<type>[(<scope>)][!]: <description>``. A ``!`` or a
  ``BREAKING CHANGE:`` / ``BREAKING-CHANGE:`` footer line means major,
  ``feat`` means minor and every other type means patch.

Across the commits of a module the highest release type wins
(major > minor > patch). A module whose messages match nothing gets ``None``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from .config import Config


class ReleaseType(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]


_PRIORITY = {ReleaseType.PATCH: 1, ReleaseType.MINOR: 2, ReleaseType.MAJOR: 3}


class SemverMode(str, Enum):
    KEYWORDS = "keywords"
    CONVENTIONAL_COMMITS = "conventional-commits"


CONVENTIONAL_HEADER_RE = re.compile(r"^([a-zA-Z0-9]+)(\([\w-]+\))?(!)?: (.*)$")
BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE\s*:", re.MULTILINE)


class ConventionalCommit(BaseModel):
    """Parsed header of a conventional commit.

    Attributes:
        type: Commit type, lowercased (e.g. "feat", "fix", "chore").
        scope: Text inside the parentheses, or None.
        breaking: True for a "!" header or a BREAKING CHANGE footer.
        description: Header text after ": ".
    """

    type: str
    scope: str | None = None
    breaking: bool = False
    description: str


def first_line(message: str) -> str:
    """Return the trimmed first line of a commit message."""
    stripped = message.strip()
    return stripped.split("\n", 1)[0].strip() if stripped else ""


def parse_conventional_commit(message: str) -> ConventionalCommit | None:
    """Parse a commit message per the Conventional Commits format.

    Only the first line is matched against the header pattern; the whole
    message is scanned for breaking-change footers.

    Examples:
        "feat(api): add user endpoint" → type="feat", scope="api"
        "fix!: security patch" → breaking=True
        "feat : extra space" → None
        "update readme" → None
    """
    header = first_line(message)
    if not header:
        return None

    match = CONVENTIONAL_HEADER_RE.match(header)
    if match is None:
        return None

    commit_type, scope, bang, description = match.groups()
    breaking = bang is not None or BREAKING_FOOTER_RE.search(message) is not None
    return ConventionalCommit(
        type=commit_type.lower(),
        scope=scope[1:-1] if scope else None,
        breaking=breaking,
        description=description.strip(),
    )


def detect_conventional_commit_release_type(message: str) -> ReleaseType | None:
    """Determine the release type of one message in conventional-commit mode.

    Non-conventional messages return None; they are never retried as
    keyword matches.
    """
    parsed = parse_conventional_commit(message)
    if parsed is None:
        return None
    if parsed.breaking:
        return ReleaseType.MAJOR
    if parsed.type == "feat":
        return ReleaseType.MINOR
    return ReleaseType.PATCH


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword.lower() in text for keyword in keywords if keyword)


def detect_keyword_release_type(
    message: str,
    major_keywords: list[str],
    minor_keywords: list[str],
    patch_keywords: list[str],
) -> ReleaseType | None:
    """Determine the release type of one message by keyword search.

    Examples:
        "BREAKING CHANGE: remove API" with major ["breaking change"] → MAJOR
        "feat: add login" with minor ["feat"] → MINOR
        "update readme" → None
    """
    text = message.lower().strip()
    if _contains_any(text, major_keywords):
        return ReleaseType.MAJOR
    if _contains_any(text, minor_keywords):
        return ReleaseType.MINOR
    if _contains_any(text, patch_keywords):
        return ReleaseType.PATCH
    return None


def higher_priority_release_type(
    current: ReleaseType | None, candidate: ReleaseType | None
) -> ReleaseType | None:
    """Return the higher-priority of two release types (MAJOR > MINOR > PATCH).

    Examples:
        (None, PATCH) → PATCH
        (PATCH, MINOR) → MINOR
        (MAJOR, PATCH) → MAJOR
    """
    if current is None:
        return candidate
    if candidate is None:
        return current
    return current if current.priority >= candidate.priority else candidate


def compute_release_type(
    messages: Iterable[str], config: Config
) -> ReleaseType | None:
    """Compute the highest release type across a module's commit messages.

    Returns:
        The winning release type, or None if no message matched any rule.
    """
    if config.semver_mode is SemverMode.CONVENTIONAL_COMMITS:

        def detect(message: str) -> ReleaseType | None:
            return detect_conventional_commit_release_type(message)

    else:

        def detect(message: str) -> ReleaseType | None:
            return detect_keyword_release_type(
                message,
                config.major_keywords,
                config.minor_keywords,
                config.patch_keywords,
            )

    result: ReleaseType | None = None
    for message in messages:
        result = higher_priority_release_type(result, detect(message))
    return result
