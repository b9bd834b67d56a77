"""Version parsing and bumping utilities.

Versions are strict ``MAJOR.MINOR.PATCH`` strings with an optional leading
``v`` and no leading zeros (other than a literal ``0``). Anything else is a
fatal error rather than something to pad or guess at.
"""

from __future__ import annotations

import re

import semver

from .commits import ReleaseType
from .errors import VersionParseError

VERSION_PATTERN = r"v?(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
VERSION_TAG_RE = re.compile(rf"^{VERSION_PATTERN}$")


def is_valid_version(version_str: str) -> bool:
    return VERSION_TAG_RE.match(version_str) is not None


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Accepts "1.2.3" and "v1.2.3". Prerelease/build metadata, missing
    components and leading zeros are rejected.

    Raises:
        VersionParseError: If the string is not a valid version.
    """
    if not is_valid_version(version_str):
        raise VersionParseError(
            f"Invalid version '{version_str}': expected MAJOR.MINOR.PATCH, "
            "optionally prefixed with 'v' (e.g. v1.2.3)"
        )
    return semver.Version.parse(version_str.removeprefix("v"))


def format_version(version: semver.Version, use_version_prefix: bool) -> str:
    """Render a version with or without the leading 'v'."""
    return f"v{version}" if use_version_prefix else str(version)


def normalize_version_prefix(version_str: str, use_version_prefix: bool) -> str:
    """Strip or add the leading 'v' to match the prefix setting.

    Examples:
        normalize_version_prefix("v1.0.0", False) → "1.0.0"
        normalize_version_prefix("1.0.0", True) → "v1.0.0"
    """
    return format_version(parse_version(version_str), use_version_prefix)


def bump_version(version_str: str, release_type: ReleaseType) -> semver.Version:
    """Apply a release type to a version.

    Examples:
        "1.2.3", MAJOR → 2.0.0
        "v1.2.3", MINOR → 1.3.0
        "1.2.3", PATCH → 1.2.4
    """
    version = parse_version(version_str)
    if release_type is ReleaseType.MAJOR:
        return version.bump_major()
    if release_type is ReleaseType.MINOR:
        return version.bump_minor()
    return version.bump_patch()


def next_version(
    latest_tag_version: str | None,
    release_type: ReleaseType,
    default_first_tag: str,
    use_version_prefix: bool,
) -> str:
    """Compute the version for the next release of a module.

    A module without any previous tag always gets ``default_first_tag``,
    whatever the release type; otherwise the latest version is bumped.

    Args:
        latest_tag_version: Version part of the module's latest tag, or None.
        release_type: Bump to apply to an existing version.
        default_first_tag: Version used for a module's first release.
        use_version_prefix: Whether the result carries a leading 'v'.

    Returns:
        The next version string, e.g. "v1.3.0" or "1.3.0".

    Raises:
        VersionParseError: If either version string is malformed.
    """
    if latest_tag_version is None:
        return normalize_version_prefix(default_first_tag, use_version_prefix)
    return format_version(
        bump_version(latest_tag_version, release_type), use_version_prefix
    )


def version_sort_key(version_str: str) -> tuple[int, int, int]:
    """Sort key for version strings (use with reverse=True for newest first)."""
    v = parse_version(version_str)
    return (v.major, v.minor, v.patch)
