"""Module naming and tag handling.

Tags follow the pattern ``{module-name}{separator}{version}``, for example
``aws/vpc/v1.2.0`` with the default "/" separator or ``aws-vpc-v1.2.0`` with
"-". Because the separator may also appear inside the module name, a tag is
split at the *last* separator that is directly followed by a valid version.
"""

from __future__ import annotations

import re
from functools import lru_cache

from pydantic import BaseModel

from .errors import TagParseError
from .models import GitHubRelease
from .versions import VERSION_PATTERN, version_sort_key

VALID_TAG_DIRECTORY_SEPARATORS = ("-", "_", "/", ".")

_INVALID_CHARS_RE = re.compile(r"[^a-zA-Z0-9/_.-]+")
_PROVIDER_PREFIX_RE = re.compile(r"^terraform-[^-/]+-(?=[^/])")


class ParsedTag(BaseModel):
    """A tag split into its parts.

    Attributes:
        module_name: Everything before the final separator.
        version: Version suffix, e.g. "v1.2.0".
    """

    module_name: str
    version: str


def _strip_provider_prefix(segment: str) -> str:
    """'terraform-aws-vpc' → 'vpc'; names without a provider part are kept."""
    return _PROVIDER_PREFIX_RE.sub("", segment, count=1)


def module_name_from_relative_path(
    relative_path: str,
    separator: str = "/",
    strip_provider_prefix: bool = False,
) -> str:
    """Generate a module name from a directory path relative to the workspace.

    The path is trimmed, invalid characters become hyphens, repeated slashes,
    dots and hyphens are collapsed, leading/trailing slashes and trailing
    dots/hyphens/underscores are removed and the result is lowercased.
    Directory separators are then replaced by ``separator``.

    Examples:
        "modules/aws/S3 Bucket" → "modules/aws/s3-bucket"
        "modules//vpc/" → "modules/vpc"
        "aws/terraform-aws-vpc" (strip_provider_prefix) → "aws/vpc"
        "aws/vpc" (separator "-") → "aws-vpc"
    """
    cleaned = relative_path.strip().replace("\\", "/")
    cleaned = _INVALID_CHARS_RE.sub("-", cleaned)
    cleaned = re.sub(r"/{2,}", "/", cleaned)
    cleaned = re.sub(r"/\.+", "/", cleaned)
    cleaned = cleaned.strip("/")
    cleaned = re.sub(r"\.{2,}", ".", cleaned)
    cleaned = re.sub(r"-{2,}", "-", cleaned)
    cleaned = cleaned.lower().rstrip(".-_")

    if strip_provider_prefix:
        head, _, last = cleaned.rpartition("/")
        last = _strip_provider_prefix(last)
        cleaned = f"{head}/{last}" if head else last

    return cleaned.replace("/", separator)


def format_tag(module_name: str, version: str, separator: str = "/") -> str:
    return f"{module_name}{separator}{version}"


@lru_cache(maxsize=None)
def _tag_regex(separator: str) -> re.Pattern[str]:
    return re.compile(
        rf"^(?P<name>.+){re.escape(separator)}(?P<version>{VERSION_PATTERN})$"
    )


def try_parse_tag(tag: str, separator: str = "/") -> ParsedTag | None:
    """Split a tag into module name and version, or return None."""
    match = _tag_regex(separator).match(tag)
    if match is None:
        return None
    return ParsedTag(module_name=match["name"], version=match["version"])


def parse_tag(tag: str, separator: str = "/") -> ParsedTag:
    """Split a tag into module name and version.

    Examples:
        parse_tag("aws/vpc/v1.2.0") → module_name="aws/vpc", version="v1.2.0"
        parse_tag("my-mod-1.0.0", "-") → module_name="my-mod", version="1.0.0"

    Raises:
        TagParseError: If the tag has no "<separator><version>" suffix.
    """
    parsed = try_parse_tag(tag, separator)
    if parsed is None:
        raise TagParseError(tag, separator)
    return parsed


def _belongs_to(tag: str, module_name: str, separator: str) -> bool:
    parsed = try_parse_tag(tag, separator)
    return parsed is not None and parsed.module_name == module_name


def get_tags_for_module(
    module_name: str, all_tags: list[str], separator: str = "/"
) -> list[str]:
    """Return the module's tags sorted by version, newest first.

    Only tags whose name part is exactly ``module_name`` are kept, so
    "vpc" does not pick up "vpc/endpoint/v1.0.0".
    """
    tags = [tag for tag in all_tags if _belongs_to(tag, module_name, separator)]
    return sorted(
        tags,
        key=lambda tag: version_sort_key(parse_tag(tag, separator).version),
        reverse=True,
    )


def get_releases_for_module(
    module_name: str, all_releases: list[GitHubRelease], separator: str = "/"
) -> list[GitHubRelease]:
    """Return the module's releases sorted by tag version, newest first."""
    releases = [
        release
        for release in all_releases
        if _belongs_to(release.tag_name, module_name, separator)
    ]
    return sorted(
        releases,
        key=lambda release: version_sort_key(
            parse_tag(release.tag_name, separator).version
        ),
        reverse=True,
    )
