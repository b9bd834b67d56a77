"""Reconcile discovered modules with the repository's tag and release history.

Two questions are answered here:

- Which modules have never been released? They always get a first release,
  even without any attributed commit.
- Which tags and releases belong to modules that no longer exist (renamed,
  moved or deleted)? All of them are deletion candidates, whatever their
  version.

Tags that cannot be parsed into ``<module><separator><version>`` are reported
as errors instead of being skipped.
"""

from __future__ import annotations

from .models import GitHubRelease, TerraformModule
from .tags import parse_tag


def modules_needing_initial_release(
    modules: list[TerraformModule],
) -> list[TerraformModule]:
    """Return the modules without any existing tag."""
    return [module for module in modules if module.is_initial_release]


def find_module_names_to_remove(
    all_tags: list[str],
    modules: list[TerraformModule],
    separator: str = "/",
    all_releases: list[GitHubRelease] | None = None,
) -> list[str]:
    """Find module names that only exist in tags or releases.

    A release can outlive its tag, so release tag names are checked as well.

    Args:
        all_tags: Every tag in the repository.
        modules: Currently discovered modules.
        separator: Tag directory separator.
        all_releases: Every release in the repository.

    Returns:
        Sorted, de-duplicated names of modules that no longer exist.

    Raises:
        TagParseError: If a tag does not follow the module tag format.
    """
    current = {module.name for module in modules}
    tag_names = [*all_tags, *(release.tag_name for release in all_releases or [])]
    names = {parse_tag(tag, separator).module_name for tag in tag_names}
    return sorted(names - current)


def find_tags_to_delete(
    all_tags: list[str],
    module_names_to_remove: list[str],
    separator: str = "/",
) -> list[str]:
    """Return every tag of the removed modules, in input order."""
    removed = set(module_names_to_remove)
    return [tag for tag in all_tags if parse_tag(tag, separator).module_name in removed]


def find_releases_to_delete(
    all_releases: list[GitHubRelease],
    module_names_to_remove: list[str],
    separator: str = "/",
) -> list[GitHubRelease]:
    """Return every release whose tag belongs to a removed module."""
    removed = set(module_names_to_remove)
    return [
        release
        for release in all_releases
        if parse_tag(release.tag_name, separator).module_name in removed
    ]

