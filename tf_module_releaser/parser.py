"""Core release analysis: discover → attribute → release type → next version.

Everything here is pure with respect to GitHub: commits, tags and releases
are passed in, and the result is a list of :class:`TerraformModule` objects
plus the stale tags and releases to clean up. Given the same inputs the
output is identical, so the pipeline can be re-run safely.
"""

from __future__ import annotations

from pathlib import Path

from .attribution import attribute_commits
from .commits import compute_release_type
from .config import Config
from .discovery import find_module_directories
from .errors import ConfigError
from .models import CommitDetails, GitHubRelease, ReleasePlan, TerraformModule
from .patterns import PatternMatcher
from .reconcile import (
    find_module_names_to_remove,
    find_releases_to_delete,
    find_tags_to_delete,
    modules_needing_initial_release,
)
from .shell import debug, info, plural
from .tags import (
    format_tag,
    get_releases_for_module,
    get_tags_for_module,
    module_name_from_relative_path,
)
from .versions import next_version


def name_modules(
    directories: list[Path], workspace_dir: Path, config: Config
) -> dict[Path, str]:
    """Derive a unique module name for every module directory.

    Raises:
        ConfigError: If two directories produce the same name, which can
            happen after cleaning or provider-prefix stripping.
    """
    root = workspace_dir.resolve()
    names: dict[Path, str] = {}
    owners: dict[str, Path] = {}
    for directory in directories:
        relative = directory.resolve().relative_to(root).as_posix()
        name = module_name_from_relative_path(
            relative,
            config.tag_directory_separator,
            config.strip_terraform_provider_prefix,
        )
        if name in owners:
            raise ConfigError(
                f"Module name '{name}' is produced by both "
                f"'{owners[name].relative_to(root).as_posix()}' and '{relative}'; "
                "rename one of the directories or add it to module-path-ignore"
            )
        owners[name] = directory.resolve()
        names[directory.resolve()] = name
    return names


def plan_module_release(module: TerraformModule, config: Config) -> None:
    """Fill in release_type, next_tag_version and next_tag of a module.

    Commits are classified with their full messages so that breaking-change
    footers count. A module without tags is always released; if none of its
    commits matched, it uses ``config.default_semver_level``.
    """
    messages = [commit.message for commit in module.commits]
    release_type = compute_release_type(messages, config)
    if release_type is None and module.is_initial_release:
        release_type = config.default_semver_level
    module.release_type = release_type

    if release_type is None:
        module.next_tag_version = None
        module.next_tag = None
        return

    module.next_tag_version = next_version(
        module.latest_tag_version,
        release_type,
        config.default_first_tag,
        config.use_version_prefix,
    )
    module.next_tag = format_tag(
        module.name, module.next_tag_version, config.tag_directory_separator
    )


def parse_terraform_modules(
    config: Config,
    workspace_dir: Path,
    commits: list[CommitDetails],
    all_tags: list[str],
    all_releases: list[GitHubRelease],
    matcher: PatternMatcher | None = None,
) -> list[TerraformModule]:
    """Discover modules and compute their next release.

    Args:
        config: Releaser settings.
        workspace_dir: Root of the repository checkout.
        commits: Commits of the pull request.
        all_tags: Every tag in the repository.
        all_releases: Every release in the repository.
        matcher: Pattern engine, defaults to the glob matcher.

    Returns:
        All discovered modules sorted by name.
    """
    directories = find_module_directories(
        workspace_dir, config.module_path_ignore, matcher
    )
    names = name_modules(directories, workspace_dir, config)
    info(f"Found {plural(len(names), 'Terraform module')}")

    attributed = attribute_commits(
        names,
        commits,
        workspace_dir,
        config.module_change_exclude_patterns,
        config.module_path_ignore,
        matcher,
    )

    separator = config.tag_directory_separator
    modules: list[TerraformModule] = []
    for directory, name in sorted(names.items(), key=lambda item: item[1]):
        module = TerraformModule(
            name=name,
            directory=directory,
            tags=get_tags_for_module(name, all_tags, separator),
            releases=get_releases_for_module(name, all_releases, separator),
        )
        for commit in attributed.get(name, []):
            module.add_commit(commit)
        plan_module_release(module, config)
        debug(module.summary())
        modules.append(module)

    return modules


def build_release_plan(
    config: Config,
    workspace_dir: Path,
    commits: list[CommitDetails],
    all_tags: list[str],
    all_releases: list[GitHubRelease],
    matcher: PatternMatcher | None = None,
) -> ReleasePlan:
    """Analyse modules and reconcile them against existing tags and releases.

    Raises:
        TagParseError: If a tag or release tag does not follow the module
            tag format.
        VersionParseError: If a module's latest version is malformed.
        ConfigError: If two module directories produce the same name.
    """
    modules = parse_terraform_modules(
        config, workspace_dir, commits, all_tags, all_releases, matcher
    )
    separator = config.tag_directory_separator
    names_to_remove = find_module_names_to_remove(
        all_tags, modules, separator, all_releases
    )
    return ReleasePlan(
        modules=modules,
        module_names_to_remove=names_to_remove,
        tags_to_delete=find_tags_to_delete(all_tags, names_to_remove, separator),
        releases_to_delete=find_releases_to_delete(
            all_releases, names_to_remove, separator
        ),
        initial_release_module_names=[
            module.name for module in modules_needing_initial_release(modules)
        ],
    )
