"""Attribute pull request commits to the modules they touch.

Each changed file belongs to the nearest enclosing module directory. A commit
counts for a module when at least one of its files belongs to that module and
is not excluded by the module-change-exclude patterns, which are evaluated
relative to the module directory (``main.tf``, not ``modules/vpc/main.tf``).
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .discovery import is_terraform_directory
from .models import CommitDetails
from .patterns import PatternMatcher, should_exclude_file, should_ignore_module_path
from .shell import info


def find_module_for_file(
    file_path: str,
    module_directories: Iterable[Path],
    workspace_dir: Path,
    module_path_ignore: list[str] | None = None,
    matcher: PatternMatcher | None = None,
) -> Path | None:
    """Find the module directory a changed file belongs to.

    Walks up from the file's directory until it reaches one of
    ``module_directories`` or the workspace root. An ignored Terraform
    directory on the way up ends the search, so files of an ignored module
    are not credited to a module that encloses it. Plain directories that
    match an ignore pattern do not stop the walk.

    Args:
        file_path: Changed file, relative to the workspace root (or absolute).
        module_directories: Absolute directories of the discovered modules.
        workspace_dir: Root of the repository checkout.
        module_path_ignore: Ignore patterns, relative to the workspace root.
        matcher: Pattern engine, defaults to the glob matcher.

    Returns:
        The module directory, or None when the file is not part of any module.
    """
    root = workspace_dir.resolve()
    modules = {directory.resolve() for directory in module_directories}
    ignore = module_path_ignore or []
    path = Path(file_path)
    absolute = path if path.is_absolute() else root / path

    directory = absolute.parent
    while directory != root and directory != directory.parent:
        if directory in modules:
            return directory
        if ignore:
            try:
                relative = directory.relative_to(root).as_posix()
            except ValueError:
                return None
            if should_ignore_module_path(relative, ignore, matcher) and is_terraform_directory(
                directory
            ):
                return None
        directory = directory.parent
    return None


def attribute_commits(
    module_directories: dict[Path, str],
    commits: list[CommitDetails],
    workspace_dir: Path,
    change_exclude_patterns: list[str] | None = None,
    module_path_ignore: list[str] | None = None,
    matcher: PatternMatcher | None = None,
) -> dict[str, list[CommitDetails]]:
    """Determine which commits touched which modules.

    Args:
        module_directories: Map of absolute module directory → module name.
        commits: Pull request commits, in the order they should be reported.
        workspace_dir: Root of the repository checkout.
        change_exclude_patterns: Patterns (relative to each module) of files
            whose changes never trigger a release.
        module_path_ignore: Patterns (relative to the workspace) of paths
            that are skipped before any module lookup.
        matcher: Pattern engine, defaults to the glob matcher.

    Returns:
        Map of module name → commits attributed to it, in input order. A
        commit appears at most once per module; modules without commits are
        absent.
    """
    root = workspace_dir.resolve()
    directories = {directory.resolve(): name for directory, name in module_directories.items()}
    exclude = change_exclude_patterns or []
    ignore = module_path_ignore or []
    attributed: dict[str, list[CommitDetails]] = {}

    for commit in commits:
        summary = commit.message.strip().split("\n", 1)[0].strip()
        info(f"Parsing commit {commit.sha}: {summary} (changed files = {len(commit.files)})")

        touched: list[str] = []
        for file_path in commit.files:
            ignored = should_ignore_module_path(file_path, ignore, matcher)
            if ignored:
                info(f"✗ Skipping file '{file_path}' ➜ matches module-path-ignore '{ignored.pattern}'")
                continue

            module_dir = find_module_for_file(
                file_path, directories, root, ignore, matcher
            )
            if module_dir is None:
                info(f"✗ Skipping file '{file_path}' ➜ no associated Terraform module")
                continue

            module_name = directories[module_dir]
            relative_to_module = (root / file_path).relative_to(module_dir).as_posix()
            excluded = should_exclude_file(relative_to_module, exclude, matcher)
            if excluded:
                info(
                    f"✗ Skipping file '{file_path}' ➜ excluded by "
                    f"module-change-exclude-pattern '{excluded.pattern}'"
                )
                continue

            info(f"✓ Found changed file '{file_path}' in module '{module_name}'")
            if module_name not in touched:
                touched.append(module_name)

        for module_name in touched:
            attributed.setdefault(module_name, []).append(commit)

    return attributed
