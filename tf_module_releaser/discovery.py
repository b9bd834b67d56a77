"""Terraform module discovery.

A module is any directory below the workspace root that directly contains at
least one ``.tf`` file. Terraform itself only loads the files of the working
directory, so subdirectories are scanned too and a module may be nested
inside another one. Provider caches (``.terraform``) are never entered.
"""

from __future__ import annotations

from pathlib import Path

from .patterns import PatternMatcher, should_ignore_module_path
from .shell import info

TERRAFORM_FILE_SUFFIX = ".tf"
TERRAFORM_CACHE_DIR = ".terraform"


def is_terraform_directory(directory: Path) -> bool:
    """Check whether a directory directly contains a ``.tf`` file."""
    if not directory.is_dir():
        return False
    return any(
        entry.suffix == TERRAFORM_FILE_SUFFIX and entry.is_file()
        for entry in directory.iterdir()
    )


def find_module_directories(
    workspace_dir: Path,
    module_path_ignore: list[str] | None = None,
    matcher: PatternMatcher | None = None,
) -> list[Path]:
    """Recursively find Terraform module directories below ``workspace_dir``.

    The workspace root is never a module, even if it holds ``.tf`` files.
    Each candidate's path relative to the root is checked once against the
    ignore patterns. Traversal continues below every directory, ignored or
    not, so nested modules are found.

    Args:
        workspace_dir: Root of the checked-out repository.
        module_path_ignore: Glob patterns of module paths to skip.
        matcher: Pattern engine, defaults to the glob matcher.

    Returns:
        Absolute module directory paths. Callers sort by module name.
    """
    root = workspace_dir.resolve()
    ignore = module_path_ignore or []
    found: list[Path] = []

    def search(directory: Path) -> None:
        for entry in sorted(directory.iterdir()):
            if entry.name == TERRAFORM_CACHE_DIR or not entry.is_dir():
                continue

            if is_terraform_directory(entry):
                relative = entry.relative_to(root).as_posix()
                ignored = should_ignore_module_path(relative, ignore, matcher)
                if ignored:
                    info(
                        f"Skipping module in '{relative}' due to "
                        f'module-path-ignore match: "{ignored.pattern}"'
                    )
                else:
                    found.append(entry)

            search(entry)

    search(root)
    return found
