"""Tests for tf_module_releaser.discovery."""

from __future__ import annotations

from pathlib import Path

from conftest import write_tree

from tf_module_releaser.discovery import find_module_directories, is_terraform_directory


def _relative(paths: list[Path], root: Path) -> list[str]:
    return sorted(path.relative_to(root).as_posix() for path in paths)


class TestIsTerraformDirectory:
    """Tests for is_terraform_directory()."""

    def test_directory_with_tf_file(self, workspace: Path) -> None:
        assert is_terraform_directory(workspace / "modules" / "vpc")

    def test_directory_without_tf_file(self, workspace: Path) -> None:
        assert not is_terraform_directory(workspace / "modules" / "docs-only")
        assert not is_terraform_directory(workspace / "modules")

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert not is_terraform_directory(tmp_path / "nope")


class TestFindModuleDirectories:
    """Tests for find_module_directories()."""

    def test_finds_nested_modules(self, workspace: Path) -> None:
        """Modules inside other modules are discovered too."""
        result = find_module_directories(workspace)

        assert _relative(result, workspace) == [
            "examples/complete",
            "modules/rds",
            "modules/vpc",
            "modules/vpc/endpoint",
        ]

    def test_root_is_never_a_module(self, workspace: Path) -> None:
        """The workspace root has main.tf but is not returned."""
        result = find_module_directories(workspace)

        assert workspace not in result

    def test_skips_terraform_cache(self, workspace: Path) -> None:
        result = find_module_directories(workspace)

        assert all(".terraform" not in path.parts for path in result)

    def test_returns_absolute_paths(self, workspace: Path) -> None:
        assert all(path.is_absolute() for path in find_module_directories(workspace))

    def test_ignore_patterns(self, workspace: Path) -> None:
        result = find_module_directories(workspace, ["examples/**"])

        assert "examples/complete" not in _relative(result, workspace)

    def test_recurses_below_ignored_module(self, workspace: Path) -> None:
        """Ignoring a module does not hide the modules nested inside it."""
        result = find_module_directories(workspace, ["modules/vpc"])

        relative = _relative(result, workspace)
        assert "modules/vpc" not in relative
        assert "modules/vpc/endpoint" in relative

    def test_empty_workspace(self, tmp_path: Path) -> None:
        write_tree(tmp_path, ["main.tf", "README.md"])

        assert find_module_directories(tmp_path) == []
