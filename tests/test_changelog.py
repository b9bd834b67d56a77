"""Tests for tf_module_releaser.changelog."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from conftest import make_commit, make_context, make_module, make_release

from tf_module_releaser.changelog import (
    create_changelog_entry,
    get_module_changelog,
    get_module_release_changelog,
    get_pull_request_changelog,
)
from tf_module_releaser.commits import ReleaseType

TODAY = date(2024, 11, 5)


def _released(tmp_path: Path, name: str, *messages: str):
    module = make_module(
        name,
        tmp_path / name,
        release_type=ReleaseType.MINOR,
        next_tag_version="v1.1.0",
        next_tag=f"{name}/v1.1.0",
    )
    for index, message in enumerate(messages):
        module.add_commit(make_commit(f"sha{index}", message))
    return module


class TestCreateChangelogEntry:
    """Tests for create_changelog_entry()."""

    def test_format(self, tmp_path: Path) -> None:
        context = make_context(tmp_path, pr_number=12, pr_title="Add endpoints")

        entry = create_changelog_entry("vpc/v1.1.0", ["feat: a", "fix: b"], context, TODAY)

        assert entry == (
            "## `vpc/v1.1.0` (2024-11-05)\n\n"
            "- :twisted_rightwards_arrows:**[PR #12](https://github.com/octo-org/infra/pull/12)**"
            " - Add endpoints\n"
            "- feat: a\n"
            "- fix: b"
        )

    def test_skips_message_equal_to_title(self, tmp_path: Path) -> None:
        context = make_context(tmp_path, pr_title="feat: a")

        entry = create_changelog_entry("v1.0.0", ["feat: a", "fix: b"], context, TODAY)

        assert "\n- feat: a" not in entry
        assert "\n- fix: b" in entry

    def test_multiline_message_uses_br(self, tmp_path: Path) -> None:
        entry = create_changelog_entry(
            "v1.0.0", ["feat: a\nmore detail"], make_context(tmp_path), TODAY
        )

        assert "- feat: a<br>more detail" in entry


class TestModuleChangelogs:
    """Tests for the per-module and pull request changelogs."""

    def test_module_changelog_uses_version(self, tmp_path: Path) -> None:
        module = _released(tmp_path, "vpc", "feat: a")

        result = get_module_changelog(module, make_context(tmp_path), TODAY)

        assert result.startswith("## `v1.1.0` (2024-11-05)")

    def test_module_changelog_empty_without_release(self, tmp_path: Path) -> None:
        module = make_module("vpc", tmp_path / "vpc")

        assert get_module_changelog(module, make_context(tmp_path), TODAY) == ""

    def test_pull_request_changelog_joins_modules(self, tmp_path: Path) -> None:
        modules = [
            _released(tmp_path, "rds", "fix: a"),
            make_module("s3", tmp_path / "s3", tags=["s3/v1.0.0"]),
            _released(tmp_path, "vpc", "feat: b"),
        ]

        result = get_pull_request_changelog(modules, make_context(tmp_path), TODAY)

        assert result.count("## `") == 2
        assert "## `rds/v1.1.0`" in result
        assert "## `vpc/v1.1.0`" in result
        assert "s3" not in result

    def test_duplicate_first_lines_listed_once(self, tmp_path: Path) -> None:
        module = _released(tmp_path, "vpc", "fix: a", "fix: a\n\nbody")

        result = get_module_changelog(module, make_context(tmp_path), TODAY)

        assert result.count("- fix: a") == 1

    def test_release_changelog(self, tmp_path: Path) -> None:
        module = make_module(
            "vpc",
            tmp_path / "vpc",
            releases=[
                make_release(2, "vpc/v1.1.0", "## v1.1.0\n- b\n"),
                make_release(3, "vpc/v1.0.1", "   "),
                make_release(1, "vpc/v1.0.0", "## v1.0.0\n- a"),
            ],
        )

        assert get_module_release_changelog(module) == "## v1.1.0\n- b\n\n## v1.0.0\n- a"
