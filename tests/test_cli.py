"""Tests for tf_module_releaser.cli."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from conftest import make_commit, write_tree

from tf_module_releaser.cli import cli, read_local_commits
from tf_module_releaser.errors import ConfigError


class Interrupted(BaseException):
    """Stands in for a non-Exception throw escaping the pipeline."""


class TestRunCommand:
    """Tests for the run command."""

    @patch("tf_module_releaser.cli.run_release")
    @patch("tf_module_releaser.cli.load_context")
    def test_runs_pipeline_and_exports_token(
        self,
        mock_context: MagicMock,
        mock_run: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("INPUT_GITHUB_TOKEN", "ghs_abc")

        with patch.dict(os.environ):
            result = CliRunner().invoke(cli, ["run"])
            token = os.environ.get("GH_TOKEN")

        assert result.exit_code == 0, result.output
        mock_run.assert_called_once()
        assert mock_run.call_args.args[0].github_token == "ghs_abc"
        assert token == "ghs_abc"

    @patch("tf_module_releaser.cli.load_context")
    def test_errors_fail_the_step(self, mock_context: MagicMock) -> None:
        mock_context.side_effect = ConfigError("GITHUB_WORKSPACE is not set\nsecond line")

        result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "ERROR: GITHUB_WORKSPACE is not set" in result.output
        assert "second line" not in result.output

    @patch("tf_module_releaser.cli.run_release")
    @patch("tf_module_releaser.cli.load_context")
    def test_github_actions_error_annotation(
        self,
        mock_context: MagicMock,
        mock_run: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        mock_run.side_effect = RuntimeError("boom")

        result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "::error::boom" in result.output

    @patch("tf_module_releaser.cli.fatal")
    @patch("tf_module_releaser.cli.run_release")
    @patch("tf_module_releaser.cli.load_context")
    def test_non_exception_throws_are_not_reported(
        self, mock_context: MagicMock, mock_run: MagicMock, mock_fatal: MagicMock
    ) -> None:
        """Only Exception subclasses are turned into a step failure."""
        mock_run.side_effect = Interrupted()

        with pytest.raises(Interrupted):
            CliRunner().invoke(cli, ["run"])

        mock_fatal.assert_not_called()

    def test_invalid_input(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INPUT_TAG-DIRECTORY-SEPARATOR", "#")

        result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestPlanCommand:
    """Tests for the plan command."""

    @patch("tf_module_releaser.cli.git")
    @patch("tf_module_releaser.cli.read_local_commits")
    def test_prints_plan_json(
        self, mock_commits: MagicMock, mock_git: MagicMock, tmp_path: Path
    ) -> None:
        write_tree(tmp_path, ["vpc/main.tf", "rds/main.tf"])
        mock_commits.return_value = [make_commit("a1", "feat: x", "vpc/main.tf")]
        mock_git.return_value = "vpc/v1.0.0\nrds/v1.0.0\nold/v0.1.0"

        result = CliRunner().invoke(
            cli, ["plan", "--base", "origin/main", "--workspace", str(tmp_path)]
        )

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert list(summary["changed_modules"]) == ["vpc"]
        assert summary["changed_modules"]["vpc"]["nextTag"] == "vpc/v1.1.0"
        assert summary["module_names_to_remove"] == ["old"]
        assert summary["tags_to_delete"] == ["old/v0.1.0"]
        assert summary["initial_release_module_names"] == []
        mock_commits.assert_called_once_with("origin/main", "HEAD", tmp_path)

    @patch("tf_module_releaser.cli.git")
    @patch("tf_module_releaser.cli.read_local_commits")
    def test_bad_tag_is_reported(
        self, mock_commits: MagicMock, mock_git: MagicMock, tmp_path: Path
    ) -> None:
        write_tree(tmp_path, ["vpc/main.tf"])
        mock_commits.return_value = []
        mock_git.return_value = "v1.0.0"

        result = CliRunner().invoke(
            cli, ["plan", "--base", "main", "--workspace", str(tmp_path)]
        )

        assert result.exit_code == 1
        assert "Unable to parse tag 'v1.0.0'" in result.output


class TestReadLocalCommits:
    """Tests for read_local_commits()."""

    @patch("tf_module_releaser.cli.git")
    def test_reads_range(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.side_effect = [
            "a1\nb2",
            "feat: a\n\nbody",
            "vpc/main.tf",
            "fix: b",
            "rds/main.tf\nrds/README.md",
        ]

        commits = read_local_commits("main", "HEAD", tmp_path)

        assert [(c.sha, c.files) for c in commits] == [
            ("a1", ["vpc/main.tf"]),
            ("b2", ["rds/main.tf", "rds/README.md"]),
        ]
        assert commits[0].message == "feat: a\n\nbody"
        assert mock_git.call_args_list[0].args == ("rev-list", "--reverse", "main..HEAD")
