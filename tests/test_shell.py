"""Tests for tf_module_releaser.shell."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from tf_module_releaser.errors import ExternalCommandError
from tf_module_releaser.shell import debug, fatal, gh, git, group, plural, run, warning


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    return MagicMock(spec=subprocess.CompletedProcess, returncode=returncode, stdout=stdout, stderr=stderr)


class TestCommands:
    """Tests for git(), gh() and run()."""

    @patch("tf_module_releaser.shell.subprocess.run")
    def test_returns_stripped_stdout(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(stdout="abc123\n")

        assert git("rev-parse", "HEAD", cwd="/repo") == "abc123"
        assert mock_run.call_args.args[0] == ["git", "rev-parse", "HEAD"]
        assert mock_run.call_args.kwargs["cwd"] == "/repo"

    @patch("tf_module_releaser.shell.subprocess.run")
    def test_gh_passes_input(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(stdout="{}")

        gh("api", "repos/o/r/releases", "--input", "-", input_text='{"a": 1}')

        assert mock_run.call_args.kwargs["input"] == '{"a": 1}'

    @patch("tf_module_releaser.shell.subprocess.run")
    def test_missing_binary(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError("terraform-docs")

        with pytest.raises(ExternalCommandError, match="Command not found: terraform-docs") as excinfo:
            run("terraform-docs", "markdown")

        assert excinfo.value.returncode is None

    @patch("tf_module_releaser.shell.subprocess.run")
    def test_failure_carries_http_status(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(
            returncode=1, stderr="gh: Resource not accessible by integration (HTTP 403)\n"
        )

        with pytest.raises(ExternalCommandError) as excinfo:
            gh("api", "repos/o/r/git/refs/tags/x", "--method", "DELETE")

        assert excinfo.value.status == 403
        assert excinfo.value.returncode == 1
        assert "(HTTP 403)" in str(excinfo.value)

    @patch("tf_module_releaser.shell.subprocess.run")
    def test_failure_without_status(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(returncode=128, stderr="fatal: repository not found")

        with pytest.raises(ExternalCommandError, match=r"Command failed \(128\)") as excinfo:
            git("clone", "https://example.com/x.wiki.git")

        assert excinfo.value.status is None

    @patch("tf_module_releaser.shell.subprocess.run")
    def test_unchecked_failure(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(returncode=1, stdout="partial\n")

        assert git("diff", "--quiet", check=False) == "partial"


class TestOutput:
    """Tests for the console helpers."""

    def test_group_outside_actions(self, capsys: pytest.CaptureFixture[str]) -> None:
        with group("Parsing modules"):
            print("inside")

        out = capsys.readouterr().out
        assert "Parsing modules" in out
        assert "::group::" not in out

    def test_group_in_actions(
        self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")

        with pytest.raises(RuntimeError):
            with group("Parsing modules"):
                raise RuntimeError("boom")

        assert capsys.readouterr().out.splitlines() == ["::group::Parsing modules", "::endgroup::"]

    def test_debug_hidden_by_default(self, capsys: pytest.CaptureFixture[str]) -> None:
        debug("details")

        assert capsys.readouterr().out == ""

    def test_debug_with_runner_debug(
        self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RUNNER_DEBUG", "1")

        debug("details")

        assert "[debug] details" in capsys.readouterr().out

    def test_debug_in_actions_is_per_line(
        self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")

        debug("a\nb")

        assert capsys.readouterr().out.splitlines() == ["::debug::a", "::debug::b"]

    def test_warning_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        warning("careful")

        assert capsys.readouterr().err == "WARNING: careful\n"

    def test_fatal_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            fatal("broken")

        assert excinfo.value.code == 1
        assert capsys.readouterr().err == "ERROR: broken\n"

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "0 modules"), (1, "1 module"), (3, "3 modules")],
    )
    def test_plural(self, count: int, expected: str) -> None:
        assert plural(count, "module") == expected
