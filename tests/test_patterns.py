"""Tests for tf_module_releaser.patterns."""

from __future__ import annotations

import pytest

from tf_module_releaser.patterns import (
    GlobMatcher,
    first_match,
    should_exclude_file,
    should_ignore_module_path,
)


class TestGlobMatcher:
    """Tests for GlobMatcher.matches()."""

    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            ("modules/vpc", "modules/*", True),
            ("modules/vpc/endpoint", "modules/*", False),
            ("modules/vpc/endpoint", "modules/**", True),
            ("Modules/vpc", "modules/*", False),
            ("examples/complete", "examples", False),
            ("examples", "examples", True),
        ],
    )
    def test_anchored_matching(self, path: str, pattern: str, expected: bool) -> None:
        """Single stars stay within a segment and matching is case-sensitive."""
        assert GlobMatcher().matches(path, pattern) is expected

    def test_trailing_globstar_excludes_directory_itself(self) -> None:
        """dir/** matches what is below dir but not dir."""
        matcher = GlobMatcher()

        assert matcher.matches("tests/unit/a.tf", "tests/**")
        assert matcher.matches("tests/a.tf", "tests/**")
        assert not matcher.matches("tests", "tests/**")

    def test_match_base_only_when_requested(self) -> None:
        """Slash-free patterns match basenames only with match_base."""
        matcher = GlobMatcher()

        assert not matcher.matches("docs/guide.md", "*.md")
        assert matcher.matches("docs/guide.md", "*.md", match_base=True)

    def test_negation(self) -> None:
        matcher = GlobMatcher()

        assert matcher.matches("modules/vpc", "!examples/**")
        assert not matcher.matches("examples/complete", "!examples/**")

    def test_wildcards_skip_dotfiles(self) -> None:
        """A leading dot has to be spelled out."""
        matcher = GlobMatcher()

        assert not matcher.matches(".gitignore", "*", match_base=True)
        assert matcher.matches(".gitignore", ".gitignore", match_base=True)


class TestFirstMatch:
    """Tests for first_match()."""

    def test_reports_first_matching_pattern(self) -> None:
        result = first_match("a/b.md", ["*.tf", "a/*", "**/*.md"])

        assert result.matched
        assert result.pattern == "a/*"

    def test_no_match_is_falsy(self) -> None:
        result = first_match("a/b.md", ["*.tf"])

        assert not result
        assert result.pattern is None

    def test_uses_custom_matcher(self) -> None:
        """Any object with a matches() method can be plugged in."""

        class Everything:
            def matches(self, path: str, pattern: str, *, match_base: bool = False) -> bool:
                return True

        assert first_match("x", ["nope"], matcher=Everything()).pattern == "nope"


class TestShouldIgnoreModulePath:
    """Tests for should_ignore_module_path()."""

    def test_empty_patterns(self) -> None:
        assert not should_ignore_module_path("modules/vpc", [])

    def test_descendant_pattern_does_not_ignore_directory(self) -> None:
        """kms/examples/complete/** leaves kms/examples/complete itself alone."""
        assert not should_ignore_module_path(
            "kms/examples/complete", ["kms/examples/complete/**"]
        )
        assert should_ignore_module_path("kms/examples/complete", ["kms/examples/complete"])

    def test_no_basename_matching(self) -> None:
        """'examples' only ignores a top-level examples directory."""
        assert should_ignore_module_path("examples", ["examples"])
        assert not should_ignore_module_path("modules/examples", ["examples"])


class TestShouldExcludeFile:
    """Tests for should_exclude_file()."""

    @pytest.mark.parametrize(
        "path",
        ["README.md", "docs/usage.md", "tests/sub/basic.tftest.hcl", ".gitignore"],
    )
    def test_default_exclusions(self, path: str) -> None:
        patterns = [".gitignore", "*.md", "*.tftest.hcl", "tests/**"]

        assert should_exclude_file(path, patterns)

    @pytest.mark.parametrize("path", ["main.tf", "modules/sub/variables.tf"])
    def test_terraform_files_count(self, path: str) -> None:
        patterns = [".gitignore", "*.md", "*.tftest.hcl", "tests/**"]

        assert not should_exclude_file(path, patterns)

    def test_reports_pattern(self) -> None:
        result = should_exclude_file("tests/a.tf", ["*.md", "tests/**"])

        assert result.pattern == "tests/**"

    @pytest.mark.parametrize(
        ("path", "expected"),
        [("main.tf", True), ("variables.tf", True), ("README.md", False)],
    )
    def test_negated_pattern(self, path: str, expected: bool) -> None:
        """A lone negated pattern matches everything it does not name."""
        assert bool(should_exclude_file(path, ["!*.md"])) is expected
