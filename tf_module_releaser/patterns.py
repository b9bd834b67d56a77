"""Glob pattern matching for module-path-ignore and change-exclude patterns.

Pattern semantics follow the minimatch conventions that existing action
configurations were written against:

- ``*`` never crosses a ``/`` boundary, ``**`` does.
- Matching is case-sensitive and anchored at the start of the path.
- ``dir/**`` matches everything *below* ``dir`` but not ``dir`` itself. To
  match both, list ``dir`` and ``dir/**``.
- Basename matching (a slash-free pattern such as ``*.md`` matching
  ``docs/guide.md``) only happens when explicitly requested.
- A leading ``!`` negates: ``!*.md`` matches every path that ``*.md`` does
  not.

The glob engine sits behind the :class:`PatternMatcher` protocol so that
discovery and attribution do not depend on a particular library.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel
from wcmatch import glob

_BASE_FLAGS = (
    glob.GLOBSTAR | glob.BRACE | glob.EXTGLOB | glob.NEGATE | glob.NEGATEALL | glob.FORCEUNIX
)
_TRAILING_GLOBSTAR = "/**"


class PatternMatcher(Protocol):
    def matches(self, path: str, pattern: str, *, match_base: bool = False) -> bool: ...


class GlobMatcher:
    """Default matcher backed by ``wcmatch.glob.globmatch``."""

    def matches(self, path: str, pattern: str, *, match_base: bool = False) -> bool:
        flags = (_BASE_FLAGS | glob.MATCHBASE) if match_base else _BASE_FLAGS
        if not glob.globmatch(path, pattern, flags=flags):
            return False

        # A trailing globstar only selects strict descendants: some proper
        # ancestor of the path has to match the pattern's parent.
        if pattern.endswith(_TRAILING_GLOBSTAR) and not pattern.startswith("!"):
            parent = pattern[: -len(_TRAILING_GLOBSTAR)]
            parts = path.split("/")
            return any(
                glob.globmatch("/".join(parts[:i]), parent, flags=_BASE_FLAGS)
                for i in range(1, len(parts))
            )
        return True


DEFAULT_MATCHER: PatternMatcher = GlobMatcher()


class PatternMatch(BaseModel):
    """Outcome of testing a path against a list of patterns.

    Attributes:
        matched: Whether any pattern matched.
        pattern: The first pattern that matched, for log output.
    """

    matched: bool = False
    pattern: str | None = None

    def __bool__(self) -> bool:
        return self.matched


def first_match(
    path: str,
    patterns: list[str],
    *,
    match_base: bool = False,
    matcher: PatternMatcher | None = None,
) -> PatternMatch:
    """Return the first pattern in ``patterns`` that matches ``path``."""
    engine = matcher or DEFAULT_MATCHER
    for pattern in patterns:
        if engine.matches(path, pattern, match_base=match_base):
            return PatternMatch(matched=True, pattern=pattern)
    return PatternMatch()


def should_ignore_module_path(
    relative_module_path: str,
    ignore_patterns: list[str],
    matcher: PatternMatcher | None = None,
) -> PatternMatch:
    """Check a module directory against the module-path-ignore patterns.

    The path must be relative to the workspace root. Matching is anchored
    (no basename matching) so that ``examples`` only ignores a top-level
    ``examples`` directory.

    Examples:
        should_ignore_module_path("kms/examples/complete", ["kms/examples/complete/**"])
            → not matched (the pattern only covers descendants)
        should_ignore_module_path("kms/examples/complete", ["kms/examples/complete"])
            → matched
    """
    if not ignore_patterns:
        return PatternMatch()
    return first_match(relative_module_path, ignore_patterns, matcher=matcher)


def should_exclude_file(
    relative_file_path: str,
    exclude_patterns: list[str],
    matcher: PatternMatcher | None = None,
) -> PatternMatch:
    """Check a file against the module-change-exclude patterns.

    The path must be relative to the module directory. Basename matching is
    enabled, so ``*.md`` excludes markdown files at any depth.

    Example:
        should_exclude_file("tests/sub/test.tftest.hcl", ["*.md", "tests/**"])
            → matched by "tests/**"
    """
    return first_match(
        relative_file_path, exclude_patterns, match_base=True, matcher=matcher
    )
