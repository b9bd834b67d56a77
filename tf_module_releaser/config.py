"""Action configuration.

Settings come from three layers, later ones winning:

1. Built-in defaults on :class:`Config`.
2. The ``[tool.terraform-module-releaser]`` table of an optional TOML file,
   read with tomlkit. Keys use the action input names
   (``module-path-ignore``, ``semver-mode``, ...).
3. ``INPUT_<NAME>`` environment variables, which is how GitHub Actions passes
   ``with:`` inputs to a step.

List inputs given as strings are comma separated; entries are trimmed and
empty entries dropped.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field, ValidationError, field_validator
from tomlkit.exceptions import TOMLKitError

from .commits import ReleaseType, SemverMode
from .errors import ConfigError, VersionParseError
from .tags import VALID_TAG_DIRECTORY_SEPARATORS
from .versions import parse_version

TOOL_TABLE = "terraform-module-releaser"

# Action input name → Config field name.
INPUT_NAMES: dict[str, str] = {
    "major-keywords": "major_keywords",
    "minor-keywords": "minor_keywords",
    "patch-keywords": "patch_keywords",
    "semver-mode": "semver_mode",
    "default-semver-level": "default_semver_level",
    "default-first-tag": "default_first_tag",
    "tag-directory-separator": "tag_directory_separator",
    "use-version-prefix": "use_version_prefix",
    "module-path-ignore": "module_path_ignore",
    "module-change-exclude-patterns": "module_change_exclude_patterns",
    "strip-terraform-provider-prefix": "strip_terraform_provider_prefix",
    "delete-legacy-tags": "delete_legacy_tags",
    "disable-wiki": "disable_wiki",
    "wiki-sidebar-changelog-max": "wiki_sidebar_changelog_max",
    "disable-branding": "disable_branding",
    "github_token": "github_token",
}

_LIST_FIELDS = {
    "major_keywords",
    "minor_keywords",
    "patch_keywords",
    "module_path_ignore",
    "module_change_exclude_patterns",
}
_BOOL_FIELDS = {
    "use_version_prefix",
    "strip_terraform_provider_prefix",
    "delete_legacy_tags",
    "disable_wiki",
    "disable_branding",
}
_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


class Config(BaseModel):
    """Validated releaser settings.

    Attributes:
        major_keywords: Keywords marking a breaking change (keywords mode).
        minor_keywords: Keywords marking a feature (keywords mode).
        patch_keywords: Keywords marking a fix (keywords mode).
        semver_mode: How commit messages are classified.
        default_semver_level: Release type of a first release whose commits
            matched nothing.
        default_first_tag: Version of a module's first release.
        tag_directory_separator: Replaces "/" in module names and joins the
            name and version in tags.
        use_version_prefix: Whether versions carry a leading "v".
        module_path_ignore: Glob patterns of module paths that are skipped.
        module_change_exclude_patterns: Glob patterns (relative to a module)
            of files whose changes never trigger a release.
        strip_terraform_provider_prefix: Drop "terraform-<provider>-" from
            the final path segment of module names.
        delete_legacy_tags: Delete tags and releases of removed modules.
        disable_wiki: Skip wiki generation.
        wiki_sidebar_changelog_max: Releases listed per module in the sidebar.
        disable_branding: Omit the footer line from comments and wiki pages.
        github_token: Token exported to the gh CLI.
    """

    major_keywords: list[str] = Field(
        default_factory=lambda: ["major change", "breaking change"]
    )
    minor_keywords: list[str] = Field(default_factory=lambda: ["feat", "feature"])
    patch_keywords: list[str] = Field(default_factory=lambda: ["fix", "chore", "docs"])
    semver_mode: SemverMode = SemverMode.KEYWORDS
    default_semver_level: ReleaseType = ReleaseType.PATCH
    default_first_tag: str = "v1.0.0"
    tag_directory_separator: str = "/"
    use_version_prefix: bool = True
    module_path_ignore: list[str] = Field(default_factory=list)
    module_change_exclude_patterns: list[str] = Field(
        default_factory=lambda: [".gitignore", "*.md", "*.tftest.hcl", "tests/**"]
    )
    strip_terraform_provider_prefix: bool = False
    delete_legacy_tags: bool = True
    disable_wiki: bool = False
    wiki_sidebar_changelog_max: int = Field(default=5, ge=1)
    disable_branding: bool = False
    github_token: str = Field(default="", repr=False)

    @field_validator("default_first_tag")
    @classmethod
    def _check_first_tag(cls, value: str) -> str:
        try:
            parse_version(value)
        except VersionParseError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("tag_directory_separator")
    @classmethod
    def _check_separator(cls, value: str) -> str:
        if value not in VALID_TAG_DIRECTORY_SEPARATORS:
            allowed = ", ".join(f"'{s}'" for s in VALID_TAG_DIRECTORY_SEPARATORS)
            raise ValueError(f"must be one of {allowed}, got '{value}'")
        return value

    @field_validator(*sorted(_LIST_FIELDS), mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> Any:
        if isinstance(value, str):
            return split_list_input(value)
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return value

    @field_validator(*sorted(_BOOL_FIELDS), mode="before")
    @classmethod
    def _parse_bools(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(f"expected 'true' or 'false', got '{value}'")
        return value

    @field_validator("semver_mode", "default_semver_level", mode="before")
    @classmethod
    def _lower_enums(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


def split_list_input(value: str) -> list[str]:
    """Split a comma-separated input into trimmed, non-empty entries.

    Example:
        " *.md , tests/**,," → ["*.md", "tests/**"]
    """
    return [item.strip() for item in value.split(",") if item.strip()]


def _input_env_name(input_name: str) -> str:
    return "INPUT_" + input_name.replace(" ", "_").upper()


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the releaser table of a TOML file, keyed by Config field name.

    Raises:
        ConfigError: If the file cannot be parsed or has unknown keys.
    """
    try:
        doc = tomlkit.parse(path.read_text()).unwrap()
    except (OSError, TOMLKitError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    table = doc.get("tool", {}).get(TOOL_TABLE, {})
    values: dict[str, Any] = {}
    for key, value in table.items():
        field = INPUT_NAMES.get(key) or INPUT_NAMES.get(key.replace("_", "-"))
        if field is None:
            raise ConfigError(f"Unknown setting '{key}' in [tool.{TOOL_TABLE}] of {path}")
        values[field] = value
    return values


def read_input_env(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect the action inputs present in the environment.

    Empty inputs are treated as unset, matching how GitHub Actions passes an
    input that was declared but not given.
    """
    values: dict[str, str] = {}
    for input_name, field in INPUT_NAMES.items():
        raw = environ.get(_input_env_name(input_name))
        if raw is not None and raw.strip() != "":
            values[field] = raw
    return values


def load_config(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> Config:
    """Build the configuration from defaults, an optional file and inputs.

    Args:
        path: Optional TOML file with a ``[tool.terraform-module-releaser]``
            table. A missing file is an error when given explicitly.
        environ: Environment to read ``INPUT_*`` variables from, defaults to
            ``os.environ``.

    Raises:
        ConfigError: If any value fails validation.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    if path is not None:
        values.update(read_config_file(path))
    values.update(read_input_env(env))

    try:
        return Config(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
