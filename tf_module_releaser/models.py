"""Data models for the Terraform module releaser.

These Pydantic models represent the core data structures used throughout
the release pipeline. They are rebuilt from scratch on every run.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .commits import ReleaseType, first_line


class CommitDetails(BaseModel):
    """A commit in the pull request being analysed.

    Attributes:
        sha: Full commit SHA.
        message: Complete commit message (may span several lines).
        files: Paths changed by the commit, relative to the repository root.
    """

    sha: str
    message: str
    files: list[str] = Field(default_factory=list)


class GitHubRelease(BaseModel):
    """A GitHub release as returned by the releases API.

    Attributes:
        id: Numeric release ID, used for deletion.
        title: Release name (same as the tag for releases we create).
        body: Release notes markdown.
        tag_name: Tag the release points to, e.g. "aws/vpc/v1.0.0".
    """

    id: int
    title: str = ""
    body: str = ""
    tag_name: str


class TerraformModule(BaseModel):
    """A releasable Terraform module plus the results of change analysis.

    Attributes:
        name: Module name derived from its directory, e.g. "aws/vpc".
        directory: Absolute path of the module directory.
        tags: This module's tags, newest version first.
        releases: This module's releases, newest version first.
        commits: Attributed commits in pull request order.
        release_type: Bump computed from the commits, None if nothing matched.
        next_tag_version: Version of the upcoming release when one is needed.
        next_tag: Full tag of the upcoming release when one is needed.
    """

    name: str
    directory: Path
    tags: list[str] = Field(default_factory=list)
    releases: list[GitHubRelease] = Field(default_factory=list)
    commits: list[CommitDetails] = Field(default_factory=list)
    release_type: ReleaseType | None = None
    next_tag_version: str | None = None
    next_tag: str | None = None

    @property
    def latest_tag(self) -> str | None:
        return self.tags[0] if self.tags else None

    @property
    def latest_tag_version(self) -> str | None:
        """Version part of the latest tag, e.g. "v1.2.0"."""
        tag = self.latest_tag
        if tag is None:
            return None
        # Tags are filtered to "<name><separator><version>" and the separator
        # is always a single character.
        return tag[len(self.name) + 1 :]

    @property
    def commit_messages(self) -> list[str]:
        """First lines of the attributed commit messages, deduplicated."""
        messages: list[str] = []
        for commit in self.commits:
            line = first_line(commit.message)
            if line not in messages:
                messages.append(line)
        return messages

    @property
    def is_initial_release(self) -> bool:
        return not self.tags

    def add_commit(self, commit: CommitDetails) -> None:
        """Attach a commit, ignoring one that is already attached."""
        if all(existing.sha != commit.sha for existing in self.commits):
            self.commits.append(commit)

    def needs_release(self) -> bool:
        """A module is released for its first version or for matched commits."""
        return self.next_tag is not None

    def summary(self) -> str:
        latest = self.latest_tag_version or "<none>"
        if not self.needs_release():
            return f"{self.name} {latest} ({len(self.commits)} commits, unchanged)"
        return (
            f"{self.name} {latest} → {self.next_tag_version} "
            f"[{self.release_type.value if self.release_type else '-'}]"
        )


class ReleasePlan(BaseModel):
    """Everything a run decided, before any external side effects.

    Attributes:
        modules: All discovered modules, sorted by name.
        module_names_to_remove: Names that only exist in old tags/releases.
        tags_to_delete: Tags of removed modules.
        releases_to_delete: Releases of removed modules.
        initial_release_module_names: Modules without any tag yet, which
            always get a first release.
    """

    modules: list[TerraformModule] = Field(default_factory=list)
    module_names_to_remove: list[str] = Field(default_factory=list)
    tags_to_delete: list[str] = Field(default_factory=list)
    releases_to_delete: list[GitHubRelease] = Field(default_factory=list)
    initial_release_module_names: list[str] = Field(default_factory=list)

    @property
    def changed_modules(self) -> list[TerraformModule]:
        return [module for module in self.modules if module.needs_release()]
