"""Exception types raised by the releaser.

Configuration and parse problems are fatal and raised as soon as they are
detected. "File belongs to no module" is not an error; the attribution code
returns ``None`` for it instead of raising.
"""

from __future__ import annotations


class ReleaserError(Exception):
    """Base class for all releaser errors."""


class ConfigError(ReleaserError):
    """Invalid action inputs, config file values or run context."""


class TagParseError(ValueError, ReleaserError):
    """A tag string could not be split into module name and version."""

    def __init__(self, tag: str, separator: str) -> None:
        self.tag = tag
        self.separator = separator
        super().__init__(
            f"Unable to parse tag '{tag}': expected "
            f"'<module-name>{separator}<version>' with a version like v1.2.3"
        )


class VersionParseError(ValueError, ReleaserError):
    """A version string is not a strict MAJOR.MINOR.PATCH value."""


class ExternalCommandError(ReleaserError):
    """A git, gh or terraform-docs invocation failed.

    Attributes:
        command: The argv that was executed.
        returncode: Process exit status (``None`` if the binary was missing).
        stderr: Captured standard error, stripped.
        status: HTTP status reported by ``gh api``, when one was printed.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | tuple[str, ...] = (),
        returncode: int | None = None,
        stderr: str = "",
        status: int | None = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        self.status = status
        super().__init__(message)
