"""terraform-docs invocation."""

from __future__ import annotations

from pathlib import Path

from .shell import info, run


def generate_module_docs(directory: Path | str) -> str:
    """Render a module's inputs/outputs as a markdown table.

    Required variables are listed first. The ``terraform-docs`` binary must
    be on ``PATH``.

    Raises:
        ExternalCommandError: If the binary is missing or exits non-zero.
    """
    info(f"Generating terraform-docs for {directory}")
    return run("terraform-docs", "markdown", "table", "--sort-by", "required", str(directory))
