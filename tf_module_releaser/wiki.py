"""Wiki generation.

The repository wiki is a separate git repository (``<repo>.wiki.git``). It is
regenerated from scratch on every merge: one page per module with a usage
snippet, the terraform-docs table and the full changelog, plus ``Home.md``,
``_Sidebar.md`` and (unless branding is disabled) ``_Footer.md``.
"""

from __future__ import annotations

import base64
import re
import shutil
from collections.abc import Callable
from pathlib import Path

from .changelog import get_module_release_changelog
from .context import Context
from .models import TerraformModule
from .pull_request import PROJECT_URL
from .shell import git, group, info
from .terraform_docs import generate_module_docs

GITHUB_ACTIONS_BOT_NAME = "GitHub Actions"
GITHUB_ACTIONS_BOT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"

HOME_FILE = "Home.md"
SIDEBAR_FILE = "_Sidebar.md"
FOOTER_FILE = "_Footer.md"

# GitHub wikis flatten "/" and rewrite "-" in page titles, so both are
# replaced by look-alike characters.
WIKI_TITLE_REPLACEMENTS = {"/": "∕", "-": "‒"}

_CHANGELOG_HEADING_RE = re.compile(r"^#{2,3}\s+([^\n]+)", re.MULTILINE)

BRANDING_WIKI = (
    f'<h3 align="center">Powered by: <a href="{PROJECT_URL}">'
    "terraform-module-releaser</a></h3>"
)


def wiki_slug(module_name: str) -> str:
    """Page name of a module, e.g. "aws/vpc-endpoint" → "aws∕vpc‒endpoint"."""
    return "".join(WIKI_TITLE_REPLACEMENTS.get(char, char) for char in module_name)


def wiki_link(context: Context, module_name: str, relative: bool = True) -> str:
    base = f"/{context.repository}" if relative else context.repo_url
    return f"{base}/wiki/{wiki_slug(module_name)}"


def _auth_header(token: str) -> str:
    credential = base64.b64encode(f"x-access-token:{token}".encode()).decode()
    return f"AUTHORIZATION: basic {credential}"


def checkout_wiki(context: Context, wiki_dir: Path, token: str = "") -> None:
    """Clone the wiki repository into ``wiki_dir``.

    Raises:
        ExternalCommandError: If the wiki cannot be cloned, most often
            because it has not been initialised with a first page yet.
    """
    url = f"{context.repo_url}.wiki.git"
    with group(f"Checking out wiki repository [{url}]"):
        extra: list[str] = []
        if token:
            extra = ["-c", f"http.{context.server_url.rstrip('/')}/.extraheader={_auth_header(token)}"]
        git(*extra, "clone", "--depth=1", url, str(wiki_dir))
        if token:
            git(
                "config",
                "--local",
                f"http.{context.server_url.rstrip('/')}/.extraheader",
                _auth_header(token),
                cwd=wiki_dir,
            )
        info("Successfully checked out wiki repository")


def clear_wiki_directory(wiki_dir: Path) -> None:
    """Remove everything except the ``.git`` directory."""
    for entry in wiki_dir.iterdir():
        if entry.name == ".git":
            continue
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def write_wiki_page(wiki_dir: Path, module_name: str, content: str) -> Path:
    path = wiki_dir / f"{wiki_slug(module_name)}.md"
    path.write_text(content, encoding="utf-8")
    info(f"Generated: {path.name}")
    return path


def _module_identifier(module_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", module_name).lower()


def render_module_page(module: TerraformModule, context: Context, docs: str) -> str:
    """Render a module page: usage snippet, inputs/outputs and changelog."""
    ref = module.latest_tag or ""
    return "\n".join(
        [
            "# Usage\n",
            "To use this module in your Terraform, refer to the below module example:\n",
            "```hcl",
            f'module "{_module_identifier(module.name)}" {{',
            f'  source = "git::{context.repo_url}.git?ref={ref}"',
            "\n  # See inputs below for additional required parameters",
            "}",
            "```",
            "\n# Attributes\n",
            "<!-- BEGIN_TF_DOCS -->",
            docs,
            "<!-- END_TF_DOCS -->",
            "\n# Changelog\n",
            get_module_release_changelog(module),
        ]
    )


def render_home(modules: list[TerraformModule], context: Context) -> str:
    rows = "\n".join(
        f"| [{module.name}]({wiki_link(context, module.name)}) | "
        f"{module.latest_tag_version or ''} |"
        for module in modules
    )
    return "\n".join(
        [
            "# Terraform Modules Home",
            "\nWelcome to the Terraform Modules Wiki! This page is an index of all",
            "the available Terraform modules and their latest versions.",
            "\n## Current Terraform Modules",
            "\n| Module Name | Latest Version |",
            "| -- | -- |",
            rows,
            "\n## How to Use",
            "\nEach module listed above can be used from your Terraform configurations.",
            "Follow the links in the table for usage instructions and examples.",
            "\n## Contributing",
            f"\nTo contribute or report issues, visit the [GitHub Repository]({context.repo_url}).",
        ]
    )


def _sidebar_changelog_entries(module: TerraformModule, link: str, limit: int) -> list[str]:
    entries: list[str] = []
    for match in _CHANGELOG_HEADING_RE.finditer(get_module_release_changelog(module)):
        heading = match[1].strip()
        anchor = re.sub(r"[^a-zA-Z0-9_-]", "", re.sub(r" +", "-", heading))
        entries.append(
            f'            <li><a href="{link}#{anchor}">{heading.replace("`", "")}</a></li>'
        )
    return entries[:limit]


def render_sidebar(
    modules: list[TerraformModule], context: Context, changelog_max: int
) -> str:
    """Render the sidebar with up to ``changelog_max`` releases per module."""
    items: list[str] = []
    for module in modules:
        link = wiki_link(context, module.name)
        entries = _sidebar_changelog_entries(module, link, changelog_max)
        changelog = "</li>"
        if entries:
            changelog = "\n          <ul>\n" + "\n".join(entries) + "\n          </ul>\n        </li>"
        items.append(
            "\n".join(
                [
                    "  <li>",
                    "    <details>",
                    f'      <summary><a href="{link}"><b>{module.name}</b></a></summary>',
                    "      <ul>",
                    f'        <li><a href="{link}#usage">Usage</a></li>',
                    f'        <li><a href="{link}#attributes">Attributes</a></li>',
                    f'        <li><a href="{link}#changelog">Changelog</a>{changelog}',
                    "      </ul>",
                    "    </details>",
                    "  </li>",
                ]
            )
        )
    body = "\n".join(items)
    return (
        f"[Home](/{context.repository}/wiki/Home)\n\n## Terraform Modules\n\n"
        f"<ul>\n{body}\n</ul>"
    )


def generate_wiki_files(
    modules: list[TerraformModule],
    context: Context,
    wiki_dir: Path,
    *,
    changelog_max: int = 5,
    disable_branding: bool = False,
    docs_generator: Callable[[Path], str] = generate_module_docs,
) -> list[Path]:
    """Regenerate every wiki page.

    Returns:
        The written files, module pages first.
    """
    with group("Generating wiki"):
        info("Removing existing wiki files")
        clear_wiki_directory(wiki_dir)

        written: list[Path] = []
        for module in modules:
            page = render_module_page(module, context, docs_generator(module.directory))
            written.append(write_wiki_page(wiki_dir, module.name, page))

        home = wiki_dir / HOME_FILE
        home.write_text(render_home(modules, context), encoding="utf-8")
        written.append(home)

        sidebar = wiki_dir / SIDEBAR_FILE
        sidebar.write_text(render_sidebar(modules, context, changelog_max), encoding="utf-8")
        written.append(sidebar)

        if not disable_branding:
            footer = wiki_dir / FOOTER_FILE
            footer.write_text(BRANDING_WIKI, encoding="utf-8")
            written.append(footer)

        info(f"Wrote {len(written)} wiki files")
        return written


def commit_and_push_wiki(wiki_dir: Path, context: Context) -> bool:
    """Commit and push the regenerated wiki if anything changed.

    Returns:
        True if a commit was pushed.
    """
    with group("Committing and pushing changes to wiki"):
        status = git("status", "--porcelain", cwd=wiki_dir)
        if not status:
            info("No changes detected, skipping commit and push")
            return False

        message = f"PR #{context.pr_number} - {context.pr_title}\n\n{context.pr_body}".strip()
        git("config", "--local", "user.name", GITHUB_ACTIONS_BOT_NAME, cwd=wiki_dir)
        git("config", "--local", "user.email", GITHUB_ACTIONS_BOT_EMAIL, cwd=wiki_dir)
        git("add", ".", cwd=wiki_dir)
        git("commit", "-m", message, cwd=wiki_dir)
        git("push", "origin", cwd=wiki_dir)
        info("Changes committed and pushed to wiki repository")
        return True
