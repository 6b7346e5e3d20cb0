"""Git helpers.

Branch detection and commit lookup run ``git`` as a subprocess. Git is
optional: a project without a ``.git`` directory, a missing ``git`` binary or a
failing command all mean "no data", never an error.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

__all__ = [
    "DEFAULT_BRANCH",
    "current_commit_hash",
    "detect_branch",
    "ensure_vibe_gitignore",
    "is_git_repository",
    "run_git",
]

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "default"
"""Branch name used for projects without git or when detection fails."""


def is_git_repository(project_path: Path | str) -> bool:
    """Return whether the project root holds a ``.git`` entry."""
    return (Path(project_path) / ".git").exists()


async def run_git(project_path: Path | str, *args: str) -> str | None:
    """Run a git command in the project and return its stripped stdout.

    Args:
        project_path: Working directory for the command.
        *args: Arguments passed to ``git``.

    Returns:
        The command output, or None when git is unavailable or the command fails.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=str(project_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
    except OSError as e:
        logger.debug("git.unavailable", extra={"git_args": args, "error": str(e)})
        return None
    if process.returncode != 0:
        logger.debug(
            "git.command_failed",
            extra={
                "git_args": args,
                "returncode": process.returncode,
                "stderr": stderr.decode(errors="replace").strip(),
            },
        )
        return None
    return stdout.decode(errors="replace").strip() or None


async def detect_branch(project_path: Path | str) -> str:
    """Detect the checked-out branch of a project.

    Args:
        project_path: Root of the project.

    Returns:
        The branch name, or ``"default"`` when it cannot be determined.
    """
    if not is_git_repository(project_path):
        return DEFAULT_BRANCH
    branch = await run_git(project_path, "rev-parse", "--abbrev-ref", "HEAD")
    return branch or DEFAULT_BRANCH


async def current_commit_hash(project_path: Path | str) -> str | None:
    """Return the hash of HEAD, or None outside git or before the first commit."""
    if not is_git_repository(project_path):
        return None
    return await run_git(project_path, "rev-parse", "HEAD")


_GITIGNORE_CONTENT = """# Exclude SQLite database files
*.sqlite
*.sqlite-*
conversation-state.sqlite*
"""


def ensure_vibe_gitignore(project_path: Path | str) -> bool:
    """Keep the conversation database out of git.

    Writes ``.vibe/.gitignore`` in git repositories unless an existing file
    already excludes the database.

    Args:
        project_path: Root of the project.

    Returns:
        True if the file was written.
    """
    if not is_git_repository(project_path):
        return False
    gitignore = Path(project_path) / ".vibe" / ".gitignore"
    if gitignore.exists():
        existing = gitignore.read_text(encoding="utf-8")
        if "*.sqlite" in existing and "conversation-state.sqlite" in existing:
            return False
    gitignore.parent.mkdir(parents=True, exist_ok=True)
    gitignore.write_text(_GITIGNORE_CONTENT, encoding="utf-8")
    logger.info("git.gitignore_written", extra={"path": str(gitignore)})
    return True
