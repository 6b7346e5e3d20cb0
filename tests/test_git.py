"""Tests for the git helpers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from vibe_workflows import git
from vibe_workflows.git import (
    DEFAULT_BRANCH,
    current_commit_hash,
    detect_branch,
    ensure_vibe_gitignore,
    is_git_repository,
    run_git,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch):
    """Replace the git subprocess with canned output.

    Returns:
        Dict mapping argument tuples to output; missing keys mean failure
    """
    outputs: dict[tuple[str, ...], str] = {}

    async def _run_git(_project_path: object, *args: str) -> str | None:
        return outputs.get(args)

    monkeypatch.setattr(git, "run_git", _run_git)
    return outputs


@pytest.mark.unit
class TestDetection:
    """Tests for branch and commit detection."""

    async def test_without_git(self, project_dir: Path) -> None:
        """Projects without git use the default branch and have no commit."""
        assert not is_git_repository(project_dir)
        assert await detect_branch(project_dir) == DEFAULT_BRANCH
        assert await current_commit_hash(project_dir) is None

    async def test_branch(self, project_dir: Path, fake_git: dict[tuple[str, ...], str]) -> None:
        """The checked-out branch is reported."""
        (project_dir / ".git").mkdir()
        fake_git[("rev-parse", "--abbrev-ref", "HEAD")] = "feature/cart"
        fake_git[("rev-parse", "HEAD")] = "abc123"

        assert await detect_branch(project_dir) == "feature/cart"
        assert await current_commit_hash(project_dir) == "abc123"

    async def test_failing_git(self, project_dir: Path, fake_git: dict[tuple[str, ...], str]) -> None:
        """A failing git command falls back to the default branch."""
        (project_dir / ".git").mkdir()

        assert await detect_branch(project_dir) == DEFAULT_BRANCH
        assert await current_commit_hash(project_dir) is None

    async def test_missing_binary(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A missing git executable means no data."""

        async def _missing(*_args: object, **_kwargs: object) -> None:
            raise FileNotFoundError("git")

        monkeypatch.setattr(asyncio, "create_subprocess_exec", _missing)

        assert await run_git(project_dir, "status") is None


@pytest.mark.unit
class TestGitignore:
    """Tests for keeping the database out of git."""

    def test_not_a_repository(self, project_dir: Path) -> None:
        """Nothing is written outside git."""
        assert ensure_vibe_gitignore(project_dir) is False
        assert not (project_dir / ".vibe" / ".gitignore").exists()

    def test_written_once(self, project_dir: Path) -> None:
        """The file is written when missing and left alone afterwards."""
        (project_dir / ".git").mkdir()

        assert ensure_vibe_gitignore(project_dir) is True
        assert ensure_vibe_gitignore(project_dir) is False

    def test_incomplete_file_is_replaced(self, project_dir: Path) -> None:
        """A file that does not exclude the database is rewritten."""
        (project_dir / ".git").mkdir()
        (project_dir / ".vibe").mkdir()
        (project_dir / ".vibe" / ".gitignore").write_text("*.log\n", encoding="utf-8")

        assert ensure_vibe_gitignore(project_dir) is True
        assert "conversation-state.sqlite" in (project_dir / ".vibe" / ".gitignore").read_text(encoding="utf-8")
