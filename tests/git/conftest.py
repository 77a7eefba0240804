"""Test fixtures for git module."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pygit2
import pytest

from gitrelay.git.translation import TranslationContext

if TYPE_CHECKING:
    from collections.abc import Generator

UBUNTU_REPO = "\\\\wsl$\\Ubuntu\\home\\me\\repo"


@pytest.fixture
def context() -> TranslationContext:
    """Translation context for a repo inside the Ubuntu distro."""
    return TranslationContext.from_host_path(UBUNTU_REPO)


@pytest.fixture
def temp_repo(tmp_path: Path) -> Generator[pygit2.Repository, None, None]:
    """Create a temporary git repository with initial commit."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    repo = pygit2.init_repository(str(repo_path), initial_head="main")

    # Configure user
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"

    # Create initial commit
    (repo_path / "README.md").write_text("# Test Repo\n")
    repo.index.add("README.md")
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com")
    repo.create_commit("refs/heads/main", sig, sig, "Initial commit", tree, [])

    yield repo
