"""Fixtures for integration tests."""

import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import pytest


class GitFn(Protocol):
    """Protocol for running git in the test repo."""

    def __call__(self, *args: str) -> str:
        """Run git and return its stdout."""


class CommitFn(Protocol):
    """Protocol for git commit function."""

    def __call__(self, message: str, files: Mapping[str, str] | None = None) -> str:
        """Write files, create a commit and return its SHA."""


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create an initialized git repository on branch main."""
    for args in (
        ["init"],
        ["symbolic-ref", "HEAD", "refs/heads/main"],
        ["config", "user.email", "test@example.com"],
        ["config", "user.name", "Test"],
        ["config", "commit.gpgsign", "false"],
    ):
        subprocess.run(
            ["git", *args],
            cwd=tmp_path,
            check=True,
            capture_output=True,
        )
    return tmp_path


@pytest.fixture
def git(git_repo: Path) -> GitFn:
    """Return a function running git in the test repo."""

    def _git(*args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=git_repo,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout

    return _git


@pytest.fixture
def git_commit(git_repo: Path, git: GitFn) -> CommitFn:
    """Return a function to create commits in the test repo."""

    def _commit(message: str, files: Mapping[str, str] | None = None) -> str:
        for name, content in (files or {}).items():
            path = git_repo / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        git("add", "-A")
        git("commit", "--allow-empty", "-m", message)
        return git("rev-parse", "HEAD").strip()

    return _commit


@pytest.fixture
def diverged(git: GitFn, git_commit: CommitFn) -> str:
    """Make main and feature change the same line; return feature's head."""
    git_commit("Base", {"a.txt": "base\n"})
    git("checkout", "-q", "-b", "feature")
    feature_head = git_commit("Feature change", {"a.txt": "feature\n"})
    git("checkout", "-q", "main")
    git_commit("Main change", {"a.txt": "main\n"})
    return feature_head
