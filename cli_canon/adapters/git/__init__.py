"""Git porcelain adapters."""

from cli_canon.adapters.git.manifest import git_blame, git_diff

__all__ = ["git_blame", "git_diff"]
