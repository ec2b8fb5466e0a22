"""Tool profiles for git porcelain commands."""

from cli_canon.adapters.git.parsers import parse_blame_porcelain, parse_diff
from cli_canon.adapters.profile import ToolProfile

git_blame = ToolProfile(
    key="git-blame",
    tool="git blame",
    kind="blame",
    records=parse_blame_porcelain,
)

git_diff = ToolProfile(
    key="git-diff",
    tool="git diff",
    kind="resources",
    records=parse_diff,
)
