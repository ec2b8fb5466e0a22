"""Parsers for git porcelain output that is not a session step."""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from cli_canon.adapters.profile import Children
from cli_canon.models.records import BlameLine, ResourceChange

SHORT_HASH_LENGTH = 8

_BLAME_HEADER_RE = re.compile(r"^(?P<hash>[0-9a-f]{40}) (?P<original>\d+) (?P<final>\d+)(?: \d+)?$")
_DIFF_HEADER_RE = re.compile(r"^diff --git a/(?P<old>.+?) b/(?P<new>.+)$")
_NUMSTAT_RE = re.compile(r"^(?P<additions>\d+|-)\t(?P<deletions>\d+|-)\t(?P<path>.+)$")
_RENAME_RE = re.compile(r"^(?P<prefix>.*)\{(?P<old>.*) => (?P<new>.*)\}(?P<suffix>.*)$|^.+ => (?P<plain>.+)$")


@dataclass
class _FileStats:
    name: str
    action: str
    additions: int = 0
    deletions: int = 0
    in_hunk: bool = False


def parse_blame_porcelain(stdout: str, stderr: str) -> Children:
    """Parse `git blame --porcelain` (or `--line-porcelain`).

    Commit metadata is printed once per commit in porcelain mode, so it is
    remembered by hash and reused for later lines of the same commit.
    """
    commits: dict[str, dict[str, str]] = {}
    lines: list[BlameLine] = []
    current: str | None = None
    final_line = 0

    for line in stdout.splitlines():
        if (header := _BLAME_HEADER_RE.match(line)) is not None:
            current = header.group("hash")
            final_line = int(header.group("final"))
            commits.setdefault(current, {})
            continue
        if current is None:
            continue
        if line.startswith("\t"):
            lines.append(_blame_line(current, commits[current], final_line, line[1:]))
            continue
        key, _, value = line.partition(" ")
        commits[current][key] = value

    return Children(blame=lines, raw_errors=_fatal_lines(stderr))


def parse_diff(stdout: str, stderr: str) -> Children:
    """Parse `git diff` as a unified patch or as `--numstat` lines.

    Patches are kept whole as ``detail``; per-file statistics become
    resource changes.
    """
    if stdout.strip() and all(_NUMSTAT_RE.match(line) for line in stdout.splitlines() if line):
        return Children(resources=_numstat(stdout), raw_errors=_fatal_lines(stderr))

    files: list[_FileStats] = []
    for line in stdout.splitlines():
        if (header := _DIFF_HEADER_RE.match(line)) is not None:
            old, new = header.group("old"), header.group("new")
            files.append(_FileStats(name=new, action="renamed" if old != new else "modified"))
        elif not files:
            continue
        elif line.startswith("@@"):
            files[-1].in_hunk = True
        elif files[-1].in_hunk:
            if line.startswith("+"):
                files[-1].additions += 1
            elif line.startswith("-"):
                files[-1].deletions += 1
        elif line.startswith("new file mode"):
            files[-1].action = "added"
        elif line.startswith("deleted file mode"):
            files[-1].action = "deleted"
        elif line.startswith("rename to "):
            files[-1].action = "renamed"

    return Children(
        resources=[
            ResourceChange(
                name=stats.name,
                action=stats.action,
                additions=stats.additions,
                deletions=stats.deletions,
            )
            for stats in files
        ],
        detail=stdout or None,
        raw_errors=_fatal_lines(stderr),
    )


def _numstat(stdout: str) -> list[ResourceChange]:
    resources: list[ResourceChange] = []
    for line in stdout.splitlines():
        if (match := _NUMSTAT_RE.match(line)) is None:
            continue
        additions = _count(match.group("additions"))
        deletions = _count(match.group("deletions"))
        path = match.group("path")

        if (rename := _RENAME_RE.match(path)) is not None:
            action = "renamed"
            if rename.group("plain") is not None:
                path = rename.group("plain")
            else:
                path = f"{rename.group('prefix')}{rename.group('new')}{rename.group('suffix')}"
                path = path.replace("//", "/")
        else:
            action = "modified"

        resources.append(
            ResourceChange(name=path, action=action, additions=additions, deletions=deletions)
        )
    return resources


def _blame_line(ref: str, commit: Mapping[str, str], number: int, content: str) -> BlameLine:
    timestamp = commit.get("author-time")
    return BlameLine(
        ref=ref[:SHORT_HASH_LENGTH],
        author=commit.get("author"),
        date=(
            datetime.fromtimestamp(int(timestamp), tz=UTC).date().isoformat()
            if timestamp and timestamp.isdigit()
            else None
        ),
        summary=commit.get("summary"),
        line=number,
        content=content,
    )


def _count(value: str) -> int:
    return 0 if value == "-" else int(value)


def _fatal_lines(stderr: str) -> list[str]:
    return [line for line in stderr.splitlines() if line.startswith(("fatal:", "error:"))]
