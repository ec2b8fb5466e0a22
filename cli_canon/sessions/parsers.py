"""Pure parsers for the output of git session steps."""

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from cli_canon.models.session import BisectCulprit

_CONFLICT_RE = re.compile(r"^CONFLICT \((?P<reason>[^)]+)\): (?P<detail>.+)$")
_MERGE_CONFLICT_IN_RE = re.compile(r"Merge conflict in (?P<path>.+)$")

_BISECTING_RE = re.compile(
    r"^Bisecting: (?P<revisions>\d+) revisions? left to test after this"
    r"(?: \(roughly (?P<steps>\d+) steps?\))?"
)
_BISECT_CURRENT_RE = re.compile(r"^\[(?P<hash>[0-9a-f]{7,40})\] (?P<subject>.*)$")
_FIRST_BAD_RE = re.compile(r"^(?P<hash>[0-9a-f]{7,40}) is the first bad commit")
_LOGGED_FIRST_BAD_RE = re.compile(r"^# first bad commit: \[(?P<hash>[0-9a-f]{7,40})\] (?P<subject>.*)$")
_CANDIDATES_HEADER = "The first bad commit could be any of:"
_HASH_LINE_RE = re.compile(r"^(?P<hash>[0-9a-f]{7,40})$")

_UPDATING_RE = re.compile(r"^Updating (?P<base>[0-9a-f]+)\.\.(?P<head>[0-9a-f]+)$")
_STRATEGY_RE = re.compile(r"^Merge made by the '(?P<strategy>[^']+)' strategy\.")
_ALREADY_UP_TO_DATE_RE = re.compile(r"^Already up[ -]to[ -]date\.?$")

_REBASED_RE = re.compile(r"^Successfully rebased and updated (?P<ref>\S+?)\.?$")
_REBASE_UP_TO_DATE_RE = re.compile(r"^Current branch (?P<branch>\S+) is up to date\.?$")
_COULD_NOT_APPLY_RE = re.compile(r"could not apply (?P<hash>[0-9a-f]{7,40})\.\.\.")

_COMMIT_SUMMARY_RE = re.compile(r"^\[(?P<branch>[^\]]+?)(?: \([^)]*\))? (?P<hash>[0-9a-f]{7,40})\] ")


@dataclass(frozen=True, kw_only=True)
class StepOutcome:
    """What one step's own output says happened."""

    conflicts: Sequence[str] = ()
    completed: bool = False
    current_ref: str | None = None
    remaining_steps: int | None = None
    culprit: BisectCulprit | None = None
    candidates: Sequence[str] = ()
    fast_forward: bool = False
    new_commit: str | None = None
    applied: Sequence[str] = ()
    rebased_commits: int | None = None
    message: str | None = None


def parse_conflicts(text: str) -> list[str]:
    """Paths named by ``CONFLICT (...)`` lines, verbatim and de-duplicated."""
    paths: list[str] = []
    for line in text.splitlines():
        if (match := _CONFLICT_RE.match(line.strip())) is None:
            continue
        detail = match.group("detail")
        if (inner := _MERGE_CONFLICT_IN_RE.search(detail)) is not None:
            path = inner.group("path").strip()
        else:
            path = detail.split()[0]
        if path not in paths:
            paths.append(path)
    return paths


def parse_bisect(stdout: str, stderr: str) -> StepOutcome:
    """Parse `git bisect start/good/bad/skip/run/log` output.

    Without a "roughly N steps" hint the remaining steps are estimated as
    ``ceil(log2(revisions + 1))``.
    """
    text = _combine(stdout, stderr)
    lines = text.splitlines()

    if (culprit := _parse_culprit(lines)) is not None:
        return StepOutcome(completed=True, culprit=culprit, current_ref=culprit.hash)

    if _CANDIDATES_HEADER in text:
        start = next(i for i, line in enumerate(lines) if _CANDIDATES_HEADER in line) + 1
        candidates = [
            match.group("hash")
            for line in lines[start:]
            if (match := _HASH_LINE_RE.match(line.strip())) is not None
        ]
        return StepOutcome(
            completed=True,
            candidates=candidates,
            message="Only skipped commits left to test",
        )

    remaining: int | None = None
    current: str | None = None
    for line in lines:
        if (progress := _BISECTING_RE.match(line)) is not None:
            steps = progress.group("steps")
            revisions = int(progress.group("revisions"))
            remaining = int(steps) if steps is not None else math.ceil(math.log2(revisions + 1))
        elif (checked_out := _BISECT_CURRENT_RE.match(line)) is not None:
            current = checked_out.group("hash")

    return StepOutcome(current_ref=current, remaining_steps=remaining)


def parse_merge(stdout: str, stderr: str) -> StepOutcome:
    """Parse `git merge` output."""
    text = _combine(stdout, stderr)
    if conflicts := parse_conflicts(text):
        return StepOutcome(conflicts=conflicts)

    lines = [line.strip() for line in text.splitlines()]
    if any(_ALREADY_UP_TO_DATE_RE.match(line) for line in lines):
        return StepOutcome(completed=True, message="Already up to date")

    updating = next(filter(None, map(_UPDATING_RE.match, lines)), None)
    if updating is not None and "Fast-forward" in lines:
        return StepOutcome(completed=True, fast_forward=True, new_commit=updating.group("head"))

    if (strategy := next(filter(None, map(_STRATEGY_RE.match, lines)), None)) is not None:
        return StepOutcome(completed=True, message=f"Merged using the {strategy.group('strategy')} strategy")

    if (committed := next(filter(None, map(_COMMIT_SUMMARY_RE.match, lines)), None)) is not None:
        return StepOutcome(completed=True, new_commit=committed.group("hash"))

    return StepOutcome()


def parse_rebase(stdout: str, stderr: str) -> StepOutcome:
    """Parse `git rebase` output."""
    text = _combine(stdout, stderr)
    lines = [line.strip() for line in text.splitlines()]
    applied = sum(1 for line in lines if line.startswith("Applying: "))
    stopped_at = next(filter(None, map(_COULD_NOT_APPLY_RE.search, lines)), None)

    if conflicts := parse_conflicts(text):
        return StepOutcome(
            conflicts=conflicts,
            current_ref=stopped_at.group("hash") if stopped_at else None,
            rebased_commits=applied or None,
        )

    if (rebased := next(filter(None, map(_REBASED_RE.match, lines)), None)) is not None:
        return StepOutcome(
            completed=True,
            rebased_commits=applied or None,
            message=f"Rebased {rebased.group('ref')}",
        )

    if (current := next(filter(None, map(_REBASE_UP_TO_DATE_RE.match, lines)), None)) is not None:
        return StepOutcome(completed=True, message=f"{current.group('branch')} is up to date")

    return StepOutcome(
        current_ref=stopped_at.group("hash") if stopped_at else None,
        rebased_commits=applied or None,
    )


def parse_cherry_pick(stdout: str, stderr: str, commits: Sequence[str] = ()) -> StepOutcome:
    """Parse `git cherry-pick` output.

    ``commits`` are the commits that were requested; they are reported as
    applied only when the step finished without stopping.
    """
    text = _combine(stdout, stderr)
    lines = [line.strip() for line in text.splitlines()]
    summaries = [match.group("hash") for match in filter(None, map(_COMMIT_SUMMARY_RE.match, lines))]
    stopped_at = next(filter(None, map(_COULD_NOT_APPLY_RE.search, lines)), None)

    if conflicts := parse_conflicts(text):
        return StepOutcome(
            conflicts=conflicts,
            current_ref=stopped_at.group("hash") if stopped_at else None,
        )
    if stopped_at is not None:
        return StepOutcome(current_ref=stopped_at.group("hash"))
    if summaries:
        return StepOutcome(completed=True, new_commit=summaries[-1], applied=list(commits))
    return StepOutcome()


def _parse_culprit(lines: Sequence[str]) -> BisectCulprit | None:
    for index, line in enumerate(lines):
        if (match := _FIRST_BAD_RE.match(line)) is not None:
            return _culprit_details(match.group("hash"), lines[index + 1 :])
        if (logged := _LOGGED_FIRST_BAD_RE.match(line)) is not None:
            return BisectCulprit(hash=logged.group("hash"), message=logged.group("subject") or None)
    return None


def _culprit_details(commit: str, lines: Iterable[str]) -> BisectCulprit:
    author = date = message = None
    for line in lines:
        if line.startswith("Author:") and author is None:
            author = line.removeprefix("Author:").strip()
        elif line.startswith("Date:") and date is None:
            date = line.removeprefix("Date:").strip()
        elif line.startswith("    ") and line.strip() and message is None:
            message = line.strip()
    return BisectCulprit(hash=commit, message=message, author=author, date=date)


def _combine(stdout: str, stderr: str) -> str:
    return "\n".join(part for part in (stdout, stderr) if part)
