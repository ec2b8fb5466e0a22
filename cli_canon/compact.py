"""Compact projections of canonical results.

Each field of a :class:`CompactResult` is produced by exactly one strategy:

* elide-detail: free-text payloads (``detail``) are dropped, leaving only
  their line count;
* filter-then-keep: only actionable children survive (failing tests,
  changed resources, diagnostics of the kept severities);
* bounded-sample: ordered sequences keep a head and, past ``head + tail``,
  a tail with an explicit omission marker. Captured output of failing
  tests and failing scopes is sampled line by line;
* range-compress: blame lines collapse into line ranges per commit.

Scalars (``success``, ``counts``, ``context``) are copied verbatim.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from cli_canon.models.diagnostic import Diagnostic, Severity
from cli_canon.models.records import BlameLine
from cli_canon.models.result import (
    BlameRange,
    BoundedSample,
    CanonicalResult,
    CompactResult,
    FailedScope,
    FailedTest,
)
from cli_canon.models.test_run import PackageFailure, TestCase

_RANGE_RE = re.compile(r"^(\d+)(?:-(\d+))?$")


@dataclass(frozen=True, kw_only=True)
class CompactionRules:
    """Tunables for the lossy strategies."""

    head: int = 5
    tail: int = 5
    severities: frozenset[Severity] = field(default_factory=lambda: frozenset({"error"}))


def elide(detail: str | None) -> int | None:
    """Drop a free-text payload, keeping its line count."""
    if not detail:
        return None
    return len(detail.splitlines())


def filter_then_keep[T](items: Iterable[T], keep: Callable[[T], bool]) -> list[T] | None:
    """Keep actionable items; None when nothing is left."""
    kept = [item for item in items if keep(item)]
    return kept or None


def bounded_sample(items: Sequence[str], *, head: int, tail: int) -> BoundedSample | None:
    """Keep ``head`` leading and ``tail`` trailing items.

    Sequences no longer than ``head + tail`` are kept whole with nothing
    omitted. Empty sequences yield None.
    """
    if not items:
        return None
    if len(items) <= head + tail:
        return BoundedSample(head=list(items))
    return BoundedSample(
        head=list(items[:head]),
        tail=list(items[len(items) - tail :]),
        omitted=len(items) - head - tail,
    )


def compress_ranges(numbers: Iterable[int]) -> str:
    """Collapse line numbers into ``"1-3, 7, 9-10"``."""
    ordered = sorted(set(numbers))
    if not ordered:
        return ""

    parts: list[str] = []
    start = end = ordered[0]
    for number in ordered[1:]:
        if number == end + 1:
            end = number
            continue
        parts.append(_format_range(start, end))
        start = end = number
    parts.append(_format_range(start, end))
    return ", ".join(parts)


def expand_ranges(ranges: str) -> set[int]:
    """Inverse of :func:`compress_ranges`.

    Raises:
        ValueError: If a part is not a number or an ascending ``a-b`` range

    """
    numbers: set[int] = set()
    for part in ranges.split(","):
        part = part.strip()
        if not part:
            continue
        if (match := _RANGE_RE.match(part)) is None:
            raise ValueError(f"Invalid line range: {part!r}")
        start = int(match.group(1))
        end = int(match.group(2) or start)
        if end < start:
            raise ValueError(f"Descending line range: {part!r}")
        numbers.update(range(start, end + 1))
    return numbers


def compress_blame(lines: Sequence[BlameLine]) -> list[BlameRange] | None:
    """Range-compress blame lines per commit, in order of first appearance."""
    by_ref: dict[str, list[int]] = {}
    for line in lines:
        by_ref.setdefault(line.ref, []).append(line.line)
    if not by_ref:
        return None
    return [BlameRange(ref=ref, lines=compress_ranges(numbers)) for ref, numbers in by_ref.items()]


def compact(
    result: CanonicalResult | CompactResult,
    rules: CompactionRules = CompactionRules(),
) -> CompactResult:
    """Project a canonical result onto its compact form.

    A result that is already compact is returned unchanged.
    """
    if isinstance(result, CompactResult):
        return result

    def keep_diagnostic(diagnostic: Diagnostic) -> bool:
        return diagnostic.severity in rules.severities

    return CompactResult(
        tool=result.tool,
        kind=result.kind,
        success=result.success,
        counts=result.counts,
        diagnostics=filter_then_keep(result.diagnostics, keep_diagnostic),
        raw_errors=bounded_sample(result.raw_errors, head=rules.head, tail=rules.tail),
        tests=[
            _failed_test(test, rules) for test in result.tests if test.status == "fail"
        ] or None,
        package_failures=[
            _failed_scope(failure, rules) for failure in result.package_failures
        ] or None,
        resources=filter_then_keep(result.resources, lambda resource: resource.changed),
        lines=bounded_sample(result.lines, head=rules.head, tail=rules.tail),
        blame=compress_blame(result.blame),
        detail_lines=elide(result.detail),
        context=result.context,
    )


def _sample_output(output: str | None, rules: CompactionRules) -> BoundedSample | None:
    return bounded_sample(output.splitlines() if output else (), head=rules.head, tail=rules.tail)


def _failed_test(test: TestCase, rules: CompactionRules) -> FailedTest:
    return FailedTest(
        scope=test.scope,
        name=test.name,
        elapsed=test.elapsed,
        output=_sample_output(test.captured_output, rules),
    )


def _failed_scope(failure: PackageFailure, rules: CompactionRules) -> FailedScope:
    return FailedScope(scope=failure.scope, output=_sample_output(failure.output, rules))


def _format_range(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"
