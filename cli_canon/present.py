"""Deterministic text rendering of results and sessions."""

from collections.abc import Sequence

from cli_canon.models.counts import Counts
from cli_canon.models.diagnostic import Diagnostic
from cli_canon.models.records import ResourceChange
from cli_canon.models.result import (
    CanonicalResult,
    CompactResult,
    FailedScope,
    FailedTest,
    InvocationContext,
)
from cli_canon.models.session import Session
from cli_canon.models.test_run import PackageFailure, TestCase


def render(result: CanonicalResult | CompactResult) -> str:
    """Render either representation of a result as plain text."""
    lines = [_headline(result.tool, result.kind, result.counts, result.success)]
    lines.extend(_context_notes(result.context))

    if isinstance(result, CanonicalResult):
        lines.extend(_diagnostic_lines(result.diagnostics))
        lines.extend(f"  {raw_error}" for raw_error in result.raw_errors)
        lines.extend(_test_lines(result.tests))
        lines.extend(_package_failure_lines(result.package_failures))
        lines.extend(_resource_lines(result.resources))
        lines.extend(
            f"{line.ref} ({line.author or 'unknown'}) {line.line}: {line.content}"
            for line in result.blame
        )
        lines.extend(result.lines)
    else:
        lines.extend(_diagnostic_lines(result.diagnostics or ()))
        if result.raw_errors is not None:
            lines.extend(f"  {raw_error}" for raw_error in result.raw_errors.expand())
        lines.extend(_failed_test_lines(result.tests or ()))
        lines.extend(_failed_scope_lines(result.package_failures or ()))
        lines.extend(_resource_lines(result.resources or ()))
        lines.extend(f"{entry.ref}: lines {entry.lines}" for entry in result.blame or ())
        if result.lines is not None:
            lines.extend(result.lines.expand())
        if result.detail_lines:
            lines.append(f"({result.detail_lines} line(s) of detail elided)")

    return "\n".join(lines)


def render_session(session: Session) -> str:
    """Render a session snapshot."""
    title = session.kind.capitalize()
    lines: list[str]

    match session.state:
        case "idle":
            lines = [f"{title}: no session in progress"]
        case "conflict":
            lines = [f"{title} paused with {len(session.conflict_set)} conflict(s) [conflict]"]
            lines.extend(f"  CONFLICT: {path}" for path in session.conflict_set)
        case "completed" if session.culprit is not None:
            culprit = session.culprit
            lines = [f"Bisect found culprit: {culprit.hash[:8]} {culprit.message or ''}".rstrip()]
            if culprit.author:
                lines.append(f"Author: {culprit.author}")
            if culprit.date:
                lines.append(f"Date: {culprit.date}")
        case state:
            lines = [f"{title} [{state}]"]

    if session.current_ref:
        lines.append(f"Current: {session.current_ref}")
    if session.remaining_steps is not None and session.state == "active":
        lines.append(f"~{session.remaining_steps} step(s) remaining")
    if session.candidates:
        lines.append(f"Candidates: {', '.join(session.candidates)}")
    if session.step is not None and session.total_steps is not None:
        lines.append(f"Progress: {session.step}/{session.total_steps}")
    if session.fast_forward:
        lines.append("Fast-forward")
    if session.new_commit:
        lines.append(f"Commit: {session.new_commit}")
    if session.applied:
        lines.append(f"Applied: {', '.join(session.applied)}")
    if session.rebased_commits:
        lines.append(f"{session.rebased_commits} commit(s) rebased")
    if session.message:
        lines.append(session.message)

    return "\n".join(lines)


def _headline(tool: str, kind: str, counts: Counts, success: bool) -> str:
    match kind:
        case "tests":
            summary = f"{counts.passed} passed, {counts.failed} failed, {counts.skipped} skipped"
            if counts.running:
                summary += f", {counts.running} still running"
            if counts.package_failures:
                summary += f", {counts.package_failures} package failure(s)"
            return f"{'ok' if success else 'FAIL'} {tool}: {summary}"
        case "blame":
            return f"{tool}: {counts.total} line(s)"
        case "log":
            return f"{tool}: {counts.total} line(s)"
        case "resources":
            return f"{tool}: {counts.changed} changed, {counts.total - counts.changed} unchanged"
        case _:
            if counts.total == 0:
                return f"{tool}: no issues found"
            return f"{tool}: {counts.errors} error(s), {counts.warnings} warning(s)"


def _context_notes(context: InvocationContext) -> list[str]:
    notes: list[str] = []
    if context.timed_out:
        notes.append("(timed out; results are partial)")
    if context.truncated:
        notes.append("(output truncated)")
    return notes


def _diagnostic_lines(diagnostics: Sequence[Diagnostic]) -> list[str]:
    lines: list[str] = []
    for diagnostic in diagnostics:
        location = diagnostic.location
        where = location.file
        if location.line is not None:
            where += f":{location.line}"
            if location.column is not None:
                where += f":{location.column}"
        code = f"[{diagnostic.code}]" if diagnostic.code else ""
        lines.append(f"  {where}: {diagnostic.severity}{code}: {diagnostic.message}")
        if diagnostic.suggestion:
            lines.append(f"    help: {diagnostic.suggestion}")
    return lines


def _test_lines(tests: Sequence[TestCase]) -> list[str]:
    lines: list[str] = []
    for test in tests:
        elapsed = f" ({test.elapsed}s)" if test.elapsed is not None else ""
        lines.append(f"  {test.status:<4} {test.scope}/{test.name}{elapsed}")
        if test.captured_output:
            lines.extend(f"      {line}" for line in test.captured_output.splitlines())
    return lines


def _package_failure_lines(failures: Sequence[PackageFailure]) -> list[str]:
    if not failures:
        return []
    lines = ["Package failures:"]
    for failure in failures:
        lines.append(f"  FAIL {failure.scope}")
        if failure.output:
            lines.extend(f"      {line}" for line in failure.output.splitlines())
    return lines


def _failed_test_lines(tests: Sequence[FailedTest]) -> list[str]:
    lines: list[str] = []
    for test in tests:
        elapsed = f" ({test.elapsed}s)" if test.elapsed is not None else ""
        lines.append(f"  fail {test.scope}/{test.name}{elapsed}")
        if test.output is not None:
            lines.extend(f"      {line}" for line in test.output.expand())
    return lines


def _failed_scope_lines(failures: Sequence[FailedScope]) -> list[str]:
    if not failures:
        return []
    lines = ["Package failures:"]
    for failure in failures:
        lines.append(f"  FAIL {failure.scope}")
        if failure.output is not None:
            lines.extend(f"      {line}" for line in failure.output.expand())
    return lines


def _resource_lines(resources: Sequence[ResourceChange]) -> list[str]:
    lines: list[str] = []
    for resource in resources:
        stats = ""
        if resource.additions is not None or resource.deletions is not None:
            stats = f" (+{resource.additions or 0} -{resource.deletions or 0})"
        lines.append(f"  {resource.action} {resource.name}{stats}")
    return lines
