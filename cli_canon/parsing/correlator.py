"""Correlation of ordered test-run events into per-test and per-scope outcomes."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from cli_canon.models.test_run import PackageFailure, TestCase, TestEvent, TestStatus

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TestRun:
    """Correlated outcome of one test-run event stream."""

    __test__ = False

    tests: Sequence[TestCase]
    package_failures: Sequence[PackageFailure]


@dataclass
class _CaseState:
    status: TestStatus = "running"
    elapsed: float | None = None
    output: list[str] = field(default_factory=list)


class EventCorrelator:
    """Left-to-right fold over test events.

    State is one entry per ``(scope, name)`` plus one output buffer and one
    terminal status per scope. Each key moves from running to a terminal
    status exactly once; later terminal events for the same key are ignored.
    Output for a running test is attached to it, any other output lands in
    the scope buffer.
    """

    def __init__(self) -> None:
        self._cases: dict[tuple[str, str], _CaseState] = {}
        self._scope_output: dict[str, list[str]] = {}
        self._scope_status: dict[str, TestStatus] = {}

    def feed(self, event: TestEvent) -> None:
        """Fold one event into the state."""
        if event.name is None:
            self._feed_scope(event)
            return

        key = (event.scope, event.name)
        case = self._cases.get(key)

        match event.action:
            case "start":
                if case is None:
                    self._cases[key] = _CaseState()
            case "output":
                if case is not None and case.status == "running":
                    if event.output:
                        case.output.append(event.output)
                else:
                    self._buffer(event.scope, event.output)
            case "pass" | "fail" | "skip" as terminal:
                if case is None:
                    case = self._cases[key] = _CaseState()
                if case.status != "running":
                    log.debug("Ignoring repeated %s for %s/%s", terminal, *key)
                    return
                case.status = terminal
                case.elapsed = event.elapsed

    def result(self) -> TestRun:
        """Snapshot the correlated outcome.

        A scope that failed is only reported as a package failure when it
        has no named tests; otherwise its failure is the runner's own summary.
        """
        named_scopes = {scope for scope, _ in self._cases}

        tests = [
            TestCase(
                scope=scope,
                name=name,
                status=case.status,
                elapsed=case.elapsed,
                captured_output=_join(case.output) if case.status == "fail" else None,
            )
            for (scope, name), case in self._cases.items()
        ]
        package_failures = [
            PackageFailure(scope=scope, output=_join(self._scope_output.get(scope, [])))
            for scope, status in self._scope_status.items()
            if status == "fail" and scope not in named_scopes
        ]
        return TestRun(tests=tests, package_failures=package_failures)

    def _feed_scope(self, event: TestEvent) -> None:
        match event.action:
            case "output":
                self._buffer(event.scope, event.output)
            case "pass" | "fail" | "skip" as terminal:
                self._scope_status.setdefault(event.scope, terminal)

    def _buffer(self, scope: str, output: str | None) -> None:
        chunks = self._scope_output.setdefault(scope, [])
        if output:
            chunks.append(output)


def correlate(events: Iterable[TestEvent]) -> TestRun:
    """Fold a complete event sequence."""
    correlator = EventCorrelator()
    for event in events:
        correlator.feed(event)
    return correlator.result()


def _join(chunks: Sequence[str]) -> str | None:
    text = "\n".join(chunk.rstrip("\n") for chunk in chunks).strip("\n")
    return text or None
