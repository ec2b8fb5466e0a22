"""Per-tool configuration driving the generic pipeline."""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from cli_canon.models.diagnostic import Diagnostic, Severity
from cli_canon.models.records import BlameLine, ResourceChange
from cli_canon.models.result import ResultKind
from cli_canon.models.test_run import PackageFailure, TestCase, TestEvent
from cli_canon.parsing.correlator import correlate
from cli_canon.parsing.diagnostics import extract_diagnostics
from cli_canon.parsing.jsonrecords import JsonAdapter
from cli_canon.parsing.text import RawErrorRules, TextPattern

# Both receive (stdout, stderr).
type EventSource = Callable[[str, str], Iterable[TestEvent]]
type RecordSource = Callable[[str, str], Children]


@dataclass(frozen=True, kw_only=True)
class Children:
    """Classified children of one invocation, before validation."""

    diagnostics: Sequence[Diagnostic] = ()
    raw_errors: Sequence[str] = ()
    tests: Sequence[TestCase] = ()
    package_failures: Sequence[PackageFailure] = ()
    blame: Sequence[BlameLine] = ()
    resources: Sequence[ResourceChange] = ()
    lines: Sequence[str] = ()
    detail: str | None = None


@dataclass(frozen=True, kw_only=True)
class ToolProfile:
    """Everything the pipeline needs to know about one tool.

    Exactly one extraction route applies, in this order: ``records`` when
    the tool needs a bespoke parser, ``events`` for test runners, otherwise
    diagnostic extraction from ``json`` and/or ``text``.
    """

    key: str
    tool: str
    kind: ResultKind
    text: TextPattern | None = None
    json: JsonAdapter | None = None
    raw_errors: RawErrorRules | None = None
    events: EventSource | None = None
    records: RecordSource | None = None
    compact_severities: frozenset[Severity] = field(
        default_factory=lambda: frozenset({"error"})
    )

    def extract(self, stdout: str, stderr: str) -> Children:
        """Classify one invocation's output into children."""
        if self.records is not None:
            return self.records(stdout, stderr)

        if self.events is not None:
            run = correlate(self.events(stdout, stderr))
            return Children(tests=run.tests, package_failures=run.package_failures)

        extraction = extract_diagnostics(
            stdout,
            stderr,
            json_adapter=self.json,
            text=self.text,
            raw_errors=self.raw_errors,
        )
        return Children(diagnostics=extraction.diagnostics, raw_errors=extraction.raw_errors)
