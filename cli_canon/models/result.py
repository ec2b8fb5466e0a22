"""Canonical results and their compact projections."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field, computed_field

from cli_canon.aggregate import count_children, is_success
from cli_canon.models.base import Model
from cli_canon.models.counts import Counts
from cli_canon.models.diagnostic import Diagnostic
from cli_canon.models.records import BlameLine, ResourceChange
from cli_canon.models.test_run import PackageFailure, TestCase

type ResultKind = Literal["diagnostics", "tests", "blame", "log", "resources"]


def omission_marker(count: int) -> str:
    """Marker standing in for ``count`` elided items."""
    return f"... {count} lines omitted ..."


class InvocationContext(Model):
    """Auxiliary facts about the invocation, kept out of classification."""

    command: Sequence[str] = ()
    exit_code: int | None = None
    duration: float | None = Field(default=None, ge=0)
    truncated: bool = Field(
        default=False, description="Output was cut at the executor's size cap"
    )
    timed_out: bool = False


class CanonicalResult(Model):
    """Validated, tool-agnostic outcome of one invocation.

    ``counts`` and ``success`` are computed from the children on access and
    cannot be supplied by the caller.
    """

    tool: str
    kind: ResultKind
    diagnostics: Sequence[Diagnostic] = ()
    raw_errors: Sequence[str] = ()
    tests: Sequence[TestCase] = ()
    package_failures: Sequence[PackageFailure] = ()
    blame: Sequence[BlameLine] = ()
    resources: Sequence[ResourceChange] = ()
    lines: Sequence[str] = ()
    detail: str | None = Field(
        default=None, description="Full free-text payload such as a patch"
    )
    context: InvocationContext = Field(default_factory=InvocationContext)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def counts(self) -> Counts:
        return count_children(
            diagnostics=self.diagnostics,
            raw_errors=self.raw_errors,
            tests=self.tests,
            package_failures=self.package_failures,
            blame=self.blame,
            resources=self.resources,
            lines=self.lines,
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return is_success(self.counts)


class BoundedSample(Model):
    """Head and tail of a sequence with the middle elided."""

    head: Sequence[str] = ()
    tail: Sequence[str] = ()
    omitted: int = Field(default=0, ge=0)

    def expand(self) -> list[str]:
        """Render as head, explicit marker, tail."""
        if not self.omitted:
            return [*self.head, *self.tail]
        return [*self.head, omission_marker(self.omitted), *self.tail]


class BlameRange(Model):
    """Lines attributed to one commit, e.g. ``1-3, 7, 9-10``."""

    ref: str
    lines: str


class FailedTest(Model):
    """A failing test in compact form; captured output is sampled."""

    scope: str
    name: str
    elapsed: float | None = Field(default=None, ge=0)
    output: BoundedSample | None = None


class FailedScope(Model):
    """A scope-level failure in compact form; its output is sampled."""

    scope: str
    output: BoundedSample | None = None


class CompactResult(Model):
    """Declared-lossy projection of a :class:`CanonicalResult`.

    Every field is either copied verbatim or derived by one of the
    strategies in :mod:`cli_canon.compact`; absent fields are ``None``.
    """

    tool: str
    kind: ResultKind
    success: bool
    counts: Counts
    diagnostics: Sequence[Diagnostic] | None = None
    raw_errors: BoundedSample | None = None
    tests: Sequence[FailedTest] | None = None
    package_failures: Sequence[FailedScope] | None = None
    resources: Sequence[ResourceChange] | None = None
    lines: BoundedSample | None = None
    blame: Sequence[BlameRange] | None = None
    detail_lines: int | None = Field(default=None, ge=0, description="Line count of the elided detail")
    context: InvocationContext = Field(default_factory=InvocationContext)
