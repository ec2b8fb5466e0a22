"""Derivation of counts and overall success from classified children."""

from collections import Counter
from collections.abc import Sequence

from cli_canon.models.counts import Counts
from cli_canon.models.diagnostic import Diagnostic
from cli_canon.models.records import BlameLine, ResourceChange
from cli_canon.models.test_run import PackageFailure, TestCase


def count_children(
    *,
    diagnostics: Sequence[Diagnostic] = (),
    raw_errors: Sequence[str] = (),
    tests: Sequence[TestCase] = (),
    package_failures: Sequence[PackageFailure] = (),
    blame: Sequence[BlameLine] = (),
    resources: Sequence[ResourceChange] = (),
    lines: Sequence[str] = (),
) -> Counts:
    """Tally classified children.

    Counts depend on the children alone; the exit code is never consulted.
    """
    severities = Counter(diagnostic.severity for diagnostic in diagnostics)
    statuses = Counter(test.status for test in tests)

    return Counts(
        total=(
            len(diagnostics)
            + len(raw_errors)
            + len(tests)
            + len(package_failures)
            + len(blame)
            + len(resources)
            + len(lines)
        ),
        errors=severities["error"] + len(raw_errors),
        warnings=severities["warning"],
        notes=severities["note"] + severities["help"],
        passed=statuses["pass"],
        failed=statuses["fail"],
        skipped=statuses["skip"],
        running=statuses["running"],
        package_failures=len(package_failures),
        changed=sum(1 for resource in resources if resource.changed),
    )


def is_success(counts: Counts) -> bool:
    """No failing tests, no failing scopes and no error-severity findings."""
    return counts.failed == 0 and counts.package_failures == 0 and counts.errors == 0
