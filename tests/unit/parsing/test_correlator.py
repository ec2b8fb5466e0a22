"""Tests for the test-event correlator."""

from cli_canon.models.test_run import PackageFailure, TestCase, TestEvent
from cli_canon.parsing.correlator import EventCorrelator, correlate

PKG = "example.com/app"


def test_failing_test_collects_its_output() -> None:
    """Output events between start and fail are joined in order; the passing sibling has none."""
    run = correlate(
        [
            TestEvent(action="start", scope=PKG, name="TestOK"),
            TestEvent(action="output", scope=PKG, name="TestOK", output="=== RUN   TestOK\n"),
            TestEvent(action="pass", scope=PKG, name="TestOK", elapsed=0.01),
            TestEvent(action="start", scope=PKG, name="TestBroken"),
            TestEvent(action="output", scope=PKG, name="TestBroken", output="    app_test.go:9: got 1\n"),
            TestEvent(action="output", scope=PKG, name="TestBroken", output="    app_test.go:10: want 2\n"),
            TestEvent(action="fail", scope=PKG, name="TestBroken", elapsed=0.02),
            TestEvent(action="fail", scope=PKG, elapsed=0.03),
        ]
    )

    assert run.tests == [
        TestCase(scope=PKG, name="TestOK", status="pass", elapsed=0.01),
        TestCase(
            scope=PKG,
            name="TestBroken",
            status="fail",
            elapsed=0.02,
            captured_output="    app_test.go:9: got 1\n    app_test.go:10: want 2",
        ),
    ]
    assert run.package_failures == []


def test_scope_only_failure_is_package_failure() -> None:
    """A failing scope with no named tests yields one package failure and no test cases."""
    run = correlate(
        [
            TestEvent(action="output", scope=PKG, output="# example.com/app\n"),
            TestEvent(action="output", scope=PKG, output="./main.go:3:1: syntax error\n"),
            TestEvent(action="fail", scope=PKG, elapsed=0.0),
        ]
    )

    assert run.tests == []
    assert run.package_failures == [
        PackageFailure(scope=PKG, output="# example.com/app\n./main.go:3:1: syntax error")
    ]


def test_unterminated_test_stays_running() -> None:
    """A stream cut short leaves started tests running."""
    run = correlate(
        [
            TestEvent(action="start", scope=PKG, name="TestSlow"),
            TestEvent(action="output", scope=PKG, name="TestSlow", output="still going\n"),
        ]
    )

    assert run.tests == [TestCase(scope=PKG, name="TestSlow", status="running")]


def test_first_terminal_status_wins() -> None:
    """Repeated terminal events for the same key are ignored."""
    run = correlate(
        [
            TestEvent(action="start", scope=PKG, name="TestA"),
            TestEvent(action="pass", scope=PKG, name="TestA"),
            TestEvent(action="fail", scope=PKG, name="TestA"),
        ]
    )

    assert run.tests[0].status == "pass"


def test_same_name_in_different_scopes_is_distinct() -> None:
    """Tests are keyed by scope and name."""
    run = correlate(
        [
            TestEvent(action="pass", scope="pkg/a", name="TestX"),
            TestEvent(action="fail", scope="pkg/b", name="TestX"),
        ]
    )

    assert [(t.scope, t.status) for t in run.tests] == [("pkg/a", "pass"), ("pkg/b", "fail")]


def test_output_after_termination_goes_to_scope() -> None:
    """Late output is not attached to a finished test."""
    correlator = EventCorrelator()
    for event in [
        TestEvent(action="start", scope=PKG, name="TestA"),
        TestEvent(action="fail", scope=PKG, name="TestA"),
        TestEvent(action="output", scope=PKG, name="TestA", output="late\n"),
    ]:
        correlator.feed(event)

    run = correlator.result()

    assert run.tests[0].captured_output is None


def test_replaying_a_stream_gives_the_same_run() -> None:
    """The fold is deterministic: same events, same test cases in the same order."""
    events = [
        TestEvent(action="start", scope="pkg/b", name="TestB"),
        TestEvent(action="start", scope="pkg/a", name="TestA"),
        TestEvent(action="output", scope="pkg/a", name="TestA", output="a1\n"),
        TestEvent(action="output", scope="pkg/b", name="TestB", output="b1\n"),
        TestEvent(action="fail", scope="pkg/a", name="TestA", elapsed=0.1),
        TestEvent(action="output", scope="pkg/c", output="# pkg/c\n"),
        TestEvent(action="skip", scope="pkg/b", name="TestB"),
        TestEvent(action="fail", scope="pkg/c"),
        TestEvent(action="start", scope="pkg/a", name="TestSlow"),
    ]

    first = correlate(events)
    second = correlate(list(events))

    assert first == second
    assert [(t.scope, t.name, t.status) for t in first.tests] == [
        ("pkg/b", "TestB", "skip"),
        ("pkg/a", "TestA", "fail"),
        ("pkg/a", "TestSlow", "running"),
    ]
    assert first.package_failures == [PackageFailure(scope="pkg/c", output="# pkg/c")]


def test_result_is_a_repeatable_snapshot() -> None:
    """Taking the result twice does not change it."""
    correlator = EventCorrelator()
    correlator.feed(TestEvent(action="start", scope=PKG, name="TestA"))
    correlator.feed(TestEvent(action="output", scope=PKG, name="TestA", output="boom\n"))
    correlator.feed(TestEvent(action="fail", scope=PKG, name="TestA"))

    assert correlator.result() == correlator.result()
