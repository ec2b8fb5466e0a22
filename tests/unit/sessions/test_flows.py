"""Tests for the per-kind session command maps."""

import pytest

from cli_canon.errors import FlagInjectionError, UnsupportedStepError
from cli_canon.sessions.flows import (
    BisectFlow,
    CherryPickFlow,
    MergeFlow,
    RebaseFlow,
    flow_for,
)
from cli_canon.testing.factories import ToolOutputFactory


@pytest.mark.parametrize(
    ("flow", "action", "args", "expected"),
    [
        (BisectFlow(), "start", ["HEAD", "v1.0"], ["bisect", "start", "HEAD", "v1.0"]),
        (BisectFlow(), "advance", ["good"], ["bisect", "good"]),
        (BisectFlow(), "advance", ["bad", "abc123"], ["bisect", "bad", "abc123"]),
        (BisectFlow(), "advance", ["run", "./check.sh", "--fast"], ["bisect", "run", "./check.sh", "--fast"]),
        (BisectFlow(), "skip", [], ["bisect", "skip"]),
        (BisectFlow(), "abort", [], ["bisect", "reset"]),
        (BisectFlow(), "refresh", [], ["bisect", "log"]),
        (MergeFlow(), "start", ["feature"], ["merge", "feature"]),
        (MergeFlow(), "resolve", [], ["merge", "--continue"]),
        (MergeFlow(), "quit", [], ["merge", "--quit"]),
        (MergeFlow(), "abort", [], ["merge", "--abort"]),
        (RebaseFlow(), "start", ["main"], ["rebase", "main"]),
        (RebaseFlow(), "skip", [], ["rebase", "--skip"]),
        (CherryPickFlow(), "start", ["abc123", "def456"], ["cherry-pick", "abc123", "def456"]),
        (CherryPickFlow(), "resolve", [], ["cherry-pick", "--continue"]),
        (CherryPickFlow(), "quit", [], ["cherry-pick", "--quit"]),
    ],
)
def test_argv(flow: object, action: str, args: list[str], expected: list[str]) -> None:
    """Each step maps onto one git command line."""
    assert flow.argv(action, args) == expected  # type: ignore[attr-defined]


@pytest.mark.parametrize("kind", ["merge", "rebase", "cherry-pick"])
def test_refresh_needs_no_command(kind: str) -> None:
    """Only bisect has a read-only status command."""
    assert flow_for(kind).argv("refresh") is None  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("flow", "action"),
    [
        (BisectFlow(), "resolve"),
        (BisectFlow(), "quit"),
        (MergeFlow(), "skip"),
        (MergeFlow(), "advance"),
    ],
)
def test_unsupported_steps(flow: object, action: str) -> None:
    """Steps a tool has no equivalent for are refused."""
    with pytest.raises(UnsupportedStepError):
        flow.argv(action, [])  # type: ignore[attr-defined]


@pytest.mark.parametrize("args", [[], ["maybe"], ["run"]])
def test_bisect_advance_requires_verdict(args: list[str]) -> None:
    """Advancing a bisect needs a known verdict."""
    with pytest.raises(UnsupportedStepError):
        BisectFlow().argv("advance", args)


@pytest.mark.parametrize(
    ("flow", "action", "args"),
    [
        (MergeFlow(), "start", ["--no-verify"]),
        (RebaseFlow(), "start", ["main", "  --exec=rm"]),
        (CherryPickFlow(), "start", ["-n"]),
        (BisectFlow(), "advance", ["good", "--term-good=x"]),
        (BisectFlow(), "advance", ["run", "--help"]),
    ],
)
def test_flag_injection_is_rejected(flow: object, action: str, args: list[str]) -> None:
    """User-supplied refs may not smuggle options in."""
    with pytest.raises(FlagInjectionError):
        flow.argv(action, args)  # type: ignore[attr-defined]


def test_non_interactive_environment() -> None:
    """Steps that may open an editor run with a no-op editor."""
    assert MergeFlow.env == {"GIT_EDITOR": "true"}
    assert BisectFlow.env == {}


def test_cherry_pick_reports_requested_commits() -> None:
    """Started picks are credited with the requested commits."""
    output = ToolOutputFactory.build(stdout="[main 7c6b5a4] Fix typo\n")

    outcome = CherryPickFlow().parse("start", output, ["1a2b3c4"])

    assert outcome.applied == ["1a2b3c4"]
