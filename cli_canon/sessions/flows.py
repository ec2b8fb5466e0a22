"""Per-kind command lines and output parsers for git sessions."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import ClassVar

from cli_canon.errors import UnsupportedStepError
from cli_canon.executor import ToolOutput
from cli_canon.models.session import SessionKind, StepAction
from cli_canon.sanitize import assert_no_flag_injection, assert_no_flag_injections
from cli_canon.sessions.parsers import (
    StepOutcome,
    parse_bisect,
    parse_cherry_pick,
    parse_merge,
    parse_rebase,
)

_NON_INTERACTIVE: Mapping[str, str] = {"GIT_EDITOR": "true"}


class SessionFlow(ABC):
    """How one kind of session maps steps onto git invocations."""

    kind: ClassVar[SessionKind]
    env: ClassVar[Mapping[str, str]] = {}

    def argv(self, action: StepAction, args: Sequence[str] = ()) -> list[str] | None:
        """Git arguments for ``action``.

        Returns:
            The argument list, or None when the step needs no invocation.

        Raises:
            UnsupportedStepError: If this kind of session has no such step
            FlagInjectionError: If a user-supplied value looks like an option

        """
        match action:
            case "start":
                return self.start(args)
            case "advance":
                return self.advance(args)
            case "resolve":
                return self.resolve()
            case "skip":
                return self.skip()
            case "quit":
                return self.quit()
            case "abort":
                return self.abort()
            case "refresh":
                return self.refresh()

    @abstractmethod
    def start(self, args: Sequence[str]) -> list[str]: ...

    @abstractmethod
    def abort(self) -> list[str]: ...

    @abstractmethod
    def parse(self, action: StepAction, output: ToolOutput, args: Sequence[str] = ()) -> StepOutcome:
        """Interpret the output of one step."""

    def advance(self, args: Sequence[str]) -> list[str]:
        raise UnsupportedStepError(f"{self.kind} sessions cannot advance")

    def resolve(self) -> list[str]:
        raise UnsupportedStepError(f"{self.kind} sessions have no conflicts to resolve")

    def skip(self) -> list[str]:
        raise UnsupportedStepError(f"{self.kind} sessions cannot skip")

    def quit(self) -> list[str]:
        raise UnsupportedStepError(f"{self.kind} sessions cannot quit")

    def refresh(self) -> list[str] | None:
        return None


class BisectFlow(SessionFlow):
    kind = "bisect"

    _verdicts: ClassVar[frozenset[str]] = frozenset({"good", "bad", "new", "old"})

    def start(self, args: Sequence[str]) -> list[str]:
        assert_no_flag_injections(args, "ref")
        return ["bisect", "start", *args]

    def advance(self, args: Sequence[str]) -> list[str]:
        """``args`` is a verdict followed by refs, or ``run`` and a command."""
        if not args:
            raise UnsupportedStepError("Bisect advance needs a verdict: good, bad, new, old or run")
        verdict, *rest = args
        if verdict == "run":
            if not rest:
                raise UnsupportedStepError("Bisect run needs a command")
            assert_no_flag_injection(rest[0], "command")
            return ["bisect", "run", *rest]
        if verdict not in self._verdicts:
            raise UnsupportedStepError(f"Unknown bisect verdict: {verdict!r}")
        assert_no_flag_injections(rest, "ref")
        return ["bisect", verdict, *rest]

    def skip(self) -> list[str]:
        return ["bisect", "skip"]

    def abort(self) -> list[str]:
        return ["bisect", "reset"]

    def refresh(self) -> list[str]:
        return ["bisect", "log"]

    def parse(self, action: StepAction, output: ToolOutput, args: Sequence[str] = ()) -> StepOutcome:
        return parse_bisect(output.stdout, output.stderr)


class MergeFlow(SessionFlow):
    kind = "merge"
    env = _NON_INTERACTIVE

    def start(self, args: Sequence[str]) -> list[str]:
        assert_no_flag_injections(args, "ref")
        return ["merge", *args]

    def resolve(self) -> list[str]:
        return ["merge", "--continue"]

    def quit(self) -> list[str]:
        return ["merge", "--quit"]

    def abort(self) -> list[str]:
        return ["merge", "--abort"]

    def parse(self, action: StepAction, output: ToolOutput, args: Sequence[str] = ()) -> StepOutcome:
        return parse_merge(output.stdout, output.stderr)


class RebaseFlow(SessionFlow):
    kind = "rebase"
    env = _NON_INTERACTIVE

    def start(self, args: Sequence[str]) -> list[str]:
        assert_no_flag_injections(args, "ref")
        return ["rebase", *args]

    def resolve(self) -> list[str]:
        return ["rebase", "--continue"]

    def skip(self) -> list[str]:
        return ["rebase", "--skip"]

    def quit(self) -> list[str]:
        return ["rebase", "--quit"]

    def abort(self) -> list[str]:
        return ["rebase", "--abort"]

    def parse(self, action: StepAction, output: ToolOutput, args: Sequence[str] = ()) -> StepOutcome:
        return parse_rebase(output.stdout, output.stderr)


class CherryPickFlow(SessionFlow):
    kind = "cherry-pick"
    env = _NON_INTERACTIVE

    def start(self, args: Sequence[str]) -> list[str]:
        assert_no_flag_injections(args, "commit")
        return ["cherry-pick", *args]

    def resolve(self) -> list[str]:
        return ["cherry-pick", "--continue"]

    def skip(self) -> list[str]:
        return ["cherry-pick", "--skip"]

    def quit(self) -> list[str]:
        return ["cherry-pick", "--quit"]

    def abort(self) -> list[str]:
        return ["cherry-pick", "--abort"]

    def parse(self, action: StepAction, output: ToolOutput, args: Sequence[str] = ()) -> StepOutcome:
        return parse_cherry_pick(
            output.stdout, output.stderr, args if action == "start" else ()
        )


FLOWS: Mapping[SessionKind, type[SessionFlow]] = {
    flow.kind: flow for flow in (BisectFlow, MergeFlow, RebaseFlow, CherryPickFlow)
}


def flow_for(kind: SessionKind) -> SessionFlow:
    """Instantiate the flow for ``kind``."""
    return FLOWS[kind]()
