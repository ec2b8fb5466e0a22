"""State machine over multi-step git sessions.

The tracker never writes session state of its own. Every step runs the git
command, probes the repository afresh and derives the next ``Session`` from
the step's output and the probe, so a tracker attached to a repository
mid-session picks up where the last one left off.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

from cli_canon.errors import SessionBusyError, SessionStepError
from cli_canon.executor import ProcessExecutor, SubprocessExecutor, ToolOutput
from cli_canon.models.session import (
    Session,
    SessionKind,
    SessionState,
    SessionStep,
    StepAction,
    WorkingTreeMarkers,
)
from cli_canon.sessions.flows import SessionFlow, flow_for
from cli_canon.sessions.parsers import StepOutcome
from cli_canon.sessions.probe import GitMarkerProbe, SessionProbe

log = logging.getLogger(__name__)

_PROGRESSING: frozenset[StepAction] = frozenset({"start", "advance", "resolve", "skip"})


def derive_session(
    previous: Session,
    action: StepAction,
    outcome: StepOutcome,
    markers: WorkingTreeMarkers,
    *,
    succeeded: bool = True,
) -> Session:
    """Compute the session that follows ``previous`` after one step.

    Args:
        previous: The session before the step
        action: The step that was taken
        outcome: What the step's own output reported
        markers: A fresh probe of the repository, taken after the step
        succeeded: Whether the git command exited cleanly

    Returns:
        The next session. The repository markers decide whether a session is
        in progress; the step output decides conflicts and completion.

    """
    kind = previous.kind
    in_progress = markers.in_progress(kind)
    conflicts = list(dict.fromkeys(outcome.conflicts or markers.unmerged_paths))

    state: SessionState
    if action in ("abort", "quit") and not in_progress:
        state = "idle"
    elif outcome.culprit is not None or outcome.candidates:
        state = "completed"
    elif in_progress or outcome.conflicts:
        state = "conflict" if conflicts else "active"
    elif outcome.completed or (succeeded and action in _PROGRESSING):
        state = "completed"
    elif action == "refresh" and previous.state == "completed":
        state = "completed"
    else:
        state = "idle"

    if state != "conflict":
        conflicts = []

    current_ref = outcome.current_ref
    if current_ref is None and state in ("active", "conflict"):
        current_ref = markers.head

    new_commit = outcome.new_commit
    if new_commit is None and state == "completed" and kind in ("merge", "cherry-pick"):
        new_commit = markers.head if action != "refresh" else previous.new_commit

    step_state: SessionState = "aborted" if action == "abort" and state == "idle" else state
    history = (*previous.history, SessionStep(action=action, state=step_state, message=outcome.message))

    return Session(
        kind=kind,
        state=state,
        current_ref=current_ref,
        conflict_set=conflicts,
        history=history,
        message=outcome.message,
        remaining_steps=0 if kind == "bisect" and state == "completed" else outcome.remaining_steps,
        culprit=outcome.culprit,
        candidates=outcome.candidates,
        merged=state == "completed" if kind == "merge" else None,
        fast_forward=outcome.fast_forward if kind == "merge" and state == "completed" else None,
        new_commit=new_commit,
        applied=outcome.applied if state == "completed" else (),
        rebased_commits=outcome.rebased_commits,
        step=markers.rebase_step if kind == "rebase" and in_progress else None,
        total_steps=markers.rebase_total if kind == "rebase" and in_progress else None,
    )


def _paused_on_conflict(action: StepAction, outcome: StepOutcome, derived: Session) -> bool:
    """Whether a failed step stopped on conflicts rather than erroring out.

    Unmerged paths left by an earlier step do not count: the step itself
    must report conflicts, or be the ``resolve`` that still finds some.
    """
    if derived.state != "conflict":
        return False
    return bool(outcome.conflicts) or action == "resolve"


def _transitioned(previous: Session, current: Session) -> bool:
    return (previous.state, previous.current_ref, tuple(previous.conflict_set)) != (
        current.state,
        current.current_ref,
        tuple(current.conflict_set),
    )


@dataclass(kw_only=True)
class SessionTracker:
    """Drives one git session kind in one repository.

    Steps are strictly sequential: a step issued while another is pending
    raises ``SessionBusyError`` instead of queueing behind it. A tracker
    starts idle; :meth:`attach` derives the real state from the repository.
    """

    flow: SessionFlow
    cwd: Path
    executor: ProcessExecutor = field(default_factory=SubprocessExecutor)
    probe: SessionProbe = field(default_factory=GitMarkerProbe)
    session: Session = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.session = Session(kind=self.flow.kind)

    @classmethod
    async def attach(
        cls,
        kind: SessionKind,
        cwd: Path,
        *,
        executor: ProcessExecutor | None = None,
    ) -> Self:
        """Create a tracker and derive the current session from the repository."""
        executor = executor or SubprocessExecutor()
        tracker = cls(
            flow=flow_for(kind),
            cwd=cwd,
            executor=executor,
            probe=GitMarkerProbe(executor=executor),
        )
        await tracker.refresh()
        return tracker

    async def start(self, *args: str) -> Session:
        return await self.step("start", args)

    async def advance(self, *args: str) -> Session:
        return await self.step("advance", args)

    async def resolve(self) -> Session:
        return await self.step("resolve")

    async def skip(self) -> Session:
        return await self.step("skip")

    async def quit(self) -> Session:
        return await self.step("quit")

    async def abort(self) -> Session:
        return await self.step("abort")

    async def reset(self) -> Session:
        """Alias of :meth:`abort`; succeeds from ``idle``."""
        return await self.abort()

    async def refresh(self) -> Session:
        return await self.step("refresh")

    async def step(self, action: StepAction, args: Sequence[str] = ()) -> Session:
        """Run one step and return the derived session.

        Raises:
            SessionBusyError: If a previous step is still pending
            UnsupportedStepError: If the session kind has no such step
            FlagInjectionError: If an argument looks like an option
            SessionStepError: If git failed for a reason other than conflicts

        """
        if self._lock.locked():
            raise SessionBusyError(
                f"A {self.flow.kind} step is still pending; wait for it before issuing {action}"
            )
        async with self._lock:
            return await self._step(action, args)

    async def _step(self, action: StepAction, args: Sequence[str]) -> Session:
        argv = self.flow.argv(action, args)
        previous = self.session

        if action in ("abort", "quit"):
            markers = await self.probe.probe(self.cwd)
            if not markers.in_progress(self.flow.kind):
                log.info("No %s in progress; %s leaves the session idle", self.flow.kind, action)
                self.session = derive_session(previous, action, StepOutcome(), markers)
                return self.session

        if argv is None:
            output = ToolOutput()
            outcome = StepOutcome()
        else:
            output = await self.executor.execute(
                "git", argv, cwd=self.cwd, env=self.flow.env or None
            )
            outcome = self.flow.parse(action, output, args)

        markers = await self.probe.probe(self.cwd)
        succeeded = output.exit_code == 0 and not output.timed_out
        derived = derive_session(previous, action, outcome, markers, succeeded=succeeded)
        log.info(
            "%s %s: %s -> %s (exit=%s)",
            self.flow.kind,
            action,
            previous.state,
            derived.state,
            output.exit_code,
        )

        if succeeded or outcome.completed or _paused_on_conflict(action, outcome, derived):
            self.session = derived
            return derived

        if action == "refresh":
            log.warning("Could not read %s state: %s", self.flow.kind, output.stderr.strip())
            self.session = derived
            return derived

        if _transitioned(previous, derived):
            self.session = derived
        raise SessionStepError(
            f"git {' '.join(argv or ())} failed: {output.stderr.strip() or 'no output'}",
            session=self.session,
            stderr=output.stderr,
            exit_code=output.exit_code,
        )
