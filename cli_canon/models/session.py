"""Models for multi-step git sessions (bisect, merge, rebase, cherry-pick)."""

from collections.abc import Sequence
from typing import Literal, Self

from pydantic import Field, model_validator

from cli_canon.models.base import Model

type SessionKind = Literal["bisect", "merge", "rebase", "cherry-pick"]
type SessionState = Literal["idle", "active", "conflict", "completed", "aborted"]
type StepAction = Literal["start", "advance", "resolve", "skip", "quit", "abort", "refresh"]


class BisectCulprit(Model):
    """The commit bisect identified as the first bad one."""

    hash: str
    message: str | None = None
    author: str | None = None
    date: str | None = None


class SessionStep(Model):
    """One step taken through the tracker and the state it produced."""

    action: StepAction
    state: SessionState
    message: str | None = None


class WorkingTreeMarkers(Model):
    """What git's own on-disk state says is in progress.

    Produced by the probe on every step; never cached.
    """

    bisecting: bool = False
    merging: bool = False
    rebasing: bool = False
    cherry_picking: bool = False
    unmerged_paths: Sequence[str] = ()
    head: str | None = Field(default=None, description="Abbreviated HEAD commit")
    rebase_step: int | None = Field(default=None, ge=0)
    rebase_total: int | None = Field(default=None, ge=0)

    def in_progress(self, kind: SessionKind) -> bool:
        match kind:
            case "bisect":
                return self.bisecting
            case "merge":
                return self.merging
            case "rebase":
                return self.rebasing
            case "cherry-pick":
                return self.cherry_picking


class Session(Model):
    """Read-derived view of an external tool session.

    The repository is the source of truth; this object only reflects what
    the last step's output and a fresh probe reported.
    """

    kind: SessionKind
    state: SessionState = "idle"
    current_ref: str | None = None
    conflict_set: Sequence[str] = ()
    history: Sequence[SessionStep] = ()
    message: str | None = None

    # bisect
    remaining_steps: int | None = Field(default=None, ge=0)
    culprit: BisectCulprit | None = None
    candidates: Sequence[str] = ()

    # merge
    merged: bool | None = None
    fast_forward: bool | None = None

    # merge, cherry-pick
    new_commit: str | None = None

    # cherry-pick
    applied: Sequence[str] = ()

    # rebase
    rebased_commits: int | None = Field(default=None, ge=0)
    step: int | None = Field(default=None, ge=0)
    total_steps: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _conflicts_match_state(self) -> Self:
        if len(set(self.conflict_set)) != len(self.conflict_set):
            raise ValueError("conflict_set must not repeat paths")
        if (self.state == "conflict") != bool(self.conflict_set):
            raise ValueError("state is 'conflict' exactly when conflict_set is non-empty")
        return self
