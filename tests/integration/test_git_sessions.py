"""Integration tests driving real git sessions through the tracker."""

from collections.abc import Callable
from pathlib import Path

import pytest

from cli_canon.errors import InvocationFailure, SessionStepError
from cli_canon.sessions.probe import GitMarkerProbe
from cli_canon.sessions.tracker import SessionTracker

GitFn = Callable[..., str]
CommitFn = Callable[..., str]


class TestMerge:
    """Tests for merge sessions."""

    async def test_conflict_then_resolve(self, git_repo: Path, git: GitFn, diverged: str) -> None:
        """A conflicting merge pauses, then completes once resolved."""
        tracker = await SessionTracker.attach("merge", git_repo)

        session = await tracker.start("feature")

        assert session.state == "conflict"
        assert list(session.conflict_set) == ["a.txt"]
        assert session.merged is False

        (git_repo / "a.txt").write_text("resolved\n")
        git("add", "a.txt")
        session = await tracker.resolve()

        assert session.state == "completed"
        assert session.merged is True
        assert list(session.conflict_set) == []
        assert session.new_commit == git("rev-parse", "--short", "HEAD").strip()

    async def test_abort(self, git_repo: Path, diverged: str) -> None:
        """Aborting restores the pre-merge tree and records the abort."""
        tracker = await SessionTracker.attach("merge", git_repo)
        await tracker.start("feature")

        session = await tracker.abort()

        assert session.state == "idle"
        assert session.history[-1].action == "abort"
        assert session.history[-1].state == "aborted"
        assert (git_repo / "a.txt").read_text() == "main\n"

    async def test_attach_mid_session(self, git_repo: Path, git: GitFn, diverged: str) -> None:
        """A fresh tracker derives the paused state from the repository."""
        first = await SessionTracker.attach("merge", git_repo)
        await first.start("feature")

        second = await SessionTracker.attach("merge", git_repo)

        assert second.session.state == "conflict"
        assert list(second.session.conflict_set) == ["a.txt"]

    async def test_fast_forward(self, git_repo: Path, git: GitFn, git_commit: CommitFn) -> None:
        """A fast-forward completes without a merge commit."""
        git_commit("Base", {"a.txt": "base\n"})
        git("checkout", "-q", "-b", "feature")
        head = git_commit("Ahead", {"b.txt": "new\n"})
        git("checkout", "-q", "main")
        tracker = await SessionTracker.attach("merge", git_repo)

        session = await tracker.start("feature")

        assert session.state == "completed"
        assert session.fast_forward is True
        assert session.new_commit is not None
        assert head.startswith(session.new_commit)

    async def test_unknown_ref_fails_without_state_change(self, git_repo: Path, diverged: str) -> None:
        """A hard failure raises and leaves the session idle."""
        tracker = await SessionTracker.attach("merge", git_repo)

        with pytest.raises(SessionStepError) as exc_info:
            await tracker.start("no-such-branch")

        assert exc_info.value.session.state == "idle"
        assert tracker.session.state == "idle"
        assert exc_info.value.exit_code != 0

    async def test_second_start_during_conflict_fails(self, git_repo: Path, diverged: str) -> None:
        """Starting again while conflicts are open raises and keeps the paused session."""
        tracker = await SessionTracker.attach("merge", git_repo)
        paused = await tracker.start("feature")

        with pytest.raises(SessionStepError) as exc_info:
            await tracker.start("feature")

        assert tracker.session is paused
        assert exc_info.value.session.state == "conflict"
        assert len(tracker.session.history) == len(paused.history)


class TestBisect:
    """Tests for bisect sessions."""

    async def test_finds_culprit(self, git_repo: Path, git_commit: CommitFn) -> None:
        """Answering from the working tree converges on the breaking commit."""
        good = git_commit("v1", {"status.txt": "ok\n"})
        git_commit("v2", {"notes.txt": "2\n"})
        git_commit("v3", {"notes.txt": "3\n"})
        culprit = git_commit("Break status", {"status.txt": "broken\n"})
        git_commit("v5", {"notes.txt": "5\n"})
        tracker = await SessionTracker.attach("bisect", git_repo)

        session = await tracker.start("HEAD", good)
        assert session.state == "active"
        assert session.current_ref is not None

        for _ in range(10):
            if session.state != "active":
                break
            verdict = "good" if (git_repo / "status.txt").read_text() == "ok\n" else "bad"
            session = await tracker.advance(verdict)

        assert session.state == "completed"
        assert session.culprit is not None
        assert session.culprit.hash == culprit
        assert session.culprit.message == "Break status"
        assert session.remaining_steps == 0

        session = await tracker.reset()

        assert session.state == "idle"

    async def test_reset_from_idle(self, git_repo: Path, git_commit: CommitFn) -> None:
        """Resetting with no bisect in progress succeeds."""
        git_commit("Base", {"a.txt": "base\n"})
        tracker = await SessionTracker.attach("bisect", git_repo)

        session = await tracker.reset()

        assert session.state == "idle"


class TestCherryPick:
    """Tests for cherry-pick sessions."""

    async def test_clean_pick(self, git_repo: Path, git: GitFn, git_commit: CommitFn) -> None:
        """A clean pick completes with the new commit and the requested commit."""
        git_commit("Base", {"a.txt": "base\n"})
        git("checkout", "-q", "-b", "feature")
        picked = git_commit("Add b", {"b.txt": "b\n"})
        git("checkout", "-q", "main")
        tracker = await SessionTracker.attach("cherry-pick", git_repo)

        session = await tracker.start(picked)

        assert session.state == "completed"
        assert list(session.applied) == [picked]
        assert session.new_commit == git("rev-parse", "--short", "HEAD").strip()
        assert (git_repo / "b.txt").read_text() == "b\n"

    async def test_conflict_then_abort(self, git_repo: Path, diverged: str) -> None:
        """A conflicting pick pauses on the commit it could not apply."""
        tracker = await SessionTracker.attach("cherry-pick", git_repo)

        session = await tracker.start(diverged)

        assert session.state == "conflict"
        assert list(session.conflict_set) == ["a.txt"]
        assert session.current_ref is not None
        assert diverged.startswith(session.current_ref)

        session = await tracker.abort()

        assert session.state == "idle"


class TestRebase:
    """Tests for rebase sessions."""

    async def test_conflict_reports_progress(self, git_repo: Path, git: GitFn, diverged: str) -> None:
        """A stopped rebase reports its conflicts and step counters."""
        git("checkout", "-q", "feature")
        tracker = await SessionTracker.attach("rebase", git_repo)

        session = await tracker.start("main")

        assert session.state == "conflict"
        assert list(session.conflict_set) == ["a.txt"]
        assert (session.step, session.total_steps) == (1, 1)

        session = await tracker.abort()

        assert session.state == "idle"
        assert (git_repo / "a.txt").read_text() == "feature\n"

    async def test_clean_rebase(self, git_repo: Path, git: GitFn, git_commit: CommitFn) -> None:
        """A rebase without conflicts completes."""
        git_commit("Base", {"a.txt": "base\n"})
        git("checkout", "-q", "-b", "feature")
        git_commit("Feature", {"b.txt": "b\n"})
        git("checkout", "-q", "main")
        git_commit("Main", {"c.txt": "c\n"})
        git("checkout", "-q", "feature")
        tracker = await SessionTracker.attach("rebase", git_repo)

        session = await tracker.start("main")

        assert session.state == "completed"
        assert (git_repo / "c.txt").exists()


async def test_probe_outside_repository(tmp_path: Path) -> None:
    """Probing a directory that is not a repository fails as not-found."""
    with pytest.raises(InvocationFailure) as exc_info:
        await GitMarkerProbe().probe(tmp_path)

    assert exc_info.value.category == "not-found"
