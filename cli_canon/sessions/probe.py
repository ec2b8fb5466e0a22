"""Reading git's on-disk session markers."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from cli_canon.errors import InvocationFailure
from cli_canon.executor import ProcessExecutor, SubprocessExecutor
from cli_canon.models.session import WorkingTreeMarkers

log = logging.getLogger(__name__)


class SessionProbe(Protocol):
    """Anything able to report what the repository says is in progress."""

    async def probe(self, cwd: Path) -> WorkingTreeMarkers: ...


@dataclass(frozen=True, kw_only=True)
class GitMarkerProbe:
    """Probe backed by the files git leaves in its directory.

    Every call reads the repository again; nothing is cached between steps.
    """

    executor: ProcessExecutor = field(default_factory=SubprocessExecutor)

    async def probe(self, cwd: Path) -> WorkingTreeMarkers:
        """Inspect the repository at ``cwd``.

        Raises:
            InvocationFailure: If ``cwd`` is not inside a git repository

        """
        git_dir = await self._git_dir(cwd)

        rebase_merge = git_dir / "rebase-merge"
        rebase_apply = git_dir / "rebase-apply"
        # rebase-apply/applying belongs to `git am`, not rebase
        applying_mailbox = (rebase_apply / "applying").exists()
        rebasing = rebase_merge.is_dir() or (rebase_apply.is_dir() and not applying_mailbox)
        if rebase_merge.is_dir():
            step, total = _read_int(rebase_merge / "msgnum"), _read_int(rebase_merge / "end")
        elif rebasing:
            step, total = _read_int(rebase_apply / "next"), _read_int(rebase_apply / "last")
        else:
            step = total = None

        markers = WorkingTreeMarkers(
            bisecting=(git_dir / "BISECT_LOG").exists(),
            merging=(git_dir / "MERGE_HEAD").exists(),
            rebasing=rebasing,
            cherry_picking=(git_dir / "CHERRY_PICK_HEAD").exists(),
            unmerged_paths=await self._unmerged_paths(cwd),
            head=await self._head(cwd),
            rebase_step=step,
            rebase_total=total,
        )
        log.debug("Probed %s: %s", cwd, markers)
        return markers

    async def _git_dir(self, cwd: Path) -> Path:
        output = await self.executor.execute("git", ["rev-parse", "--git-dir"], cwd=cwd)
        if output.exit_code != 0:
            raise InvocationFailure(
                f"Not a git repository: {cwd}",
                command=output.command,
                stderr=output.stderr,
                exit_code=output.exit_code,
                category="not-found",
            )
        git_dir = Path(output.stdout.strip())
        return git_dir if git_dir.is_absolute() else cwd / git_dir

    async def _unmerged_paths(self, cwd: Path) -> list[str]:
        output = await self.executor.execute(
            "git", ["diff", "--name-only", "--diff-filter=U"], cwd=cwd
        )
        if output.exit_code != 0:
            log.warning("Could not list unmerged paths: %s", output.stderr.strip())
            return []
        return list(dict.fromkeys(line for line in output.stdout.splitlines() if line))

    async def _head(self, cwd: Path) -> str | None:
        output = await self.executor.execute("git", ["rev-parse", "--short", "HEAD"], cwd=cwd)
        if output.exit_code != 0:
            # Unborn branch
            return None
        return output.stdout.strip() or None


def _read_int(path: Path) -> int | None:
    try:
        return int(path.read_text().strip())
    except (OSError, ValueError):
        return None
