"""Running external tools and capturing their output."""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cli_canon.errors import InvocationFailure

log = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, kw_only=True)
class ToolOutput:
    """Captured output of one invocation.

    ``truncated`` and ``timed_out`` are reported by the executor; the buffers
    are whatever was read before either happened.
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = 0
    command: Sequence[str] = ()
    duration: float | None = None
    truncated: bool = False
    timed_out: bool = False


class ProcessExecutor(Protocol):
    """Anything able to run a command and capture its output."""

    async def execute(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ToolOutput: ...


@dataclass(frozen=True, kw_only=True)
class SubprocessExecutor:
    """Executor backed by asyncio subprocesses.

    Output beyond ``max_output_bytes`` per stream is drained and discarded so
    the child never blocks on a full pipe. On timeout the child is killed and
    the partial output is returned with ``timed_out`` set.
    """

    timeout: float = 300
    max_output_bytes: int = 10 * 1024 * 1024

    async def execute(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ToolOutput:
        """Run ``command`` with ``args`` and capture both streams.

        Raises:
            InvocationFailure: If the executable cannot be started

        """
        argv = (command, *args)
        loop = asyncio.get_running_loop()
        started = loop.time()

        log.debug("Executing: %s (cwd=%s)", " ".join(argv), cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                env={**os.environ, **env} if env else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise InvocationFailure(
                f"Command not found: {command}",
                command=argv,
                stderr=str(exc),
                category="command-not-found",
            ) from exc
        except PermissionError as exc:
            raise InvocationFailure(
                f"Permission denied: {command}",
                command=argv,
                stderr=str(exc),
                category="permission-denied",
            ) from exc

        stdout_task = asyncio.create_task(_read_capped(process.stdout, self.max_output_bytes))
        stderr_task = asyncio.create_task(_read_capped(process.stderr, self.max_output_bytes))

        timed_out = False
        try:
            await asyncio.wait_for(process.wait(), timeout or self.timeout)
        except TimeoutError:
            timed_out = True
            log.warning("Command timed out after %ss: %s", timeout or self.timeout, command)
            process.kill()
            await process.wait()

        stdout, stdout_truncated = await stdout_task
        stderr, stderr_truncated = await stderr_task

        return ToolOutput(
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
            exit_code=process.returncode,
            command=argv,
            duration=round(loop.time() - started, 3),
            truncated=stdout_truncated or stderr_truncated,
            timed_out=timed_out,
        )


async def _read_capped(stream: asyncio.StreamReader | None, limit: int) -> tuple[bytes, bool]:
    """Read a stream to EOF, keeping at most ``limit`` bytes."""
    if stream is None:
        return b"", False
    kept = bytearray()
    truncated = False
    while chunk := await stream.read(_CHUNK_SIZE):
        room = limit - len(kept)
        if len(chunk) > room:
            truncated = True
        kept.extend(chunk[: max(room, 0)])
    return bytes(kept), truncated
