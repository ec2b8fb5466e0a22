"""CLI entry point for canonicalizing developer-tool output."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, get_args

from pydantic import ValidationError

from cli_canon.adapters.loading import available_adapters, load_tool_profile
from cli_canon.config import CanonConfig, Representation
from cli_canon.errors import (
    CanonError,
    InvocationFailure,
    SessionStepError,
    format_failure,
)
from cli_canon.executor import SubprocessExecutor, ToolOutput
from cli_canon.models.session import SessionKind, StepAction
from cli_canon.pipeline import canonicalize, compaction_rules, respond, run_tool
from cli_canon.present import render_session
from cli_canon.sessions.tracker import SessionTracker

EXIT_OK = 0
EXIT_UNSUCCESSFUL = 1
EXIT_FAILURE = 2

log = logging.getLogger("cli_canon")


def emit(structured: Mapping[str, Any], text: str) -> None:
    """Print the structured payload and its text rendering as one JSON document."""
    print(json.dumps({"structured": structured, "text": text}, indent=2))


def emit_failure(error: InvocationFailure) -> None:
    emit(
        {
            "error": {
                "category": error.category,
                "message": str(error),
                "command": list(error.command),
                "exit_code": error.exit_code,
                "stderr": error.stderr,
                "suggestion": error.suggestion,
            }
        },
        format_failure(error),
    )


def parse_output(
    tool: str,
    stdout: str,
    stderr: str = "",
    exit_code: int | None = 0,
    config: CanonConfig = CanonConfig(),
) -> int:
    """Canonicalize output that was captured elsewhere and print it."""
    profile = load_tool_profile(tool)
    result = canonicalize(profile, ToolOutput(stdout=stdout, stderr=stderr, exit_code=exit_code))
    response = respond(
        result,
        representation=config.representation,
        raw_stdout=stdout,
        rules=compaction_rules(profile, config),
    )
    emit(response.structured, response.text)
    return EXIT_OK if result.success else EXIT_UNSUCCESSFUL


async def run(
    tool: str,
    command: Sequence[str],
    config: CanonConfig = CanonConfig(),
    cwd: Path | None = None,
) -> int:
    """Run ``command``, canonicalize its output and print it."""
    profile = load_tool_profile(tool)
    executor = SubprocessExecutor(
        timeout=config.timeout_seconds,
        max_output_bytes=config.max_output_bytes,
    )

    try:
        result, output = await run_tool(profile, executor, command, cwd=cwd, config=config)
    except InvocationFailure as exc:
        log.error("Could not run %s: %s", tool, exc)
        emit_failure(exc)
        return EXIT_FAILURE

    response = respond(
        result,
        representation=config.representation,
        raw_stdout=output.stdout,
        rules=compaction_rules(profile, config),
    )
    emit(response.structured, response.text)
    return EXIT_OK if result.success else EXIT_UNSUCCESSFUL


async def run_session(
    kind: SessionKind,
    action: StepAction,
    args: Sequence[str] = (),
    cwd: Path | None = None,
) -> int:
    """Attach to the repository's session, take one step and print the result."""
    tracker = await SessionTracker.attach(kind, cwd or Path.cwd())

    try:
        session = await tracker.step(action, args) if action != "refresh" else tracker.session
    except SessionStepError as exc:
        log.error("%s %s failed: %s", kind, action, exc)
        emit(
            {
                "session": exc.session.model_dump(mode="json", exclude_none=True),
                "error": {"message": str(exc), "stderr": exc.stderr, "exit_code": exc.exit_code},
            },
            f"{render_session(exc.session)}\nError: {exc}",
        )
        return EXIT_UNSUCCESSFUL

    emit(session.model_dump(mode="json", exclude_none=True), render_session(session))
    return EXIT_OK


def parse_config(config_json: str) -> CanonConfig:
    """Parse the ``--config`` JSON into a :class:`CanonConfig`."""
    return CanonConfig(**json.loads(config_json))


def read_text(path: Path | None, default: str = "") -> str:
    """Read a captured stream; ``-`` reads stdin."""
    if path is None:
        return default
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(errors="replace")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default="{}",
        help="JSON configuration (representation, head_size, tail_size, timeout_seconds, ...)",
    )
    representation = common.add_mutually_exclusive_group()
    representation.add_argument(
        "--compact",
        dest="representation",
        action="store_const",
        const="compact",
        help="Always return the compact representation",
    )
    representation.add_argument(
        "--full",
        dest="representation",
        action="store_const",
        const="canonical",
        help="Always return the full canonical representation",
    )

    parser = argparse.ArgumentParser(
        description="Turn developer-tool output into structured, size-bounded results"
    )
    subcommands = parser.add_subparsers(dest="subcommand", required=True)

    parse = subcommands.add_parser(
        "parse", parents=[common], help="Canonicalize output captured elsewhere"
    )
    parse.add_argument("--tool", required=True, help="Adapter key (e.g. go-test, eslint)")
    parse.add_argument(
        "--stdout",
        type=Path,
        default=Path("-"),
        help="File holding the tool's stdout (default: stdin)",
    )
    parse.add_argument("--stderr", type=Path, help="File holding the tool's stderr")
    parse.add_argument("--exit-code", type=int, default=0, help="The tool's exit code")

    run_cmd = subcommands.add_parser(
        "run", parents=[common], help="Run a tool and canonicalize its output"
    )
    run_cmd.add_argument("--tool", required=True, help="Adapter key (e.g. go-test, eslint)")
    run_cmd.add_argument("--cwd", type=Path, help="Working directory for the command")
    run_cmd.add_argument("command", nargs=argparse.REMAINDER, help="Command after --")

    session = subcommands.add_parser("session", help="Take one step of a git session")
    session.add_argument("kind", choices=get_args(SessionKind.__value__))
    session.add_argument(
        "action",
        choices=(*get_args(StepAction.__value__), "reset"),
        help="Step to take; reset is an alias of abort",
    )
    session.add_argument("args", nargs="*", help="Refs, commits or a bisect verdict")
    session.add_argument("--cwd", type=Path, help="Repository directory (default: current)")

    subcommands.add_parser("adapters", help="List registered adapter keys")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = CanonConfig()
    if args.subcommand in ("parse", "run"):
        try:
            config = parse_config(args.config)
        except (json.JSONDecodeError, TypeError, ValidationError) as exc:
            parser.error(f"Invalid --config: {exc}")
        if args.representation is not None:
            representation: Representation = args.representation
            config = config.model_copy(update={"representation": representation})

    try:
        match args.subcommand:
            case "parse":
                exit_code = parse_output(
                    tool=args.tool,
                    stdout=read_text(args.stdout),
                    stderr=read_text(args.stderr),
                    exit_code=args.exit_code,
                    config=config,
                )
            case "run":
                command = args.command[1:] if args.command[:1] == ["--"] else args.command
                if not command:
                    parser.error("run needs a command after --")
                exit_code = asyncio.run(
                    run(tool=args.tool, command=command, config=config, cwd=args.cwd)
                )
            case "session":
                action: StepAction = "abort" if args.action == "reset" else args.action
                exit_code = asyncio.run(
                    run_session(kind=args.kind, action=action, args=args.args, cwd=args.cwd)
                )
            case _:
                print("\n".join(available_adapters()))
                exit_code = EXIT_OK
    except InvocationFailure as exc:
        log.error("%s", exc)
        emit_failure(exc)
        exit_code = EXIT_FAILURE
    except CanonError as exc:
        log.error("%s", exc)
        exit_code = EXIT_FAILURE

    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
