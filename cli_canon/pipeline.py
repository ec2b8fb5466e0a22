"""The generic pipeline: tokenize, classify, aggregate, compact, present."""

import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import ValidationError

from cli_canon.adapters.profile import ToolProfile
from cli_canon.compact import CompactionRules, compact
from cli_canon.config import CanonConfig, Representation
from cli_canon.errors import ValidationFailure
from cli_canon.executor import ProcessExecutor, ToolOutput
from cli_canon.models.result import CanonicalResult, CompactResult, InvocationContext
from cli_canon.present import render

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class Response:
    """Structured data plus an independently rendered text summary."""

    structured: Mapping[str, Any]
    text: str
    representation: Literal["canonical", "compact"]


def canonicalize(profile: ToolProfile, output: ToolOutput) -> CanonicalResult:
    """Turn one invocation's output into a validated canonical result.

    Partial output (timeout, truncation) is parsed like any other; the
    executor's flags are carried into the context.

    Raises:
        ValidationFailure: If the extracted children violate the model

    """
    children = profile.extract(output.stdout, output.stderr)

    try:
        result = CanonicalResult(
            tool=profile.tool,
            kind=profile.kind,
            diagnostics=children.diagnostics,
            raw_errors=children.raw_errors,
            tests=children.tests,
            package_failures=children.package_failures,
            blame=children.blame,
            resources=children.resources,
            lines=children.lines,
            detail=children.detail,
            context=InvocationContext(
                command=output.command,
                exit_code=output.exit_code,
                duration=output.duration,
                truncated=output.truncated,
                timed_out=output.timed_out,
            ),
        )
    except ValidationError as exc:
        raise ValidationFailure(f"Invalid {profile.key} result: {exc}") from exc

    log.info(
        "Canonicalized %s: kind=%s total=%d success=%s",
        profile.key,
        result.kind,
        result.counts.total,
        result.success,
    )
    return result


def estimate_tokens(text: str) -> int:
    """Rough token estimate: four characters per token."""
    return math.ceil(len(text) / 4)


def respond(
    result: CanonicalResult,
    *,
    representation: Representation = "auto",
    raw_stdout: str = "",
    rules: CompactionRules = CompactionRules(),
) -> Response:
    """Build the host-facing response.

    ``auto`` picks the compact form when the canonical payload would cost at
    least as many tokens as the raw output it replaces.
    """
    canonical = result.model_dump(mode="json", exclude_none=True)

    chosen: CanonicalResult | CompactResult = result
    if representation == "compact" or (
        representation == "auto"
        and estimate_tokens(json.dumps(canonical)) >= estimate_tokens(raw_stdout)
    ):
        chosen = compact(result, rules)

    if isinstance(chosen, CompactResult):
        log.debug("Responding with compact %s result", chosen.tool)
        return Response(
            structured=chosen.model_dump(mode="json", exclude_none=True),
            text=render(chosen),
            representation="compact",
        )
    return Response(structured=canonical, text=render(chosen), representation="canonical")


def compaction_rules(profile: ToolProfile, config: CanonConfig) -> CompactionRules:
    """Combine the profile's kept severities with configured sample sizes."""
    return CompactionRules(
        head=config.head_size,
        tail=config.tail_size,
        severities=profile.compact_severities,
    )


async def run_tool(
    profile: ToolProfile,
    executor: ProcessExecutor,
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    config: CanonConfig = CanonConfig(),
) -> tuple[CanonicalResult, ToolOutput]:
    """Execute ``command`` and canonicalize whatever it printed.

    Raises:
        InvocationFailure: If the executor could not start the command
        ValidationFailure: If the extracted children violate the model

    """
    log.info("Running %s: %s", profile.key, " ".join(command))
    output = await executor.execute(
        command[0],
        command[1:],
        cwd=cwd,
        timeout=config.timeout_seconds,
    )
    return canonicalize(profile, output), output
