"""Tokenization of `go test -json` output into test events."""

import logging
import re
from collections.abc import Iterator

from pydantic import ValidationError

from cli_canon.adapters.golang.models import GoTestEvent, package_name
from cli_canon.models.test_run import TestEvent

log = logging.getLogger(__name__)

_BUILD_FAILED_RE = re.compile(r"^FAIL\s+(?P<package>\S+)\s+\[(?:build|setup) failed\]")
_PACKAGE_MARKER_RE = re.compile(r"^# (?P<package>.+)$")

_ACTIONS = {
    "run": "start",
    "output": "output",
    "build-output": "output",
    "pass": "pass",
    "fail": "fail",
    "skip": "skip",
}


def go_test_events(stdout: str, stderr: str) -> Iterator[TestEvent]:
    """Yield events from a `go test -json` run.

    Undecodable lines are skipped, except ``FAIL pkg [build failed]`` which
    marks the package as failed. Compiler output on stderr is grouped under
    its ``# pkg`` marker and attached to that package.
    """
    for line in stdout.splitlines():
        line = line.strip()
        if not line:
            continue

        if line.startswith("{"):
            try:
                event = GoTestEvent.model_validate_json(line)
            except ValidationError:
                log.debug("Skipping malformed test2json line: %.120s", line)
                continue
            if (converted := _convert(event)) is not None:
                yield converted
            continue

        if (match := _BUILD_FAILED_RE.match(line)) is not None:
            yield TestEvent(action="fail", scope=match.group("package"))

    scope: str | None = None
    for line in stderr.splitlines():
        if (match := _PACKAGE_MARKER_RE.match(line)) is not None:
            scope = package_name(match.group("package"))
            yield TestEvent(action="output", scope=scope, output=line)
        elif scope is not None and line.strip():
            yield TestEvent(action="output", scope=scope, output=line)


def _convert(event: GoTestEvent) -> TestEvent | None:
    action = _ACTIONS.get(event.action)
    if action is None or not event.scope:
        return None
    return TestEvent(
        action=action,
        scope=event.scope,
        name=event.test,
        elapsed=event.elapsed,
        output=event.output,
    )
