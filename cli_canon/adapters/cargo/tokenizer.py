"""Tokenization of libtest's text report (`cargo test`) into test events."""

import re
from collections.abc import Iterator, Mapping, Sequence

from cli_canon.models.test_run import TestEvent

_TEST_RE = re.compile(r"^test (?P<name>.+?) \.\.\. (?P<status>ok|FAILED|ignored|bench)\b")
_SECTION_RE = re.compile(r"^---- (?P<name>.+?) std(?:out|err) ----$")
_BLOCK_RE = re.compile(r"^running \d+ tests?$")
_TARGET_RE = re.compile(r"^\s*(?:Running (?:unittests )?|Doc-tests )(?P<target>\S+)")
_COULD_NOT_COMPILE_RE = re.compile(r"^error: could not compile `(?P<crate>[^`]+)`")
_PROGRESS_RE = re.compile(
    r"^\s*(?:Compiling|Checking|Finished|Running|Doc-tests|Downloaded|Downloading|"
    r"Updating|Locking|Blocking|Fresh|Adding)\b"
)

_STATUSES = {"ok": "pass", "FAILED": "fail", "ignored": "skip", "bench": "pass"}


def cargo_test_events(stdout: str, stderr: str) -> Iterator[TestEvent]:
    """Yield events from a `cargo test` run.

    Each ``running N tests`` block on stdout belongs to the test target
    announced by the matching ``Running``/``Doc-tests`` line, which cargo
    prints to stderr (or inline when both streams are merged). Captured
    ``---- name stdout ----`` sections are replayed inside the test's
    running window. A crate that fails to compile fails its own scope.
    """
    targets = _targets(stderr) or _targets(stdout)

    for index, block in enumerate(_blocks(stdout)):
        scope = targets[index] if index < len(targets) else "tests"
        sections = _sections(block)
        for line in block:
            if (match := _TEST_RE.match(line)) is None:
                continue
            name = match.group("name")
            yield TestEvent(action="start", scope=scope, name=name)
            for text in sections.get(name, ()):
                yield TestEvent(action="output", scope=scope, name=name, output=text)
            yield TestEvent(action=_STATUSES[match.group("status")], scope=scope, name=name)

    yield from _compile_failures(stderr or stdout)


def _targets(text: str) -> list[str]:
    return [match.group("target") for line in text.splitlines() if (match := _TARGET_RE.match(line))]


def _blocks(stdout: str) -> list[list[str]]:
    blocks: list[list[str]] = []
    for line in stdout.splitlines():
        if _BLOCK_RE.match(line.strip()):
            blocks.append([])
        elif blocks:
            blocks[-1].append(line)
    return blocks


def _sections(block: Sequence[str]) -> Mapping[str, list[str]]:
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in block:
        if (match := _SECTION_RE.match(line)) is not None:
            current = sections.setdefault(match.group("name"), [])
        elif line.startswith(("failures:", "test result:")):
            current = None
        elif current is not None:
            current.append(line)
    return {name: _trim_blank(lines) for name, lines in sections.items()}


def _compile_failures(text: str) -> Iterator[TestEvent]:
    pending: list[str] = []
    for line in text.splitlines():
        if (match := _COULD_NOT_COMPILE_RE.match(line)) is not None:
            crate = match.group("crate")
            for output in [*pending, line]:
                yield TestEvent(action="output", scope=crate, output=output)
            yield TestEvent(action="fail", scope=crate)
            pending = []
        elif line.strip() and not _PROGRESS_RE.match(line):
            pending.append(line)


def _trim_blank(lines: list[str]) -> list[str]:
    while lines and not lines[0].strip():
        lines = lines[1:]
    while lines and not lines[-1].strip():
        lines = lines[:-1]
    return lines
