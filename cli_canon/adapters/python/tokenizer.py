"""Tokenization of pytest's text report into test events."""

import re
from collections.abc import Iterator, Mapping

from cli_canon.models.test_run import TestEvent

_STATUS_LINE_RE = re.compile(
    r"^(?P<nodeid>\S+?::.+?)\s+(?P<status>PASSED|FAILED|ERROR|SKIPPED|XFAIL|XPASS)"
    r"(?:\s+\(.*\))?(?:\s+\[\s*\d+%\])?$"
)
_SUMMARY_LINE_RE = re.compile(
    r"^(?P<status>PASSED|FAILED|ERROR|XFAIL|XPASS) (?P<nodeid>\S+?)(?: - .*)?$"
)
_MAJOR_RE = re.compile(r"^={3,} (?P<title>.+?) ={3,}$")
_SECTION_RE = re.compile(r"^_{3,} (?P<title>.+?) _{3,}$")
_PHASE_RE = re.compile(r"^ERROR at (?:setup|teardown) of ")
_COLLECTING_RE = re.compile(r"^ERROR collecting (?P<path>.+)$")

_STATUSES = {
    "PASSED": "pass",
    "XPASS": "pass",
    "FAILED": "fail",
    "ERROR": "fail",
    "SKIPPED": "skip",
    "XFAIL": "skip",
}


def pytest_events(stdout: str, stderr: str) -> Iterator[TestEvent]:
    """Yield events from a `pytest -v` (optionally `-rA`) run.

    Tests come from verbose status lines, or from the short summary when the
    run was not verbose. Tracebacks in the FAILURES/ERRORS sections become the
    failing test's output; a collection error fails the whole test file.
    """
    lines = stdout.splitlines()
    sections = _sections(lines)
    seen: set[str] = set()

    for line in lines:
        match = _STATUS_LINE_RE.match(line) or _SUMMARY_LINE_RE.match(line)
        if match is None or "::" not in match.group("nodeid"):
            continue
        nodeid = match.group("nodeid")
        if nodeid in seen:
            continue
        seen.add(nodeid)

        scope, name = nodeid.split("::", 1)
        yield TestEvent(action="start", scope=scope, name=name)
        for text in sections.get(name.replace("::", "."), ()):
            yield TestEvent(action="output", scope=scope, name=name, output=text)
        yield TestEvent(action=_STATUSES[match.group("status")], scope=scope, name=name)

    for title, body in sections.items():
        if (match := _COLLECTING_RE.match(title)) is None:
            continue
        scope = match.group("path")
        for text in body:
            yield TestEvent(action="output", scope=scope, output=text)
        yield TestEvent(action="fail", scope=scope)


def _sections(lines: list[str]) -> Mapping[str, list[str]]:
    """Split FAILURES/ERRORS into bodies keyed by section title."""
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    in_report = False

    for line in lines:
        if (major := _MAJOR_RE.match(line)) is not None:
            in_report = major.group("title") in {"FAILURES", "ERRORS"}
            current = None
            continue
        if not in_report:
            continue
        if (section := _SECTION_RE.match(line)) is not None:
            title = _PHASE_RE.sub("", section.group("title"))
            current = sections.setdefault(title, [])
            continue
        if current is not None:
            current.append(line)

    return sections
