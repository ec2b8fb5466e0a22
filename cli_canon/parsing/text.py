"""Line-oriented extraction of located diagnostics from plain-text output."""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import cast

from cli_canon.models.diagnostic import (
    SEVERITIES,
    Diagnostic,
    Extraction,
    Location,
    Severity,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TextPattern:
    """How one tool prints a located diagnostic.

    Single-line tools (go, mypy, tsc) put everything on one line matched by
    ``line``. Block tools (rustc) print a header matched by ``line`` and a
    location within ``lookahead`` lines matched by ``location``; a
    ``suggestion`` line may follow anywhere before the next header.

    Recognized named groups: ``file``, ``line``, ``column``, ``severity``,
    ``code``, ``message`` and ``suggestion``.
    """

    line: re.Pattern[str]
    location: re.Pattern[str] | None = None
    suggestion: re.Pattern[str] | None = None
    lookahead: int = 3
    default_severity: Severity = "error"
    severities: Mapping[str, Severity] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class RawErrorRules:
    """Secondary heuristics for lines the location pattern does not match.

    Lines matching ``ignore`` are progress chatter and are always dropped.
    After a ``package_marker`` line every unindented line is a raw error;
    elsewhere only lines matching one of ``markers`` are.
    """

    package_marker: re.Pattern[str] | None = None
    markers: Sequence[re.Pattern[str]] = ()
    ignore: Sequence[re.Pattern[str]] = ()


def extract_text(
    text: str,
    pattern: TextPattern,
    rules: RawErrorRules | None = None,
) -> Extraction:
    """Extract diagnostics and raw errors from tool output.

    Args:
        text: Combined stdout and stderr
        pattern: Location pattern for this tool
        rules: Raw-error heuristics; without them unmatched lines are dropped

    Returns:
        Diagnostics in output order plus unlocated error lines

    """
    lines = text.splitlines()
    diagnostics: list[Diagnostic] = []
    raw_errors: list[str] = []
    in_package = False

    index = 0
    while index < len(lines):
        line = lines[index].rstrip()
        index += 1

        if not line.strip():
            continue
        if rules is not None and _matches_any(rules.ignore, line):
            continue

        if (header := pattern.line.match(line)) is not None:
            if pattern.location is None:
                if (diagnostic := _build(header, header, pattern)) is not None:
                    diagnostics.append(diagnostic)
                continue

            if (located := _find_location(lines, index, pattern, pattern.location)) is not None:
                location, location_index = located
                suggestion = _find_suggestion(lines, location_index + 1, pattern)
                if (diagnostic := _build(header, location, pattern, suggestion)) is not None:
                    diagnostics.append(diagnostic)
                index = location_index + 1
            elif _severity(header, pattern) == "error":
                raw_errors.append(line)
            continue

        if rules is None:
            continue
        if rules.package_marker is not None and rules.package_marker.match(line):
            in_package = True
            continue
        if line[0].isspace():
            continue
        if in_package or _matches_any(rules.markers, line):
            raw_errors.append(line)
        else:
            log.debug("Unclassified line: %.120s", line)

    return Extraction(diagnostics=diagnostics, raw_errors=raw_errors)


def scan_raw_errors(text: str, rules: RawErrorRules) -> list[str]:
    """Collect lines matching ``rules.markers``, for output with no location pattern.

    Package markers are not tracked here; only explicit markers count.
    """
    return [
        line.rstrip()
        for line in text.splitlines()
        if line.strip()
        and not _matches_any(rules.ignore, line)
        and _matches_any(rules.markers, line)
    ]


def position(value: object) -> int | None:
    """Coerce a reported line or column; zero and garbage mean 'unknown'."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, str) and value.isdigit():
        number = int(value)
        return number if number >= 1 else None
    return None


def normalize_severity(raw: object, severities: Mapping[str, Severity], default: Severity) -> Severity:
    """Map a tool's severity spelling onto the canonical set."""
    if raw is None or raw == "":
        return default
    key = str(raw).lower()
    if key in severities:
        return severities[key]
    if key in SEVERITIES:
        return cast(Severity, key)
    return default


def _matches_any(patterns: Sequence[re.Pattern[str]], line: str) -> bool:
    return any(pattern.search(line) for pattern in patterns)


def _group(match: re.Match[str], name: str) -> str | None:
    return match.groupdict().get(name) or None


def _severity(header: re.Match[str], pattern: TextPattern) -> Severity:
    return normalize_severity(
        _group(header, "severity"), pattern.severities, pattern.default_severity
    )


def _build(
    header: re.Match[str],
    location: re.Match[str],
    pattern: TextPattern,
    suggestion: str | None = None,
) -> Diagnostic | None:
    file = _group(location, "file")
    message = _group(header, "message")
    if file is None or message is None:
        return None

    return Diagnostic(
        location=Location(
            file=file,
            line=position(_group(location, "line")),
            column=position(_group(location, "column")),
        ),
        severity=_severity(header, pattern),
        code=_group(header, "code"),
        message=message.strip(),
        suggestion=suggestion or _group(header, "suggestion"),
    )


def _find_location(
    lines: Sequence[str], start: int, pattern: TextPattern, location: re.Pattern[str]
) -> tuple[re.Match[str], int] | None:
    for index in range(start, min(len(lines), start + pattern.lookahead)):
        if pattern.line.match(lines[index]):
            return None
        if (match := location.match(lines[index])) is not None:
            return match, index
    return None


def _find_suggestion(lines: Sequence[str], start: int, pattern: TextPattern) -> str | None:
    if pattern.suggestion is None:
        return None
    for index in range(start, len(lines)):
        if pattern.line.match(lines[index]):
            return None
        if (match := pattern.suggestion.match(lines[index])) is not None:
            return _group(match, "suggestion")
    return None
