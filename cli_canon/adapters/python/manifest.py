"""Tool profiles for Python tooling."""

import re

from cli_canon.adapters.profile import ToolProfile
from cli_canon.adapters.python.tokenizer import pytest_events
from cli_canon.parsing.jsonrecords import FieldMap, FieldMapAdapter
from cli_canon.parsing.text import RawErrorRules, TextPattern

mypy = ToolProfile(
    key="mypy",
    tool="mypy",
    kind="diagnostics",
    text=TextPattern(
        line=re.compile(
            r"^(?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))?: "
            r"(?P<severity>error|warning|note): (?P<message>.+?)(?:\s+\[(?P<code>[^\]]+)\])?$"
        ),
    ),
    # Fatal errors such as an unreadable file carry no line number.
    raw_errors=RawErrorRules(
        markers=(
            re.compile(r"^mypy: "),
            re.compile(r"^error: "),
            re.compile(r"^\S+: error: "),
            re.compile(r"^Traceback \(most recent call last\):"),
        ),
    ),
)

ruff = ToolProfile(
    key="ruff",
    tool="ruff",
    kind="diagnostics",
    json=FieldMapAdapter(
        fields=FieldMap(
            file="filename",
            line="location.row",
            column="location.column",
            code="code",
            message="message",
            suggestion="fix.message",
        ),
    ),
    text=TextPattern(
        line=re.compile(
            r"^(?P<file>.+?):(?P<line>\d+):(?P<column>\d+): "
            r"(?P<code>[A-Z]+\d+) (?:\[\*\] )?(?P<message>.+)$"
        ),
        default_severity="warning",
    ),
    raw_errors=RawErrorRules(
        markers=(re.compile(r"^ruff failed"), re.compile(r"^error: ")),
    ),
    compact_severities=frozenset({"error", "warning"}),
)

py_test = ToolProfile(
    key="pytest",
    tool="pytest",
    kind="tests",
    events=pytest_events,
)
