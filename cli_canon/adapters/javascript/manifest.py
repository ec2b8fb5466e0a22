"""Tool profiles for the TypeScript compiler and ESLint."""

import re

from cli_canon.adapters.profile import ToolProfile
from cli_canon.parsing.jsonrecords import FieldMap, FieldMapAdapter
from cli_canon.parsing.text import RawErrorRules, TextPattern

tsc = ToolProfile(
    key="tsc",
    tool="tsc",
    kind="diagnostics",
    text=TextPattern(
        line=re.compile(
            r"^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\):\s+"
            r"(?P<severity>error|warning)\s+(?P<code>TS\d+):\s+(?P<message>.+)$"
        ),
    ),
    # Global errors such as a bad tsconfig have no file position.
    raw_errors=RawErrorRules(markers=(re.compile(r"^error TS\d+: "),)),
)

eslint = ToolProfile(
    key="eslint",
    tool="eslint",
    kind="diagnostics",
    json=FieldMapAdapter(
        nested="messages",
        inherit={"filePath": "filePath"},
        fields=FieldMap(
            file="filePath",
            line="line",
            column="column",
            severity="severity",
            code="ruleId",
            message="message",
            suggestion="suggestions.0.desc",
            severities={"2": "error", "1": "warning"},
        ),
    ),
    # Configuration and plugin failures print a banner instead of a report.
    raw_errors=RawErrorRules(
        markers=(
            re.compile(r"^Oops! Something went wrong"),
            re.compile(r"^ESLint couldn't "),
            re.compile(r"^\w*Error: "),
        ),
    ),
    compact_severities=frozenset({"error", "warning"}),
)
