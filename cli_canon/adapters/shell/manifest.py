"""Tool profile for ShellCheck's JSON output."""

import re

from cli_canon.adapters.profile import ToolProfile
from cli_canon.parsing.jsonrecords import FieldMap, FieldMapAdapter
from cli_canon.parsing.text import RawErrorRules

shellcheck = ToolProfile(
    key="shellcheck",
    tool="shellcheck",
    kind="diagnostics",
    json=FieldMapAdapter(
        fields=FieldMap(
            file="file",
            line="line",
            column="column",
            severity="level",
            code="code",
            message="message",
            suggestion="fix.replacements.0.replacement",
            severities={"info": "note", "style": "help"},
            code_format="SC{}",
        ),
    ),
    # Unreadable inputs are reported on stderr next to an empty report.
    raw_errors=RawErrorRules(
        markers=(re.compile(r"openBinaryFile: "), re.compile(r"^shellcheck: ")),
    ),
    compact_severities=frozenset({"error", "warning"}),
)
