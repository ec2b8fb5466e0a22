"""Tool profiles for the Go toolchain and golangci-lint."""

import re

from cli_canon.adapters.golang.tokenizer import go_test_events
from cli_canon.adapters.profile import Children, ToolProfile
from cli_canon.models.diagnostic import Diagnostic, Location
from cli_canon.parsing.jsonrecords import FieldMap, FieldMapAdapter
from cli_canon.parsing.text import RawErrorRules, TextPattern, extract_text

GO_LOCATION = TextPattern(
    line=re.compile(r"^(?:vet: )?(?P<file>.+?\.go):(?P<line>\d+)(?::(?P<column>\d+))?: (?P<message>.+)$"),
)

GO_RAW_ERRORS = RawErrorRules(
    package_marker=re.compile(r"^# \S+"),
    markers=(
        # module resolution
        re.compile(r"^go: "),
        re.compile(r"^package \S+ is not in "),
        re.compile(r"^no required module provides package "),
        re.compile(r"^cannot find (?:package|module) "),
        re.compile(r"missing go\.sum entry"),
        # linker
        re.compile(r"^(?:/usr/bin/)?ld(?:\.\w+)?: "),
        re.compile(r"^collect2: "),
        re.compile(r"^link: "),
        re.compile(r"undefined reference to "),
    ),
    ignore=(re.compile(r"^go: (?:downloading|finding|extracting|upgraded|added|found) "),),
)

go_build = ToolProfile(
    key="go-build",
    tool="go build",
    kind="diagnostics",
    text=GO_LOCATION,
    raw_errors=GO_RAW_ERRORS,
)

go_vet = ToolProfile(
    key="go-vet",
    tool="go vet",
    kind="diagnostics",
    text=GO_LOCATION,
    raw_errors=GO_RAW_ERRORS,
)

go_test = ToolProfile(
    key="go-test",
    tool="go test",
    kind="tests",
    events=go_test_events,
)


# Everything gofmt prints on stderr is an error, located or not.
GOFMT_ERRORS = RawErrorRules(markers=(re.compile(r"^\S"),))


def parse_gofmt_listing(stdout: str, stderr: str) -> Children:
    """`gofmt -l` lists unformatted files on stdout and syntax errors on stderr.

    Unformatted files are warnings; only syntax errors fail the result.
    """
    needs_formatting = [
        Diagnostic(
            location=Location(file=line.strip()),
            severity="warning",
            code="needs-formatting",
            message="file is not gofmt-formatted",
        )
        for line in stdout.splitlines()
        if line.strip()
    ]
    syntax = extract_text(stderr, GO_LOCATION, GOFMT_ERRORS)
    return Children(
        diagnostics=[*needs_formatting, *syntax.diagnostics],
        raw_errors=syntax.raw_errors,
    )


gofmt = ToolProfile(
    key="gofmt",
    tool="gofmt",
    kind="diagnostics",
    records=parse_gofmt_listing,
    compact_severities=frozenset({"error", "warning"}),
)

golangci_lint = ToolProfile(
    key="golangci-lint",
    tool="golangci-lint",
    kind="diagnostics",
    json=FieldMapAdapter(
        records_path="Issues",
        fields=FieldMap(
            file="Pos.Filename",
            line="Pos.Line",
            column="Pos.Column",
            severity="Severity",
            code="FromLinter",
            message="Text",
            severities={"info": "note"},
        ),
    ),
    text=TextPattern(
        line=re.compile(
            r"^(?P<file>[^\s:]+):(?P<line>\d+)(?::(?P<column>\d+))?: "
            r"(?P<message>.+?)(?: \((?P<code>[\w-]+)\))?$"
        ),
        default_severity="warning",
    ),
    raw_errors=RawErrorRules(
        markers=(re.compile(r"^Error: "), re.compile(r"level=error ")),
    ),
    compact_severities=frozenset({"error", "warning"}),
)
