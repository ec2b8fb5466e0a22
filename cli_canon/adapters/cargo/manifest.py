"""Tool profiles for cargo."""

import re

from cli_canon.adapters.cargo.adapter import CargoMessageAdapter
from cli_canon.adapters.cargo.tokenizer import cargo_test_events
from cli_canon.adapters.profile import ToolProfile
from cli_canon.parsing.text import RawErrorRules, TextPattern

RUSTC_TEXT = TextPattern(
    line=re.compile(r"^(?P<severity>error|warning)(?:\[(?P<code>[^\]]+)\])?: (?P<message>.+)$"),
    location=re.compile(r"^\s*--> (?P<file>.+?):(?P<line>\d+):(?P<column>\d+)$"),
    suggestion=re.compile(r"^\s*(?:= )?help: (?P<suggestion>.+)$"),
)

RUSTC_RAW_ERRORS = RawErrorRules(
    # Fatal cargo errors such as a broken manifest go to stderr in JSON mode.
    markers=(re.compile(r"^error: "),),
    ignore=(
        re.compile(r"^error: could not compile "),
        re.compile(r"^error: aborting due to "),
        re.compile(r"^warning: .+ generated \d+ warnings?"),
        re.compile(r"^warning: build failed"),
    ),
)

cargo_build = ToolProfile(
    key="cargo-build",
    tool="cargo build",
    kind="diagnostics",
    json=CargoMessageAdapter(),
    text=RUSTC_TEXT,
    raw_errors=RUSTC_RAW_ERRORS,
)

cargo_clippy = ToolProfile(
    key="cargo-clippy",
    tool="cargo clippy",
    kind="diagnostics",
    json=CargoMessageAdapter(),
    text=RUSTC_TEXT,
    raw_errors=RUSTC_RAW_ERRORS,
    compact_severities=frozenset({"error", "warning"}),
)

cargo_test = ToolProfile(
    key="cargo-test",
    tool="cargo test",
    kind="tests",
    events=cargo_test_events,
)
