"""Diagnostic extraction with JSON-first, text-fallback precedence."""

import logging

from cli_canon.models.diagnostic import Extraction
from cli_canon.parsing.jsonrecords import JsonAdapter
from cli_canon.parsing.text import RawErrorRules, TextPattern, extract_text, scan_raw_errors

log = logging.getLogger(__name__)


def extract_diagnostics(
    stdout: str,
    stderr: str,
    *,
    json_adapter: JsonAdapter | None = None,
    text: TextPattern | None = None,
    raw_errors: RawErrorRules | None = None,
) -> Extraction:
    """Extract diagnostics from one invocation's output.

    When a JSON adapter is configured and stdout decodes as JSON, the JSON
    result is final for diagnostics even if it holds no findings; text
    parsing only runs when nothing decoded. The two are never merged.

    Fatal tool errors land outside the report, so lines matching the raw
    error markers are still collected: from stderr alongside decoded JSON,
    and from both streams when the profile has no text pattern.

    Args:
        stdout: Captured standard output, possibly partial
        stderr: Captured standard error, possibly partial
        json_adapter: Adapter for the tool's JSON report, if it has one
        text: Location pattern for the tool's plain-text output
        raw_errors: Heuristics for unlocated error lines

    Returns:
        Extracted diagnostics and raw errors; empty when nothing matched

    """
    if json_adapter is not None:
        if (extraction := json_adapter.extract(stdout)) is not None:
            if raw_errors is None:
                return extraction
            return Extraction(
                diagnostics=extraction.diagnostics,
                raw_errors=[*extraction.raw_errors, *scan_raw_errors(stderr, raw_errors)],
            )
        log.debug("No JSON decoded from stdout, falling back to text parsing")

    combined = "\n".join(part for part in (stdout, stderr) if part)
    if text is None:
        if raw_errors is None:
            return Extraction()
        return Extraction(raw_errors=scan_raw_errors(combined, raw_errors))

    return extract_text(combined, text, raw_errors)
