"""JSON adapter for cargo compiler messages."""

import logging
import re
from collections.abc import Iterator
from typing import Any

from pydantic import ValidationError

from cli_canon.adapters.cargo.models import CompilerMessage
from cli_canon.models.diagnostic import Diagnostic, Location
from cli_canon.parsing.jsonrecords import JsonAdapter
from cli_canon.parsing.text import normalize_severity

log = logging.getLogger(__name__)

# rustc repeats these as span-less messages after the real diagnostics.
_SUMMARY_RE = re.compile(
    r"^(?:aborting due to|could not compile|\d+ warnings? emitted|"
    r"For more information about)"
)


class CargoMessageAdapter(JsonAdapter):
    """Maps `compiler-message` records onto diagnostics.

    The primary span gives the location and the first ``help`` child the
    suggestion. Span-less errors cannot be located and become raw errors.
    """

    def records(self, document: Any) -> Iterator[Any]:
        if not isinstance(document, dict) or document.get("reason") != "compiler-message":
            return
        try:
            message = CompilerMessage.model_validate(document).message
        except ValidationError:
            log.debug("Skipping malformed compiler message")
            return
        if message is not None:
            yield message

    def convert(self, record: Any) -> Diagnostic | str | None:
        if _SUMMARY_RE.match(record.message) or record.level == "failure-note":
            return None

        severity = normalize_severity(
            record.level, {"error: internal compiler error": "error"}, "warning"
        )
        span = record.primary_span
        if span is None:
            return record.message if severity == "error" else None

        return Diagnostic(
            location=Location(
                file=span.file_name,
                line=span.line_start if span.line_start >= 1 else None,
                column=span.column_start if span.column_start >= 1 else None,
            ),
            severity=severity,
            code=record.code.code if record.code else None,
            message=record.message,
            suggestion=record.help,
        )
