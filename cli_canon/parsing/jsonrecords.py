"""Mapping of tool-specific JSON diagnostics onto the canonical shape."""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from cli_canon.models.diagnostic import Diagnostic, Extraction, Location, Severity
from cli_canon.parsing.text import normalize_severity, position

log = logging.getLogger(__name__)


def lookup(value: Any, path: str) -> Any:
    """Resolve a dotted path such as ``Pos.Filename`` or ``suggestions.0.desc``.

    Missing keys, out-of-range indexes and type mismatches resolve to None.
    """
    for part in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(part)
        elif isinstance(value, list) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        else:
            return None
        if value is None:
            return None
    return value


def decode_documents(text: str) -> list[Any] | None:
    """Decode a whole JSON document, falling back to JSON-lines.

    Returns:
        Decoded documents, or None when nothing in ``text`` is valid JSON

    """
    stripped = text.strip()
    if not stripped:
        return None

    try:
        return [json.loads(stripped)]
    except json.JSONDecodeError:
        pass

    documents: list[Any] = []
    for line in stripped.splitlines():
        line = line.strip()
        if not line.startswith(("{", "[")):
            continue
        try:
            documents.append(json.loads(line))
        except json.JSONDecodeError:
            log.debug("Skipping undecodable JSON line: %.120s", line)

    return documents or None


class JsonAdapter(ABC):
    """Maps one tool's JSON report onto diagnostics."""

    @abstractmethod
    def records(self, document: Any) -> Iterator[Any]:
        """Yield the per-finding records contained in one decoded document."""

    @abstractmethod
    def convert(self, record: Any) -> Diagnostic | str | None:
        """Convert one record.

        Returns:
            A diagnostic, a raw error line for unlocated errors, or None to
            drop the record

        """

    def extract(self, text: str) -> Extraction | None:
        """Extract diagnostics from JSON output.

        Returns:
            The extraction, or None when no JSON could be decoded at all so
            the caller may fall back to text parsing

        """
        documents = decode_documents(text)
        if documents is None:
            return None

        diagnostics: list[Diagnostic] = []
        raw_errors: list[str] = []
        for document in documents:
            for record in self.records(document):
                match self.convert(record):
                    case Diagnostic() as diagnostic:
                        diagnostics.append(diagnostic)
                    case str() as raw_error:
                        raw_errors.append(raw_error)

        return Extraction(diagnostics=diagnostics, raw_errors=raw_errors)


@dataclass(frozen=True, kw_only=True)
class FieldMap:
    """Dotted paths from a tool record to canonical diagnostic fields."""

    file: str
    message: str
    line: str | None = None
    column: str | None = None
    severity: str | None = None
    code: str | None = None
    suggestion: str | None = None
    severities: Mapping[str, Severity] = field(default_factory=dict)
    code_format: str = "{}"


@dataclass(frozen=True, kw_only=True)
class FieldMapAdapter(JsonAdapter):
    """Adapter driven entirely by a :class:`FieldMap`.

    ``records_path`` points at the list of findings inside the document.
    With ``nested`` set, each item is a container (such as a file) whose
    ``nested`` list holds the findings; ``inherit`` copies container fields
    into every finding.
    """

    fields: FieldMap
    records_path: str | None = None
    nested: str | None = None
    inherit: Mapping[str, str] = field(default_factory=dict)

    def records(self, document: Any) -> Iterator[Any]:
        items = lookup(document, self.records_path) if self.records_path else document
        if isinstance(items, Mapping):
            items = [items]
        if not isinstance(items, list):
            return

        for item in items:
            if not isinstance(item, Mapping):
                continue
            if self.nested is None:
                yield item
                continue

            children = item.get(self.nested)
            if not isinstance(children, list):
                continue
            inherited = {target: lookup(item, source) for target, source in self.inherit.items()}
            for child in children:
                if isinstance(child, Mapping):
                    yield {**child, **inherited}

    def convert(self, record: Any) -> Diagnostic | str | None:
        fields = self.fields
        message = lookup(record, fields.message)
        if not isinstance(message, str) or not message.strip():
            return None

        severity = (
            normalize_severity(lookup(record, fields.severity), fields.severities, "warning")
            if fields.severity
            else "warning"
        )

        file = lookup(record, fields.file)
        if not isinstance(file, str) or not file:
            return message.strip() if severity == "error" else None

        code = lookup(record, fields.code) if fields.code else None
        suggestion = lookup(record, fields.suggestion) if fields.suggestion else None

        return Diagnostic(
            location=Location(
                file=file,
                line=position(lookup(record, fields.line)) if fields.line else None,
                column=position(lookup(record, fields.column)) if fields.column else None,
            ),
            severity=severity,
            code=fields.code_format.format(code) if code not in (None, "") else None,
            message=message.strip(),
            suggestion=suggestion if isinstance(suggestion, str) and suggestion else None,
        )
