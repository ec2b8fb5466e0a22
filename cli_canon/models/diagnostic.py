"""Located diagnostics reported by compilers, linters and type checkers."""

from collections.abc import Sequence
from typing import Literal, get_args

from pydantic import Field

from cli_canon.models.base import Model

type Severity = Literal["error", "warning", "note", "help"]

SEVERITIES: frozenset[str] = frozenset(get_args(Severity.__value__))


class Location(Model):
    """Position a diagnostic points at."""

    file: str = Field(..., min_length=1, description="Path exactly as the tool printed it")
    line: int | None = Field(default=None, ge=1)
    column: int | None = Field(default=None, ge=1)


class Diagnostic(Model):
    """A single located finding."""

    location: Location
    severity: Severity = Field(
        default="warning",
        description="Drives the aggregate counts; tools that omit it get 'warning'",
    )
    code: str | None = None
    message: str = Field(..., min_length=1)
    suggestion: str | None = None


class Extraction(Model):
    """Everything the extractor could recover from one invocation.

    ``raw_errors`` holds error lines that could not be tied to a file
    (package, link-time or module resolution failures). They still count
    as errors.
    """

    diagnostics: Sequence[Diagnostic] = ()
    raw_errors: Sequence[str] = ()
