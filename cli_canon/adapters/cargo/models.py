"""Pydantic models for `cargo --message-format=json` output."""

from collections.abc import Sequence

from pydantic import BaseModel


class DiagnosticCode(BaseModel):
    code: str


class DiagnosticSpan(BaseModel):
    file_name: str
    line_start: int
    column_start: int
    is_primary: bool = True
    suggested_replacement: str | None = None


class CompilerDiagnostic(BaseModel):
    """A rustc diagnostic; children carry notes and help."""

    message: str
    level: str
    code: DiagnosticCode | None = None
    spans: Sequence[DiagnosticSpan] = ()
    children: Sequence["CompilerDiagnostic"] = ()
    rendered: str | None = None

    @property
    def primary_span(self) -> DiagnosticSpan | None:
        return next((span for span in self.spans if span.is_primary), None) or next(
            iter(self.spans), None
        )

    @property
    def help(self) -> str | None:
        for child in self.children:
            if child.level != "help":
                continue
            replacement = next(
                (span.suggested_replacement for span in child.spans if span.suggested_replacement),
                None,
            )
            return f"{child.message}: `{replacement}`" if replacement else child.message
        return None


class CompilerMessage(BaseModel):
    """A `reason: compiler-message` line; other reasons are not modelled."""

    reason: str
    package_id: str | None = None
    message: CompilerDiagnostic | None = None
