"""Non-diagnostic child records: blame attribution and resource changes."""

from pydantic import Field

from cli_canon.models.base import Model


class BlameLine(Model):
    """Attribution of one line of a file to the commit that last touched it."""

    ref: str = Field(..., min_length=1, description="Abbreviated commit hash")
    author: str | None = None
    date: str | None = None
    summary: str | None = None
    line: int = Field(..., ge=1)
    content: str


class ResourceChange(Model):
    """A resource an invocation reported on, and what happened to it."""

    name: str
    action: str = Field(..., description="Tool verb, e.g. 'created', 'modified', 'unchanged'")
    additions: int | None = Field(default=None, ge=0)
    deletions: int | None = Field(default=None, ge=0)

    @property
    def changed(self) -> bool:
        """Whether the resource was actually touched."""
        return self.action != "unchanged"
