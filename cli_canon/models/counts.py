"""Summary counts derived from classified children."""

from pydantic import Field

from cli_canon.models.base import Model


class Counts(Model):
    """Tallies over every classified child of a result.

    ``errors`` includes unlocated raw errors; ``notes`` covers both ``note``
    and ``help`` severities.
    """

    total: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)
    warnings: int = Field(default=0, ge=0)
    notes: int = Field(default=0, ge=0)
    passed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    running: int = Field(default=0, ge=0)
    package_failures: int = Field(default=0, ge=0)
    changed: int = Field(default=0, ge=0)
