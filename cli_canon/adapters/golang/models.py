"""Pydantic models for `go test -json` events."""

from typing import Literal

from pydantic import BaseModel, Field

type GoTestAction = Literal[
    "start",
    "run",
    "pause",
    "cont",
    "pass",
    "bench",
    "fail",
    "output",
    "skip",
    "build-output",
    "build-fail",
]


class GoTestEvent(BaseModel):
    """One line of `go test -json` output (see `go doc test2json`)."""

    action: GoTestAction = Field(alias="Action")
    package: str | None = Field(default=None, alias="Package")
    import_path: str | None = Field(default=None, alias="ImportPath")
    test: str | None = Field(default=None, alias="Test")
    elapsed: float | None = Field(default=None, alias="Elapsed", ge=0)
    output: str | None = Field(default=None, alias="Output")

    @property
    def scope(self) -> str:
        return package_name(self.package or self.import_path or "")


def package_name(import_path: str) -> str:
    """Strip the test-variant suffix, e.g. ``pkg [pkg.test]`` -> ``pkg``."""
    return import_path.split(" [", 1)[0].strip()
