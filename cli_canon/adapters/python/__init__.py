"""Python tooling adapters."""

from cli_canon.adapters.python.manifest import mypy, py_test, ruff

__all__ = ["mypy", "py_test", "ruff"]
