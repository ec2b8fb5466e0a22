"""TypeScript and JavaScript adapters."""

from cli_canon.adapters.javascript.manifest import eslint, tsc

__all__ = ["eslint", "tsc"]
