"""Shell script adapters."""

from cli_canon.adapters.shell.manifest import shellcheck

__all__ = ["shellcheck"]
