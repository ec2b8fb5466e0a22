"""Error taxonomy and classification of failed invocations."""

import re
from collections.abc import Sequence
from typing import Literal

from cli_canon.models.session import Session

type FailureCategory = Literal[
    "command-not-found",
    "permission-denied",
    "timeout",
    "invalid-input",
    "not-found",
    "network-error",
    "authentication-error",
    "conflict",
    "configuration-error",
    "already-exists",
    "command-failed",
]

SUGGESTIONS: dict[FailureCategory, str] = {
    "command-not-found": 'Ensure "{command}" is installed and available in your PATH.',
    "permission-denied": "Check file/directory permissions or run with elevated privileges.",
    "timeout": "The command took too long. Retry with a longer timeout or a smaller scope.",
    "invalid-input": "Check the input parameters and try again.",
    "not-found": "Verify the resource (file, branch, ref, etc.) exists.",
    "network-error": "Check your network connection and try again.",
    "authentication-error": "Verify your credentials or tokens are valid and not expired.",
    "conflict": "Resolve the conflict or release the lock and retry.",
    "configuration-error": "Check that all required config files exist and are valid.",
    "already-exists": "The resource already exists. Use a different name or remove it first.",
    "command-failed": 'Inspect the error message from "{command}" for more details.',
}

# Checked in order; earlier categories are more specific than later ones.
_PATTERNS: Sequence[tuple[FailureCategory, re.Pattern[str]]] = (
    ("timeout", re.compile(r"timed out|timeout")),
    (
        "command-not-found",
        re.compile(
            r"command not found|not recognized|enoent|no such file or directory"
        ),
    ),
    (
        "authentication-error",
        re.compile(
            r"authenticat|credential|unauthorized| 40[13][ :]|permission denied \(publickey"
            r"|login required"
        ),
    ),
    (
        "permission-denied",
        re.compile(r"permission denied|eacces|eperm|access denied|operation not permitted"),
    ),
    (
        "network-error",
        re.compile(
            r"connection refused|econnrefused|etimedout|econnreset|enetunreach"
            r"|could not resolve host|network is unreachable|dns resolution failed"
        ),
    ),
    ("already-exists", re.compile(r"already exists?")),
    (
        "configuration-error",
        re.compile(
            r"missing config|configuration error|config file not found|invalid configuration"
            r"|no configuration|\.eslintrc|tsconfig|could not read config"
        ),
    ),
    ("conflict", re.compile(r"conflict|lock file|locked")),
    (
        "not-found",
        re.compile(r"not found|does not exist|no such| 404[ :]|unknown revision|pathspec"),
    ),
)


class CanonError(Exception):
    """Base class for errors raised by this package."""


class InvocationFailure(CanonError):
    """The external tool could not be run, or failed before producing a result."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        stderr: str = "",
        exit_code: int | None = None,
        category: FailureCategory | None = None,
    ) -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.stderr = stderr
        self.exit_code = exit_code
        self.category = category or classify_failure(stderr or message, exit_code)

    @property
    def suggestion(self) -> str:
        return suggest(self.category, self.command[0] if self.command else "command")


class ValidationFailure(CanonError):
    """A constructed result violated its structural contract."""


class FlagInjectionError(CanonError, ValueError):
    """A user-supplied value would be read as a command-line option."""


class SessionStepError(CanonError):
    """A session step failed for a reason other than conflicts.

    ``session`` is the state derived from a fresh probe after the failure;
    it equals the previous session unless the tool itself moved on.
    """

    def __init__(
        self,
        message: str,
        *,
        session: Session,
        stderr: str = "",
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.session = session
        self.stderr = stderr
        self.exit_code = exit_code


class SessionBusyError(CanonError):
    """A step was issued while a previous step was still pending."""


class UnsupportedStepError(CanonError):
    """The session kind has no such step (e.g. resolving a bisect)."""


def classify_failure(text: str, exit_code: int | None) -> FailureCategory:
    """Pick the most specific category for a failed invocation.

    Exit code 124 (from ``timeout(1)``) is always a timeout.
    """
    if exit_code == 124:
        return "timeout"
    lowered = text.lower()
    for category, pattern in _PATTERNS:
        if pattern.search(lowered):
            return category
    return "command-failed"


def suggest(category: FailureCategory, command: str) -> str:
    """Fixed recovery hint for a category."""
    return SUGGESTIONS[category].format(command=command)


def format_failure(error: InvocationFailure) -> str:
    """Render an invocation failure as human-readable text."""
    lines = [f"Error [{error.category}]: {error.stderr.strip() or error}"]
    if error.command:
        lines.append(f"Command: {' '.join(error.command)}")
    if error.exit_code is not None:
        lines.append(f"Exit code: {error.exit_code}")
    lines.append(f"Suggestion: {error.suggestion}")
    return "\n".join(lines)
