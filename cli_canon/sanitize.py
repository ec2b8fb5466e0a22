"""Guards applied to user-supplied values before they reach a command line."""

from collections.abc import Iterable

from cli_canon.errors import FlagInjectionError


def assert_no_flag_injection(value: str, param_name: str) -> None:
    """Reject a value that the tool would parse as an option.

    Raises:
        FlagInjectionError: If ``value`` starts with ``-`` after leading whitespace

    """
    if value.lstrip().startswith("-"):
        raise FlagInjectionError(
            f"Invalid {param_name}: {value!r}. Values must not start with '-'."
        )


def assert_no_flag_injections(values: Iterable[str], param_name: str) -> None:
    """Apply :func:`assert_no_flag_injection` to every value."""
    for value in values:
        assert_no_flag_injection(value, param_name)
