"""Loading of tool profiles from entry points."""

from collections.abc import Sequence
from importlib.metadata import entry_points

from cli_canon.adapters.profile import ToolProfile
from cli_canon.errors import CanonError

ENTRY_POINT_GROUP = "cli_canon.adapters"


class AdapterNotFoundError(CanonError):
    """Raised when no tool profile is registered under a key."""


def available_adapters() -> Sequence[str]:
    """Keys of every registered tool profile, sorted."""
    return sorted(entry.name for entry in entry_points(group=ENTRY_POINT_GROUP))


def load_tool_profile(key: str) -> ToolProfile:
    """Load a tool profile by key.

    Args:
        key: The profile key as registered in pyproject.toml
             (e.g., "go-build", "eslint")

    Returns:
        The tool profile

    Raises:
        AdapterNotFoundError: If no profile with the given key is registered

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            profile: ToolProfile = entry.load()
            return profile

    available = [e.name for e in entries]
    raise AdapterNotFoundError(
        f"Adapter '{key}' not found. Available adapters: {available}"
    )
