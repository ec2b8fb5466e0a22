"""Tool profile for `kubectl apply`."""

import re

from cli_canon.adapters.profile import Children, ToolProfile
from cli_canon.models.records import ResourceChange

_RESOURCE_RE = re.compile(
    r"^(?P<name>[\w.-]+/[\w.:-]+) (?P<action>created|configured|unchanged|deleted|pruned|"
    r"serverside-applied)(?: \((?:server )?dry run\))?$"
)
_ERROR_RE = re.compile(r"^(?:error: |Error from server)")


def parse_apply(stdout: str, stderr: str) -> Children:
    """One resource per ``kind/name action`` line; errors come from stderr."""
    resources = [
        ResourceChange(name=match.group("name"), action=match.group("action"))
        for line in stdout.splitlines()
        if (match := _RESOURCE_RE.match(line.strip())) is not None
    ]
    raw_errors = [line.strip() for line in stderr.splitlines() if _ERROR_RE.match(line.strip())]
    return Children(resources=resources, raw_errors=raw_errors)


kubectl_apply = ToolProfile(
    key="kubectl-apply",
    tool="kubectl apply",
    kind="resources",
    records=parse_apply,
)
