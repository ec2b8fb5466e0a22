"""Tool profile for container logs."""

from cli_canon.adapters.profile import Children, ToolProfile


def parse_log_lines(stdout: str, stderr: str) -> Children:
    """Container logs interleave both streams; neither is an error channel."""
    lines = [line for line in (stdout + "\n" + stderr).splitlines() if line.strip()]
    return Children(lines=lines)


docker_logs = ToolProfile(
    key="docker-logs",
    tool="docker logs",
    kind="log",
    records=parse_log_lines,
)
