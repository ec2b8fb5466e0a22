"""Docker adapters."""

from cli_canon.adapters.docker.manifest import docker_logs

__all__ = ["docker_logs"]
