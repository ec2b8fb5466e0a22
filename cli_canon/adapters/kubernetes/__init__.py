"""Kubernetes adapters."""

from cli_canon.adapters.kubernetes.manifest import kubectl_apply

__all__ = ["kubectl_apply"]
