"""Cargo adapters."""

from cli_canon.adapters.cargo.manifest import cargo_build, cargo_clippy, cargo_test

__all__ = ["cargo_build", "cargo_clippy", "cargo_test"]
