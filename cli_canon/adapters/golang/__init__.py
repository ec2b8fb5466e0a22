"""Go toolchain adapters."""

from cli_canon.adapters.golang.manifest import (
    go_build,
    go_test,
    go_vet,
    gofmt,
    golangci_lint,
)

__all__ = ["go_build", "go_test", "go_vet", "gofmt", "golangci_lint"]
