"""Tests for shellcheck, docker logs and kubectl apply."""

import json

from cli_canon.adapters.docker import docker_logs
from cli_canon.adapters.kubernetes import kubectl_apply
from cli_canon.adapters.shell import shellcheck
from cli_canon.models.records import ResourceChange


def test_shellcheck_json() -> None:
    """Codes are prefixed and shellcheck levels mapped."""
    report = [
        {
            "file": "deploy.sh",
            "line": 3,
            "endLine": 3,
            "column": 6,
            "endColumn": 10,
            "level": "warning",
            "code": 2086,
            "message": "Double quote to prevent globbing and word splitting.",
            "fix": {"replacements": [{"replacement": '"$dir"'}]},
        },
        {"file": "deploy.sh", "line": 5, "column": 1, "level": "info", "code": 2034, "message": "x appears unused."},
        {"file": "deploy.sh", "line": 7, "column": 1, "level": "style", "code": 2006, "message": "Use $(...)."},
    ]

    children = shellcheck.extract(json.dumps(report), "")

    assert [(d.code, d.severity) for d in children.diagnostics] == [
        ("SC2086", "warning"),
        ("SC2034", "note"),
        ("SC2006", "help"),
    ]
    assert children.diagnostics[0].suggestion == '"$dir"'


def test_shellcheck_unreadable_file_is_raw_error() -> None:
    """A missing script is reported on stderr next to an empty report."""
    stderr = "missing.sh: missing.sh: openBinaryFile: does not exist (No such file or directory)\n"

    children = shellcheck.extract("[]", stderr)

    assert children.diagnostics == []
    assert children.raw_errors == [stderr.strip()]


def test_docker_logs_keep_both_streams() -> None:
    """Container stderr is ordinary log output, not errors."""
    children = docker_logs.extract("listening on :8080\n", "warning: slow request\n\n")

    assert list(children.lines) == ["listening on :8080", "warning: slow request"]
    assert children.raw_errors == ()


def test_kubectl_apply() -> None:
    """Each resource line becomes a change; server errors are raw errors."""
    stdout = "\n".join(
        [
            "namespace/web unchanged",
            "deployment.apps/web configured",
            "service/web created (dry run)",
        ]
    )
    stderr = 'Error from server (Forbidden): secrets "db" is forbidden\n'

    children = kubectl_apply.extract(stdout, stderr)

    assert list(children.resources) == [
        ResourceChange(name="namespace/web", action="unchanged"),
        ResourceChange(name="deployment.apps/web", action="configured"),
        ResourceChange(name="service/web", action="created"),
    ]
    assert children.raw_errors == ['Error from server (Forbidden): secrets "db" is forbidden']
