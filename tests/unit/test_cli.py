"""Tests for CLI module."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from cli_canon.cli import EXIT_FAILURE, main, parse_output, read_text, run
from cli_canon.errors import InvocationFailure, SessionStepError
from cli_canon.models.session import Session
from cli_canon.testing.factories import ToolOutputFactory

GO_ERROR = "# example.com/app\n./main.go:10:5: undefined: foo\n"


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def test_parse_output_success(capsys: pytest.CaptureFixture[str]) -> None:
    """Clean output exits 0 and prints structured data with text."""
    exit_code = parse_output("go-build", "", "")

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["structured"]["success"] is True
    assert payload["text"] == "go build: no issues found"


def test_parse_subcommand_reads_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Captured streams are read from files and an unsuccessful result exits 1."""
    stdout = tmp_path / "stdout.txt"
    stderr = tmp_path / "stderr.txt"
    stdout.write_text("")
    stderr.write_text(GO_ERROR)

    code = _exit_code(
        ["parse", "--tool", "go-build", "--stdout", str(stdout), "--stderr", str(stderr), "--exit-code", "1", "--full"]
    )

    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload["structured"]["counts"]["errors"] == 1
    assert payload["structured"]["context"]["exit_code"] == 1
    assert payload["text"].splitlines()[0] == "go build: 1 error(s), 0 warning(s)"


def test_compact_flag_overrides_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """--compact wins over the representation in --config."""
    stdout = tmp_path / "logs.txt"
    stdout.write_text("".join(f"line {n}\n" for n in range(20)))

    code = _exit_code(
        [
            "parse",
            "--tool",
            "docker-logs",
            "--stdout",
            str(stdout),
            "--config",
            '{"representation": "canonical", "head_size": 1, "tail_size": 1}',
            "--compact",
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["structured"]["lines"] == {"head": ["line 0"], "tail": ["line 19"], "omitted": 18}


@pytest.mark.parametrize("config", ["not json", '{"head_size": -1}', '{"unknown": 1}', "[1]"])
def test_invalid_config_is_a_usage_error(config: str, capsys: pytest.CaptureFixture[str]) -> None:
    """Bad --config values are rejected before anything runs."""
    code = _exit_code(["parse", "--tool", "go-build", "--config", config])

    assert code == 2
    assert "Invalid --config" in capsys.readouterr().err


def test_unknown_adapter_fails(tmp_path: Path) -> None:
    """An unregistered adapter key exits with the failure code."""
    stdout = tmp_path / "out.txt"
    stdout.write_text("")

    assert _exit_code(["parse", "--tool", "nope", "--stdout", str(stdout)]) == EXIT_FAILURE


def test_adapters_subcommand_lists_keys(capsys: pytest.CaptureFixture[str]) -> None:
    """Registered keys are printed one per line."""
    code = _exit_code(["adapters"])

    keys = capsys.readouterr().out.splitlines()
    assert code == 0
    assert "go-test" in keys
    assert keys == sorted(keys)


def test_read_text(tmp_path: Path) -> None:
    """Missing streams read as empty; files are read as text."""
    path = tmp_path / "out.txt"
    path.write_text("hello\n")

    assert read_text(None) == ""
    assert read_text(path) == "hello\n"


class TestRun:
    """Tests for the run subcommand."""

    def test_runs_command_after_separator(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Everything after -- is the command; its first element is the executable."""
        executor = Mock()
        executor.execute = AsyncMock(
            return_value=ToolOutputFactory.build(stderr=GO_ERROR, exit_code=1, command=("go", "build", "./..."))
        )

        with patch("cli_canon.cli.SubprocessExecutor", return_value=executor):
            code = _exit_code(["run", "--tool", "go-build", "--full", "--", "go", "build", "./..."])

        assert code == 1
        executor.execute.assert_awaited_once()
        assert executor.execute.await_args.args == ("go", ["build", "./..."])
        assert json.loads(capsys.readouterr().out)["structured"]["counts"]["errors"] == 1

    def test_missing_command_is_a_usage_error(self) -> None:
        """run without a command is rejected."""
        assert _exit_code(["run", "--tool", "go-build", "--"]) == 2

    async def test_invocation_failure_is_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A tool that cannot start yields a categorized error with a suggestion."""
        executor = Mock()
        executor.execute = AsyncMock(
            side_effect=InvocationFailure(
                "Command not found: golangci-lint",
                command=["golangci-lint", "run"],
                category="command-not-found",
            )
        )

        with patch("cli_canon.cli.SubprocessExecutor", return_value=executor):
            code = await run("golangci-lint", ["golangci-lint", "run"])

        error = json.loads(capsys.readouterr().out)["structured"]["error"]
        assert code == EXIT_FAILURE
        assert error["category"] == "command-not-found"
        assert error["command"] == ["golangci-lint", "run"]
        assert error["suggestion"] == 'Ensure "golangci-lint" is installed and available in your PATH.'


class TestSession:
    """Tests for the session subcommand."""

    @pytest.fixture
    def tracker(self) -> Mock:
        tracker = Mock()
        tracker.session = Session(kind="merge")
        tracker.step = AsyncMock(
            return_value=Session(kind="merge", state="conflict", conflict_set=["src/a.ts"])
        )
        return tracker

    def test_step(self, tracker: Mock, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """One step is taken and the resulting session printed."""
        with patch("cli_canon.cli.SessionTracker.attach", AsyncMock(return_value=tracker)) as attach:
            code = _exit_code(["session", "merge", "start", "feature", "--cwd", str(tmp_path)])

        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        attach.assert_awaited_once_with("merge", tmp_path)
        tracker.step.assert_awaited_once_with("start", ["feature"])
        assert payload["structured"]["state"] == "conflict"
        assert payload["structured"]["conflict_set"] == ["src/a.ts"]
        assert "CONFLICT: src/a.ts" in payload["text"]

    def test_reset_is_abort(self, tracker: Mock) -> None:
        """reset is accepted as an alias of abort."""
        tracker.step.return_value = Session(kind="bisect")

        with patch("cli_canon.cli.SessionTracker.attach", AsyncMock(return_value=tracker)):
            code = _exit_code(["session", "bisect", "reset"])

        assert code == 0
        tracker.step.assert_awaited_once_with("abort", [])

    def test_refresh_takes_no_step(self, tracker: Mock, capsys: pytest.CaptureFixture[str]) -> None:
        """refresh prints the session derived on attach."""
        with patch("cli_canon.cli.SessionTracker.attach", AsyncMock(return_value=tracker)):
            code = _exit_code(["session", "merge", "refresh"])

        assert code == 0
        tracker.step.assert_not_awaited()
        assert json.loads(capsys.readouterr().out)["text"] == "Merge: no session in progress"

    def test_step_failure(self, tracker: Mock, capsys: pytest.CaptureFixture[str]) -> None:
        """A failed step prints the unchanged session and the error."""
        tracker.step.side_effect = SessionStepError(
            "git merge nope failed: merge: nope - not something we can merge",
            session=Session(kind="merge"),
            stderr="merge: nope - not something we can merge\n",
            exit_code=1,
        )

        with patch("cli_canon.cli.SessionTracker.attach", AsyncMock(return_value=tracker)):
            code = _exit_code(["session", "merge", "start", "nope"])

        payload = json.loads(capsys.readouterr().out)
        assert code == 1
        assert payload["structured"]["session"]["state"] == "idle"
        assert payload["structured"]["error"]["exit_code"] == 1
        assert payload["text"].endswith("Error: git merge nope failed: merge: nope - not something we can merge")

    def test_unknown_kind_is_rejected(self) -> None:
        """Only supported session kinds are accepted."""
        assert _exit_code(["session", "stash", "start"]) == 2
