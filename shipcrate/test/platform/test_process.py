"""Tests for shipcrate.platform.process module."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from shipcrate.core.result import Err, Ok
from shipcrate.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "status"),
            returncode=1,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("cargo", "publish", "--dry-run", "--locked"),
            returncode=101,
            stdout="",
            stderr="error",
        )
        assert str(error) == "cargo publish --dry-run ... failed (exit 101)"

    def test_output_joins_stderr_then_stdout(self) -> None:
        error = ProcessError(("cargo",), 1, stdout="out\n", stderr="err\n")
        assert error.output == "err\nout"

    def test_output_skips_empty_streams(self) -> None:
        error = ProcessError(("cargo",), 1, stdout="  \n", stderr="only err")
        assert error.output == "only err"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import sys; sys.exit(42)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert result.error.timed_out is False

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert len(result.error.stderr) > 0

    def test_env_overlay_is_merged(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import os; print(os.environ['SHIPCRATE_PROBE'])"],
            cwd=tmp_path,
            env={"SHIPCRATE_PROBE": "overlay"},
        )

        assert result == Ok("overlay\n")

    def test_env_overlay_keeps_path(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import os; print('PATH' in os.environ)"],
            cwd=tmp_path,
            env={"SHIPCRATE_PROBE": "1"},
        )

        assert result == Ok("True\n")

    @patch("subprocess.run")
    def test_timeout_is_flagged(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["cargo"], timeout=5)

        result = run(["cargo", "publish"], cwd=tmp_path, timeout=5)

        assert isinstance(result, Err)
        assert result.error.timed_out is True
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr
