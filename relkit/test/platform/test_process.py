from __future__ import annotations

import sys
from pathlib import Path

from relkit.core.result import Err, Ok
from relkit.platform.process import ProcessError, run


def test_run_returns_stdout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.strip() == "hello"


def test_run_nonzero_exit_is_err(tmp_path: Path) -> None:
    code = "import sys; sys.stderr.write('release not found'); sys.exit(1)"
    result = run([sys.executable, "-c", code], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == 1
    assert "release not found" in result.error.stderr


def test_run_missing_binary_is_err(tmp_path: Path) -> None:
    result = run(["relkit-definitely-missing-binary"], cwd=tmp_path)
    assert isinstance(result, Err)
    assert not result.error.started


def test_run_timeout_is_err(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
    assert isinstance(result, Err)
    assert "timed out" in result.error.stderr


def test_process_error_str_truncates_long_commands() -> None:
    error = ProcessError(
        command=("gh", "release", "upload", "v1.0.0", "a.zip"),
        returncode=1,
        stdout="",
        stderr="",
    )
    assert str(error) == "gh release upload ... failed (exit 1)"
