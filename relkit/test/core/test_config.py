"""Tests for relkit.core.config module."""

from __future__ import annotations

from pathlib import Path

from relkit.core.config import Config, ReleaseConfig, load_config, load_config_or_default
from relkit.core.result import Err, Ok


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "relkit.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full_release_table(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
[release]
program = "tabby"
input_dir = "artifacts"
output_dir = "out"
repo = "TabbyML/tabby"
failure_policy = "omit"
jobs = 2
expected_platforms = ["aarch64-apple-darwin", "x86_64-windows-msvc"]
""",
        )

        result = load_config(path)

        assert isinstance(result, Ok)
        release = result.value.release
        assert release.program == "tabby"
        assert release.input_dir == "artifacts"
        assert release.output_dir == "out"
        assert release.repo == "TabbyML/tabby"
        assert release.failure_policy == "omit"
        assert release.jobs == 2
        assert release.expected_platforms == ("aarch64-apple-darwin", "x86_64-windows-msvc")

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, ""))
        assert isinstance(result, Ok)
        assert result.value == Config()
        assert result.value.release == ReleaseConfig()
        assert result.value.release.failure_policy == "fail-fast"

    def test_invalid_failure_policy(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[release]\nfailure_policy = "ignore"\n'))
        assert isinstance(result, Err)
        assert "failure_policy" in result.error.message

    def test_jobs_must_be_positive(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[release]\njobs = 0\n"))
        assert isinstance(result, Err)
        assert "jobs" in result.error.message

    def test_jobs_must_be_integer(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[release]\njobs = "four"\n'))
        assert isinstance(result, Err)

    def test_expected_platforms_must_be_strings(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[release]\nexpected_platforms = [1, 2]\n"))
        assert isinstance(result, Err)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "[release\n")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message


class TestLoadConfigOrDefault:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / "relkit.toml")
        assert result == Ok(Config())

    def test_broken_file_is_still_an_error(self, tmp_path: Path) -> None:
        result = load_config_or_default(_write(tmp_path, "not = [valid"))
        assert isinstance(result, Err)
