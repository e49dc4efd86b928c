"""Typed configuration loading.

relkit reads an optional ``relkit.toml`` with a single ``[release]`` table:

    [release]
    program = "tabby"
    input_dir = "."
    output_dir = "dist"
    repo = "TabbyML/tabby"
    failure_policy = "fail-fast"   # or "omit"
    jobs = 4
    expected_platforms = ["aarch64-apple-darwin", "x86_64-windows-msvc"]

Every key is optional; CLI options override file values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, cast

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "Config",
    "ConfigError",
    "FailurePolicy",
    "FAILURE_POLICIES",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
    "DEFAULT_PROGRAM",
    "DEFAULT_JOBS",
]

FailurePolicy = Literal["fail-fast", "omit"]
FAILURE_POLICIES: tuple[FailurePolicy, ...] = ("fail-fast", "omit")

DEFAULT_PROGRAM = "tabby"
DEFAULT_JOBS = 4


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Packaging and publishing settings."""

    program: str = DEFAULT_PROGRAM
    input_dir: str = "."
    output_dir: str = "dist"
    # owner/name; None lets gh infer the repo from the checkout.
    repo: str | None = None
    failure_policy: FailurePolicy = "fail-fast"
    jobs: int = DEFAULT_JOBS
    expected_platforms: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Config:
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from parsed TOML.

        Raises:
            ValueError: On values of the wrong shape.
        """
        release: StrDict = get_table(data, "release") or {}

        policy = get_str(release, "failure_policy") or "fail-fast"
        if policy not in FAILURE_POLICIES:
            raise ValueError(
                f"release.failure_policy must be one of {', '.join(FAILURE_POLICIES)}: {policy!r}"
            )

        jobs = get_int(release, "jobs")
        if jobs is None:
            if "jobs" in release:
                raise ValueError("release.jobs must be an integer")
            jobs = DEFAULT_JOBS
        if jobs < 1:
            raise ValueError(f"release.jobs must be >= 1: {jobs}")

        expected = get_str_list(release, "expected_platforms")
        if expected is None and "expected_platforms" in release:
            raise ValueError("release.expected_platforms must be a list of strings")

        return cls(
            release=ReleaseConfig(
                program=get_str(release, "program") or DEFAULT_PROGRAM,
                input_dir=get_str(release, "input_dir") or ".",
                output_dir=get_str(release, "output_dir") or "dist",
                repo=get_str(release, "repo"),
                failure_policy=cast(FailurePolicy, policy),
                jobs=jobs,
                expected_platforms=tuple(expected or ()),
            )
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to relkit.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the default Config.

    A file that exists but cannot be parsed is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
