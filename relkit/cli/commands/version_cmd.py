from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import DEFAULT_CONFIG_NAME, build_context
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.platform.files import append_line
from relkit.release.version import is_stable, resolve_version


def version(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_NAME), "--config", help="Path to relkit.toml"),
    tag: str = typer.Option("", "--tag", envvar="GITHUB_REF_NAME", help="Release tag"),
    sha: str = typer.Option("", "--sha", envvar="GITHUB_SHA", help="Commit sha fallback"),
    github_env: Path | None = typer.Option(
        None,
        "--github-env",
        help="Append STABLE_RELEASE=true|false to this file (e.g. $GITHUB_ENV)",
    ),
) -> None:
    """Print the resolved release version and whether it is a stable release."""
    ctx = build_context(config)
    result = resolve_version(tag, sha)
    if isinstance(result, Err):
        exit_on_error(result, ctx)
        return

    resolved = result.value
    stable = is_stable(resolved)
    flag = "true" if stable else "false"

    ctx.console.print(f"version={resolved.value}")
    ctx.console.print(f"source={resolved.source.value}")
    ctx.console.print(f"stable={flag}")

    if github_env is not None:
        try:
            append_line(github_env, f"STABLE_RELEASE={flag}")
        except OSError as e:
            ctx.console.error(f"cannot write {github_env}: {e}")
            raise typer.Exit(code=int(ErrorCode.IO_ERROR))
