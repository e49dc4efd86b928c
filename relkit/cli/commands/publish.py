from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import DEFAULT_CONFIG_NAME, build_context
from relkit.core.result import Err
from relkit.release.pipeline import publish_existing
from relkit.release.publish import GhReleasePublisher


def publish(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_NAME), "--config", help="Path to relkit.toml"),
    tag: str = typer.Option("", "--tag", envvar="GITHUB_REF_NAME", help="Release tag"),
    sha: str = typer.Option("", "--sha", envvar="GITHUB_SHA", help="Commit sha fallback"),
    out: Path | None = typer.Option(None, "--out", help="Directory holding the archives"),
    program: str | None = typer.Option(None, "--program", help="Program name (archive prefix)"),
) -> None:
    """Publish archives already built for this version (manual retry)."""
    ctx = build_context(config)
    cfg = ctx.config.release
    publisher = GhReleasePublisher(workspace_root=ctx.config_dir, repo=cfg.repo)

    result = publish_existing(
        program=program or cfg.program,
        output_dir=out if out is not None else ctx.config_path(cfg.output_dir),
        tag=tag,
        commit_sha=sha,
        publisher=publisher,
        console=ctx.console,
    )
    if isinstance(result, Err):
        exit_on_error(result, ctx)
        return

    receipt = result.value
    action = "created" if receipt.created else "updated"
    ctx.console.success(f"{action} release {receipt.tag} ({len(receipt.uploaded)} assets)")
