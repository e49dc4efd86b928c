from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error, exit_with_code, parse_failure_policy
from relkit.cli.context import DEFAULT_CONFIG_NAME, CLIContext, build_context
from relkit.core.result import Err
from relkit.output.console import Style
from relkit.release.pipeline import PipelineReport, PipelineRequest, run_pipeline
from relkit.release.publish import GhReleasePublisher


def _build_request(
    ctx: CLIContext,
    *,
    tag: str,
    sha: str,
    event: str | None,
    dry_run: bool,
    input_dir: Path | None,
    out: Path | None,
    program: str | None,
    jobs: int | None,
    failure_policy: str | None,
    expect: list[str] | None,
) -> PipelineRequest:
    cfg = ctx.config.release
    return PipelineRequest(
        program=program or cfg.program,
        input_dir=input_dir if input_dir is not None else ctx.config_path(cfg.input_dir),
        output_dir=out if out is not None else ctx.config_path(cfg.output_dir),
        tag=tag,
        commit_sha=sha,
        event=event,
        dry_run=dry_run,
        failure_policy=parse_failure_policy(failure_policy, cfg.failure_policy),
        jobs=jobs if jobs is not None else cfg.jobs,
        expected_platforms=tuple(expect) if expect else cfg.expected_platforms,
    )


def print_report(report: PipelineReport, ctx: CLIContext) -> None:
    console = ctx.console
    console.header("dist")
    for bundle in report.distribution.bundles:
        console.print(f"  {bundle.artifact_path.name}")
    if report.manifest is not None:
        console.print(f"  {report.manifest.name}", Style.DIM)

    built = len(report.distribution.bundles)
    failed = len(report.failures)
    if failed:
        console.error(f"{failed} artifact(s) failed, {built} archive(s) built")
    else:
        console.success(f"{built} archive(s) built for {report.version.value}")


def _run(
    *,
    config: Path,
    tag: str,
    sha: str,
    event: str | None,
    dry_run: bool,
    input_dir: Path | None,
    out: Path | None,
    program: str | None,
    jobs: int | None,
    failure_policy: str | None,
    expect: list[str] | None,
) -> None:
    ctx = build_context(config)
    request = _build_request(
        ctx,
        tag=tag,
        sha=sha,
        event=event,
        dry_run=dry_run,
        input_dir=input_dir,
        out=out,
        program=program,
        jobs=jobs,
        failure_policy=failure_policy,
        expect=expect,
    )
    publisher = GhReleasePublisher(workspace_root=ctx.config_dir, repo=ctx.config.release.repo)

    result = run_pipeline(request, publisher=publisher, console=ctx.console)
    if isinstance(result, Err):
        exit_on_error(result, ctx)
        return
    report = result.value

    print_report(report, ctx)
    if report.exit_code.is_error:
        exit_with_code(int(report.exit_code))


_CONFIG_OPT = typer.Option(Path(DEFAULT_CONFIG_NAME), "--config", help="Path to relkit.toml")
_TAG_OPT = typer.Option(
    "", "--tag", envvar="GITHUB_REF_NAME", help="Release tag (preferred version source)"
)
_SHA_OPT = typer.Option(
    "", "--sha", envvar="GITHUB_SHA", help="Commit sha (first 8 chars used when --tag is empty)"
)
_INPUT_OPT = typer.Option(None, "--input", help="Directory holding <program>_<platform> binaries")
_OUT_OPT = typer.Option(None, "--out", help="Output directory for archives")
_PROGRAM_OPT = typer.Option(None, "--program", help="Program name (binary prefix)")
_JOBS_OPT = typer.Option(None, "--jobs", min=1, help="Platforms packaged in parallel")
_POLICY_OPT = typer.Option(
    None, "--failure-policy", help="fail-fast (no publish on any failure) or omit"
)
_EXPECT_OPT = typer.Option(
    None, "--expect-platform", help="Platform id that must be present (repeatable)"
)


def package(
    config: Path = _CONFIG_OPT,
    tag: str = _TAG_OPT,
    sha: str = _SHA_OPT,
    input_dir: Path | None = _INPUT_OPT,
    out: Path | None = _OUT_OPT,
    program: str | None = _PROGRAM_OPT,
    jobs: int | None = _JOBS_OPT,
    failure_policy: str | None = _POLICY_OPT,
    expect: list[str] | None = _EXPECT_OPT,
) -> None:
    """Build release archives without publishing."""
    _run(
        config=config,
        tag=tag,
        sha=sha,
        event=None,
        dry_run=True,
        input_dir=input_dir,
        out=out,
        program=program,
        jobs=jobs,
        failure_policy=failure_policy,
        expect=expect,
    )


def release(
    config: Path = _CONFIG_OPT,
    tag: str = _TAG_OPT,
    sha: str = _SHA_OPT,
    event: str = typer.Option(
        "",
        "--event",
        envvar="GITHUB_EVENT_NAME",
        help="Trigger event; only 'push' publishes",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Build and validate, never publish"),
    input_dir: Path | None = _INPUT_OPT,
    out: Path | None = _OUT_OPT,
    program: str | None = _PROGRAM_OPT,
    jobs: int | None = _JOBS_OPT,
    failure_policy: str | None = _POLICY_OPT,
    expect: list[str] | None = _EXPECT_OPT,
) -> None:
    """Build release archives and publish them on a push trigger."""
    _run(
        config=config,
        tag=tag,
        sha=sha,
        event=event,
        dry_run=dry_run,
        input_dir=input_dir,
        out=out,
        program=program,
        jobs=jobs,
        failure_policy=failure_policy,
        expect=expect,
    )
