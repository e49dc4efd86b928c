"""Release pipeline orchestration.

    resolve version -> discover binaries -> clear this version's old outputs
        -> decompose names
        -> bundle every platform in parallel -> wait for all
        -> manifest -> publish (push trigger only)

Per-artifact failures are collected and never stop sibling platforms. Only a
missing version, an unusable input directory, and a rejected publish end the
run early; the archives built so far always stay in the output directory.
"""

from __future__ import annotations

import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path

from relkit.core.config import DEFAULT_JOBS, FailurePolicy
from relkit.core.errors import ErrorCode
from relkit.core.result import Err, Ok, Result
from relkit.core.structured import get_str
from relkit.output.console import ConsoleProtocol, Style
from relkit.release.bundle import build_bundle
from relkit.release.discover import discover_binaries
from relkit.release.errors import ReleaseError
from relkit.release.manifest import MANIFEST_NAME, asset_filenames, read_manifest, write_manifest
from relkit.release.model import (
    ArtifactFailure,
    DistributionSet,
    PlatformArtifact,
    ReleaseBundle,
    ReleaseVersion,
)
from relkit.release.naming import decompose
from relkit.release.publish import (
    PublishReceipt,
    PublishRequest,
    ReleasePublisher,
    build_publish_request,
    collect_archives,
    should_publish,
)
from relkit.release.version import is_stable, resolve_version


@dataclass(frozen=True, slots=True)
class PipelineRequest:
    program: str
    input_dir: Path
    output_dir: Path
    tag: str | None
    commit_sha: str | None
    event: str | None = None
    dry_run: bool = False
    failure_policy: FailurePolicy = "fail-fast"
    jobs: int = DEFAULT_JOBS
    expected_platforms: tuple[str, ...] = ()
    # Parent of the temporary staging area; defaults to the output dir's parent.
    staging_dir: Path | None = None

    @property
    def publish(self) -> bool:
        return should_publish(self.event, dry_run=self.dry_run)


@dataclass(frozen=True, slots=True)
class PipelineReport:
    version: ReleaseVersion
    distribution: DistributionSet
    failures: tuple[ArtifactFailure, ...]
    manifest: Path | None = None
    manifest_error: str | None = None
    published: PublishReceipt | None = None
    publish_error: ReleaseError | None = None
    publish_skipped: str | None = None

    @property
    def exit_code(self) -> ErrorCode:
        if self.publish_error is not None:
            return ErrorCode.PUBLISH_ERROR
        if self.failures:
            return ErrorCode.PACKAGE_ERROR
        if self.manifest_error is not None:
            return ErrorCode.IO_ERROR
        return ErrorCode.OK


@dataclass(frozen=True, slots=True)
class _Job:
    artifact: PlatformArtifact
    source: Path


def run_pipeline(
    request: PipelineRequest,
    *,
    publisher: ReleasePublisher,
    console: ConsoleProtocol,
) -> Result[PipelineReport, ReleaseError]:
    resolved = resolve_version(request.tag, request.commit_sha)
    if isinstance(resolved, Err):
        return resolved
    version = resolved.value
    stable = is_stable(version)

    console.header(f"{request.program} {version.value}")
    console.print(
        f"version source: {version.source.value}, stable: {'yes' if stable else 'no'}",
        Style.DIM,
    )

    out_dir = request.output_dir
    if out_dir.resolve() == request.input_dir.resolve():
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"output directory must differ from the input directory: {out_dir}",
            )
        )

    staging_parent = request.staging_dir or out_dir.resolve().parent
    try:
        staging_parent.mkdir(parents=True, exist_ok=True)
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return Err(ReleaseError(kind="io_failure", message=f"cannot prepare directories: {e}"))

    try:
        staging = tempfile.TemporaryDirectory(
            prefix=".relkit-staging-", dir=staging_parent, ignore_cleanup_errors=True
        )
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"cannot create staging directory in {staging_parent}: {e}",
                hint="Pass a writable staging directory or a different --out.",
            )
        )

    with staging as tmp:
        staging_root = Path(tmp)
        discovered = discover_binaries(
            request.input_dir,
            program=request.program,
            exclude=(out_dir, staging_root),
        )
        if isinstance(discovered, Err):
            return discovered

        console.print("inputs:", Style.DIM)
        for path in discovered.value:
            console.print(f"  {path.relative_to(request.input_dir).as_posix()}", Style.DIM)

        cleared = _clear_previous_outputs(out_dir, program=request.program, version=version)
        if isinstance(cleared, Err):
            return cleared

        jobs, failures = _plan_jobs(discovered.value, program=request.program)
        bundles, bundle_failures = _run_jobs(
            jobs,
            request=request,
            version=version,
            staging_root=staging_root,
            console=console,
        )
        failures.extend(bundle_failures)

    failures.extend(_missing_platforms(request, jobs))
    _report_failures(failures, console)

    distribution = DistributionSet(
        bundles=tuple(sorted(bundles, key=lambda b: b.platform_id)),
        stable=stable,
    )

    manifest: Path | None = None
    manifest_error: str | None = None
    if not distribution.is_empty():
        try:
            manifest = write_manifest(
                out_dir=out_dir,
                program=request.program,
                version=version,
                distribution=distribution,
            )
        except OSError as e:
            manifest_error = f"manifest: {e}"
            console.error(manifest_error)

    report = PipelineReport(
        version=version,
        distribution=distribution,
        failures=tuple(failures),
        manifest=manifest,
        manifest_error=manifest_error,
    )

    skipped = _publish_skip_reason(request, report)
    if skipped is not None:
        console.info(f"publish skipped: {skipped}")
        return Ok(replace(report, publish_skipped=skipped))

    publish_request = build_publish_request(distribution, version)
    console.print(
        f"publish {publish_request.tag}: prerelease={str(publish_request.prerelease).lower()} "
        f"latest={str(publish_request.make_latest).lower()} "
        f"assets={len(publish_request.artifact_paths)}",
        Style.DIM,
    )
    published = publisher.publish(publish_request)
    if isinstance(published, Err):
        console.error(published.error.pretty())
        console.print(f"archives kept in {out_dir} for a manual retry (relkit publish)", Style.DIM)
        return Ok(replace(report, publish_error=published.error))

    console.success(f"published {published.value.tag} ({len(published.value.uploaded)} assets)")
    return Ok(replace(report, published=published.value))


def publish_existing(
    *,
    program: str,
    output_dir: Path,
    tag: str | None,
    commit_sha: str | None,
    publisher: ReleasePublisher,
    console: ConsoleProtocol,
) -> Result[PublishReceipt, ReleaseError]:
    """Publish the archives listed in ``output_dir/manifest.json``.

    Only the manifest of the latest run for this version is trusted; archive
    files it does not list are never uploaded.
    """
    resolved = resolve_version(tag, commit_sha)
    if isinstance(resolved, Err):
        return resolved
    version = resolved.value

    listed = _manifest_archives(output_dir, program=program, version=version)
    if isinstance(listed, Err):
        return listed
    archives = listed.value

    for path in archives:
        console.print(f"  {path.name}", Style.DIM)

    stable = is_stable(version)
    request = PublishRequest(
        tag=version.value,
        artifact_paths=archives,
        prerelease=not stable,
        make_latest=stable,
    )
    return publisher.publish(request)


def _manifest_archives(
    output_dir: Path,
    *,
    program: str,
    version: ReleaseVersion,
) -> Result[tuple[Path, ...], ReleaseError]:
    manifest_path = output_dir / MANIFEST_NAME
    try:
        manifest = read_manifest(manifest_path)
    except FileNotFoundError:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"no {MANIFEST_NAME} in {output_dir}",
                hint="Run `relkit package` first.",
            )
        )
    except (OSError, ValueError) as e:
        return Err(ReleaseError(kind="io_failure", message=f"cannot read {manifest_path}: {e}"))

    built_for = (get_str(manifest, "program"), get_str(manifest, "version"))
    if built_for != (program, version.value):
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=(
                    f"{manifest_path} describes {built_for[0]} {built_for[1]}, "
                    f"not {program} {version.value}"
                ),
                hint="Run `relkit package` for this version first.",
            )
        )

    archives = tuple(output_dir / name for name in asset_filenames(manifest))
    if not archives:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"no archives for {program} {version.value} in {manifest_path}",
            )
        )
    missing = [p.name for p in archives if not p.is_file()]
    if missing:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"archives listed in {MANIFEST_NAME} are missing: {', '.join(missing)}",
            )
        )
    return Ok(archives)


def _clear_previous_outputs(
    out_dir: Path,
    *,
    program: str,
    version: ReleaseVersion,
) -> Result[None, ReleaseError]:
    """Remove archives and the manifest an earlier run left for this version."""
    stale = [*collect_archives(out_dir, program=program, version=version), out_dir / MANIFEST_NAME]
    try:
        for path in stale:
            path.unlink(missing_ok=True)
    except OSError as e:
        return Err(ReleaseError(kind="io_failure", message=f"cannot clear {out_dir}: {e}"))
    return Ok(None)


def _plan_jobs(paths: list[Path], *, program: str) -> tuple[list[_Job], list[ArtifactFailure]]:
    jobs: list[_Job] = []
    failures: list[ArtifactFailure] = []
    seen: dict[str, Path] = {}

    for path in paths:
        parsed = decompose(path.name, program=program)
        if isinstance(parsed, Err):
            failures.append(
                ArtifactFailure(name=path.name, stage="decompose", message=parsed.error.message)
            )
            continue

        platform_id = parsed.value.platform_id
        if platform_id in seen:
            failures.append(
                ArtifactFailure(
                    name=path.name,
                    stage="decompose",
                    message=(
                        f"duplicate binary for platform {platform_id} (first: {seen[platform_id]})"
                    ),
                )
            )
            continue

        seen[platform_id] = path
        jobs.append(_Job(artifact=parsed.value, source=path))

    return jobs, failures


def _run_jobs(
    jobs: list[_Job],
    *,
    request: PipelineRequest,
    version: ReleaseVersion,
    staging_root: Path,
    console: ConsoleProtocol,
) -> tuple[list[ReleaseBundle], list[ArtifactFailure]]:
    if not jobs:
        return [], []

    # Jobs touch disjoint staging dirs and distinct archive names.
    with ThreadPoolExecutor(max_workers=max(1, request.jobs)) as pool:
        futures = [
            pool.submit(
                build_bundle,
                job.artifact,
                source=job.source,
                version=version,
                program=request.program,
                staging_root=staging_root,
                out_dir=request.output_dir,
            )
            for job in jobs
        ]
        results = [f.result() for f in futures]

    bundles: list[ReleaseBundle] = []
    failures: list[ArtifactFailure] = []
    paired = sorted(zip(jobs, results, strict=True), key=lambda p: p[0].artifact.platform_id)
    for job, result in paired:
        if isinstance(result, Err):
            failures.append(result.error)
            continue
        bundles.append(result.value)
        console.success(f"{job.artifact.raw_file_name} -> {result.value.artifact_path.name}")

    return bundles, failures


def _missing_platforms(request: PipelineRequest, jobs: list[_Job]) -> list[ArtifactFailure]:
    attempted = {job.artifact.platform_id for job in jobs}
    return [
        ArtifactFailure(
            name=f"{request.program}_{platform_id}",
            stage="missing",
            message=f"no binary for expected platform {platform_id}",
        )
        for platform_id in request.expected_platforms
        if platform_id not in attempted
    ]


def _report_failures(failures: list[ArtifactFailure], console: ConsoleProtocol) -> None:
    for failure in failures:
        console.error(f"{failure.name} [{failure.stage}]: {failure.message}")


def _publish_skip_reason(request: PipelineRequest, report: PipelineReport) -> str | None:
    if request.dry_run:
        return "dry run"
    if not request.publish:
        return f"trigger event '{request.event or 'none'}' does not publish"
    if report.failures and request.failure_policy == "fail-fast":
        return f"{len(report.failures)} artifact(s) failed (failure policy: fail-fast)"
    if report.distribution.is_empty():
        return "no archives were built"
    return None

