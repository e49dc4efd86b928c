"""Per-platform bundle building.

For every binary the builder stages ``<program>_<version>_<platform>/`` with
the binary renamed to ``<program><ext>``, packs it (zip for Windows ``.exe``
binaries, tar.gz with the execute bit set for the rest) and moves the archive
into the shared output directory. The staging directory never outlives the
call, whether it succeeds or not.
"""

from __future__ import annotations

import contextlib
import shutil
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.platform.files import make_executable
from relkit.release.archive import Archiver, archive_name
from relkit.release.model import (
    ArchiveFormat,
    ArtifactFailure,
    PlatformArtifact,
    ReleaseBundle,
    ReleaseVersion,
)

WINDOWS_EXTENSION = ".exe"


def archive_format_for(extension: str) -> ArchiveFormat:
    if extension == WINDOWS_EXTENSION:
        return ArchiveFormat.ZIP
    return ArchiveFormat.TAR_GZ


def bundle_directory_name(program: str, version: ReleaseVersion, platform_id: str) -> str:
    return f"{program}_{version.slug}_{platform_id}"


def build_bundle(
    artifact: PlatformArtifact,
    *,
    source: Path,
    version: ReleaseVersion,
    program: str,
    staging_root: Path,
    out_dir: Path,
    archiver: Archiver | None = None,
) -> Result[ReleaseBundle, ArtifactFailure]:
    directory_name = bundle_directory_name(program, version, artifact.platform_id)
    fmt = archive_format_for(artifact.extension)
    bundle_dir = staging_root / directory_name
    staged_archive = staging_root / archive_name(directory_name, fmt)

    try:
        return _build(
            artifact,
            source=source,
            program=program,
            bundle_dir=bundle_dir,
            fmt=fmt,
            out_dir=out_dir,
            archiver=archiver or Archiver(),
        )
    finally:
        shutil.rmtree(bundle_dir, ignore_errors=True)
        with contextlib.suppress(OSError):
            staged_archive.unlink(missing_ok=True)


def _build(
    artifact: PlatformArtifact,
    *,
    source: Path,
    program: str,
    bundle_dir: Path,
    fmt: ArchiveFormat,
    out_dir: Path,
    archiver: Archiver,
) -> Result[ReleaseBundle, ArtifactFailure]:
    name = artifact.raw_file_name
    binary_name = f"{program}{artifact.extension}"
    binary = bundle_dir / binary_name

    try:
        # A leftover from an interrupted run is reused, minus its old contents.
        if bundle_dir.exists():
            shutil.rmtree(bundle_dir)
        bundle_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, binary)
        if fmt is ArchiveFormat.TAR_GZ:
            make_executable(binary)
    except OSError as e:
        return Err(ArtifactFailure(name=name, stage="copy", message=f"staging failed: {e}"))

    archived = archiver.create(bundle_dir, bundle_dir.parent, fmt)
    if isinstance(archived, Err):
        return Err(ArtifactFailure(name=name, stage="archive", message=str(archived.error)))

    target = out_dir / archived.value.name
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        # Reruns for the same version overwrite the previous archive.
        target.unlink(missing_ok=True)
        shutil.move(archived.value, target)
    except OSError as e:
        return Err(
            ArtifactFailure(name=name, stage="move", message=f"move to {out_dir} failed: {e}")
        )

    return Ok(
        ReleaseBundle(
            directory_name=bundle_dir.name,
            artifact_path=target,
            contained_binary=binary_name,
            platform_id=artifact.platform_id,
            archive_format=fmt,
        )
    )
