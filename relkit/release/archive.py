"""Archive creation for release bundles.

A bundle directory ``<program>_<version>_<platform>/`` is packed with the
directory itself as the single top-level entry, so that extracting the
archive recreates it:

- .zip for Windows binaries
- .tar.gz for everything else (file modes, including the execute bit, are
  stored in the tar headers)
"""

from __future__ import annotations

import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.release.model import ArchiveFormat

__all__ = ["Archiver", "ArchiveError", "archive_name"]


@dataclass(frozen=True, slots=True)
class ArchiveError:
    """Archive creation failure.

    Attributes:
        archive: Path of the archive that could not be written
        message: Human-readable error message
    """

    archive: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.archive}"


def archive_name(directory_name: str, fmt: ArchiveFormat) -> str:
    return f"{directory_name}{fmt.suffix}"


class Archiver:
    """Packs one bundle directory into a zip or tar.gz file.

    Usage:
        archiver = Archiver()
        result = archiver.create(bundle_dir, dest_dir, ArchiveFormat.TAR_GZ)
        if is_ok(result):
            print(f"Wrote {result.value}")
    """

    def create(
        self,
        bundle_dir: Path,
        dest_dir: Path,
        fmt: ArchiveFormat,
    ) -> Result[Path, ArchiveError]:
        """Write ``dest_dir/<bundle_dir.name><suffix>``.

        Args:
            bundle_dir: Directory to pack (becomes the top-level entry)
            dest_dir: Directory the archive is written to
            fmt: Archive format

        Returns:
            Ok with the archive path, or Err with ArchiveError. A partially
            written archive is removed before returning Err.
        """
        archive = dest_dir / archive_name(bundle_dir.name, fmt)
        if not bundle_dir.is_dir():
            return Err(
                ArchiveError(archive=archive, message=f"Bundle directory missing: {bundle_dir}")
            )

        files = sorted(p for p in bundle_dir.iterdir() if p.is_file())
        try:
            if fmt is ArchiveFormat.ZIP:
                self._write_zip(archive, bundle_dir, files)
            else:
                self._write_tar_gz(archive, bundle_dir, files)
        except (tarfile.TarError, zipfile.LargeZipFile) as e:
            archive.unlink(missing_ok=True)
            return Err(ArchiveError(archive=archive, message=f"Archive creation failed: {e}"))
        except OSError as e:
            archive.unlink(missing_ok=True)
            return Err(ArchiveError(archive=archive, message=f"IO error: {e}"))

        return Ok(archive)

    def _write_zip(self, archive: Path, bundle_dir: Path, files: list[Path]) -> None:
        # Some CI artifact downloads restore files with mtime=0, which the ZIP
        # format cannot represent (timestamps before 1980).
        with zipfile.ZipFile(
            archive, "w", compression=zipfile.ZIP_DEFLATED, strict_timestamps=False
        ) as zf:
            zf.write(bundle_dir, arcname=f"{bundle_dir.name}/")
            for path in files:
                zf.write(path, arcname=f"{bundle_dir.name}/{path.name}")

    def _write_tar_gz(self, archive: Path, bundle_dir: Path, files: list[Path]) -> None:
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(bundle_dir, arcname=bundle_dir.name, recursive=False)
            for path in files:
                tar.add(path, arcname=f"{bundle_dir.name}/{path.name}", recursive=False)
