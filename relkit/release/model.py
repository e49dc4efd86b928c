from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal


class VersionSource(Enum):
    TAG = "tag"
    COMMIT_FALLBACK = "commit"


class ArchiveFormat(Enum):
    ZIP = ".zip"
    TAR_GZ = ".tar.gz"

    @property
    def suffix(self) -> str:
        return self.value


FailureStage = Literal["decompose", "copy", "archive", "move", "missing"]


@dataclass(frozen=True, slots=True)
class PlatformArtifact:
    """A compiled binary for one target platform, parsed from its file name."""

    raw_file_name: str
    base_name: str
    platform_id: str
    extension: str  # "" for POSIX binaries, ".exe" on Windows

    def reconstruct(self) -> str:
        return f"{self.base_name}_{self.platform_id}{self.extension}"


@dataclass(frozen=True, slots=True)
class ReleaseVersion:
    value: str
    source: VersionSource

    @property
    def slug(self) -> str:
        """``value`` made safe for a single path component.

        Tags are used verbatim; branch refs such as ``123/merge`` would
        otherwise create nested directories.
        """
        return self.value.replace("/", "-").replace("\\", "-")


@dataclass(frozen=True, slots=True)
class ReleaseBundle:
    directory_name: str
    artifact_path: Path
    contained_binary: str
    platform_id: str
    archive_format: ArchiveFormat


@dataclass(frozen=True, slots=True)
class DistributionSet:
    """Archives built in one run plus the release's stability verdict."""

    bundles: tuple[ReleaseBundle, ...]
    stable: bool

    @property
    def artifact_paths(self) -> tuple[Path, ...]:
        return tuple(b.artifact_path for b in self.bundles)

    def is_empty(self) -> bool:
        return not self.bundles


@dataclass(frozen=True, slots=True)
class ArtifactFailure:
    name: str
    stage: FailureStage
    message: str
