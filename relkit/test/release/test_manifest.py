from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from relkit.release.manifest import (
    MANIFEST_NAME,
    asset_filenames,
    read_manifest,
    write_manifest,
)
from relkit.release.model import (
    ArchiveFormat,
    DistributionSet,
    ReleaseBundle,
    ReleaseVersion,
    VersionSource,
)


def _bundle(dist: Path, platform_id: str, fmt: ArchiveFormat, payload: bytes) -> ReleaseBundle:
    directory_name = f"tabby_v1.0.0_{platform_id}"
    path = dist / f"{directory_name}{fmt.suffix}"
    path.write_bytes(payload)
    return ReleaseBundle(
        directory_name=directory_name,
        artifact_path=path,
        contained_binary="tabby.exe" if fmt is ArchiveFormat.ZIP else "tabby",
        platform_id=platform_id,
        archive_format=fmt,
    )


def test_write_manifest(tmp_path: Path) -> None:
    distribution = DistributionSet(
        bundles=(
            _bundle(tmp_path, "aarch64-apple-darwin", ArchiveFormat.TAR_GZ, b"tar"),
            _bundle(tmp_path, "x86_64-windows-msvc", ArchiveFormat.ZIP, b"zip!"),
        ),
        stable=True,
    )

    path = write_manifest(
        out_dir=tmp_path,
        program="tabby",
        version=ReleaseVersion(value="v1.0.0", source=VersionSource.TAG),
        distribution=distribution,
    )

    assert path == tmp_path / MANIFEST_NAME
    data = read_manifest(path)
    assert data["schema"] == 1
    assert data["program"] == "tabby"
    assert data["version"] == "v1.0.0"
    assert data["version_source"] == "tag"
    assert data["stable"] is True
    assert data["assets"] == [
        {
            "filename": "tabby_v1.0.0_aarch64-apple-darwin.tar.gz",
            "platform": "aarch64-apple-darwin",
            "format": "tar.gz",
            "size": 3,
            "sha256": hashlib.sha256(b"tar").hexdigest(),
        },
        {
            "filename": "tabby_v1.0.0_x86_64-windows-msvc.zip",
            "platform": "x86_64-windows-msvc",
            "format": "zip",
            "size": 4,
            "sha256": hashlib.sha256(b"zip!").hexdigest(),
        },
    ]


def test_empty_distribution(tmp_path: Path) -> None:
    path = write_manifest(
        out_dir=tmp_path,
        program="tabby",
        version=ReleaseVersion(value="abcdef12", source=VersionSource.COMMIT_FALLBACK),
        distribution=DistributionSet(bundles=(), stable=False),
    )
    data = read_manifest(path)
    assert data["assets"] == []
    assert data["version_source"] == "commit"


def test_asset_filenames_in_manifest_order(tmp_path: Path) -> None:
    distribution = DistributionSet(
        bundles=(
            _bundle(tmp_path, "aarch64-apple-darwin", ArchiveFormat.TAR_GZ, b"tar"),
            _bundle(tmp_path, "x86_64-windows-msvc", ArchiveFormat.ZIP, b"zip"),
        ),
        stable=False,
    )
    path = write_manifest(
        out_dir=tmp_path,
        program="tabby",
        version=ReleaseVersion(value="v1.0.0", source=VersionSource.TAG),
        distribution=distribution,
    )

    assert asset_filenames(read_manifest(path)) == (
        "tabby_v1.0.0_aarch64-apple-darwin.tar.gz",
        "tabby_v1.0.0_x86_64-windows-msvc.zip",
    )


def test_asset_filenames_skips_malformed_entries() -> None:
    manifest: dict[str, object] = {"assets": [{"filename": "a.zip"}, "b.zip", {"size": 3}]}
    assert asset_filenames(manifest) == ("a.zip",)


def test_read_manifest_rejects_non_object_root(tmp_path: Path) -> None:
    path = tmp_path / MANIFEST_NAME
    path.write_text("[]\n", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        read_manifest(path)
