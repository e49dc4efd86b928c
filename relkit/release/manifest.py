"""manifest.json for a finished distribution set.

The manifest sits next to the archives in the output directory and records
what was built (platform, format, size, sha256). It is not attached to the
release; it exists so a failed or skipped publish can be inspected and
retried by hand.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from relkit.core.structured import StrDict, as_obj_list, as_str_dict, get_str
from relkit.platform.files import atomic_write_text, sha256_file
from relkit.release.model import DistributionSet, ReleaseVersion

MANIFEST_NAME = "manifest.json"
MANIFEST_SCHEMA = 1


@dataclass(frozen=True, slots=True)
class ManifestAsset:
    filename: str
    platform: str
    format: str
    size: int
    sha256: str


def collect_assets(distribution: DistributionSet) -> list[ManifestAsset]:
    assets: list[ManifestAsset] = []
    for bundle in distribution.bundles:
        path = bundle.artifact_path
        assets.append(
            ManifestAsset(
                filename=path.name,
                platform=bundle.platform_id,
                format=bundle.archive_format.suffix.lstrip("."),
                size=path.stat().st_size,
                sha256=sha256_file(path),
            )
        )
    return assets


def write_manifest(
    *,
    out_dir: Path,
    program: str,
    version: ReleaseVersion,
    distribution: DistributionSet,
) -> Path:
    """Write ``out_dir/manifest.json`` atomically and return its path.

    Raises:
        OSError: If an archive cannot be read or the manifest cannot be written.
    """
    assets = collect_assets(distribution)
    manifest = {
        "schema": MANIFEST_SCHEMA,
        "program": program,
        "version": version.value,
        "version_source": version.source.value,
        "stable": distribution.stable,
        "assets": [
            {
                "filename": a.filename,
                "platform": a.platform,
                "format": a.format,
                "size": a.size,
                "sha256": a.sha256,
            }
            for a in assets
        ],
    }

    out_path = out_dir / MANIFEST_NAME
    atomic_write_text(out_path, json.dumps(manifest, indent=2, sort_keys=True) + "\n")
    return out_path


def read_manifest(path: Path) -> StrDict:
    """Load a manifest written by ``write_manifest``.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If it is not JSON or its root is not an object.
    """
    data = as_str_dict(json.loads(path.read_text(encoding="utf-8")))
    if data is None:
        raise ValueError(f"{path}: manifest root must be a JSON object")
    return data


def asset_filenames(manifest: StrDict) -> tuple[str, ...]:
    """Archive file names listed in a manifest, in manifest order."""
    names: list[str] = []
    for item in as_obj_list(manifest.get("assets")) or []:
        asset = as_str_dict(item)
        name = get_str(asset, "filename") if asset is not None else None
        if name is not None:
            names.append(name)
    return tuple(names)
