"""Publishing a distribution set as a single release.

relkit decides *what* to publish (the archive list) and *how to flag it*
(prerelease / latest); the release store itself is an external collaborator
behind ``ReleasePublisher``:

- ``GhReleasePublisher`` talks to GitHub releases through the ``gh`` CLI.
- ``MemoryPublisher`` keeps releases in memory and records every request
  (used by tests and dry-run style checks).

Both implement the same upsert: an existing release for the tag has its old
assets removed and replaced, so rerunning a tag never accumulates duplicates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from relkit.core.result import Err, Ok, Result
from relkit.release import gh
from relkit.release.errors import ReleaseError
from relkit.release.model import ArchiveFormat, DistributionSet, ReleaseVersion

__all__ = [
    "PUBLISH_EVENT",
    "GhReleasePublisher",
    "MemoryPublisher",
    "MemoryRelease",
    "PublishReceipt",
    "PublishRequest",
    "ReleasePublisher",
    "build_publish_request",
    "collect_archives",
    "should_publish",
]

# Only tag/branch pushes publish; manual runs and PR validation build only.
PUBLISH_EVENT = "push"


@dataclass(frozen=True, slots=True)
class PublishRequest:
    tag: str
    artifact_paths: tuple[Path, ...]
    prerelease: bool
    make_latest: bool
    update_existing: bool = True
    remove_old_artifacts: bool = True

    @property
    def asset_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.artifact_paths)


@dataclass(frozen=True, slots=True)
class PublishReceipt:
    tag: str
    created: bool
    uploaded: tuple[str, ...]
    removed: tuple[str, ...] = ()


class ReleasePublisher(Protocol):
    def publish(self, request: PublishRequest) -> Result[PublishReceipt, ReleaseError]: ...


def should_publish(event: str | None, *, dry_run: bool) -> bool:
    return not dry_run and (event or "").strip() == PUBLISH_EVENT


def build_publish_request(distribution: DistributionSet, version: ReleaseVersion) -> PublishRequest:
    return PublishRequest(
        tag=version.value,
        artifact_paths=distribution.artifact_paths,
        prerelease=not distribution.stable,
        make_latest=distribution.stable,
    )


def collect_archives(out_dir: Path, *, program: str, version: ReleaseVersion) -> tuple[Path, ...]:
    """Archives already in ``out_dir`` for this program and version, sorted."""
    if not out_dir.is_dir():
        return ()
    found: list[Path] = []
    for fmt in ArchiveFormat:
        found.extend(out_dir.glob(f"{program}_{version.slug}_*{fmt.suffix}"))
    return tuple(sorted(p for p in found if p.is_file()))


class GhReleasePublisher:
    """Upserts a GitHub release with ``gh``.

    Existing release: update the prerelease/latest flags, upload the new
    archives with --clobber, then delete old assets the upload did not
    replace. A failed upload leaves the previous assets in place. Missing
    release: create it with the archives attached.
    """

    def __init__(self, *, workspace_root: Path, repo: str | None = None) -> None:
        self._root = workspace_root
        self._repo = repo

    def publish(self, request: PublishRequest) -> Result[PublishReceipt, ReleaseError]:
        ok = gh.ensure_gh_available()
        if isinstance(ok, Err):
            return ok

        if not request.artifact_paths:
            return Err(
                ReleaseError(kind="invalid_input", message=f"nothing to publish for {request.tag}")
            )

        files = list(request.artifact_paths)
        existing = gh.view_release(workspace_root=self._root, tag=request.tag, repo=self._repo)
        if isinstance(existing, Err):
            return existing

        if existing.value is None:
            created = gh.create_release(
                workspace_root=self._root,
                tag=request.tag,
                files=files,
                prerelease=request.prerelease,
                make_latest=request.make_latest,
                repo=self._repo,
            )
            if isinstance(created, Err):
                return created
            return Ok(PublishReceipt(tag=request.tag, created=True, uploaded=request.asset_names))

        if not request.update_existing:
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"release already exists: {request.tag}",
                    hint="Updating existing releases is disabled for this request.",
                )
            )

        edited = gh.edit_release(
            workspace_root=self._root,
            tag=request.tag,
            prerelease=request.prerelease,
            make_latest=request.make_latest,
            repo=self._repo,
        )
        if isinstance(edited, Err):
            return edited

        uploaded = gh.upload_release_assets(
            workspace_root=self._root, tag=request.tag, files=files, repo=self._repo
        )
        if isinstance(uploaded, Err):
            return uploaded

        # Same-named assets were replaced by --clobber; only drop the leftovers.
        removed: list[str] = []
        if request.remove_old_artifacts:
            for name in existing.value.asset_names:
                if name in request.asset_names:
                    continue
                deleted = gh.delete_release_asset(
                    workspace_root=self._root, tag=request.tag, asset_name=name, repo=self._repo
                )
                if isinstance(deleted, Err):
                    return deleted
                removed.append(name)

        return Ok(
            PublishReceipt(
                tag=request.tag,
                created=False,
                uploaded=request.asset_names,
                removed=tuple(removed),
            )
        )


@dataclass
class MemoryRelease:
    tag: str
    prerelease: bool
    latest: bool
    assets: list[str]


def _empty_releases() -> dict[str, MemoryRelease]:
    return {}


def _empty_requests() -> list[PublishRequest]:
    return []


@dataclass
class MemoryPublisher:
    """In-memory release store that records every publish request.

    Set ``fail_with`` to make every publish fail with that error.
    """

    releases: dict[str, MemoryRelease] = field(default_factory=_empty_releases)
    requests: list[PublishRequest] = field(default_factory=_empty_requests)
    fail_with: ReleaseError | None = None

    def publish(self, request: PublishRequest) -> Result[PublishReceipt, ReleaseError]:
        self.requests.append(request)
        if self.fail_with is not None:
            return Err(self.fail_with)

        existing = self.releases.get(request.tag)
        if existing is not None and not request.update_existing:
            message = f"release already exists: {request.tag}"
            return Err(ReleaseError(kind="publish_failed", message=message))

        if request.make_latest:
            for other in self.releases.values():
                other.latest = False

        if existing is None:
            self.releases[request.tag] = MemoryRelease(
                tag=request.tag,
                prerelease=request.prerelease,
                latest=request.make_latest,
                assets=list(request.asset_names),
            )
            return Ok(PublishReceipt(tag=request.tag, created=True, uploaded=request.asset_names))

        removed: tuple[str, ...] = ()
        if request.remove_old_artifacts:
            removed = tuple(a for a in existing.assets if a not in request.asset_names)
            existing.assets = [a for a in existing.assets if a not in removed]
        kept = [a for a in existing.assets if a not in request.asset_names]
        existing.assets = kept + list(request.asset_names)
        existing.prerelease = request.prerelease
        existing.latest = request.make_latest

        return Ok(
            PublishReceipt(
                tag=request.tag,
                created=False,
                uploaded=request.asset_names,
                removed=removed,
            )
        )
