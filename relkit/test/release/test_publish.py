from __future__ import annotations

from pathlib import Path

import pytest

from relkit.core.result import Err, Ok
from relkit.release.errors import ReleaseError
from relkit.release.model import (
    ArchiveFormat,
    DistributionSet,
    ReleaseBundle,
    ReleaseVersion,
    VersionSource,
)
from relkit.release.publish import (
    MemoryPublisher,
    PublishRequest,
    build_publish_request,
    collect_archives,
    should_publish,
)


def _distribution(dist: Path, version: str, *, stable: bool) -> DistributionSet:
    bundles = []
    for platform_id, fmt in (
        ("aarch64-apple-darwin", ArchiveFormat.TAR_GZ),
        ("x86_64-windows-msvc", ArchiveFormat.ZIP),
    ):
        name = f"tabby_{version}_{platform_id}"
        bundles.append(
            ReleaseBundle(
                directory_name=name,
                artifact_path=dist / f"{name}{fmt.suffix}",
                contained_binary="tabby",
                platform_id=platform_id,
                archive_format=fmt,
            )
        )
    return DistributionSet(bundles=tuple(bundles), stable=stable)


@pytest.mark.parametrize(
    ("event", "dry_run", "expected"),
    [
        ("push", False, True),
        ("push", True, False),
        ("workflow_dispatch", False, False),
        ("pull_request", False, False),
        (None, False, False),
        ("", False, False),
    ],
)
def test_should_publish(event: str | None, dry_run: bool, expected: bool) -> None:
    assert should_publish(event, dry_run=dry_run) is expected


def test_stable_request_is_latest_not_prerelease(tmp_path: Path) -> None:
    version = ReleaseVersion(value="v0.5.5", source=VersionSource.TAG)
    request = build_publish_request(_distribution(tmp_path, "v0.5.5", stable=True), version)

    assert request.tag == "v0.5.5"
    assert request.prerelease is False
    assert request.make_latest is True
    assert request.update_existing is True
    assert request.remove_old_artifacts is True
    assert request.asset_names == (
        "tabby_v0.5.5_aarch64-apple-darwin.tar.gz",
        "tabby_v0.5.5_x86_64-windows-msvc.zip",
    )


def test_unstable_request_is_prerelease_not_latest(tmp_path: Path) -> None:
    version = ReleaseVersion(value="v0.5.5-rc.1", source=VersionSource.TAG)
    request = build_publish_request(
        _distribution(tmp_path, "v0.5.5-rc.1", stable=False), version
    )

    assert request.prerelease is True
    assert request.make_latest is False


def test_memory_publisher_rerun_has_no_duplicate_assets(tmp_path: Path) -> None:
    version = ReleaseVersion(value="nightly", source=VersionSource.TAG)
    request = build_publish_request(_distribution(tmp_path, "nightly", stable=False), version)
    publisher = MemoryPublisher()

    first = publisher.publish(request)
    second = publisher.publish(request)

    assert isinstance(first, Ok) and first.value.created is True
    assert isinstance(second, Ok) and second.value.created is False
    assert second.value.removed == ()
    assert publisher.releases["nightly"].assets == list(request.asset_names)
    assert len(publisher.requests) == 2


def test_memory_publisher_latest_moves_to_newest_stable(tmp_path: Path) -> None:
    publisher = MemoryPublisher()
    for tag in ("v1.0.0", "v1.1.0"):
        version = ReleaseVersion(value=tag, source=VersionSource.TAG)
        publisher.publish(build_publish_request(_distribution(tmp_path, tag, stable=True), version))

    assert publisher.releases["v1.0.0"].latest is False
    assert publisher.releases["v1.1.0"].latest is True


def test_memory_publisher_keeps_old_assets_when_asked(tmp_path: Path) -> None:
    publisher = MemoryPublisher()
    old = tmp_path / "old.zip"
    new = tmp_path / "new.zip"
    publisher.publish(
        PublishRequest(tag="v1.0.0", artifact_paths=(old,), prerelease=False, make_latest=True)
    )
    publisher.publish(
        PublishRequest(
            tag="v1.0.0",
            artifact_paths=(new,),
            prerelease=False,
            make_latest=True,
            remove_old_artifacts=False,
        )
    )

    assert publisher.releases["v1.0.0"].assets == ["old.zip", "new.zip"]


def test_memory_publisher_fail_with(tmp_path: Path) -> None:
    error = ReleaseError(kind="publish_failed", message="boom")
    publisher = MemoryPublisher(fail_with=error)
    version = ReleaseVersion(value="v1.0.0", source=VersionSource.TAG)

    result = publisher.publish(
        build_publish_request(_distribution(tmp_path, "v1.0.0", stable=True), version)
    )

    assert result == Err(error)
    assert publisher.releases == {}
    assert len(publisher.requests) == 1


def test_collect_archives_matches_program_and_version(tmp_path: Path) -> None:
    for name in (
        "tabby_v1.0.0_x86_64-windows-msvc.zip",
        "tabby_v1.0.0_aarch64-apple-darwin.tar.gz",
        "tabby_v0.9.0_aarch64-apple-darwin.tar.gz",
        "other_v1.0.0_linux.tar.gz",
        "manifest.json",
    ):
        (tmp_path / name).write_bytes(b"x")
    version = ReleaseVersion(value="v1.0.0", source=VersionSource.TAG)

    found = collect_archives(tmp_path, program="tabby", version=version)

    assert [p.name for p in found] == [
        "tabby_v1.0.0_aarch64-apple-darwin.tar.gz",
        "tabby_v1.0.0_x86_64-windows-msvc.zip",
    ]


def test_collect_archives_missing_dir(tmp_path: Path) -> None:
    version = ReleaseVersion(value="v1.0.0", source=VersionSource.TAG)
    assert collect_archives(tmp_path / "nope", program="tabby", version=version) == ()


def test_memory_publisher_drops_assets_the_new_run_did_not_build(tmp_path: Path) -> None:
    publisher = MemoryPublisher()
    publisher.publish(
        PublishRequest(
            tag="nightly",
            artifact_paths=(tmp_path / "a.zip", tmp_path / "b.tar.gz"),
            prerelease=True,
            make_latest=False,
        )
    )

    result = publisher.publish(
        PublishRequest(
            tag="nightly",
            artifact_paths=(tmp_path / "a.zip",),
            prerelease=True,
            make_latest=False,
        )
    )

    assert isinstance(result, Ok)
    assert result.value.removed == ("b.tar.gz",)
    assert publisher.releases["nightly"].assets == ["a.zip"]


def test_memory_publisher_refused_update_keeps_latest(tmp_path: Path) -> None:
    publisher = MemoryPublisher()
    for tag in ("v1.0.0", "v1.1.0"):
        publisher.publish(
            PublishRequest(
                tag=tag,
                artifact_paths=(tmp_path / f"{tag}.zip",),
                prerelease=False,
                make_latest=True,
            )
        )

    result = publisher.publish(
        PublishRequest(
            tag="v1.0.0",
            artifact_paths=(tmp_path / "v1.0.0.zip",),
            prerelease=False,
            make_latest=True,
            update_existing=False,
        )
    )

    assert isinstance(result, Err)
    assert result.error.kind == "publish_failed"
    assert publisher.releases["v1.1.0"].latest is True
    assert publisher.releases["v1.0.0"].latest is False
