from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from relkit.core.result import Err, Ok, Result
from relkit.core.structured import as_obj_list, as_str_dict, get_str
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process
from relkit.release.errors import ReleaseError
from relkit.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)


@dataclass(frozen=True, slots=True)
class GhRelease:
    tag: str
    prerelease: bool
    asset_names: tuple[str, ...]


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if not error.started and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    return "release not found" in error.stderr.lower()


def _repo_args(repo: str | None) -> list[str]:
    return ["--repo", repo] if repo else []


def _publish_error(message: str, error: ProcessError) -> ReleaseError:
    return ReleaseError(
        kind="publish_failed",
        message=message,
        hint=error.stderr.strip() or str(error),
    )


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def view_release(
    *,
    workspace_root: Path,
    tag: str,
    repo: str | None = None,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[GhRelease | None, ReleaseError]:
    """Look up the release for ``tag``; Ok(None) when it does not exist yet.

    Reads are idempotent, so transient network failures are retried.
    """
    cmd = [
        "gh",
        "release",
        "view",
        tag,
        *_repo_args(repo),
        "--json",
        "tagName,isPrerelease,assets",
    ]
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Ok):
            return _parse_release(tag, result.value)

        error = result.error
        if _is_not_found(error):
            return Ok(None)
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue
        return Err(_publish_error(f"gh release view failed: {tag}", error))

    return Err(ReleaseError(kind="publish_failed", message=f"gh release view failed: {tag}"))


def _parse_release(tag: str, payload: str) -> Result[GhRelease | None, ReleaseError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="publish_failed",
                message=f"gh release view returned invalid JSON: {e}",
                hint=tag,
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            ReleaseError(kind="publish_failed", message=f"unexpected release payload: {tag}")
        )

    assets: list[str] = []
    for item in as_obj_list(data.get("assets")) or []:
        d = as_str_dict(item)
        if d is None:
            continue
        name = get_str(d, "name")
        if name is not None:
            assets.append(name)

    prerelease = data.get("isPrerelease")
    return Ok(
        GhRelease(
            tag=get_str(data, "tagName") or tag,
            prerelease=prerelease if isinstance(prerelease, bool) else False,
            asset_names=tuple(assets),
        )
    )


def _flag(name: str, value: bool) -> str:
    return f"--{name}={'true' if value else 'false'}"


def create_release(
    *,
    workspace_root: Path,
    tag: str,
    files: list[Path],
    prerelease: bool,
    make_latest: bool,
    repo: str | None = None,
) -> Result[None, ReleaseError]:
    cmd = [
        "gh",
        "release",
        "create",
        tag,
        *(str(p) for p in files),
        *_repo_args(repo),
        "--title",
        tag,
        _flag("prerelease", prerelease),
        _flag("latest", make_latest),
    ]
    result = run_process(cmd, cwd=workspace_root, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(_publish_error(f"gh release create failed: {tag}", result.error))
    return Ok(None)


def edit_release(
    *,
    workspace_root: Path,
    tag: str,
    prerelease: bool,
    make_latest: bool,
    repo: str | None = None,
) -> Result[None, ReleaseError]:
    cmd = [
        "gh",
        "release",
        "edit",
        tag,
        *_repo_args(repo),
        _flag("prerelease", prerelease),
        _flag("latest", make_latest),
    ]
    result = run_process(cmd, cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(_publish_error(f"gh release edit failed: {tag}", result.error))
    return Ok(None)


def delete_release_asset(
    *,
    workspace_root: Path,
    tag: str,
    asset_name: str,
    repo: str | None = None,
) -> Result[None, ReleaseError]:
    cmd = ["gh", "release", "delete-asset", tag, asset_name, *_repo_args(repo), "--yes"]
    result = run_process(cmd, cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        message = f"gh release delete-asset failed: {tag}/{asset_name}"
        return Err(_publish_error(message, result.error))
    return Ok(None)


def upload_release_assets(
    *,
    workspace_root: Path,
    tag: str,
    files: list[Path],
    repo: str | None = None,
) -> Result[None, ReleaseError]:
    cmd = [
        "gh",
        "release",
        "upload",
        tag,
        *(str(p) for p in files),
        *_repo_args(repo),
        "--clobber",
    ]
    result = run_process(cmd, cwd=workspace_root, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(_publish_error(f"gh release upload failed: {tag}", result.error))
    return Ok(None)
