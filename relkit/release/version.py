"""Release version resolution and stable-release classification.

A run is versioned by its tag name when there is one, otherwise by the
short commit sha. Only plain ``vMAJOR.MINOR.PATCH`` tags are stable; every
other version is published as a prerelease.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from relkit.core.result import Err, Ok, Result
from relkit.release.errors import ReleaseError
from relkit.release.model import ReleaseVersion, VersionSource

SHORT_SHA_LENGTH = 8

# Stable tags only: no pre-release suffix, no build metadata.
_STABLE_RE = re.compile(r"v([0-9]+)\.([0-9]+)\.([0-9]+)", re.ASCII)


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int


def resolve_version(
    tag: str | None,
    commit_sha: str | None,
) -> Result[ReleaseVersion, ReleaseError]:
    """Prefer the tag name, fall back to the short commit sha."""
    tag = (tag or "").strip()
    if tag:
        return Ok(ReleaseVersion(value=tag, source=VersionSource.TAG))

    sha = (commit_sha or "").strip()
    if sha:
        return Ok(
            ReleaseVersion(value=sha[:SHORT_SHA_LENGTH], source=VersionSource.COMMIT_FALLBACK)
        )

    return Err(
        ReleaseError(
            kind="missing_version",
            message="no release version: tag name and commit sha are both empty",
            hint="Pass --tag or --sha (GITHUB_REF_NAME / GITHUB_SHA in CI).",
        )
    )


def parse_stable_tag(tag: str) -> SemVer | None:
    m = _STABLE_RE.fullmatch(tag)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def is_stable(version: ReleaseVersion) -> bool:
    return parse_stable_tag(version.value) is not None
