"""Error payload for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "malformed_input",
    "missing_version",
    "invalid_input",
    "io_failure",
    "gh_missing",
    "publish_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical error payload.

    Every error names what it is about in ``message`` (an artifact file name,
    a tag, a directory) so the CLI can print it without extra context.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
