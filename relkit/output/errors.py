"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relkit.core.errors import ErrorCode
from relkit.output.console import Style
from relkit.release.errors import ReleaseError

if TYPE_CHECKING:
    from relkit.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a run-fatal release error."""
    match error.kind:
        case "missing_version" | "gh_missing":
            return int(ErrorCode.ENV_ERROR)
        case "invalid_input" | "malformed_input":
            return int(ErrorCode.USER_ERROR)
        case "io_failure":
            return int(ErrorCode.IO_ERROR)
        case "publish_failed":
            return int(ErrorCode.PUBLISH_ERROR)
    return int(ErrorCode.USER_ERROR)
