"""Binary file name parsing.

The build jobs name their outputs ``<program>_<platform-id>[.exe]``; this
module splits such a name back into its parts.
"""

from __future__ import annotations

from relkit.core.result import Err, Ok, Result
from relkit.release.errors import ReleaseError
from relkit.release.model import PlatformArtifact


def file_extension(name: str) -> str:
    """Return the extension including its dot, or "" if there is none.

    A leading dot (hidden file) does not count as an extension separator.
    """
    if name.startswith(".") or "." not in name:
        return ""
    return name[name.rindex(".") :]


def program_prefix(program: str) -> str:
    return f"{program}_"


def decompose(raw_file_name: str, *, program: str) -> Result[PlatformArtifact, ReleaseError]:
    extension = file_extension(raw_file_name)
    stem = raw_file_name[: len(raw_file_name) - len(extension)]

    prefix = program_prefix(program)
    if not stem.startswith(prefix):
        return Err(
            ReleaseError(
                kind="malformed_input",
                message=f"{raw_file_name}: expected name '{prefix}<platform>[.ext]'",
            )
        )

    platform_id = stem[len(prefix) :]
    if not platform_id:
        return Err(
            ReleaseError(
                kind="malformed_input",
                message=f"{raw_file_name}: missing platform id after '{prefix}'",
            )
        )

    return Ok(
        PlatformArtifact(
            raw_file_name=raw_file_name,
            base_name=program,
            platform_id=platform_id,
            extension=extension,
        )
    )
