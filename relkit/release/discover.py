"""Locating the per-platform binaries to package.

Two layouts are accepted, and may be mixed:

    input/tabby_aarch64-apple-darwin                 (flat)
    input/tabby_x86_64-windows-msvc.exe/tabby_x86_64-windows-msvc.exe
                                                     (one directory per CI artifact)

Inside a ``<program>_*`` artifact directory every regular file is returned,
so that a stray file is reported as malformed input instead of being
silently ignored.
"""

from __future__ import annotations

from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.release.errors import ReleaseError
from relkit.release.naming import program_prefix


def _is_within(path: Path, roots: tuple[Path, ...]) -> bool:
    resolved = path.resolve()
    return any(resolved == root or resolved.is_relative_to(root) for root in roots)


def discover_binaries(
    input_dir: Path,
    *,
    program: str,
    exclude: tuple[Path, ...] = (),
) -> Result[list[Path], ReleaseError]:
    """Return candidate binaries sorted by file name.

    Args:
        input_dir: Directory holding the build outputs
        program: Program name; only ``<program>_*`` entries are considered
        exclude: Directories to skip (the output and staging directories)
    """
    if not input_dir.is_dir():
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"input directory not found: {input_dir}",
            )
        )

    roots = tuple(p.resolve() for p in exclude)
    prefix = program_prefix(program)
    found: list[Path] = []

    try:
        for entry in sorted(input_dir.iterdir()):
            if not entry.name.startswith(prefix) or _is_within(entry, roots):
                continue
            if entry.is_file():
                found.append(entry)
            elif entry.is_dir():
                found.extend(child for child in sorted(entry.iterdir()) if child.is_file())
    except OSError as e:
        return Err(
            ReleaseError(kind="invalid_input", message=f"cannot list {input_dir}: {e}")
        )

    if not found:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"no binaries matching '{prefix}*' in {input_dir}",
                hint=f"Expected files named {prefix}<platform>[.exe]",
            )
        )

    return Ok(sorted(found, key=lambda p: (p.name, str(p))))
