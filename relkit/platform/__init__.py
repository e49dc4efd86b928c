"""Platform helpers: subprocesses and filesystem primitives."""

from .files import append_line, atomic_write_text, make_executable, sha256_file
from .process import ProcessError, run

__all__ = [
    "ProcessError",
    "append_line",
    "atomic_write_text",
    "make_executable",
    "run",
    "sha256_file",
]
