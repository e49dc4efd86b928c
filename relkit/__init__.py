"""Release packaging pipeline for per-platform binaries."""

__version__ = "0.1.0"
