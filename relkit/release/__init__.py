"""Release packaging domain.

- naming: binary file name -> PlatformArtifact
- version: version resolution and stable/prerelease classification
- discover, bundle, archive: per-platform archives in the output directory
- manifest: checksums of a finished distribution set
- publish, gh: release upsert against the external release store
- pipeline: orchestration of all of the above
"""

from __future__ import annotations
