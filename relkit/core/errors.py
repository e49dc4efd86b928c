"""Exit codes for the relkit CLI.

The numeric values are part of the CI contract and should remain stable:
- 0: every artifact packaged (and published, when publishing)
- 1: user error (bad options, bad config, nothing to package)
- 2: environment error (missing version context, missing gh)
- 3: packaging error (at least one artifact failed)
- 4: publish error (the release store rejected the upsert)
- 5: I/O error outside of a single artifact (manifest, env file)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    PACKAGE_ERROR = 3
    PUBLISH_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
