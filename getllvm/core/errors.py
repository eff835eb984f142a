"""Error codes for CLI exit status.

Every unrecovered failure maps to one of these codes so that a calling
workflow can tell a missing version apart from a broken download.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: Requested version not found in the catalog
    - 2: Environment error (unsupported host platform or architecture)
    - 3: Configuration error (scratch root missing, invalid config file)
    - 4: Network error (download or extraction failed)
    - 5: Cache service error (remote tier rejected the request)
    - 70: Internal error (unexpected exception)
    """

    OK = 0
    NOT_FOUND = 1
    ENV_ERROR = 2
    CONFIG_ERROR = 3
    NETWORK_ERROR = 4
    CACHE_ERROR = 5
    INTERNAL_ERROR = 70

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        """Check if this code indicates success."""
        return self == ErrorCode.OK
