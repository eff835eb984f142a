"""Error presentation utilities.

Centralized error formatting and exit code mapping for the obtain flow.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from getllvm.cache.identity import UnsupportedHost
from getllvm.cache.orchestrator import (
    ConfigurationError,
    FetchError,
    TierServiceError,
    TransferError,
)
from getllvm.core.errors import ErrorCode
from getllvm.output.console import Style

if TYPE_CHECKING:
    from getllvm.output.console import ConsoleProtocol

__all__ = ["print_fetch_error", "fetch_error_exit_code"]


def print_fetch_error(error: FetchError, console: ConsoleProtocol) -> None:
    """Print an obtain failure to console with appropriate formatting."""
    match error:
        case UnsupportedHost():
            console.error(error.message)
            console.print("hint: llvm-build publishes x86_64 and arm64 builds only", Style.DIM)
        case ConfigurationError(message=message):
            console.error(message)
            console.print("hint: set RUNNER_TEMP or cache.scratch_root", Style.DIM)
        case TransferError(url=url, message=message):
            console.error(f"Failed to obtain {url}")
            console.print(message, Style.DIM)
        case TierServiceError(key=key, message=message):
            console.error(f"Remote cache rejected key {key}: {message}")


def fetch_error_exit_code(error: FetchError) -> int:
    """Get exit code for an obtain failure."""
    match error:
        case UnsupportedHost():
            return int(ErrorCode.ENV_ERROR)
        case ConfigurationError():
            return int(ErrorCode.CONFIG_ERROR)
        case TransferError():
            return int(ErrorCode.NETWORK_ERROR)
        case TierServiceError():
            return int(ErrorCode.CACHE_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.INTERNAL_ERROR)
