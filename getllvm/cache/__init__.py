"""Artifact identity, cache keys, cache tiers and the obtain flow.

This package provides:
- Canonical archive naming (identity.py)
- Cache key derivation (key.py)
- Local and remote cache tiers (tiers.py)
- The obtain flow across tiers (orchestrator.py)
"""

from getllvm.cache.identity import LLVMIdentity, UnsupportedHost, archive_file_name, download_url
from getllvm.cache.key import CacheKey, derive_key, hash_code, to_fake_semver
from getllvm.cache.orchestrator import (
    LOCAL_CACHE_NAME,
    ConfigurationError,
    FetchError,
    LLVMGetter,
    ObtainResult,
    TierServiceError,
    TransferError,
)
from getllvm.cache.tiers import (
    CacheReservationError,
    CacheServiceError,
    CacheValidationError,
    DirectoryCache,
    ToolCache,
)

__all__ = [
    # Identity
    "LLVMIdentity",
    "UnsupportedHost",
    "archive_file_name",
    "download_url",
    # Keys
    "CacheKey",
    "derive_key",
    "hash_code",
    "to_fake_semver",
    # Tiers
    "ToolCache",
    "DirectoryCache",
    "CacheServiceError",
    "CacheValidationError",
    "CacheReservationError",
    # Orchestrator
    "LOCAL_CACHE_NAME",
    "LLVMGetter",
    "ObtainResult",
    "ConfigurationError",
    "TransferError",
    "TierServiceError",
    "FetchError",
]
