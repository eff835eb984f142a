"""Cache key derivation.

The key is a 32-bit signed string hash of the canonical archive name. The
remote tier stores entries under its decimal form; the local tool cache only
accepts semver-shaped versions, so the hash is also encoded as
"<abs(hash)>.0.0" (non-negative) or "<abs(hash)>.0.1" (negative). The patch
digit keeps h and -h apart.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["CacheKey", "derive_key", "hash_code", "to_fake_semver"]

_MASK = 0xFFFFFFFF


def hash_code(text: str) -> int:
    """Order-sensitive 32-bit hash: h = h * 31 + unit over UTF-16 code units."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        h = (h * 31 + (data[i] | data[i + 1] << 8)) & _MASK
    return h - (1 << 32) if h & 0x80000000 else h


def to_fake_semver(hashed: int) -> str:
    patch = "0" if hashed >= 0 else "1"
    return f"{abs(hashed)}.0.{patch}"


@dataclass(frozen=True, slots=True)
class CacheKey:
    hash: int

    @property
    def fake_semver(self) -> str:
        """Semver-shaped encoding used by the local tool cache."""
        return to_fake_semver(self.hash)

    def __str__(self) -> str:
        return str(self.hash)


def derive_key(file_name: str) -> CacheKey:
    """Derive the cache key of a canonical archive file name."""
    return CacheKey(hash_code(file_name))
