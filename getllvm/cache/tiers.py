"""Cache tiers.

Two independent stores avoid re-downloading LLVM:

- Local tier (ToolCache): a runner tool cache laid out as
  "<root>/<name>/<version>/<arch>/" plus a "<arch>.complete" marker. Suited
  to self-hosted runners that keep their disk between jobs.
- Remote tier (DirectoryCache): a shared directory (network mount, cache
  volume) holding one "<key>.tar.zst" archive per entry.

Both are used through protocols so the orchestrator can be tested with
in-memory fakes. A miss is an explicit None, never an empty string.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tarfile
import tempfile
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Protocol

import zstandard

from getllvm.catalog.semver import parse_version
from getllvm.core.result import Err
from getllvm.platform.files import atomic_write_text, replace_tree
from getllvm.tools.extract import ArchiveExtractor

__all__ = [
    "LocalCacheTier",
    "RemoteCacheTier",
    "ToolCache",
    "DirectoryCache",
    "CacheServiceError",
    "CacheValidationError",
    "CacheReservationError",
    "MAX_KEY_LENGTH",
]

MAX_KEY_LENGTH = 512


class CacheServiceError(Exception):
    """A cache tier failed to restore or save an entry."""


class CacheValidationError(CacheServiceError):
    """The request itself is invalid (bad key, no paths); retrying won't help."""


class CacheReservationError(CacheServiceError):
    """Another run already owns the key."""


class LocalCacheTier(Protocol):
    def find(self, name: str, version: str, arch: str) -> Path | None:
        """Cached directory for name/version/arch, or None on a miss."""
        ...

    def save(self, source: Path, name: str, version: str, arch: str) -> Path:
        """Copy source into the cache and return the cached directory."""
        ...


class RemoteCacheTier(Protocol):
    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        """Restore paths saved under key; return the matched key or None."""
        ...

    def save(self, paths: Sequence[Path], key: str) -> str | None:
        """Save paths under key; return an entry identifier.

        Raises:
            CacheValidationError: If key or paths are invalid.
            CacheReservationError: If the key is already taken.
            CacheServiceError: For any other storage failure.
        """
        ...


class ToolCache:
    """Directory-backed local tool cache.

    Usage:
        cache = ToolCache(Path(os.environ["RUNNER_TOOL_CACHE"]))
        hit = cache.find("local-llvm-cache", "1234.0.0", "linux")
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _entry(self, name: str, version: str, arch: str) -> Path:
        return self._root / name / version / arch

    def find(self, name: str, version: str, arch: str) -> Path | None:
        if not name or parse_version(version) is None:
            return None
        entry = self._entry(name, version, arch)
        marker = entry.with_name(f"{arch}.complete")
        if entry.is_dir() and marker.is_file():
            return entry
        return None

    def save(self, source: Path, name: str, version: str, arch: str) -> Path:
        if parse_version(version) is None:
            raise ValueError(f"Tool cache version must be semver: {version!r}")
        if not source.is_dir():
            raise NotADirectoryError(f"Not a directory: {source}")

        entry = self._entry(name, version, arch)
        marker = entry.with_name(f"{arch}.complete")
        marker.unlink(missing_ok=True)
        replace_tree(source, entry)
        atomic_write_text(marker, datetime.now().isoformat())
        return entry


def _check_key(key: str) -> None:
    if not key:
        raise CacheValidationError("Cache key must not be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise CacheValidationError(
            f"Key Validation Error: {key} cannot be larger than {MAX_KEY_LENGTH} characters."
        )
    if "," in key or "/" in key or "\\" in key:
        raise CacheValidationError(f"Key Validation Error: {key} cannot contain ',', '/' or '\\'.")


class DirectoryCache:
    """Shared remote tier storing one zstd-compressed tarball per key.

    Each saved path is stored under its index ("0/", "1/", ...) so restore()
    can put it back at the caller's paths. Saves take an exclusive
    "<key>.lock" reservation; an existing entry or lock means another run
    owns the key.
    """

    def __init__(self, root: Path, *, level: int = 10) -> None:
        self._root = root
        self._level = level

    @property
    def root(self) -> Path:
        return self._root

    def entry_path(self, key: str) -> Path:
        return self._root / f"{key}.tar.zst"

    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        _check_key(key)
        entry = self.entry_path(key)
        if not entry.is_file():
            return None

        self._root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(dir=self._root, prefix=".restore-") as tmp:
            staging = Path(tmp) / "entry"
            result = ArchiveExtractor().extract(entry, staging)
            if isinstance(result, Err):
                raise CacheServiceError(str(result.error))
            for index, path in enumerate(paths):
                source = staging / str(index)
                if not source.is_dir():
                    raise CacheServiceError(f"Cache entry {key} has no content for {path}")
                if path.exists():
                    shutil.rmtree(path)
                path.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(source), str(path))
        return key

    def save(self, paths: Sequence[Path], key: str) -> str | None:
        _check_key(key)
        if not paths:
            raise CacheValidationError("Path Validation Error: at least one path is required")
        for path in paths:
            if not path.is_dir():
                raise CacheValidationError(f"Path Validation Error: {path} is not a directory")

        self._root.mkdir(parents=True, exist_ok=True)
        entry = self.entry_path(key)
        lock = entry.with_name(f"{key}.lock")
        if entry.exists():
            raise CacheReservationError(
                f"Unable to reserve cache with key {key}, another job may be creating this cache."
            )
        try:
            fd = os.open(lock, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as e:
            raise CacheReservationError(
                f"Unable to reserve cache with key {key}, another job may be creating this cache."
            ) from e
        os.close(fd)

        tmp = entry.with_name(f".{key}.tar.zst.tmp")
        try:
            with open(tmp, "wb") as raw:
                cctx = zstandard.ZstdCompressor(level=self._level)
                with cctx.stream_writer(raw, closefd=False) as writer:
                    with tarfile.open(fileobj=writer, mode="w|") as tar:
                        for index, path in enumerate(paths):
                            tar.add(path, arcname=str(index))
            os.replace(tmp, entry)
        except (OSError, tarfile.TarError, zstandard.ZstdError) as e:
            raise CacheServiceError(f"Failed to save cache entry {key}: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            lock.unlink(missing_ok=True)
        return str(entry)
