"""Obtain an LLVM tree through the cache tiers.

    derive key -> [local check] -> [remote check] -> [download + extract]
               -> [populate remote] -> [populate local] -> done

The local tier is consulted first and a hit there skips every remote
operation. Remote restore failures degrade to a miss; remote save failures
are reported but only an invalid request is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from getllvm.cache.identity import (
    LLVMIdentity,
    UnsupportedHost,
    archive_file_name,
    download_url,
)
from getllvm.cache.key import CacheKey, derive_key
from getllvm.cache.tiers import (
    CacheReservationError,
    CacheServiceError,
    CacheValidationError,
)
from getllvm.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from getllvm.cache.tiers import LocalCacheTier, RemoteCacheTier
    from getllvm.output.console import ConsoleProtocol
    from getllvm.tools.download import Fetcher
    from getllvm.tools.extract import Extractor

__all__ = [
    "LOCAL_CACHE_NAME",
    "ConfigurationError",
    "TransferError",
    "TierServiceError",
    "FetchError",
    "ObtainResult",
    "LLVMGetter",
]

LOCAL_CACHE_NAME = "local-llvm-cache"

Source = Literal["local", "remote", "download"]


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """Required runner configuration is missing."""

    message: str


@dataclass(frozen=True, slots=True)
class TransferError:
    """Downloading or extracting the archive failed."""

    url: str
    message: str


@dataclass(frozen=True, slots=True)
class TierServiceError:
    """The remote tier rejected a save as invalid."""

    key: str
    message: str


type FetchError = UnsupportedHost | ConfigurationError | TransferError | TierServiceError


@dataclass(frozen=True, slots=True)
class ObtainResult:
    """Where the LLVM tree ended up and how it got there.

    Attributes:
        path: Directory holding the extracted archive (local hit: the cached
            directory; otherwise <scratch_root>/<key>)
        key: Cache key derived from file_name
        file_name: Canonical archive file name
        source: Which step produced the tree
    """

    path: Path
    key: CacheKey
    file_name: str
    source: Source


class LLVMGetter:
    """Runs the obtain flow for one identity.

    Either tier may be None, which disables it. The remote tier and the local
    tier are independent: both can be enabled, in which case a fresh download
    populates both.
    """

    def __init__(
        self,
        *,
        fetcher: Fetcher,
        extractor: Extractor,
        console: ConsoleProtocol,
        scratch_root: Path | None,
        download_url_prefix: str,
        release: str,
        host_platform: str,
        local: LocalCacheTier | None = None,
        remote: RemoteCacheTier | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._console = console
        self._scratch_root = scratch_root
        self._prefix = download_url_prefix
        self._release = release
        self._host_platform = host_platform
        self._local = local
        self._remote = remote

    def obtain(self, identity: LLVMIdentity) -> Result[ObtainResult, FetchError]:
        name = archive_file_name(identity)
        if isinstance(name, Err):
            return name
        file_name = name.value

        key = derive_key(file_name)
        if self._scratch_root is None:
            return Err(ConfigurationError("Scratch root is not set (RUNNER_TEMP)"))
        out_path = self._scratch_root / str(key)
        self._console.debug(f"Cache key for {file_name}: {key} ({key.fake_semver})")

        if self._local is not None:
            self._console.header("Checking local cache")
            cached = self._local.find(LOCAL_CACHE_NAME, key.fake_semver, self._host_platform)
            if cached is not None:
                self._console.info(f"Found LLVM in local cache: {cached}")
                return Ok(ObtainResult(cached, key, file_name, "local"))
            self._console.info("LLVM not found in local cache")

        remote_hit: str | None = None
        if self._remote is not None:
            self._console.header("Checking remote cache")
            remote_hit = self._restore_remote(out_path, key)

        source: Source = "remote"
        if remote_hit is None:
            source = "download"
            url = download_url(self._prefix, self._release, file_name)
            self._console.header("Downloading LLVM")
            fetched = self._download(url, out_path)
            if isinstance(fetched, Err):
                return fetched

            if self._remote is not None:
                self._console.header("Saving to remote cache")
                saved = self._save_remote(out_path, key)
                if isinstance(saved, Err):
                    return saved

        if self._local is not None:
            self._console.header("Saving to local cache")
            cached = self._local.save(
                out_path, LOCAL_CACHE_NAME, key.fake_semver, self._host_platform
            )
            self._console.info(f"Saved LLVM to local cache: {cached}")

        return Ok(ObtainResult(out_path, key, file_name, source))

    def _restore_remote(self, out_path: Path, key: CacheKey) -> str | None:
        assert self._remote is not None
        try:
            hit = self._remote.restore([out_path], str(key))
        except (CacheServiceError, OSError) as e:
            self._console.warning(f"Failed to restore: {e}")
            return None
        if hit is None:
            self._console.info("LLVM not found in remote cache")
        else:
            self._console.info(f"Restored LLVM from remote cache with key {hit}")
        return hit

    def _download(self, url: str, out_path: Path) -> Result[None, TransferError]:
        self._console.info(f"Downloading {url}")
        fetched = self._fetcher.fetch(url)
        if isinstance(fetched, Err):
            return Err(TransferError(url=url, message=str(fetched.error)))

        archive = fetched.value
        try:
            extracted = self._extractor.extract(archive, out_path)
        finally:
            archive.unlink(missing_ok=True)
        if isinstance(extracted, Err):
            return Err(TransferError(url=url, message=str(extracted.error)))
        self._console.info(f"Extracted {extracted.value.files_count} files to {out_path}")
        return Ok(None)

    def _save_remote(self, out_path: Path, key: CacheKey) -> Result[None, TierServiceError]:
        assert self._remote is not None
        try:
            entry = self._remote.save([out_path], str(key))
        except CacheValidationError as e:
            return Err(TierServiceError(key=str(key), message=str(e)))
        except CacheReservationError as e:
            self._console.info(str(e))
        except (CacheServiceError, OSError) as e:
            self._console.warning(f"Failed to save: {e}")
        else:
            self._console.info(f"Cache saved with key: {key} ({entry})")
        return Ok(None)
