"""Artifact downloader.

Downloads land in a scratch downloads directory under a URL-derived name so
two releases that publish the same file name never overwrite each other.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse

from getllvm.core.result import Err, Ok, Result
from getllvm.tools.http import HttpError

if TYPE_CHECKING:
    from collections.abc import Callable

    from getllvm.tools.http import HttpClient

__all__ = ["Downloader", "Fetcher"]


class Fetcher(Protocol):
    """Anything that can turn a URL into a local file."""

    def fetch(self, url: str) -> Result[Path, HttpError]: ...


class Downloader:
    """Downloads artifacts into a directory.

    Usage:
        downloader = Downloader(RealHttpClient(), scratch / "downloads")
        result = downloader.fetch(url)
        if is_ok(result):
            archive = result.value
    """

    def __init__(
        self,
        http: HttpClient,
        download_dir: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> None:
        self._http = http
        self._download_dir = download_dir
        self._progress = progress

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def target_path(self, url: str) -> Path:
        """Local path for url, e.g. "a1b2c3d4_llvm-20.1.6-...tar.zst"."""
        filename = Path(urlparse(url).path).name or "download"
        url_hash = hashlib.sha256(url.encode()).hexdigest()[:8]
        return self._download_dir / f"{url_hash}_{filename}"

    def fetch(self, url: str) -> Result[Path, HttpError]:
        """Download url and return the local file path.

        A partial file is removed when the download fails.
        """
        dest = self.target_path(url)
        self._download_dir.mkdir(parents=True, exist_ok=True)

        result = self._http.download(url, dest, progress=self._progress)
        if isinstance(result, Err):
            dest.unlink(missing_ok=True)
            return result
        return Ok(dest)
