"""Tests for getllvm.cache.orchestrator - the obtain flow across cache tiers."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from getllvm.cache.identity import LLVMIdentity, UnsupportedHost
from getllvm.cache.key import derive_key
from getllvm.cache.orchestrator import (
    LOCAL_CACHE_NAME,
    ConfigurationError,
    LLVMGetter,
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
from getllvm.core.result import Err, Ok, Result
from getllvm.output.console import MockConsole
from getllvm.platform.detection import Arch, Platform
from getllvm.tools.extract import ExtractError, ExtractResult
from getllvm.tools.http import HttpError

IDENTITY = LLVMIdentity("20.1.6", Platform.LINUX, Arch.X64, "MinSizeRel")
FILE = "llvm-20.1.6-x86_64-unknown-linux-gnu-MinSizeRel.tar.zst"
KEY = derive_key(FILE)
PREFIX = "https://github.com/hylo-lang/llvm-build/releases/download"
RELEASE = "20250717-163129"
URL = f"{PREFIX}/{RELEASE}/{FILE}"


class FakeLocal:
    def __init__(self, hit: Path | None = None) -> None:
        self.hit = hit
        self.finds: list[tuple[str, str, str]] = []
        self.saves: list[tuple[Path, str, str, str]] = []

    def find(self, name: str, version: str, arch: str) -> Path | None:
        self.finds.append((name, version, arch))
        return self.hit

    def save(self, source: Path, name: str, version: str, arch: str) -> Path:
        self.saves.append((source, name, version, arch))
        return Path("/tool-cache") / name / version / arch


class FakeRemote:
    def __init__(
        self,
        hit: bool = False,
        restore_error: Exception | None = None,
        save_error: Exception | None = None,
    ) -> None:
        self.hit = hit
        self.restore_error = restore_error
        self.save_error = save_error
        self.restores: list[tuple[list[Path], str]] = []
        self.saves: list[tuple[list[Path], str]] = []

    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        self.restores.append((list(paths), key))
        if self.restore_error is not None:
            raise self.restore_error
        return key if self.hit else None

    def save(self, paths: Sequence[Path], key: str) -> str | None:
        self.saves.append((list(paths), key))
        if self.save_error is not None:
            raise self.save_error
        return f"entry-{key}"


class FakeFetcher:
    def __init__(self, archive: Path, error: HttpError | None = None) -> None:
        self.archive = archive
        self.error = error
        self.urls: list[str] = []

    def fetch(self, url: str) -> Result[Path, HttpError]:
        self.urls.append(url)
        if self.error is not None:
            return Err(self.error)
        return Ok(self.archive)


class FakeExtractor:
    def __init__(self, error: bool = False) -> None:
        self.error = error
        self.calls: list[tuple[Path, Path]] = []

    def extract(self, archive: Path, dest: Path) -> Result[ExtractResult, ExtractError]:
        self.calls.append((archive, dest))
        if self.error:
            return Err(ExtractError(archive=archive, message="Tar extraction failed"))
        bin_dir = dest / FILE.removesuffix(".tar.zst") / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        (bin_dir / "clang").write_text("", encoding="utf-8")
        return Ok(ExtractResult(dest=dest, files_count=1))


def _getter(
    tmp_path: Path,
    *,
    local: FakeLocal | ToolCache | None = None,
    remote: FakeRemote | DirectoryCache | None = None,
    fetcher: FakeFetcher | None = None,
    extractor: FakeExtractor | None = None,
    scratch: Path | None | bool = True,
    console: MockConsole | None = None,
) -> LLVMGetter:
    scratch_root = tmp_path / "scratch" if scratch is True else scratch
    return LLVMGetter(
        fetcher=fetcher or FakeFetcher(tmp_path / "archive.tar.zst"),
        extractor=extractor or FakeExtractor(),
        console=console or MockConsole(),
        scratch_root=scratch_root if isinstance(scratch_root, Path) else None,
        download_url_prefix=PREFIX,
        release=RELEASE,
        host_platform="linux",
        local=local,
        remote=remote,
    )


class TestTierPrecedence:
    """Which steps run for each combination of hits."""

    def test_local_hit_skips_everything_else(self, tmp_path: Path) -> None:
        local = FakeLocal(hit=tmp_path / "cached")
        remote = FakeRemote(hit=True)
        fetcher = FakeFetcher(tmp_path / "a")

        result = _getter(tmp_path, local=local, remote=remote, fetcher=fetcher).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert result.value.source == "local"
        assert result.value.path == tmp_path / "cached"
        assert local.finds == [(LOCAL_CACHE_NAME, KEY.fake_semver, "linux")]
        assert remote.restores == []
        assert remote.saves == []
        assert fetcher.urls == []
        assert local.saves == []

    def test_local_miss_remote_hit(self, tmp_path: Path) -> None:
        """One restore, no download, no remote save, one local save."""
        local = FakeLocal()
        remote = FakeRemote(hit=True)
        fetcher = FakeFetcher(tmp_path / "a")

        result = _getter(tmp_path, local=local, remote=remote, fetcher=fetcher).obtain(IDENTITY)

        out = tmp_path / "scratch" / str(KEY)
        assert isinstance(result, Ok)
        assert result.value.source == "remote"
        assert result.value.path == out
        assert remote.restores == [([out], str(KEY))]
        assert fetcher.urls == []
        assert remote.saves == []
        assert local.saves == [(out, LOCAL_CACHE_NAME, KEY.fake_semver, "linux")]

    def test_full_miss_populates_both(self, tmp_path: Path) -> None:
        local = FakeLocal()
        remote = FakeRemote()
        fetcher = FakeFetcher(tmp_path / "a")
        extractor = FakeExtractor()

        result = _getter(
            tmp_path, local=local, remote=remote, fetcher=fetcher, extractor=extractor
        ).obtain(IDENTITY)

        out = tmp_path / "scratch" / str(KEY)
        assert isinstance(result, Ok)
        assert result.value.source == "download"
        assert fetcher.urls == [URL]
        assert extractor.calls == [(tmp_path / "a", out)]
        assert remote.saves == [([out], str(KEY))]
        assert len(local.saves) == 1

    def test_no_tiers_downloads(self, tmp_path: Path) -> None:
        fetcher = FakeFetcher(tmp_path / "a")
        result = _getter(tmp_path, fetcher=fetcher).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert result.value.source == "download"
        assert result.value.file_name == FILE
        assert result.value.key == KEY
        assert fetcher.urls == [URL]

    def test_archive_removed_after_extraction(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.tar.zst"
        archive.write_bytes(b"archive")

        result = _getter(tmp_path, fetcher=FakeFetcher(archive)).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert not archive.exists()

    def test_remote_only_miss(self, tmp_path: Path) -> None:
        remote = FakeRemote()
        result = _getter(tmp_path, remote=remote).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert len(remote.restores) == 1
        assert len(remote.saves) == 1

    def test_local_only_miss(self, tmp_path: Path) -> None:
        local = FakeLocal()
        fetcher = FakeFetcher(tmp_path / "a")
        result = _getter(tmp_path, local=local, fetcher=fetcher).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert len(fetcher.urls) == 1
        assert len(local.saves) == 1


class TestFailures:
    def test_unsupported_host(self, tmp_path: Path) -> None:
        identity = LLVMIdentity("20.1.6", Platform.LINUX, Arch.UNKNOWN, "MinSizeRel")
        local = FakeLocal()

        result = _getter(tmp_path, local=local).obtain(identity)

        assert isinstance(result, Err)
        assert isinstance(result.error, UnsupportedHost)
        assert local.finds == []

    def test_missing_scratch_root(self, tmp_path: Path) -> None:
        local = FakeLocal()
        result = _getter(tmp_path, local=local, scratch=None).obtain(IDENTITY)

        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigurationError)
        assert local.finds == []

    def test_download_failure(self, tmp_path: Path) -> None:
        fetcher = FakeFetcher(tmp_path / "a", error=HttpError(URL, 404, "Not Found"))
        remote = FakeRemote()
        local = FakeLocal()

        result = _getter(tmp_path, local=local, remote=remote, fetcher=fetcher).obtain(IDENTITY)

        assert isinstance(result, Err)
        assert isinstance(result.error, TransferError)
        assert result.error.url == URL
        assert remote.saves == []
        assert local.saves == []

    def test_extract_failure(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.tar.zst"
        archive.write_bytes(b"corrupt")

        result = _getter(
            tmp_path, fetcher=FakeFetcher(archive), extractor=FakeExtractor(error=True)
        ).obtain(IDENTITY)

        assert isinstance(result, Err)
        assert isinstance(result.error, TransferError)
        assert "Tar extraction failed" in result.error.message
        assert not archive.exists()

    def test_remote_restore_error_is_a_miss(self, tmp_path: Path) -> None:
        console = MockConsole()
        remote = FakeRemote(restore_error=CacheServiceError("service down"))
        fetcher = FakeFetcher(tmp_path / "a")

        result = _getter(tmp_path, remote=remote, fetcher=fetcher, console=console).obtain(
            IDENTITY
        )

        assert isinstance(result, Ok)
        assert result.value.source == "download"
        assert console.find("service down")
        assert console.has_warning()

    def test_remote_validation_error_is_fatal(self, tmp_path: Path) -> None:
        remote = FakeRemote(save_error=CacheValidationError("bad key"))
        local = FakeLocal()

        result = _getter(tmp_path, local=local, remote=remote).obtain(IDENTITY)

        assert isinstance(result, Err)
        assert result.error == TierServiceError(key=str(KEY), message="bad key")
        assert local.saves == []

    def test_remote_reservation_error_is_info(self, tmp_path: Path) -> None:
        console = MockConsole()
        remote = FakeRemote(save_error=CacheReservationError("taken"))
        local = FakeLocal()

        result = _getter(tmp_path, local=local, remote=remote, console=console).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert console.find("info: taken")
        assert not console.has_warning()
        assert len(local.saves) == 1

    @pytest.mark.parametrize("error", [CacheServiceError("quota"), OSError("disk full")])
    def test_remote_save_error_is_warning(self, tmp_path: Path, error: Exception) -> None:
        console = MockConsole()
        remote = FakeRemote(save_error=error)

        result = _getter(tmp_path, remote=remote, console=console).obtain(IDENTITY)

        assert isinstance(result, Ok)
        assert console.has_warning()


class TestRealTiers:
    """The flow against the directory-backed tiers."""

    def test_second_run_hits_remote_then_local(self, tmp_path: Path) -> None:
        remote = DirectoryCache(tmp_path / "remote")
        fetcher = FakeFetcher(tmp_path / "a")

        first = _getter(tmp_path, remote=remote, fetcher=fetcher).obtain(IDENTITY)
        assert isinstance(first, Ok) and first.value.source == "download"

        local = ToolCache(tmp_path / "tools")
        second = _getter(
            tmp_path, remote=remote, local=local, fetcher=fetcher, scratch=tmp_path / "s2"
        ).obtain(IDENTITY)
        assert isinstance(second, Ok) and second.value.source == "remote"
        assert (second.value.path / FILE.removesuffix(".tar.zst") / "bin" / "clang").is_file()

        third = _getter(
            tmp_path, remote=remote, local=local, fetcher=fetcher, scratch=tmp_path / "s3"
        ).obtain(IDENTITY)
        assert isinstance(third, Ok) and third.value.source == "local"
        assert fetcher.urls == [URL]
