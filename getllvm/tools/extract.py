"""Archive extraction.

LLVM builds ship as .tar.zst; the remote cache tier stores its entries in
the same format. Plain .tar.gz and .tar.xz are accepted as well.

Extraction is streaming (zstd frames are decompressed on the fly) and never
writes outside the destination: absolute paths, ".." components and links
pointing out of the tree are skipped.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, Protocol

import zstandard

from getllvm.core.result import Err, Ok, Result

__all__ = ["Extractor", "ArchiveExtractor", "ExtractResult", "ExtractError"]

# Allow archives compressed with "zstd --long".
_MAX_WINDOW_SIZE = 2**31


@dataclass(frozen=True, slots=True)
class ExtractError:
    """Extraction error details.

    Attributes:
        archive: Path to the archive that failed
        message: Human-readable error message
    """

    archive: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.archive}"


@dataclass(frozen=True, slots=True)
class ExtractResult:
    """Result of an extraction.

    Attributes:
        dest: Directory the archive was extracted into
        files_count: Number of regular files written
    """

    dest: Path
    files_count: int


class Extractor(Protocol):
    def extract(self, archive: Path, dest: Path) -> Result[ExtractResult, ExtractError]: ...


class ArchiveExtractor:
    """Extracts tar archives (zstd, gzip or xz compressed) into a directory.

    Usage:
        result = ArchiveExtractor().extract(archive, out_dir)
        if is_ok(result):
            print(f"Extracted {result.value.files_count} files")
    """

    def extract(self, archive: Path, dest: Path) -> Result[ExtractResult, ExtractError]:
        """Extract archive into dest, replacing any previous content."""
        if not archive.exists():
            return Err(ExtractError(archive=archive, message="Archive not found"))

        name = archive.name.lower()
        try:
            if name.endswith((".tar.zst", ".tzst")):
                with open(archive, "rb") as raw:
                    dctx = zstandard.ZstdDecompressor(max_window_size=_MAX_WINDOW_SIZE)
                    with dctx.stream_reader(raw) as reader:
                        return self._extract_stream(archive, reader, dest)
            if name.endswith((".tar.gz", ".tgz", ".tar.xz", ".txz")):
                with open(archive, "rb") as raw:
                    return self._extract_stream(archive, raw, dest, mode="r|*")
        except zstandard.ZstdError as e:
            return Err(ExtractError(archive=archive, message=f"Zstandard decompression failed: {e}"))
        except tarfile.TarError as e:
            return Err(ExtractError(archive=archive, message=f"Tar extraction failed: {e}"))
        except OSError as e:
            return Err(ExtractError(archive=archive, message=f"IO error: {e}"))

        return Err(ExtractError(archive=archive, message="Unsupported archive format"))

    def _extract_stream(
        self,
        archive: Path,
        fileobj: IO[bytes],
        dest: Path,
        *,
        mode: str = "r|",
    ) -> Result[ExtractResult, ExtractError]:
        if dest.exists():
            shutil.rmtree(dest)
        dest.mkdir(parents=True, exist_ok=True)
        root = dest.resolve()

        files_count = 0
        with tarfile.open(fileobj=fileobj, mode=mode) as tar:
            for member in tar:
                rel_path = _safe_relative_path(member.name)
                if rel_path is None:
                    continue
                full_path = dest / rel_path
                if not _is_within_root(root, full_path):
                    continue

                if member.isdir():
                    full_path.mkdir(parents=True, exist_ok=True)
                elif member.issym():
                    _make_symlink(root, full_path, member.linkname)
                elif member.islnk():
                    _copy_hardlink(root, dest, full_path, member.linkname)
                elif member.isreg():
                    src = tar.extractfile(member)
                    if src is None:
                        continue
                    full_path.parent.mkdir(parents=True, exist_ok=True)
                    with src, open(full_path, "wb") as out:
                        shutil.copyfileobj(src, out)
                    mode_bits = member.mode & 0o777
                    if mode_bits:
                        with contextlib.suppress(OSError):
                            os.chmod(full_path, mode_bits)
                    files_count += 1

        return Ok(ExtractResult(dest=dest, files_count=files_count))


def _safe_relative_path(member_name: str) -> Path | None:
    """Return a sanitized relative extraction path, or None if unsafe."""
    normalized = member_name.replace("\\", "/")
    if normalized.startswith("/"):
        return None
    parts = [p for p in PurePosixPath(normalized).parts if p != "."]
    if not parts or any(p in {"", ".."} for p in parts):
        return None
    if parts[0].endswith(":"):
        return None
    return Path(*parts)


def _is_within_root(root: Path, target: Path) -> bool:
    try:
        return target.resolve().is_relative_to(root)
    except OSError:
        return False


def _make_symlink(root: Path, link_path: Path, target: str) -> None:
    if os.path.isabs(target):
        return
    if not _is_within_root(root, link_path.parent / target):
        return
    link_path.parent.mkdir(parents=True, exist_ok=True)
    if link_path.is_symlink() or link_path.exists():
        link_path.unlink()
    # Windows without developer mode cannot create links; skip them there.
    with contextlib.suppress(OSError):
        os.symlink(target, link_path)


def _copy_hardlink(root: Path, dest: Path, link_path: Path, target: str) -> None:
    rel = _safe_relative_path(target)
    if rel is None:
        return
    source = dest / rel
    if not _is_within_root(root, source) or not source.is_file():
        return
    link_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, link_path)
