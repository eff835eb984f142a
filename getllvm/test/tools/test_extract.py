"""Tests for getllvm.tools.extract - streaming tar extraction."""

from __future__ import annotations

import io
import os
import sys
import tarfile
from pathlib import Path

import pytest
import zstandard

from getllvm.core.result import Err, Ok
from getllvm.tools.extract import ArchiveExtractor


def _add_file(tar: tarfile.TarFile, name: str, data: bytes, mode: int = 0o644) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = mode
    tar.addfile(info, io.BytesIO(data))


def _add_link(tar: tarfile.TarFile, name: str, target: str, kind: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.type = kind
    info.linkname = target
    tar.addfile(info)


def _tar_bytes(build) -> bytes:  # noqa: ANN001
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        build(tar)
    return buffer.getvalue()


def _write_zst(path: Path, build) -> Path:  # noqa: ANN001
    path.write_bytes(zstandard.ZstdCompressor().compress(_tar_bytes(build)))
    return path


def _llvm_tree(tar: tarfile.TarFile) -> None:
    _add_file(tar, "llvm-20/bin/clang", b"clang", 0o755)
    _add_file(tar, "llvm-20/lib/libLLVM.a", b"lib")


class TestArchiveExtractor:
    def test_extract_tar_zst(self, tmp_path: Path) -> None:
        archive = _write_zst(tmp_path / "llvm.tar.zst", _llvm_tree)
        dest = tmp_path / "out"

        result = ArchiveExtractor().extract(archive, dest)

        assert isinstance(result, Ok)
        assert result.value.files_count == 2
        assert result.value.dest == dest
        assert (dest / "llvm-20" / "bin" / "clang").read_bytes() == b"clang"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_keeps_executable_bit(self, tmp_path: Path) -> None:
        archive = _write_zst(tmp_path / "llvm.tar.zst", _llvm_tree)
        ArchiveExtractor().extract(archive, tmp_path / "out")
        assert os.access(tmp_path / "out" / "llvm-20" / "bin" / "clang", os.X_OK)

    def test_extract_tar_gz(self, tmp_path: Path) -> None:
        archive = tmp_path / "llvm.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            _llvm_tree(tar)

        result = ArchiveExtractor().extract(archive, tmp_path / "out")

        assert isinstance(result, Ok)
        assert (tmp_path / "out" / "llvm-20" / "lib" / "libLLVM.a").exists()

    def test_replaces_destination(self, tmp_path: Path) -> None:
        archive = _write_zst(tmp_path / "llvm.tar.zst", _llvm_tree)
        dest = tmp_path / "out"
        dest.mkdir()
        (dest / "stale").write_text("x", encoding="utf-8")

        ArchiveExtractor().extract(archive, dest)

        assert not (dest / "stale").exists()

    def test_skips_unsafe_paths(self, tmp_path: Path) -> None:
        def build(tar: tarfile.TarFile) -> None:
            _add_file(tar, "../evil", b"x")
            _add_file(tar, "ok/file", b"x")

        archive = _write_zst(tmp_path / "a.tar.zst", build)
        dest = tmp_path / "nested" / "out"

        result = ArchiveExtractor().extract(archive, dest)

        assert isinstance(result, Ok)
        assert result.value.files_count == 1
        assert not (tmp_path / "nested" / "evil").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_symlinks(self, tmp_path: Path) -> None:
        def build(tar: tarfile.TarFile) -> None:
            _add_file(tar, "llvm/bin/clang-20", b"clang")
            _add_link(tar, "llvm/bin/clang", "clang-20", tarfile.SYMTYPE)
            _add_link(tar, "llvm/bin/escape", "../../../outside", tarfile.SYMTYPE)

        archive = _write_zst(tmp_path / "a.tar.zst", build)
        dest = tmp_path / "out"
        ArchiveExtractor().extract(archive, dest)

        assert (dest / "llvm" / "bin" / "clang").is_symlink()
        assert (dest / "llvm" / "bin" / "clang").read_bytes() == b"clang"
        assert not (dest / "llvm" / "bin" / "escape").is_symlink()

    def test_hardlinks_copied(self, tmp_path: Path) -> None:
        def build(tar: tarfile.TarFile) -> None:
            _add_file(tar, "llvm/bin/clang-20", b"clang")
            _add_link(tar, "llvm/bin/clang++", "llvm/bin/clang-20", tarfile.LNKTYPE)

        archive = _write_zst(tmp_path / "a.tar.zst", build)
        ArchiveExtractor().extract(archive, tmp_path / "out")

        assert (tmp_path / "out" / "llvm" / "bin" / "clang++").read_bytes() == b"clang"

    def test_missing_archive(self, tmp_path: Path) -> None:
        result = ArchiveExtractor().extract(tmp_path / "nope.tar.zst", tmp_path / "out")
        assert isinstance(result, Err)
        assert result.error.message == "Archive not found"

    def test_corrupt_zstd(self, tmp_path: Path) -> None:
        archive = tmp_path / "bad.tar.zst"
        archive.write_bytes(b"definitely not zstd")

        result = ArchiveExtractor().extract(archive, tmp_path / "out")

        assert isinstance(result, Err)

    def test_unsupported_format(self, tmp_path: Path) -> None:
        archive = tmp_path / "llvm.zip"
        archive.write_bytes(b"PK")
        result = ArchiveExtractor().extract(archive, tmp_path / "out")
        assert isinstance(result, Err)
        assert result.error.message == "Unsupported archive format"
