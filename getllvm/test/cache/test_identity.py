"""Tests for getllvm.cache.identity - canonical archive names."""

from __future__ import annotations

import pytest

from getllvm.cache.identity import (
    LLVMIdentity,
    UnsupportedHost,
    archive_file_name,
    download_url,
)
from getllvm.core.result import Err, Ok
from getllvm.platform.detection import Arch, Platform


class TestArchiveFileName:
    @pytest.mark.parametrize(
        ("platform", "arch", "expected"),
        [
            (Platform.LINUX, Arch.X64, "llvm-20.1.6-x86_64-unknown-linux-gnu-MinSizeRel.tar.zst"),
            (Platform.LINUX, Arch.ARM64, "llvm-20.1.6-arm64-unknown-linux-gnu-MinSizeRel.tar.zst"),
            (Platform.MACOS, Arch.ARM64, "llvm-20.1.6-arm64-apple-darwin24.1.0-MinSizeRel.tar.zst"),
            (
                Platform.WINDOWS,
                Arch.X64,
                "llvm-20.1.6-x86_64-unknown-windows-msvc17-MinSizeRel.tar.zst",
            ),
            (Platform.LINUX, Arch.X32, "llvm-20.1.6-x86_64-unknown-linux-gnu-MinSizeRel.tar.zst"),
        ],
    )
    def test_supported(self, platform: Platform, arch: Arch, expected: str) -> None:
        identity = LLVMIdentity("20.1.6", platform, arch, "MinSizeRel")
        assert archive_file_name(identity) == Ok(expected)

    def test_debug(self) -> None:
        identity = LLVMIdentity("19.1.7", Platform.LINUX, Arch.X64, "Debug")
        assert archive_file_name(identity) == Ok(
            "llvm-19.1.7-x86_64-unknown-linux-gnu-Debug.tar.zst"
        )

    def test_unsupported_arch(self) -> None:
        identity = LLVMIdentity("20.1.6", Platform.LINUX, Arch.UNKNOWN, "MinSizeRel")
        result = archive_file_name(identity)
        assert result == Err(UnsupportedHost(kind="architecture", value="unknown"))
        assert isinstance(result, Err)
        assert result.error.message == "Unsupported architecture: unknown"

    def test_unsupported_platform(self) -> None:
        identity = LLVMIdentity("20.1.6", Platform.UNKNOWN, Arch.X64, "MinSizeRel")
        result = archive_file_name(identity)
        assert isinstance(result, Err)
        assert result.error.message == "Unsupported platform: unknown"


class TestDownloadUrl:
    def test_joins(self) -> None:
        assert download_url("https://x/download", "r1", "f.tar.zst") == "https://x/download/r1/f.tar.zst"

    def test_trailing_slash(self) -> None:
        assert download_url("https://x/download/", "r1", "f") == "https://x/download/r1/f"
