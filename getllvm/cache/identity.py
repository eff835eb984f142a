"""Canonical naming of llvm-build artifacts.

    llvm-<version>-<arch>-<triple>-<buildType>.tar.zst

The file name is both the download target and the input of the cache key, so
it must match the published asset byte for byte.
"""

from __future__ import annotations

from dataclasses import dataclass

from getllvm.core.config import BuildType
from getllvm.core.result import Err, Ok, Result
from getllvm.platform.detection import Arch, Platform

__all__ = [
    "LLVMIdentity",
    "UnsupportedHost",
    "archive_arch",
    "archive_triple",
    "archive_file_name",
    "download_url",
]

_ARCHES: dict[Arch, str] = {
    Arch.ARM64: "arm64",
    Arch.X64: "x86_64",
    Arch.X32: "x86_64",
}

_TRIPLES: dict[Platform, str] = {
    Platform.WINDOWS: "unknown-windows-msvc17",
    Platform.LINUX: "unknown-linux-gnu",
    Platform.MACOS: "apple-darwin24.1.0",
}


@dataclass(frozen=True, slots=True)
class UnsupportedHost:
    """Error when no artifact is published for the host."""

    kind: str
    value: str

    @property
    def message(self) -> str:
        return f"Unsupported {self.kind}: {self.value}"

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class LLVMIdentity:
    """Everything that determines which archive to fetch."""

    version: str
    platform: Platform
    arch: Arch
    build_type: BuildType


def archive_arch(arch: Arch) -> Result[str, UnsupportedHost]:
    name = _ARCHES.get(arch)
    if name is None:
        return Err(UnsupportedHost(kind="architecture", value=str(arch)))
    return Ok(name)


def archive_triple(platform: Platform) -> Result[str, UnsupportedHost]:
    triple = _TRIPLES.get(platform)
    if triple is None:
        return Err(UnsupportedHost(kind="platform", value=str(platform)))
    return Ok(triple)


def archive_file_name(identity: LLVMIdentity) -> Result[str, UnsupportedHost]:
    """Canonical archive name for identity.

    Returns:
        Ok with e.g. "llvm-20.1.6-x86_64-unknown-linux-gnu-MinSizeRel.tar.zst",
        or Err with UnsupportedHost
    """
    arch = archive_arch(identity.arch)
    if isinstance(arch, Err):
        return arch
    triple = archive_triple(identity.platform)
    if isinstance(triple, Err):
        return triple
    return Ok(f"llvm-{identity.version}-{arch.value}-{triple.value}-{identity.build_type}.tar.zst")


def download_url(prefix: str, release: str, file_name: str) -> str:
    """Build "<prefix>/<release>/<file_name>"."""
    return f"{prefix.rstrip('/')}/{release}/{file_name}"
