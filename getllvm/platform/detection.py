"""Host platform and architecture detection.

Identifiers follow the runner conventions used by the llvm-build catalog:
"linux", "darwin" and "win32" for the operating system, with "-arm64"
appended to the catalog key on arm64 Linux and Windows hosts.
"""

from __future__ import annotations

import os as _os
import platform as _platform
import sys as _sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

__all__ = [
    "Platform",
    "Arch",
    "PlatformInfo",
    "detect",
    "detect_arch",
    "detect_platform",
]


class Platform(Enum):
    """Operating system platform, valued by its runner identifier."""

    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "win32"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def is_unix(self) -> bool:
        """Check if this is a Unix-like platform (Linux or macOS)."""
        return self in (Platform.LINUX, Platform.MACOS)

    def exe_name(self, name: str) -> str:
        """Get executable name with platform-appropriate suffix."""
        return f"{name}.exe" if self == Platform.WINDOWS else name


class Arch(Enum):
    """CPU architecture, valued by its runner identifier."""

    X64 = "x64"
    X32 = "x32"
    ARM64 = "arm64"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Detected host platform and architecture."""

    platform: Platform
    arch: Arch

    @property
    def catalog_key(self) -> str:
        """Platform key used in the release catalog.

        arm64 Linux and Windows get their own keys; every other host is keyed
        by the bare platform identifier.
        """
        if self.arch == Arch.ARM64 and self.platform in (Platform.LINUX, Platform.WINDOWS):
            return f"{self.platform}-arm64"
        return str(self.platform)

    def __str__(self) -> str:
        return f"{self.platform}-{self.arch}"


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current operating system (cached)."""
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Platform.LINUX
    if system.startswith("darwin"):
        return Platform.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Platform.WINDOWS
    return Platform.UNKNOWN


@lru_cache(maxsize=1)
def detect_arch() -> Arch:
    """Detect the current CPU architecture (cached)."""
    # NOTE: avoid platform.machine() on Windows, it may query WMI and hang.
    if detect_platform() == Platform.WINDOWS:
        env_arch = (
            _os.environ.get("PROCESSOR_ARCHITEW6432")
            or _os.environ.get("PROCESSOR_ARCHITECTURE")
            or ""
        )
        machine = env_arch.lower()
    else:
        machine = _platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return Arch.X64
    if machine in ("i386", "i686", "x86"):
        return Arch.X32
    if machine in ("aarch64", "arm64"):
        return Arch.ARM64
    return Arch.UNKNOWN


@lru_cache(maxsize=1)
def detect() -> PlatformInfo:
    """Detect complete platform information (cached)."""
    return PlatformInfo(platform=detect_platform(), arch=detect_arch())
