"""Platform filters for hylo-lang/llvm-build release assets.

Assets are named "llvm-<version>-<arch>-<triple>-<buildType>.tar.zst", so the
"<arch>-<triple>-<buildType>.tar.zst" tail identifies the platform.
"""

from __future__ import annotations

from getllvm.catalog.model import PlatformFilter

__all__ = ["ARCHIVE_SUFFIX", "LLVM_BUILD_FILTERS", "llvm_build_filters", "make_filter"]

ARCHIVE_SUFFIX = ".tar.zst"

# (catalog platform key, arch, triple)
_TARGETS: tuple[tuple[str, str, str], ...] = (
    ("linux", "x86_64", "unknown-linux-gnu"),
    ("linux-arm64", "arm64", "unknown-linux-gnu"),
    ("darwin", "arm64", "apple-darwin24.1.0"),
    ("win32", "x86_64", "unknown-windows-msvc17"),
    ("win32-arm64", "arm64", "unknown-windows-msvc17"),
)


def make_filter(platform: str, arch: str, triple: str, build_type: str) -> PlatformFilter:
    """Build the filter matching one arch/triple/build type combination."""
    return PlatformFilter(
        build_type=build_type,
        target_triple=triple,
        suffix=f"-{arch}-{triple}-{build_type}{ARCHIVE_SUFFIX}",
        bin_path="bin",
        drop_suffix=ARCHIVE_SUFFIX,
        platform=platform,
    )


def llvm_build_filters(build_type: str) -> tuple[PlatformFilter, ...]:
    """Filters for every published target of one build type."""
    return tuple(make_filter(p, a, t, build_type) for p, a, t in _TARGETS)


LLVM_BUILD_FILTERS: tuple[PlatformFilter, ...] = llvm_build_filters("MinSizeRel")
