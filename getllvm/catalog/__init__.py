"""Release catalog: assets in, platform-aware version index out.

This package provides:
- Semantic versions and npm-style ranges (semver.py)
- Catalog data model (model.py)
- Platform filters for llvm-build assets (filters.py)
- Catalog builder (collector.py)
- Version resolution (resolver.py)
- Asset sources: GitHub releases API, JSON files (sources.py)
"""

from getllvm.catalog.collector import ReleasesCollector, build_catalog
from getllvm.catalog.filters import LLVM_BUILD_FILTERS, llvm_build_filters
from getllvm.catalog.model import (
    LATEST,
    LATEST_PRERELEASE,
    ArtifactRef,
    Asset,
    PlatformFilter,
    ReleaseCatalog,
)
from getllvm.catalog.resolver import (
    ExactHit,
    NotFound,
    RangeHit,
    VersionNotFound,
    resolve,
    resolve_version,
)
from getllvm.catalog.semver import SemVer, parse_range, parse_tag, parse_version

__all__ = [
    # Model
    "Asset",
    "ArtifactRef",
    "PlatformFilter",
    "ReleaseCatalog",
    "LATEST",
    "LATEST_PRERELEASE",
    # Filters
    "LLVM_BUILD_FILTERS",
    "llvm_build_filters",
    # Builder
    "ReleasesCollector",
    "build_catalog",
    # Resolver
    "ExactHit",
    "RangeHit",
    "NotFound",
    "VersionNotFound",
    "resolve",
    "resolve_version",
    # Versions
    "SemVer",
    "parse_range",
    "parse_tag",
    "parse_version",
]
