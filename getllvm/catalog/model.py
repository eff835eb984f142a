"""Release catalog data model.

The catalog maps a version key to the artifacts published for it, one per
platform key:

    {
        "20.1.6": {"linux": ArtifactRef(...), "darwin": ArtifactRef(...)},
        "latest": {"linux": <same ArtifactRef as 20.1.6/linux>},
    }

Reserved selector keys ("latest", "latest-prerelease") always mirror an
exact-version entry; they are never built on their own.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from getllvm.catalog.semver import SemVer

__all__ = [
    "Asset",
    "PlatformFilter",
    "ArtifactRef",
    "VersionSelector",
    "MostRecentVersion",
    "CatalogType",
    "MostRecentReleases",
    "ReleaseCatalog",
    "LATEST",
    "LATEST_PRERELEASE",
    "VERSION_SELECTORS",
]


@dataclass(frozen=True, slots=True)
class Asset:
    """One published, downloadable file and the tag of its release."""

    name: str
    download_url: str
    tag_name: str


@dataclass(frozen=True, slots=True)
class PlatformFilter:
    """Recognizes the assets of one build flavor for one platform.

    Attributes:
        build_type: Build flavor ("MinSizeRel" or "Debug")
        target_triple: Target triple embedded in the file name
        suffix: Case-insensitive file name suffix that selects the asset
        bin_path: Path of the bin directory inside the extracted archive
        drop_suffix: Suffix removed from the file name to get the archive root
        platform: Catalog platform key ("linux", "darwin", "win32", ...)
    """

    build_type: str
    target_triple: str
    suffix: str
    bin_path: str
    drop_suffix: str
    platform: str

    def matches(self, asset_name: str) -> bool:
        return asset_name.strip().lower().endswith(self.suffix.lower())

    def version_of(self, asset_name: str, prefix: str = "llvm-") -> str | None:
        """Version embedded between prefix and suffix in asset_name.

        Release tags of build repositories are often timestamps, so the
        file name is the only reliable place to read the tool version from.
        """
        name = asset_name.strip()
        if not self.matches(name) or not name.startswith(prefix):
            return None
        version = name[len(prefix) : len(name) - len(self.suffix)]
        return version or None


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    """Resolved pointer to one downloadable artifact."""

    url: str
    file_name: str
    bin_path: str
    drop_suffix: str

    @property
    def release_label(self) -> str | None:
        """Release label taken from a ".../download/<label>/<file>" URL."""
        parts = self.url.rstrip("/").split("/")
        if len(parts) >= 3 and parts[-3] == "download":
            return parts[-2]
        return None

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class VersionSelector:
    """A named most-recent slot and which versions it accepts."""

    release_key: str
    prerelease_accepted: bool


@dataclass(slots=True)
class MostRecentVersion:
    version: SemVer | None = None


LATEST = "latest"
LATEST_PRERELEASE = "latest-prerelease"

VERSION_SELECTORS: tuple[VersionSelector, ...] = (
    VersionSelector(release_key=LATEST, prerelease_accepted=False),
    VersionSelector(release_key=LATEST_PRERELEASE, prerelease_accepted=True),
)

type CatalogType = dict[str, dict[str, ArtifactRef]]
type MostRecentReleases = dict[str, dict[str, MostRecentVersion]]


@dataclass(frozen=True, slots=True)
class ReleaseCatalog:
    """Read-only view over a built catalog and its most-recent index."""

    entries: CatalogType
    most_recent: MostRecentReleases

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def keys(self) -> list[str]:
        return list(self.entries)

    def artifact(self, key: str, platform: str) -> ArtifactRef | None:
        """Artifact for key on platform, if the catalog has one."""
        return self.entries.get(key, {}).get(platform)

    def concrete_version(self, key: str, platform: str) -> str:
        """Exact version behind key.

        Selector keys map to the version they currently mirror for platform;
        any other key is returned as is.
        """
        recent = self.most_recent.get(key, {}).get(platform)
        if recent is not None and recent.version is not None:
            return recent.version.version
        return key

    def to_dict(self) -> dict[str, dict[str, dict[str, str]]]:
        return {
            version: {platform: ref.to_dict() for platform, ref in platforms.items()}
            for version, platforms in self.entries.items()
        }
