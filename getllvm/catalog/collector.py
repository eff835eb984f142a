"""Release catalog builder.

ReleasesCollector consumes published assets and fills a catalog plus the
most-recent index used to maintain the "latest" selectors.

Selectors are tracked per acceptance class: "latest" only ever mirrors a
stable version and "latest-prerelease" only ever mirrors a prerelease, even
when a stable release is newer than every prerelease. Consumers rely on this
split, so it is kept as is.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from getllvm.catalog.model import (
    VERSION_SELECTORS,
    ArtifactRef,
    Asset,
    CatalogType,
    MostRecentReleases,
    MostRecentVersion,
    PlatformFilter,
    ReleaseCatalog,
)
from getllvm.catalog.semver import SemVer, parse_tag

if TYPE_CHECKING:
    from getllvm.output.console import ConsoleProtocol

__all__ = ["ReleasesCollector", "build_catalog"]


class ReleasesCollector:
    """Builds a release catalog from published assets.

    Usage:
        collector = ReleasesCollector(LLVM_BUILD_FILTERS, console)
        collector.track(assets)
        catalog = collector.catalog()
    """

    def __init__(self, filters: Sequence[PlatformFilter], console: ConsoleProtocol) -> None:
        self._filters = tuple(filters)
        self._console = console
        self._map: CatalogType = {}
        self._most_recent: MostRecentReleases = {}

    def catalog(self) -> ReleaseCatalog:
        """Snapshot of the catalog built so far."""
        return ReleaseCatalog(
            entries={k: dict(v) for k, v in self._map.items()},
            most_recent={
                k: {p: MostRecentVersion(r.version) for p, r in v.items()}
                for k, v in self._most_recent.items()
            },
        )

    def track(self, assets: Iterable[Asset]) -> None:
        """Add assets to the catalog.

        Unparseable tags and unmatched assets are logged and skipped. Any
        other exception aborts the whole batch after being logged.
        """
        try:
            for asset in assets:
                release_hit = False
                for release_filter in self._filters:
                    if not release_filter.matches(asset.name):
                        continue
                    version = parse_tag(asset.tag_name)
                    if version is None:
                        self._console.warning(
                            f"Cannot parse a version from tag '{asset.tag_name}' of '{asset.name}'"
                        )
                        continue
                    self._insert(asset, release_filter, version)
                    release_hit = True

                if not release_hit:
                    self._console.debug(f"Skipping {asset.name}")
        except Exception as e:
            self._console.error(f"Fatal error while collecting releases: {e}")
            raise

    def _insert(self, asset: Asset, release_filter: PlatformFilter, version: SemVer) -> None:
        platform = release_filter.platform
        self._map.setdefault(version.version, {})[platform] = ArtifactRef(
            url=asset.download_url,
            file_name=asset.name,
            bin_path=release_filter.bin_path,
            drop_suffix=release_filter.drop_suffix,
        )

        for selector in VERSION_SELECTORS:
            if selector.prerelease_accepted != version.is_prerelease:
                continue
            tracked = self._most_recent.setdefault(selector.release_key, {})
            latest = tracked.get(platform)
            # >= so that the last asset observed wins on equal versions.
            if latest is None or latest.version is None or version >= latest.version:
                tracked[platform] = MostRecentVersion(version)
                mirror = self._map.setdefault(selector.release_key, {})
                mirror[platform] = self._map[version.version][platform]


def build_catalog(
    assets: Iterable[Asset],
    filters: Sequence[PlatformFilter],
    console: ConsoleProtocol,
) -> ReleaseCatalog:
    """Build a catalog from assets in one call."""
    collector = ReleasesCollector(filters, console)
    collector.track(assets)
    return collector.catalog()
