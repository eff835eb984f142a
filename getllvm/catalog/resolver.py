"""Version resolution against a release catalog.

A requested token is either a catalog key (exact version or selector such as
"latest") or a semantic version range. Exact keys win; ranges pick the highest
satisfying exact version.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from getllvm.catalog.semver import SemVer, max_satisfying, parse_range, parse_version
from getllvm.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from getllvm.catalog.model import ReleaseCatalog
    from getllvm.output.console import ConsoleProtocol

__all__ = [
    "ExactHit",
    "RangeHit",
    "NotFound",
    "Resolution",
    "VersionNotFound",
    "resolve",
    "resolve_version",
]


@dataclass(frozen=True, slots=True)
class ExactHit:
    """The token itself is a catalog key with an artifact for the platform."""

    version: str


@dataclass(frozen=True, slots=True)
class RangeHit:
    """The token is a range; version is the highest satisfying catalog key."""

    version: str
    range: str


@dataclass(frozen=True, slots=True)
class NotFound:
    token: str
    platform: str


type Resolution = ExactHit | RangeHit | NotFound


@dataclass(frozen=True, slots=True)
class VersionNotFound:
    """Error when no catalog version matches a requested token."""

    token: str
    platform: str

    @property
    def message(self) -> str:
        return f"Cannot match llvm version '{self.token}' in the catalog for '{self.platform}'"

    def __str__(self) -> str:
        return self.message


def resolve(
    catalog: ReleaseCatalog,
    token: str,
    platform: str,
    console: ConsoleProtocol | None = None,
) -> Resolution:
    """Resolve token to a catalog key.

    Args:
        catalog: Catalog to search
        token: Exact version, selector name, or semantic version range
        platform: Catalog platform key of the target
        console: Optional console for diagnostic output

    Returns:
        ExactHit, RangeHit or NotFound
    """
    if catalog.artifact(token, platform) is not None:
        return ExactHit(token)

    if console is not None:
        console.debug(f"'{token}' is not a catalog key for '{platform}', matching it as a range")

    version_range = parse_range(token)
    if version_range is None:
        if console is not None:
            console.debug(f"'{token}' is not a valid version range")
        return NotFound(token, platform)

    candidates: list[SemVer] = []
    for key in catalog.keys():
        version = parse_version(key)
        if version is None:
            if console is not None:
                console.debug(f"Skipping {key}")
            continue
        candidates.append(version)

    best = max_satisfying(candidates, version_range)
    if best is None:
        return NotFound(token, platform)
    return RangeHit(best.version, token)


def resolve_version(
    catalog: ReleaseCatalog,
    token: str,
    platform: str,
    console: ConsoleProtocol | None = None,
) -> Result[str, VersionNotFound]:
    """Resolve token and return the matched catalog key.

    Returns:
        Ok with the catalog key, or Err with VersionNotFound
    """
    match resolve(catalog, token, platform, console):
        case ExactHit(version=version) | RangeHit(version=version):
            return Ok(version)
        case NotFound():
            return Err(VersionNotFound(token=token, platform=platform))
