"""Sources of published assets.

Assets come either from the GitHub Releases API of the build repository or
from a JSON file with the same shape (handy for pinned, offline catalogs):

    [{"tag_name": "20.1.6", "assets": [{"name": "...", "browser_download_url": "..."}]}]

A flat list of {"name", "browser_download_url", "tag_name"} objects is
accepted as well.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from getllvm.catalog.model import Asset
from getllvm.core.result import Err, Ok, Result
from getllvm.core.structured import as_obj_list, as_str_dict, get_str
from getllvm.tools.http import HttpError

if TYPE_CHECKING:
    from getllvm.output.console import ConsoleProtocol
    from getllvm.tools.http import HttpClient

__all__ = [
    "AssetSourceError",
    "assets_from_releases",
    "github_release_assets",
    "load_assets_file",
]

GITHUB_API = "https://api.github.com"
PER_PAGE = 100
MAX_PAGES = 10


class AssetSourceError(ValueError):
    """Raised when a release payload does not have the expected shape."""


def assets_from_releases(payload: object) -> list[Asset]:
    """Flatten a releases payload into assets.

    Raises:
        AssetSourceError: If payload is not a list of objects.
    """
    items = as_obj_list(payload)
    if items is None:
        raise AssetSourceError("Expected a JSON array of releases or assets")

    assets: list[Asset] = []
    for item in items:
        entry = as_str_dict(item)
        if entry is None:
            raise AssetSourceError(f"Expected a JSON object, got {type(item).__name__}")

        tag = get_str(entry, "tag_name")
        nested = as_obj_list(entry.get("assets"))
        if nested is None:
            # Flat asset entry
            name = get_str(entry, "name")
            url = get_str(entry, "browser_download_url")
            if name and url and tag:
                assets.append(Asset(name=name, download_url=url, tag_name=tag))
            continue

        if tag is None:
            continue
        for raw_asset in nested:
            asset = as_str_dict(raw_asset)
            if asset is None:
                continue
            name = get_str(asset, "name")
            url = get_str(asset, "browser_download_url")
            if name and url:
                assets.append(Asset(name=name, download_url=url, tag_name=tag))
    return assets


def load_assets_file(path: Path) -> list[Asset]:
    """Read assets from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        AssetSourceError: If the content is not a releases/assets array.
    """
    try:
        payload: object = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise AssetSourceError(f"Invalid JSON in {path}: {e}") from e
    return assets_from_releases(payload)


def github_release_assets(
    http: HttpClient, repo: str, console: ConsoleProtocol | None = None
) -> Result[list[Asset], HttpError]:
    """Fetch every release asset of a GitHub repository.

    Listing stops after MAX_PAGES pages; console, when given, is warned.

    Args:
        http: HTTP client to use
        repo: Repository in "owner/repo" format (e.g., "hylo-lang/llvm-build")
        console: Receives a warning when the page limit cuts the listing short

    Returns:
        Ok with the assets of all releases, or Err with HttpError
    """
    assets: list[Asset] = []
    for page in range(1, MAX_PAGES + 1):
        url = f"{GITHUB_API}/repos/{repo}/releases?per_page={PER_PAGE}&page={page}"
        result = http.get_text(url)
        if isinstance(result, Err):
            return result

        try:
            payload: object = json.loads(result.value)
            releases = as_obj_list(payload)
            if releases is None:
                return Err(HttpError(url=url, status=0, message="Expected JSON array"))
            assets.extend(assets_from_releases(releases))
        except json.JSONDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        except AssetSourceError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        if len(releases) < PER_PAGE:
            break
    else:
        if console is not None:
            console.warning(
                f"Stopped listing {repo} after {MAX_PAGES * PER_PAGE} releases; "
                "older releases are not in the catalog"
            )
    return Ok(assets)
