"""Tests for getllvm.catalog.sources - GitHub API and JSON asset files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import getllvm.catalog.sources as sources
from getllvm.catalog.model import Asset
from getllvm.catalog.sources import (
    AssetSourceError,
    assets_from_releases,
    github_release_assets,
    load_assets_file,
)
from getllvm.core.result import Err, Ok
from getllvm.output.console import MockConsole
from getllvm.tools.http import HttpError, MockHttpClient

API = "https://api.github.com/repos/hylo-lang/llvm-build/releases"


def _release(tag: str, *names: str) -> dict[str, object]:
    return {
        "tag_name": tag,
        "assets": [
            {"name": n, "browser_download_url": f"https://example.com/{tag}/{n}"} for n in names
        ],
    }


class TestAssetsFromReleases:
    """Payload flattening."""

    def test_nested_releases(self) -> None:
        assets = assets_from_releases([_release("20.1.6", "a.tar.zst", "b.tar.zst")])
        assert assets == [
            Asset("a.tar.zst", "https://example.com/20.1.6/a.tar.zst", "20.1.6"),
            Asset("b.tar.zst", "https://example.com/20.1.6/b.tar.zst", "20.1.6"),
        ]

    def test_flat_assets(self) -> None:
        payload = [{"name": "a", "browser_download_url": "u", "tag_name": "1.0.0"}]
        assert assets_from_releases(payload) == [Asset("a", "u", "1.0.0")]

    def test_incomplete_entries_skipped(self) -> None:
        payload = [
            {"name": "no-url", "tag_name": "1.0.0"},
            {"assets": [{"name": "x", "browser_download_url": "u"}]},
            _release("2.0.0", "ok"),
        ]
        assert [a.name for a in assets_from_releases(payload)] == ["ok"]

    def test_not_a_list(self) -> None:
        with pytest.raises(AssetSourceError):
            assets_from_releases({"tag_name": "1.0.0"})

    def test_not_objects(self) -> None:
        with pytest.raises(AssetSourceError):
            assets_from_releases(["1.0.0"])


class TestLoadAssetsFile:
    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "assets.json"
        path.write_text(json.dumps([_release("20.1.6", "a")]), encoding="utf-8")
        assert len(load_assets_file(path)) == 1

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "assets.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(AssetSourceError, match="Invalid JSON"):
            load_assets_file(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_assets_file(tmp_path / "missing.json")


class TestGitHubReleaseAssets:
    """Paginated GitHub releases listing."""

    def test_single_page(self) -> None:
        http = MockHttpClient()
        http.set_text(
            f"{API}?per_page=100&page=1", json.dumps([_release("20.1.6", "a", "b")])
        )

        result = github_release_assets(http, "hylo-lang/llvm-build")

        assert isinstance(result, Ok)
        assert [a.name for a in result.value] == ["a", "b"]
        assert http.calls == [("get_text", f"{API}?per_page=100&page=1")]

    def test_follows_full_pages(self) -> None:
        http = MockHttpClient()
        page1 = [_release(f"1.0.{i}", "a") for i in range(100)]
        http.set_text(f"{API}?per_page=100&page=1", json.dumps(page1))
        http.set_text(f"{API}?per_page=100&page=2", json.dumps([_release("0.9.0", "z")]))

        console = MockConsole()

        result = github_release_assets(http, "hylo-lang/llvm-build", console)

        assert isinstance(result, Ok)
        assert len(result.value) == 101
        assert len(http.calls) == 2
        assert not console.has_warning()

    def test_page_limit_warns(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sources, "MAX_PAGES", 2)
        http = MockHttpClient()
        for page in (1, 2):
            releases = [_release(f"{page}.0.{i}", "a") for i in range(100)]
            http.set_text(f"{API}?per_page=100&page={page}", json.dumps(releases))
        console = MockConsole()

        result = github_release_assets(http, "hylo-lang/llvm-build", console)

        assert isinstance(result, Ok)
        assert len(result.value) == 200
        assert len(http.calls) == 2
        assert console.find("Stopped listing hylo-lang/llvm-build after 200 releases")

    def test_http_error(self) -> None:
        http = MockHttpClient()
        error = HttpError(url=f"{API}?per_page=100&page=1", status=403, message="rate limited")
        http.set_text(f"{API}?per_page=100&page=1", error)

        result = github_release_assets(http, "hylo-lang/llvm-build")

        assert result == Err(error)

    def test_bad_payload(self) -> None:
        http = MockHttpClient()
        http.set_text(f"{API}?per_page=100&page=1", '{"message": "Not Found"}')

        result = github_release_assets(http, "hylo-lang/llvm-build")

        assert isinstance(result, Err)
        assert "Expected JSON array" in result.error.message
