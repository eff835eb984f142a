"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import typer

from getllvm.catalog.collector import build_catalog
from getllvm.catalog.filters import llvm_build_filters
from getllvm.catalog.sources import AssetSourceError, github_release_assets, load_assets_file
from getllvm.core.config import BUILD_TYPES
from getllvm.core.errors import ErrorCode
from getllvm.core.result import Err, Result
from getllvm.output.console import Style
from getllvm.tools.http import RealHttpClient

if TYPE_CHECKING:
    from getllvm.catalog.model import Asset, ReleaseCatalog
    from getllvm.cli.context import CLIContext
    from getllvm.core.config import BuildType
    from getllvm.tools.http import HttpClient


T = TypeVar("T")
E = TypeVar("E")


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))


def check_build_type(ctx: CLIContext, build_type: str | None) -> BuildType:
    """Validate a --build-type option, defaulting to the configured one."""
    if build_type is None:
        return ctx.config.llvm.build_type
    if build_type not in BUILD_TYPES:
        ctx.console.error(f"build type must be one of {', '.join(BUILD_TYPES)}: {build_type}")
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
    return build_type  # type: ignore[return-value]


def _fetch_assets(ctx: CLIContext, assets_file: Path | None, http: HttpClient) -> list[Asset]:
    if assets_file is not None:
        try:
            return load_assets_file(assets_file)
        except (OSError, AssetSourceError) as e:
            ctx.console.error(f"Cannot read assets from {assets_file}: {e}")
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR)) from e

    repo = ctx.config.catalog.repo
    ctx.console.debug(f"Listing releases of {repo}")
    result = github_release_assets(http, repo, ctx.console)
    if isinstance(result, Err):
        ctx.console.error(f"Cannot list releases of {repo}")
        ctx.console.print(str(result.error), Style.DIM)
        raise typer.Exit(code=int(ErrorCode.NETWORK_ERROR))
    return result.value


def load_catalog(
    ctx: CLIContext,
    build_type: BuildType,
    assets_file: Path | None = None,
    http: HttpClient | None = None,
) -> ReleaseCatalog:
    """Build the release catalog for build_type or exit."""
    assets = _fetch_assets(ctx, assets_file, http or RealHttpClient())
    ctx.console.debug(f"Collected {len(assets)} assets")
    return build_catalog(assets, llvm_build_filters(build_type), ctx.console)
