from __future__ import annotations

from pathlib import Path

import typer

from getllvm.catalog.resolver import resolve_version
from getllvm.cli.commands._helpers import check_build_type, exit_on_error, load_catalog
from getllvm.cli.context import build_context
from getllvm.core.errors import ErrorCode
from getllvm.core.result import Err
from getllvm.output.console import Style


def resolve(
    token: str = typer.Argument(..., help="Exact version, 'latest', 'latest-prerelease' or range."),
    build_type: str | None = typer.Option(None, "--build-type", help="MinSizeRel or Debug."),
    platform: str | None = typer.Option(
        None,
        "--platform",
        help="Catalog platform key (linux, linux-arm64, darwin, win32, win32-arm64).",
    ),
    assets: Path | None = typer.Option(
        None,
        "--assets",
        help="Read release assets from a JSON file instead of the GitHub API.",
    ),
) -> None:
    """Resolve a version token against the release catalog."""
    ctx = build_context()
    target = platform or ctx.platform.catalog_key
    built = load_catalog(ctx, check_build_type(ctx, build_type), assets)

    result = resolve_version(built, token, target, ctx.console)
    exit_on_error(result, ctx, ErrorCode.NOT_FOUND)
    if isinstance(result, Err):
        return

    version = built.concrete_version(result.value, target)
    typer.echo(version)
    artifact = built.artifact(result.value, target)
    if artifact is not None:
        ctx.console.print(artifact.url, Style.DIM)
