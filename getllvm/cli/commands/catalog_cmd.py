from __future__ import annotations

import json
from pathlib import Path

import typer

from getllvm.catalog.model import VERSION_SELECTORS
from getllvm.catalog.semver import parse_version
from getllvm.cli.commands._helpers import check_build_type, load_catalog
from getllvm.cli.context import build_context
from getllvm.output.console import Style


def catalog(
    build_type: str | None = typer.Option(None, "--build-type", help="MinSizeRel or Debug."),
    assets: Path | None = typer.Option(
        None,
        "--assets",
        help="Read release assets from a JSON file instead of the GitHub API.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the catalog as JSON."),
) -> None:
    """List the published LLVM versions per platform."""
    ctx = build_context()
    built = load_catalog(ctx, check_build_type(ctx, build_type), assets)

    if as_json:
        typer.echo(json.dumps(built.to_dict(), indent=2, sort_keys=True))
        return

    selectors = [s.release_key for s in VERSION_SELECTORS]
    versions = [v for k in built.keys() if (v := parse_version(k)) is not None]
    for version in sorted(versions, reverse=True):
        platforms = ", ".join(sorted(built.entries[version.version]))
        ctx.console.print(f"{version.version}: {platforms}")
    for selector in selectors:
        for platform in sorted(built.entries.get(selector, {})):
            concrete = built.concrete_version(selector, platform)
            ctx.console.print(f"{selector} ({platform}) -> {concrete}", Style.DIM)
