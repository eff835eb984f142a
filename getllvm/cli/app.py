from __future__ import annotations

import os
import traceback
from pathlib import Path

import typer

from getllvm import __version__
from getllvm.cli.commands.catalog_cmd import catalog
from getllvm.cli.commands.install import install
from getllvm.cli.commands.key_cmd import key
from getllvm.cli.commands.resolve_cmd import resolve
from getllvm.cli.context import ENV_CONFIG_FILE, ENV_VERBOSE
from getllvm.core.errors import ErrorCode
from getllvm.output.console import RichConsole, Style


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(install)
app.command()(resolve)
app.command()(catalog)
app.command()(key)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (defaults to ./getllvm.toml when present)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
) -> None:
    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: config file not found: {path}", err=True)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        os.environ[ENV_CONFIG_FILE] = str(path)

    if verbose:
        os.environ[ENV_VERBOSE] = "1"


def main() -> None:
    try:
        app()
    except Exception as e:
        console = RichConsole(stderr=True)
        console.error(f"Unexpected error: {e}")
        console.print(traceback.format_exc(), Style.DIM)
        raise SystemExit(int(ErrorCode.INTERNAL_ERROR)) from e
