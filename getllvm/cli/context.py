from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from getllvm.core.config import Config, apply_environment, load_config
from getllvm.core.errors import ErrorCode
from getllvm.core.result import Err
from getllvm.output.console import ConsoleProtocol, RichConsole
from getllvm.platform.detection import PlatformInfo, detect

DEFAULT_CONFIG_FILE = "getllvm.toml"

# Set by the app callback from --config / --verbose.
ENV_CONFIG_FILE = "GETLLVM_CONFIG"
ENV_VERBOSE = "GETLLVM_VERBOSE"


@dataclass(frozen=True, slots=True)
class CLIContext:
    platform: PlatformInfo
    config: Config
    console: ConsoleProtocol


def _config_path() -> Path | None:
    explicit = os.environ.get(ENV_CONFIG_FILE)
    if explicit:
        return Path(explicit)
    default = Path.cwd() / DEFAULT_CONFIG_FILE
    return default if default.is_file() else None


def build_context() -> CLIContext:
    console = RichConsole(verbose=os.environ.get(ENV_VERBOSE) == "1")

    config = Config()
    path = _config_path()
    if path is not None:
        config_result = load_config(path)
        if isinstance(config_result, Err):
            typer.echo(f"error: {config_result.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        config = config_result.value

    return CLIContext(
        platform=detect(),
        config=apply_environment(config),
        console=console,
    )
