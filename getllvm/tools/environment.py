"""Environment produced by an installed LLVM tree.

llvm_environment() describes what should be exported (PATH entries and
library search variables) without touching os.environ. Exporters apply that
description: GitHubEnvExporter appends to the runner's GITHUB_PATH and
GITHUB_ENV files, ShellExporter prints POSIX export lines.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from getllvm.platform.detection import Platform
from getllvm.platform.files import append_text

if TYPE_CHECKING:
    from getllvm.output.console import ConsoleProtocol

__all__ = [
    "ToolEnvironment",
    "EnvironmentExporter",
    "GitHubEnvExporter",
    "ShellExporter",
    "llvm_environment",
    "missing_executables",
    "REQUIRED_EXECUTABLES",
]

REQUIRED_EXECUTABLES = ("llvm-config", "clang")

_LIBRARY_PATH_VARS = {
    Platform.LINUX: "LD_LIBRARY_PATH",
    Platform.MACOS: "DYLD_LIBRARY_PATH",
}


def _empty_env() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class ToolEnvironment:
    """Paths and variables to export for an installed tree.

    Attributes:
        root: Top directory of the extracted archive
        path_additions: Directories to prepend to PATH
        env_vars: Variables to set; library path variables are prepended to
            their current value by exporters
    """

    root: Path
    path_additions: tuple[Path, ...]
    env_vars: dict[str, str] = field(default_factory=_empty_env)

    @property
    def bin_dir(self) -> Path:
        return self.path_additions[0]


def llvm_environment(
    install_root: Path,
    archive_file_name: str,
    platform: Platform,
    *,
    bin_path: str = "bin",
    drop_suffix: str = ".tar.zst",
) -> ToolEnvironment:
    """Describe the environment for an LLVM tree extracted into install_root.

    The archive unpacks into a directory named after the file without its
    archive suffix, e.g. "<root>/llvm-20.1.6-x86_64-unknown-linux-gnu-MinSizeRel/bin".
    """
    dir_name = archive_file_name.removesuffix(drop_suffix)
    root = install_root / dir_name
    bin_dir = root / bin_path
    lib_dir = root / "lib"

    env_vars = {
        "LLVM_ROOT": str(root),
        "LLVM_CONFIG": str(bin_dir / platform.exe_name("llvm-config")),
    }
    lib_var = _LIBRARY_PATH_VARS.get(platform)
    if lib_var is not None:
        env_vars[lib_var] = str(lib_dir)
    if platform.is_unix:
        env_vars["PKG_CONFIG_PATH"] = str(lib_dir / "pkgconfig")

    return ToolEnvironment(root=root, path_additions=(bin_dir,), env_vars=env_vars)


def missing_executables(env: ToolEnvironment, platform: Platform) -> list[str]:
    """Required executables not found in the environment's bin directory."""
    search = os.pathsep.join(str(p) for p in env.path_additions)
    return [
        name
        for name in REQUIRED_EXECUTABLES
        if shutil.which(platform.exe_name(name), path=search) is None
    ]


_PREPENDED_VARS = frozenset({"LD_LIBRARY_PATH", "DYLD_LIBRARY_PATH", "PKG_CONFIG_PATH"})


def _joined(name: str, value: str, environ: Mapping[str, str]) -> str:
    current = environ.get(name)
    if name in _PREPENDED_VARS and current:
        return f"{value}{os.pathsep}{current}"
    return value


class EnvironmentExporter(Protocol):
    def export(self, env: ToolEnvironment) -> None: ...


class GitHubEnvExporter:
    """Exports through the runner's GITHUB_PATH and GITHUB_ENV files."""

    def __init__(
        self,
        path_file: Path,
        env_file: Path,
        console: ConsoleProtocol,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._path_file = path_file
        self._env_file = env_file
        self._console = console
        self._environ = os.environ if environ is None else environ

    @classmethod
    def from_environ(
        cls, console: ConsoleProtocol, environ: Mapping[str, str] | None = None
    ) -> GitHubEnvExporter | None:
        """Exporter for the current runner, or None outside of a workflow."""
        env = os.environ if environ is None else environ
        path_file = env.get("GITHUB_PATH")
        env_file = env.get("GITHUB_ENV")
        if not path_file or not env_file:
            return None
        return cls(Path(path_file), Path(env_file), console, env)

    def export(self, env: ToolEnvironment) -> None:
        for path in env.path_additions:
            append_text(self._path_file, f"{path}\n")
            self._console.info(f"Added '{path}' to PATH")
        for name, value in sorted(env.env_vars.items()):
            append_text(self._env_file, f"{name}={_joined(name, value, self._environ)}\n")
            self._console.debug(f"Exported {name}")


class ShellExporter:
    """Prints POSIX shell export lines for eval in a calling script."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def export(self, env: ToolEnvironment) -> None:
        paths = os.pathsep.join(str(p) for p in env.path_additions)
        self._console.print(f'export PATH="{paths}{os.pathsep}$PATH"')
        for name, value in sorted(env.env_vars.items()):
            if name in _PREPENDED_VARS:
                self._console.print(f'export {name}="{value}${{{name}:+{os.pathsep}${name}}}"')
            else:
                self._console.print(f'export {name}="{value}"')
