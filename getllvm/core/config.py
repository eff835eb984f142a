"""Typed configuration loading and access.

Configuration is layered:
1. Defaults (the pinned llvm-build release)
2. Optional getllvm.toml
3. Runner environment variables (RUNNER_TEMP, RUNNER_TOOL_CACHE, ...)

CLI options are applied on top by the command layer with dataclasses.replace.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_table, parse_bool

__all__ = [
    "BUILD_TYPES",
    "BuildType",
    "CacheConfig",
    "CatalogConfig",
    "Config",
    "ConfigError",
    "LLVMConfig",
    "apply_environment",
    "load_config",
    # Defaults
    "DEFAULT_LLVM_VERSION",
    "DEFAULT_LLVM_RELEASE",
    "DEFAULT_DOWNLOAD_URL_PREFIX",
    "DEFAULT_CATALOG_REPO",
]

BuildType = Literal["MinSizeRel", "Debug"]
BUILD_TYPES: tuple[BuildType, ...] = ("MinSizeRel", "Debug")

DEFAULT_LLVM_VERSION = "20.1.6"
DEFAULT_LLVM_RELEASE = "20250717-163129"
DEFAULT_DOWNLOAD_URL_PREFIX = "https://github.com/hylo-lang/llvm-build/releases/download"
DEFAULT_CATALOG_REPO = "hylo-lang/llvm-build"

# Runner environment variables
ENV_SCRATCH_ROOT = "RUNNER_TEMP"
ENV_TOOL_CACHE = "RUNNER_TOOL_CACHE"
ENV_REMOTE_CACHE = "GETLLVM_REMOTE_CACHE"
ENV_USE_CLOUD_CACHE = "GETLLVM_USE_CLOUD_CACHE"
ENV_USE_LOCAL_CACHE = "GETLLVM_USE_LOCAL_CACHE"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when configuration is missing or cannot be parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class LLVMConfig:
    """Which LLVM build to fetch and where it is published."""

    version: str = DEFAULT_LLVM_VERSION
    release: str = DEFAULT_LLVM_RELEASE
    build_type: BuildType = "MinSizeRel"
    download_url_prefix: str = DEFAULT_DOWNLOAD_URL_PREFIX


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Cache tier switches and storage roots.

    use_cloud_cache suits hosted runners; use_local_cache suits self-hosted
    runners that keep their tool cache between jobs.
    """

    use_cloud_cache: bool = True
    use_local_cache: bool = False
    scratch_root: Path | None = None
    tool_cache_dir: Path | None = None
    remote_cache_dir: Path | None = None


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Where published assets are read from."""

    repo: str = DEFAULT_CATALOG_REPO


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    llvm: LLVMConfig = field(default_factory=LLVMConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If build_type is not a known build type.
        """
        llvm: StrDict = get_table(data, "llvm") or {}
        cache: StrDict = get_table(data, "cache") or {}
        catalog: StrDict = get_table(data, "catalog") or {}

        build_type = get_str(llvm, "build_type") or "MinSizeRel"
        if build_type not in BUILD_TYPES:
            raise ValueError(
                f"build_type must be one of {', '.join(BUILD_TYPES)}, got {build_type!r}"
            )

        use_cloud = get_bool(cache, "use_cloud_cache")
        use_local = get_bool(cache, "use_local_cache")

        return cls(
            llvm=LLVMConfig(
                version=get_str(llvm, "version") or DEFAULT_LLVM_VERSION,
                release=get_str(llvm, "release") or DEFAULT_LLVM_RELEASE,
                build_type=build_type,  # type: ignore[arg-type]
                download_url_prefix=(
                    get_str(llvm, "download_url_prefix") or DEFAULT_DOWNLOAD_URL_PREFIX
                ).rstrip("/"),
            ),
            cache=CacheConfig(
                use_cloud_cache=True if use_cloud is None else use_cloud,
                use_local_cache=False if use_local is None else use_local,
                scratch_root=_optional_path(get_str(cache, "scratch_root")),
                tool_cache_dir=_optional_path(get_str(cache, "tool_cache_dir")),
                remote_cache_dir=_optional_path(get_str(cache, "remote_cache_dir")),
            ),
            catalog=CatalogConfig(
                repo=get_str(catalog, "repo") or DEFAULT_CATALOG_REPO,
            ),
        )


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def apply_environment(config: Config, environ: Mapping[str, str] | None = None) -> Config:
    """Overlay runner environment variables onto a config.

    Environment values win over the config file. Unset or empty variables
    leave the file value in place.
    """
    env = os.environ if environ is None else environ
    cache = config.cache

    scratch = env.get(ENV_SCRATCH_ROOT) or None
    tool_cache = env.get(ENV_TOOL_CACHE) or None
    remote = env.get(ENV_REMOTE_CACHE) or None
    use_cloud = parse_bool(env.get(ENV_USE_CLOUD_CACHE, ""))
    use_local = parse_bool(env.get(ENV_USE_LOCAL_CACHE, ""))

    return Config(
        llvm=config.llvm,
        cache=CacheConfig(
            use_cloud_cache=cache.use_cloud_cache if use_cloud is None else use_cloud,
            use_local_cache=cache.use_local_cache if use_local is None else use_local,
            scratch_root=Path(scratch) if scratch else cache.scratch_root,
            tool_cache_dir=Path(tool_cache) if tool_cache else cache.tool_cache_dir,
            remote_cache_dir=Path(remote) if remote else cache.remote_cache_dir,
        ),
        catalog=config.catalog,
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to getllvm.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

