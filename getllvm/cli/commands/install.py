"""Install command - resolve, obtain and export an LLVM build."""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from pathlib import Path

import typer

from getllvm.cache.identity import LLVMIdentity
from getllvm.cache.orchestrator import LLVMGetter
from getllvm.cache.tiers import DirectoryCache, ToolCache
from getllvm.catalog.filters import llvm_build_filters
from getllvm.catalog.resolver import resolve_version
from getllvm.cli.commands._helpers import check_build_type, exit_on_error, load_catalog
from getllvm.cli.context import CLIContext, build_context
from getllvm.core.config import CacheConfig, LLVMConfig
from getllvm.core.errors import ErrorCode
from getllvm.core.result import Err
from getllvm.output.console import Style
from getllvm.output.errors import fetch_error_exit_code, print_fetch_error
from getllvm.tools.download import Downloader
from getllvm.tools.environment import (
    EnvironmentExporter,
    GitHubEnvExporter,
    ShellExporter,
    llvm_environment,
    missing_executables,
)
from getllvm.tools.extract import ArchiveExtractor
from getllvm.tools.http import RealHttpClient


class ExportMode(str, Enum):
    GITHUB = "github"
    SHELL = "shell"
    NONE = "none"


def install(
    version: str | None = typer.Option(
        None,
        "--version",
        help="LLVM version; with --catalog also 'latest', 'latest-prerelease' or a range.",
    ),
    build_type: str | None = typer.Option(None, "--build-type", help="MinSizeRel or Debug."),
    release: str | None = typer.Option(None, "--release", help="llvm-build release label."),
    use_catalog: bool = typer.Option(
        False,
        "--catalog",
        help="Resolve --version against the published releases.",
    ),
    assets: Path | None = typer.Option(
        None,
        "--assets",
        help="Read release assets from a JSON file (implies --catalog).",
    ),
    cloud_cache: bool | None = typer.Option(
        None,
        "--cloud-cache/--no-cloud-cache",
        help="Use the shared remote cache.",
    ),
    local_cache: bool | None = typer.Option(
        None,
        "--local-cache/--no-local-cache",
        help="Use the runner tool cache.",
    ),
    export: ExportMode = typer.Option(
        ExportMode.GITHUB,
        "--export",
        help="How to export PATH and LLVM variables.",
    ),
) -> None:
    """Install LLVM from the cache tiers or the llvm-build releases."""
    ctx = build_context()
    llvm = ctx.config.llvm
    llvm = replace(
        llvm,
        version=version or llvm.version,
        release=release or llvm.release,
        build_type=check_build_type(ctx, build_type),
    )
    cache = ctx.config.cache
    cache = replace(
        cache,
        use_cloud_cache=cache.use_cloud_cache if cloud_cache is None else cloud_cache,
        use_local_cache=cache.use_local_cache if local_cache is None else local_cache,
    )

    if use_catalog or assets is not None:
        llvm = _resolve_from_catalog(ctx, llvm, assets)

    getter = _make_getter(ctx, llvm, cache)
    identity = LLVMIdentity(
        version=llvm.version,
        platform=ctx.platform.platform,
        arch=ctx.platform.arch,
        build_type=llvm.build_type,
    )
    ctx.console.info(f"Installing LLVM {llvm.version} ({llvm.build_type}) for {ctx.platform}")

    result = getter.obtain(identity)
    if isinstance(result, Err):
        print_fetch_error(result.error, ctx.console)
        raise typer.Exit(code=fetch_error_exit_code(result.error))
    obtained = result.value

    env = llvm_environment(obtained.path, obtained.file_name, ctx.platform.platform)
    missing = missing_executables(env, ctx.platform.platform)
    if missing:
        ctx.console.error(f"Missing in {env.bin_dir}: {', '.join(missing)}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    exporter = _exporter(ctx, export)
    if exporter is not None:
        exporter.export(env)
    ctx.console.success(f"LLVM {llvm.version} ready in {env.root} (from {obtained.source})")


def _resolve_from_catalog(ctx: CLIContext, llvm: LLVMConfig, assets: Path | None) -> LLVMConfig:
    target = ctx.platform.catalog_key
    built = load_catalog(ctx, llvm.build_type, assets)
    result = resolve_version(built, llvm.version, target, ctx.console)
    exit_on_error(result, ctx, ErrorCode.NOT_FOUND)
    if isinstance(result, Err):
        return llvm

    concrete = built.concrete_version(result.value, target)
    artifact = built.artifact(result.value, target)
    if artifact is None:
        ctx.console.info(f"Resolved '{llvm.version}' to {concrete}")
        return replace(llvm, version=concrete)

    platform_filter = next(
        (f for f in llvm_build_filters(llvm.build_type) if f.platform == target), None
    )
    version = platform_filter.version_of(artifact.file_name) if platform_filter else None
    if version is None:
        ctx.console.warning(f"Cannot read the LLVM version from {artifact.file_name}")
        version = concrete
    ctx.console.info(f"Resolved '{llvm.version}' to {version} ({artifact.file_name})")
    return replace(llvm, version=version, release=artifact.release_label or llvm.release)


def _make_getter(ctx: CLIContext, llvm: LLVMConfig, cache: CacheConfig) -> LLVMGetter:
    local: ToolCache | None = None
    if cache.use_local_cache:
        if cache.tool_cache_dir is None:
            ctx.console.error("Local cache requested but no tool cache directory is set")
            ctx.console.print("hint: set RUNNER_TOOL_CACHE or cache.tool_cache_dir", Style.DIM)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        local = ToolCache(cache.tool_cache_dir)

    remote: DirectoryCache | None = None
    if cache.use_cloud_cache:
        if cache.remote_cache_dir is None:
            ctx.console.warning("Remote cache disabled: GETLLVM_REMOTE_CACHE is not set")
        else:
            remote = DirectoryCache(cache.remote_cache_dir)

    scratch = cache.scratch_root
    download_dir = (scratch or Path.cwd()) / "downloads"
    return LLVMGetter(
        fetcher=Downloader(RealHttpClient(), download_dir),
        extractor=ArchiveExtractor(),
        console=ctx.console,
        scratch_root=scratch,
        download_url_prefix=llvm.download_url_prefix,
        release=llvm.release,
        host_platform=str(ctx.platform.platform),
        local=local,
        remote=remote,
    )


def _exporter(ctx: CLIContext, mode: ExportMode) -> EnvironmentExporter | None:
    match mode:
        case ExportMode.GITHUB:
            exporter = GitHubEnvExporter.from_environ(ctx.console)
            if exporter is None:
                ctx.console.warning("GITHUB_PATH/GITHUB_ENV not set, printing shell exports")
                return ShellExporter(ctx.console)
            return exporter
        case ExportMode.SHELL:
            return ShellExporter(ctx.console)
        case ExportMode.NONE:
            return None
