from __future__ import annotations

import typer

from getllvm.cache.identity import LLVMIdentity, archive_file_name, download_url
from getllvm.cache.key import derive_key
from getllvm.cli.commands._helpers import check_build_type, exit_on_error
from getllvm.cli.context import build_context
from getllvm.core.errors import ErrorCode
from getllvm.core.result import Err
from getllvm.output.console import Style


def key(
    version: str | None = typer.Option(None, "--version", help="LLVM version."),
    build_type: str | None = typer.Option(None, "--build-type", help="MinSizeRel or Debug."),
) -> None:
    """Print the archive name and cache keys for this host."""
    ctx = build_context()
    llvm = ctx.config.llvm
    identity = LLVMIdentity(
        version=version or llvm.version,
        platform=ctx.platform.platform,
        arch=ctx.platform.arch,
        build_type=check_build_type(ctx, build_type),
    )

    name = archive_file_name(identity)
    exit_on_error(name, ctx, ErrorCode.ENV_ERROR)
    if isinstance(name, Err):
        return

    cache_key = derive_key(name.value)
    ctx.console.print(f"file: {name.value}")
    ctx.console.print(f"key: {cache_key}")
    ctx.console.print(f"local version: {cache_key.fake_semver}")
    ctx.console.print(
        f"url: {download_url(llvm.download_url_prefix, llvm.release, name.value)}", Style.DIM
    )
