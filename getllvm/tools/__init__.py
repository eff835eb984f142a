"""Tools infrastructure for fetching and installing LLVM builds.

This package provides:
- HTTP client for release metadata and downloads (http.py)
- Artifact downloader (download.py)
- Archive extraction (extract.py)
- Exported tool environment (environment.py)
"""

from getllvm.tools.download import Downloader, Fetcher
from getllvm.tools.environment import (
    EnvironmentExporter,
    GitHubEnvExporter,
    ShellExporter,
    ToolEnvironment,
    llvm_environment,
    missing_executables,
)
from getllvm.tools.extract import ArchiveExtractor, ExtractError, Extractor, ExtractResult
from getllvm.tools.http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    # HTTP
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # Download
    "Downloader",
    "Fetcher",
    # Extraction
    "ArchiveExtractor",
    "ExtractError",
    "ExtractResult",
    "Extractor",
    # Environment
    "ToolEnvironment",
    "EnvironmentExporter",
    "GitHubEnvExporter",
    "ShellExporter",
    "llvm_environment",
    "missing_executables",
]
