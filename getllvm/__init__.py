"""Resolve, cache and install hylo-lang/llvm-build LLVM releases."""

__version__ = "0.1.0"
