# SPDX-License-Identifier: MIT
"""Toolchain definitions (MSVC, clang-cl, GCC)."""

from __future__ import annotations

from srcbld.core.target import Compiler
from srcbld.toolchains.clang_cl import ClangClToolchain
from srcbld.toolchains.gcc import GccToolchain
from srcbld.toolchains.msvc import MsvcToolchain
from srcbld.tools.toolchain import BaseToolchain


def toolchain_for(compiler: Compiler) -> BaseToolchain:
    """Return a fresh toolchain for a compiler family."""
    if compiler is Compiler.CLANG:
        return ClangClToolchain()
    if compiler is Compiler.GCC:
        return GccToolchain()
    return MsvcToolchain()


__all__ = [
    "ClangClToolchain",
    "GccToolchain",
    "MsvcToolchain",
    "toolchain_for",
]
