# SPDX-License-Identifier: MIT
"""clang-cl toolchain.

clang-cl is a drop-in replacement for cl.exe, so this toolchain reuses
the MSVC command lines and swaps in the LLVM executables: clang-cl.exe,
lld-link.exe and (unless ms_rc is set) llvm-rc.exe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from srcbld.core.flags import join_flags
from srcbld.core.options import Opt
from srcbld.core.target import Compiler
from srcbld.toolchains.msvc import MsvcToolchain

if TYPE_CHECKING:
    from srcbld.tools.toolchain import ToolContext


class ClangClToolchain(MsvcToolchain):
    """Toolchain for clang-cl with the LLVM linker."""

    cc = "clang-cl.exe"

    def __init__(self) -> None:
        super().__init__("clang", Compiler.CLANG)

    def compiler_cflags(self, ctx: ToolContext) -> list[str]:
        flags = ["-D__clang__", "-fms-compatibility-version=19"]
        flags.append("-m32" if ctx.target.is_32bit else "-m64")
        if not ctx.is_debug:
            flags += ["-flto", "-fwhole-program-vtables"]
            flags.append(ctx.option(Opt.CLANG_REL) or "")
        flags.append(ctx.option(Opt.CLANG_CMN) or "")
        if ctx.is_debug:
            flags.append(ctx.option(Opt.CLANG_DBG) or "")
        return [flag for flag in flags if flag]

    def linker(self, ctx: ToolContext) -> str:
        if ctx.model.is_option_true(Opt.MS_LINKER):
            return "link.exe /nologo"
        return "lld-link.exe"

    def lib_rule(self, ctx: ToolContext) -> list[str]:
        command = join_flags(
            "lld-link.exe /lib",
            f"/machine:{self._machine(ctx)}",
            "/out:$out $in",
        )
        return self.rule("lib", command, "creating library $out")

    def resource_compiler(self, ctx: ToolContext) -> str:
        if ctx.model.is_option_true(Opt.MS_RC):
            return "rc.exe -nologo"
        return "llvm-rc.exe -nologo"
