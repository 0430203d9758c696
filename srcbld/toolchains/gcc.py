# SPDX-License-Identifier: MIT
"""GCC toolchain.

Generates scripts for g++, ar and windres. GCC has no equivalent of the
MSVC precompiled header switches used here, so the precompiled header
source is compiled like any other file and no midl rule is emitted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from srcbld.core.flags import join_flags, prefixed, split_list
from srcbld.core.options import Opt
from srcbld.core.target import Compiler
from srcbld.tools.toolchain import BaseToolchain

if TYPE_CHECKING:
    from srcbld.tools.toolchain import ToolContext


class GccToolchain(BaseToolchain):
    """Toolchain for GCC on Linux and MinGW."""

    deps_style = "gcc"
    cc = "g++"

    def __init__(self) -> None:
        super().__init__("gcc", Compiler.GCC)

    @property
    def supports_midl(self) -> bool:
        return False

    def _arch(self, ctx: ToolContext) -> str:
        return "-m32" if ctx.target.is_32bit else "-m64"

    def base_cflags(self, ctx: ToolContext) -> list[str]:
        model = ctx.model
        if ctx.is_debug:
            flags = ["-g", "-O0", "-D_DEBUG"]
        else:
            flags = ["-O2" if model.is_optimize_speed() else "-Os", "-DNDEBUG"]

        warn = (model.get_option(Opt.WARN) or "").strip()
        if warn == "4":
            flags += ["-Wall", "-Wextra"]
        elif warn == "3":
            flags.append("-Wall")

        flags.append(self._arch(ctx))
        if model.is_exe_type_dll():
            flags.append("-fPIC")
        return flags

    def compiler_cflags(self, ctx: ToolContext) -> list[str]:
        flags = []
        if not ctx.is_debug:
            flags.append(ctx.option(Opt.GCC_REL))
        flags.append(ctx.option(Opt.GCC_CMN))
        if ctx.is_debug:
            flags.append(ctx.option(Opt.GCC_DBG))
        return [flag for flag in flags if flag]

    def _compile_command(self) -> str:
        return f"{self.cc} -c $cflags -MMD -MF $out.d $in -o $out"

    def compile_pch_rule(self, ctx: ToolContext) -> list[str]:
        return self.rule(
            "compilePCH",
            self._compile_command(),
            "compiling $in",
            deps=self.deps_style,
            depfile="$out.d",
        )

    def compile_rule(self, ctx: ToolContext) -> list[str]:
        return self.rule(
            "compile",
            self._compile_command(),
            "compiling $in",
            deps=self.deps_style,
            depfile="$out.d",
        )

    def link_rule(self, ctx: ToolContext) -> list[str]:
        model = ctx.model
        command = join_flags(
            self.cc,
            "-o $out $in",
            "-shared" if model.is_exe_type_dll() else None,
            self._arch(ctx),
            ctx.option(Opt.LINK_CMN),
            ctx.config_option(Opt.LINK_REL, Opt.LINK_DBG),
            prefixed("-L", split_list(model.get_option(Opt.LIB_DIRS))),
            split_list(model.get_option(Opt.LIBS_CMN)),
            split_list(ctx.config_option(Opt.LIBS_REL, Opt.LIBS_DBG)),
        )
        return self.rule("link", command, "linking $out")

    def lib_rule(self, ctx: ToolContext) -> list[str]:
        command = "rm -f $out && ar rcs $out $in"
        return self.rule("lib", command, "creating library $out")

    def rc_rule(self, ctx: ToolContext) -> list[str]:
        command = join_flags(
            "windres",
            prefixed("-I", ctx.include_dirs),
            ctx.option(Opt.RC_CMN),
            "-D_DEBUG" if ctx.is_debug else None,
            ctx.config_option(Opt.RC_REL, Opt.RC_DBG),
            "-O coff -o $out $in",
        )
        return self.rule("rc", command, "resource compiler... $in")
