# SPDX-License-Identifier: MIT
"""MSVC toolchain: cl.exe, link.exe, lib.exe, rc.exe and midl.exe."""

from __future__ import annotations

from typing import TYPE_CHECKING

from srcbld.core.flags import join_flags, prefixed, split_list
from srcbld.core.options import Opt
from srcbld.core.target import Compiler
from srcbld.tools.toolchain import BaseToolchain

if TYPE_CHECKING:
    from srcbld.tools.toolchain import ToolContext


class MsvcToolchain(BaseToolchain):
    """Toolchain for the Microsoft compiler.

    clang-cl accepts the same flags, so ClangClToolchain derives from
    this class and only replaces the executables and the
    compiler-specific flags.
    """

    cc = "cl.exe"

    def __init__(self, name: str = "msvc", compiler: Compiler = Compiler.MSVC) -> None:
        super().__init__(name, compiler)

    def _static_crt(self, ctx: ToolContext) -> bool:
        key = Opt.STATIC_CRT_DBG if ctx.is_debug else Opt.STATIC_CRT_REL
        return ctx.model.is_option_true(key)

    def _machine(self, ctx: ToolContext) -> str:
        return "x86" if ctx.target.is_32bit else "x64"

    def comment_lines(self, ctx: ToolContext) -> list[str]:
        lines = [
            "msvc_deps_prefix = Note: including file:",
            "",
            "# -EHsc   // Structured exception handling",
        ]
        if ctx.is_debug:
            if self._static_crt(ctx):
                lines.append("# -MD     // Multithreaded static CRT")
            else:
                lines.append("# -MDd    // Multithreaded debug dll (MSVCRTD)")
            lines.append(
                "# -Z7     // Produces object files with full symbolic debugging"
                " information"
            )
        else:
            if self.compiler is Compiler.MSVC:
                lines.append("# -GL     // Whole program optimization")
            if self._static_crt(ctx):
                lines.append("# -MT     // Static CRT multi-threaded library")
            else:
                lines.append("# -MD     // Dynamic CRT multi-threaded library")
            if ctx.model.is_exe_type_lib():
                lines.append(
                    "# -Zl     // Don't specify default runtime library in .obj file"
                )
            if ctx.model.is_optimize_speed():
                lines.append(
                    "# -O2     // Optimize for speed (/Og /Oi /Ot /Oy /Ob2 /Gs /GF /Gy)"
                )
            else:
                lines.append(
                    "# -O1     // Optimize for size (/Og /Os /Oy /Ob2 /Gs /GF /Gy)"
                )
        lines.append("# -FC     // Full path to source code file in diagnostics")
        lines.append("")
        return lines

    def base_cflags(self, ctx: ToolContext) -> list[str]:
        model = ctx.model
        flags = ["-nologo", "-D_DEBUG" if ctx.is_debug else "-DNDEBUG"]
        flags += ["-showIncludes", "-EHsc"]
        if model.is_exe_type_console():
            flags.append("-D_CONSOLE")
        flags.append(f"-W{model.get_option(Opt.WARN) or '4'}")
        if model.is_option_true(Opt.STDCALL):
            flags.append("-Gz")

        if ctx.is_debug:
            flags.append("-MD" if self._static_crt(ctx) else "-MDd")
            flags += ["-Od", "-Z7"]
        else:
            flags.append("-MT" if self._static_crt(ctx) else "-MD")
            if model.is_exe_type_lib():
                flags.append("-Zl")
            flags.append("-O2" if model.is_optimize_speed() else "-O1")
        flags.append("-FC")
        return flags

    def compiler_cflags(self, ctx: ToolContext) -> list[str]:
        flags = []
        if ctx.model.is_option_true(Opt.PERMISSIVE):
            flags.append("-permissive-")
        if not ctx.is_debug:
            flags.append("-GL")
        return flags

    def pch_cflags(self, ctx: ToolContext) -> list[str]:
        if ctx.pch_name is None:
            return []
        return [f"/Fp$outdir/{ctx.pch_name}"]

    def _pdb(self, ctx: ToolContext) -> str:
        return f"$outdir/{ctx.model.project_name}.pdb"

    def compile_pch_rule(self, ctx: ToolContext) -> list[str]:
        command = join_flags(
            self.cc,
            "-c $cflags -Fo$outdir/ $in",
            f"-Fd{self._pdb(ctx)}",
            f"-Yc{ctx.model.pch_header}",
        )
        return self.rule("compilePCH", command, "compiling $in", deps=self.deps_style)

    def compile_rule(self, ctx: ToolContext) -> list[str]:
        command = join_flags(
            self.cc,
            "-c $cflags -Fo$out $in",
            f"-Fd{self._pdb(ctx)}" if ctx.is_debug else None,
            f"-Yu{ctx.model.pch_header}" if ctx.model.pch_header else None,
        )
        return self.rule("compile", command, "compiling $in", deps=self.deps_style)

    def linker(self, ctx: ToolContext) -> str:
        if ctx.model.is_option_true(Opt.MS_LINKER):
            return "link.exe /nologo"
        return "link.exe -nologo"

    def _link_mode_flags(self, ctx: ToolContext) -> list[str]:
        if ctx.is_debug:
            flags = []
            natvis = ctx.option(Opt.NATVIS)
            if natvis:
                flags.append(f"/natvis:{natvis}")
            flags.append(f"/debug /pdb:{self._pdb(ctx)}")
            return flags
        flags = ["/opt:ref /opt:icf"]
        if self.compiler is Compiler.MSVC:
            flags.append("/ltcg")
        return flags

    def link_rule(self, ctx: ToolContext) -> list[str]:
        model = ctx.model
        subsystem = "console" if model.is_exe_type_console() else "windows"
        command = join_flags(
            self.linker(ctx),
            "/out:$out /manifest:no",
            "/dll" if model.is_exe_type_dll() else None,
            f"/machine:{self._machine(ctx)}",
            ctx.option(Opt.LINK_CMN),
            ctx.config_option(Opt.LINK_REL, Opt.LINK_DBG),
            self._link_mode_flags(ctx),
            f"/subsystem:{subsystem}",
            prefixed("/LIBPATH:", split_list(model.get_option(Opt.LIB_DIRS))),
            split_list(model.get_option(Opt.LIBS_CMN)),
            split_list(ctx.config_option(Opt.LIBS_REL, Opt.LIBS_DBG)),
            "$in",
        )
        return self.rule("link", command, "linking $out")

    def lib_rule(self, ctx: ToolContext) -> list[str]:
        machine = self._machine(ctx)
        command = f"lib.exe /MACHINE:{machine} /LTCG /NOLOGO /OUT:$out $in"
        return self.rule("lib", command, "creating library $out")

    def resource_compiler(self, ctx: ToolContext) -> str:
        return "rc.exe -nologo"

    def rc_rule(self, ctx: ToolContext) -> list[str]:
        command = join_flags(
            self.resource_compiler(ctx),
            prefixed("-I", ctx.include_dirs),
            ctx.option(Opt.RC_CMN),
            "-d_DEBUG" if ctx.is_debug else None,
            ctx.config_option(Opt.RC_REL, Opt.RC_DBG),
            "/l 0x409 -fo$out $in",
        )
        return self.rule("rc", command, "resource compiler... $in")

    def midl_rule(self, ctx: ToolContext) -> list[str]:
        command = join_flags(
            "midl.exe /nologo",
            "/win32" if ctx.target.is_32bit else "/x64",
            prefixed("-I", ctx.include_dirs),
            ctx.option(Opt.MIDL_CMN),
            ctx.config_option(Opt.MIDL_REL, Opt.MIDL_DBG),
            "$in",
        )
        return self.rule("midl", command, "midl compiler... $in")
