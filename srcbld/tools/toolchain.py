# SPDX-License-Identifier: MIT
"""Toolchain base class.

A Toolchain knows how one compiler family spells its command lines:
the flag-comment block, the cflags variable, and the ninja rules for
compiling, linking, archiving and compiling resources. The ninja
generator decides which rules and build edges a script needs; the
toolchain only supplies the text of each rule.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from srcbld.core.flags import env_flags, join_flags, prefixed, split_list
from srcbld.core.options import Opt

if TYPE_CHECKING:
    from srcbld.core.project import ProjectModel
    from srcbld.core.target import BuildTarget, Compiler


@dataclass
class ToolContext:
    """Everything a toolchain needs to write the rules of one tuple.

    Attributes:
        model: The project being generated.
        target: The build tuple.
        environ: Environment consulted for flag overrides.
    """

    model: ProjectModel
    target: BuildTarget
    environ: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_debug(self) -> bool:
        return self.target.is_debug

    def option(self, key: Opt) -> str | None:
        """Return an option value if it is set to something usable."""
        if self.model.has_option(key):
            return self.model.get_option(key)
        return None

    def config_option(self, release: Opt, debug: Opt) -> str | None:
        """Return the release or debug variant of an option."""
        return self.option(debug if self.is_debug else release)

    @property
    def include_dirs(self) -> list[str]:
        return split_list(self.model.get_option(Opt.INC_DIRS))

    @property
    def pch_name(self) -> str | None:
        """Name of the compiled precompiled header, e.g. "pch.pch"."""
        header = self.model.pch_header
        if not header:
            return None
        stem = header.replace("\\", "/").rsplit("/", 1)[-1].rsplit(".", 1)[0]
        return f"{stem}.pch"


class BaseToolchain(ABC):
    """Abstract base class for toolchains.

    Subclasses provide the command text for each rule. The order in
    which compiler flags are layered is fixed here so every compiler
    family applies user and environment flags the same way.
    """

    # Value of "deps =" in compile rules.
    deps_style = "msvc"

    def __init__(self, name: str, compiler: Compiler) -> None:
        """Initialize a toolchain.

        Args:
            name: Toolchain name.
            compiler: Compiler family this toolchain generates for.
        """
        self._name = name
        self._compiler = compiler

    @property
    def name(self) -> str:
        return self._name

    @property
    def compiler(self) -> Compiler:
        return self._compiler

    @property
    def supports_midl(self) -> bool:
        return True

    def comment_lines(self, ctx: ToolContext) -> list[str]:
        """Variables and comments written before the cflags line."""
        return []

    @abstractmethod
    def base_cflags(self, ctx: ToolContext) -> list[str]:
        """Flags every compile of this configuration starts with."""
        ...

    @abstractmethod
    def compiler_cflags(self, ctx: ToolContext) -> list[str]:
        """Flags specific to this compiler family."""
        ...

    def pch_cflags(self, ctx: ToolContext) -> list[str]:
        return []

    def cflags(self, ctx: ToolContext) -> str:
        """Assemble the cflags value for a tuple.

        Order: base flags, CFlags, CFlagsR or CFlagsD, compiler-specific
        flags, include directories, precompiled header flags, then
        environment overrides.
        """
        return join_flags(
            self.base_cflags(ctx),
            ctx.option(Opt.CFLAGS_CMN),
            ctx.config_option(Opt.CFLAGS_REL, Opt.CFLAGS_DBG),
            self.compiler_cflags(ctx),
            prefixed("-I", ctx.include_dirs),
            self.pch_cflags(ctx),
            env_flags(ctx.target, ctx.environ),
        )

    @abstractmethod
    def compile_pch_rule(self, ctx: ToolContext) -> list[str]: ...

    @abstractmethod
    def compile_rule(self, ctx: ToolContext) -> list[str]: ...

    @abstractmethod
    def link_rule(self, ctx: ToolContext) -> list[str]: ...

    @abstractmethod
    def lib_rule(self, ctx: ToolContext) -> list[str]: ...

    @abstractmethod
    def rc_rule(self, ctx: ToolContext) -> list[str]: ...

    def midl_rule(self, ctx: ToolContext) -> list[str]:
        return []

    @staticmethod
    def rule(name: str, command: str, description: str, **extra: str) -> list[str]:
        """Format a ninja rule block followed by a blank line."""
        lines = [f"rule {name}"]
        lines.extend(f"  {key} = {value}" for key, value in extra.items())
        lines.append(f"  command = {command}")
        lines.append(f"  description = {description}")
        lines.append("")
        return lines

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
