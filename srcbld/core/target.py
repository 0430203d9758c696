# SPDX-License-Identifier: MIT
"""Build tuples: one (configuration, bitness, compiler) combination.

Every tuple gets its own ninja script, its own object directory and its
own output binary. All of those names are derived here so the ninja
generator, the makefile generator and BuildLibs resolution agree on
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from srcbld.core.options import Opt

if TYPE_CHECKING:
    from srcbld.core.project import ProjectModel


class Config(Enum):
    """Build configuration."""

    DEBUG = "dbg"
    RELEASE = "rel"


class Compiler(Enum):
    """Compiler family a script is generated for."""

    MSVC = "msvc"
    CLANG = "clang"
    GCC = "gcc"

    @classmethod
    def from_name(cls, name: str) -> Compiler | None:
        """Look up a compiler by name, ignoring case."""
        name = name.strip().lower()
        for compiler in cls:
            if compiler.value == name:
                return compiler
        return None

    @property
    def is_msvc_compatible(self) -> bool:
        """True for compilers that take cl.exe style flags."""
        return self in (Compiler.MSVC, Compiler.CLANG)


@dataclass(frozen=True)
class BuildTarget:
    """A single build tuple.

    Attributes:
        config: Debug or release.
        bits: 32 or 64.
        compiler: Compiler family.
    """

    config: Config
    bits: int
    compiler: Compiler

    @property
    def is_debug(self) -> bool:
        return self.config is Config.DEBUG

    @property
    def is_32bit(self) -> bool:
        return self.bits == 32

    @property
    def name(self) -> str:
        """Short name such as "msvc_dbg" or "clang_x86_rel"."""
        arch = "_x86" if self.is_32bit else ""
        return f"{self.compiler.value}{arch}_{self.config.value}"

    @property
    def outdir(self) -> str:
        """Directory for object files, relative to the project root."""
        return f"build/{self.name}"

    @property
    def object_suffix(self) -> str:
        return ".obj" if self.compiler.is_msvc_compatible else ".o"

    def script_name(self, builddir: str = "bld") -> str:
        """Path of the ninja script for this tuple."""
        return f"{builddir}/{self.name}.ninja"

    def target_path(self, model: ProjectModel) -> str:
        """Path of the binary this tuple produces.

        Naming follows the project type:

        - lib: <dir>/<project>[64][D].lib
        - dll/ocx: <dir>/<project>[64].dll (never a debug suffix, so a
          release program can load a debug dll)
        - console/window: <dir>/<project>[64][D].exe

        The "64" or "32" suffix is only added when b64_suffix or
        b32_suffix is set. GCC tuples use lib<project>.a,
        lib<project>.so and a plain executable name instead.
        """
        project = model.project_name
        suffix = self._bits_suffix(model)
        debug = "D" if self.is_debug else ""
        directory = self._target_dir(model)

        if model.is_exe_type_lib():
            if not self.compiler.is_msvc_compatible:
                filename = f"lib{project}{suffix}{debug}.a"
            else:
                filename = f"{project}{suffix}{debug}.lib"
        elif model.is_exe_type_dll():
            if not self.compiler.is_msvc_compatible:
                filename = f"lib{project}{suffix}.so"
            else:
                filename = f"{project}{suffix}.{model.exe_type}"
        elif not self.compiler.is_msvc_compatible:
            filename = f"{project}{suffix}{debug}"
        else:
            filename = f"{project}{suffix}{debug}.exe"

        return f"{directory}/{filename}"

    def _bits_suffix(self, model: ProjectModel) -> str:
        if self.is_32bit:
            return "32" if model.is_option_true(Opt.BIT32_SUFFIX) else ""
        return "64" if model.is_option_true(Opt.BIT64_SUFFIX) else ""

    def _target_dir(self, model: ProjectModel) -> str:
        key = Opt.TARGET_DIR32 if self.is_32bit else Opt.TARGET_DIR64
        if model.has_option(key):
            return (model.get_option(key) or "").rstrip("/\\").replace("\\", "/")

        root = model.root_dir
        if model.is_exe_type_lib():
            return _first_existing(root, ("../lib",), "lib")
        if not self.is_32bit:
            found = _first_existing(root, ("../bin64", "bin64"), "")
            if found:
                return found
        return _first_existing(root, ("../bin",), "bin")


def _first_existing(root: Path, candidates: tuple[str, ...], fallback: str) -> str:
    for candidate in candidates:
        if (root / candidate).is_dir():
            return candidate
    return fallback
